"""Sanity service: runs a static battery of probes and keeps an audit trail."""

__version__ = "0.1.0"
