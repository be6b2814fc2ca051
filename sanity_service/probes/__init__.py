"""Probe subsystem: battery models, validators, sequential runner."""

from .models import (
    BasicProbe,
    ProbeSpec,
    ReportEntry,
    Result,
    RunReport,
    ValidatingProbe,
    ValidationOutcome,
)
from .runner import TestRunner
