"""Sequential test runner: executes the battery and persists each outcome.

Every probe yields exactly one ReportEntry, stored before the next probe
starts, so an interrupted run still leaves a queryable partial report.
Probe failures never abort a run; StorageError always does.
"""

from __future__ import annotations

import json
import logging
import uuid
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

import httpx

from .models import (
    BasicProbe,
    ProbeSpec,
    ReportEntry,
    Result,
    RunReport,
    ValidatingProbe,
)

if TYPE_CHECKING:
    from ..store import ResultStore

logger = logging.getLogger(__name__)


class TestRunner:
    """Runs a probe battery one probe at a time against a result store."""

    __test__ = False

    def __init__(self, store: ResultStore, client: httpx.Client) -> None:
        self.store = store
        self.client = client

    def execute(self, battery: Sequence[ProbeSpec]) -> RunReport:
        """Run every probe in declaration order and return the run's report."""
        run_id = str(uuid.uuid4())
        logger.info("Run %s started: %d probe(s)", run_id, len(battery))

        report: list[ReportEntry] = []
        for probe in battery:
            entry = self._run_probe(run_id, probe)
            report.append(entry)
            self.store.append(entry)

        failures = sum(1 for e in report if e.result is Result.FAIL)
        logger.info("Run %s finished: %d passed, %d failed", run_id, len(report) - failures, failures)
        return RunReport(run_id=run_id, report=tuple(report))

    def _run_probe(self, run_id: str, probe: ProbeSpec) -> ReportEntry:
        try:
            resp = self.client.request(probe.method, probe.target)
        except httpx.HTTPError as e:
            logger.warning("Probe %r transport error: %s", probe.description, e)
            return ReportEntry.failed(run_id, probe.description, _error_message(e))
        except Exception as e:
            logger.warning("Probe %r request error: %s: %s", probe.description, type(e).__name__, e)
            return ReportEntry.failed(run_id, probe.description, _error_message(e))

        if resp.status_code != probe.expected_status:
            msg = f"Expected status {probe.expected_status}, but got {resp.status_code}"
            logger.warning("Probe %r failed: %s", probe.description, msg)
            return ReportEntry.failed(run_id, probe.description, msg)

        match probe.capability:
            case BasicProbe():
                logger.info("Probe %r passed", probe.description)
                return ReportEntry.passed(run_id, probe.description)
            case ValidatingProbe(validator=validator):
                try:
                    outcome = validator.validate(_json_body(resp))
                except Exception as e:
                    logger.warning("Probe %r validator error: %s: %s", probe.description, type(e).__name__, e)
                    return ReportEntry.failed(run_id, probe.description, _error_message(e))
                if outcome.success:
                    logger.info("Probe %r passed validation", probe.description)
                    return ReportEntry.passed(run_id, probe.description)
                logger.warning("Probe %r failed validation: %s", probe.description, outcome.error)
                return ReportEntry.failed(run_id, probe.description, outcome.error or "Validation failed")
            case other:
                raise TypeError(f"Unsupported probe capability: {other!r}")


def _json_body(resp: httpx.Response) -> Any:
    """Parsed JSON body, or None when the body is not JSON."""
    try:
        return resp.json()
    except (json.JSONDecodeError, UnicodeDecodeError):
        return None


def _error_message(exc: Exception) -> str:
    return str(exc) or type(exc).__name__
