"""Run service: the boundary between the HTTP/CLI layer and the runner."""

from __future__ import annotations

import logging
from collections.abc import Sequence

import httpx

from .probes.models import ProbeSpec, ReportEntry, RunReport
from .probes.runner import TestRunner
from .store import ResultStore

logger = logging.getLogger(__name__)


class RunNotFoundError(Exception):
    """Raised when a run id has no stored entries."""

    def __init__(self, run_id: str) -> None:
        self.run_id = run_id
        super().__init__(f"No results found for run {run_id}")


class RunService:
    """Triggers runs of the static battery and looks up stored runs."""

    def __init__(
        self,
        battery: Sequence[ProbeSpec],
        store: ResultStore,
        timeout: float = 30.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.battery = tuple(battery)
        self.store = store
        self.timeout = timeout
        self._transport = transport

    def trigger_run(self) -> RunReport:
        """Execute the full battery once. StorageError propagates."""
        with httpx.Client(
            timeout=self.timeout, follow_redirects=True, transport=self._transport,
        ) as client:
            return TestRunner(self.store, client).execute(self.battery)

    def fetch_run(self, run_id: str) -> list[ReportEntry]:
        """Stored entries of a run; RunNotFoundError when there are none."""
        entries = self.store.query_by_run(run_id)
        if not entries:
            raise RunNotFoundError(run_id)
        return entries
