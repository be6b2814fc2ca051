"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable, Mapping
from pathlib import Path
from typing import Any

import httpx
import pytest

from sanity_service.probes.models import ReportEntry, ValidationOutcome
from sanity_service.store import SQLiteResultStore, StorageError

Route = httpx.Response | Exception | Callable[[httpx.Request], httpx.Response]


class StubValidator:
    """Records payloads; returns a fixed outcome or raises a fixed error."""

    def __init__(self, outcome: ValidationOutcome | None = None, raises: Exception | None = None) -> None:
        self.outcome = outcome or ValidationOutcome.ok()
        self.raises = raises
        self.payloads: list[Any] = []

    def validate(self, payload: Any) -> ValidationOutcome:
        self.payloads.append(payload)
        if self.raises is not None:
            raise self.raises
        return self.outcome


class FlakyStore(SQLiteResultStore):
    """SQLite store whose Nth append (1-based) raises StorageError."""

    def __init__(self, db_path: Path, fail_on: int) -> None:
        super().__init__(db_path)
        self.fail_on = fail_on
        self.appends = 0

    def append(self, entry: ReportEntry) -> None:
        self.appends += 1
        if self.appends == self.fail_on:
            raise StorageError("write", "disk I/O error")
        super().append(entry)


def _build_transport(routes: Mapping[str, Route]) -> httpx.MockTransport:
    def handler(request: httpx.Request) -> httpx.Response:
        route = routes.get(str(request.url))
        if route is None:
            return httpx.Response(404)
        if isinstance(route, Exception):
            raise route
        if isinstance(route, httpx.Response):
            return httpx.Response(route.status_code, headers=route.headers, content=route.content)
        return route(request)

    return httpx.MockTransport(handler)


@pytest.fixture
def store(tmp_path: Path) -> SQLiteResultStore:
    return SQLiteResultStore(db_path=tmp_path / "test_sanity.db")


@pytest.fixture
def mock_transport() -> Callable[[Mapping[str, Route]], httpx.MockTransport]:
    """Transport factory answering by URL; Exception values are raised as transport errors."""
    return _build_transport


@pytest.fixture
def stub_validator() -> Callable[..., StubValidator]:
    return StubValidator


@pytest.fixture
def flaky_store(tmp_path: Path) -> Callable[[int], FlakyStore]:
    """Factory for a store at tmp_path/flaky.db that fails on the given append."""

    def _make(fail_on: int) -> FlakyStore:
        return FlakyStore(tmp_path / "flaky.db", fail_on=fail_on)

    return _make
