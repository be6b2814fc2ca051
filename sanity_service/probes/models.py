"""Probe battery models: specs, validation outcomes, report entries.

A ProbeSpec carries a capability: BasicProbe (status match is enough) or
ValidatingProbe (status match, then a ResourceValidator on the body).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import TYPE_CHECKING, Any, Union

if TYPE_CHECKING:
    from .validators import ResourceValidator


# ── Probe specs ──────────────────────────────────────────────────────────────


@dataclass(frozen=True)
class BasicProbe:
    """Status-code match alone decides the outcome."""


@dataclass(frozen=True)
class ValidatingProbe:
    """Status-code match, then a nested validation of the response body."""

    validator: ResourceValidator


Capability = Union[BasicProbe, ValidatingProbe]


@dataclass(frozen=True)
class ProbeSpec:
    """Static description of one check in the battery."""

    description: str
    target: str
    method: str = "GET"
    expected_status: int = 200
    capability: Capability = field(default_factory=BasicProbe)


# ── Outcomes ─────────────────────────────────────────────────────────────────


class Result(str, Enum):
    PASS = "Pass"
    FAIL = "Fail"


@dataclass(frozen=True)
class ValidationOutcome:
    """Outcome of a nested validation; error is set only on failure."""

    success: bool
    error: str | None = None

    def __post_init__(self) -> None:
        if self.success and self.error is not None:
            raise ValueError("A successful validation cannot carry an error")
        if not self.success and not self.error:
            object.__setattr__(self, "error", "Validation failed")

    @classmethod
    def ok(cls) -> ValidationOutcome:
        return cls(success=True)

    @classmethod
    def failed(cls, error: str) -> ValidationOutcome:
        return cls(success=False, error=error)


@dataclass(frozen=True)
class ReportEntry:
    """Durable outcome of one probe within one run.

    result is FAIL exactly when error is set. A failing entry built without
    a message gets a generic one so the pairing always holds.
    """

    run_id: str
    description: str
    result: Result
    error: str | None = None

    def __post_init__(self) -> None:
        object.__setattr__(self, "result", Result(self.result))
        if self.result is Result.PASS and self.error is not None:
            raise ValueError("A passing entry cannot carry an error")
        if self.result is Result.FAIL and not self.error:
            object.__setattr__(self, "error", "Probe failed")

    @classmethod
    def passed(cls, run_id: str, description: str) -> ReportEntry:
        return cls(run_id=run_id, description=description, result=Result.PASS)

    @classmethod
    def failed(cls, run_id: str, description: str, error: str) -> ReportEntry:
        return cls(run_id=run_id, description=description, result=Result.FAIL, error=error)

    def to_dict(self) -> dict[str, Any]:
        return {
            "run_id": self.run_id,
            "description": self.description,
            "result": self.result.value,
            "error": self.error,
        }

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> ReportEntry:
        return cls(
            run_id=row["run_id"],
            description=row["description"],
            result=Result(row["result"]),
            error=row.get("error"),
        )


@dataclass(frozen=True)
class RunReport:
    """In-memory report of one run, returned to the caller."""

    run_id: str
    report: tuple[ReportEntry, ...] = ()

    @property
    def failed(self) -> bool:
        return any(e.result is Result.FAIL for e in self.report)

    def to_dict(self) -> dict[str, Any]:
        return {"run_id": self.run_id, "report": [e.to_dict() for e in self.report]}
