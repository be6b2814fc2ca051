"""Nested validators: secondary checks run against a probe's response body.

PostgresCredentialValidator checks that the payload describes a usable
PostgreSQL login: structure first, then a single-use connection + SELECT 1.
It never reuses the service's own result-store connection.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any, Protocol

import psycopg

from .models import ValidationOutcome

logger = logging.getLogger(__name__)

INVALID_CREDENTIALS_FORMAT = "Invalid database credentials format"


class ResourceValidator(Protocol):
    """Validates a response payload against the resource it describes."""

    def validate(self, payload: Any) -> ValidationOutcome: ...


class PostgresCredentialValidator:
    """Verifies that database credentials in a payload actually authenticate."""

    REQUIRED_FIELDS = ("host", "user", "password", "database")
    DEFAULT_PORT = 5432

    def __init__(self, connect_timeout: int = 10, default_port: int | None = None) -> None:
        self.connect_timeout = connect_timeout
        self.default_port = default_port or self.DEFAULT_PORT

    def validate(self, payload: Any) -> ValidationOutcome:
        if not isinstance(payload, Mapping) or any(
            not payload.get(key) for key in self.REQUIRED_FIELDS
        ):
            return ValidationOutcome.failed(INVALID_CREDENTIALS_FORMAT)

        params = {
            "host": payload["host"],
            "port": payload.get("port") or self.default_port,
            "user": payload["user"],
            "password": payload["password"],
            "dbname": payload["database"],
        }
        try:
            with psycopg.connect(**params, connect_timeout=self.connect_timeout) as conn:
                conn.execute("SELECT 1")
        except (psycopg.Error, OSError) as e:
            logger.info(
                "Credential check failed for %s@%s:%s/%s: %s",
                params["user"], params["host"], params["port"], params["dbname"], e,
            )
            return ValidationOutcome.failed(str(e) or type(e).__name__)

        return ValidationOutcome.ok()


# Registry used by probes.yaml (`validate: <name>`)
VALIDATORS: dict[str, type[ResourceValidator]] = {
    "postgres-credentials": PostgresCredentialValidator,
}


def build_validator(name: str, **options: Any) -> ResourceValidator:
    """Instantiate a registered validator by name."""
    try:
        cls = VALIDATORS[name]
    except KeyError:
        raise KeyError(f"Unknown validator: {name}") from None
    return cls(**options)
