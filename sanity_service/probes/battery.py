"""Battery loader: reads the static probe battery from probes.yaml.

The battery is loaded once at process start and shared read-only by every
run. Entries look like:

    probes:
      - description: Check if API returns valid database credentials
        target: https://pgmaker.example.com/db-credentials
        method: GET
        expected_status: 200
        validate: postgres-credentials
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from .models import BasicProbe, ProbeSpec, ValidatingProbe
from .validators import build_validator

logger = logging.getLogger(__name__)


class BatteryConfigError(Exception):
    """Raised when probes.yaml cannot be turned into a battery."""


def load_battery(path: Path | str, connect_timeout: int = 10) -> tuple[ProbeSpec, ...]:
    """Parse probes.yaml into an ordered, immutable battery."""
    path = Path(path)
    if not path.exists():
        logger.warning("Battery file not found: %s, running with no probes", path)
        return ()

    try:
        raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise BatteryConfigError(f"Failed to parse {path}: {e}") from e
    if not isinstance(raw, dict):
        raise BatteryConfigError(f"{path} must contain a mapping with a 'probes' list")

    battery = tuple(
        _parse_probe(entry, index, connect_timeout)
        for index, entry in enumerate(raw.get("probes") or [])
    )

    seen: set[str] = set()
    for probe in battery:
        if probe.description in seen:
            logger.warning("Duplicate probe description in battery: %r", probe.description)
        seen.add(probe.description)

    logger.info("Loaded %d probe(s) from %s", len(battery), path)
    return battery


def _parse_probe(raw: dict[str, Any], index: int, connect_timeout: int) -> ProbeSpec:
    if not isinstance(raw, dict):
        raise BatteryConfigError(f"Probe #{index} is not a mapping")
    for key in ("description", "target"):
        if not raw.get(key):
            raise BatteryConfigError(f"Probe #{index} is missing '{key}'")

    capability: BasicProbe | ValidatingProbe = BasicProbe()
    if raw.get("validate"):
        try:
            validator = build_validator(raw["validate"], connect_timeout=connect_timeout)
        except KeyError as e:
            raise BatteryConfigError(f"Probe #{index}: {e.args[0]}") from e
        capability = ValidatingProbe(validator=validator)

    try:
        expected_status = int(raw.get("expected_status", 200))
    except (TypeError, ValueError) as e:
        raise BatteryConfigError(f"Probe #{index}: invalid expected_status") from e

    return ProbeSpec(
        description=str(raw["description"]),
        target=str(raw["target"]),
        method=str(raw.get("method", "GET")).upper(),
        expected_status=expected_status,
        capability=capability,
    )
