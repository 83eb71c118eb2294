"""Duration conversion and clock helpers shared by states, agents and the simulation."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

_SECONDS_PER_UNIT = {
    's': 1.0,
    'm': 60.0,
    'h': 3600.0,
}


def convert_duration(duration: float, unit: str, dest_unit: str) -> float:
    """Convert ``duration`` between units ``s``, ``m`` and ``h``."""
    if unit not in _SECONDS_PER_UNIT:
        raise ValueError(f"Invalid unit {unit!r}: expected one of s, m, h.")
    if dest_unit not in _SECONDS_PER_UNIT:
        raise ValueError(f"Invalid destination unit {dest_unit!r}: expected one of s, m, h.")
    if unit == dest_unit:
        return duration
    return duration * _SECONDS_PER_UNIT[unit] / _SECONDS_PER_UNIT[dest_unit]


def to_seconds(duration: float, unit: str = 's') -> float:
    return duration if unit == 's' else convert_duration(duration, unit, 's')


def time_of_day(timestamp: float) -> float:
    """Hour of day in [0, 24) for a UTC epoch timestamp."""
    seconds = timestamp % 86400.0
    return seconds / 3600.0


def parse_start_date(value: Optional[str]) -> float:
    """
    Epoch timestamp for an ISO date string (naive values are read as UTC).
    None means the current wall-clock time.
    """
    if value is None:
        return datetime.now(timezone.utc).timestamp()
    try:
        moment = datetime.fromisoformat(value)
    except ValueError as exc:
        raise ValueError(f"Invalid date {value!r}: expected ISO format.") from exc
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    return moment.timestamp()


def format_timestamp(timestamp: float, fmt: str = "%Y-%m-%d %H:%M:%S") -> str:
    return datetime.fromtimestamp(timestamp, tz=timezone.utc).strftime(fmt)
