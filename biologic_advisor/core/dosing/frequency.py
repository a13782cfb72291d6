"""
Dosing Frequency Parser

Turns charted frequency text ("Every 16 weeks", "every 1 day") into a
tagged result relative to the drug's maintenance interval:

    StandardInterval        within charting variance of the label interval
    ExtendedInterval(ratio) interval stretched beyond that variance
    UnparsableFrequency     anything that cannot be compared (with why)
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Optional, Tuple, Union

from .standard import IntervalUnit, MaintenanceInterval

# "every 13 weeks" on a 12-week drug is still standard dosing
STANDARD_VARIANCE_RATIO = 1.15

_FREQUENCY_PATTERN = re.compile(r"every\s+(\d+)\s+(week|day)", re.IGNORECASE)


@dataclass(frozen=True)
class StandardInterval:
    ratio: float


@dataclass(frozen=True)
class ExtendedInterval:
    ratio: float


@dataclass(frozen=True)
class UnparsableFrequency:
    reason: str


FrequencyParse = Union[StandardInterval, ExtendedInterval, UnparsableFrequency]


def parse_interval(text: Optional[str]) -> Optional[Tuple[int, IntervalUnit]]:
    """Extract (N, unit) from "every N weeks|days", or None."""
    if not text:
        return None
    match = _FREQUENCY_PATTERN.search(text)
    if not match:
        return None
    unit = IntervalUnit.WEEKS if match.group(2).lower() == "week" else IntervalUnit.DAYS
    return int(match.group(1)), unit


def parse_frequency(text: Optional[str], standard: Optional[MaintenanceInterval]) -> FrequencyParse:
    if standard is None:
        return UnparsableFrequency("no standard maintenance interval for drug")

    parsed = parse_interval(text)
    if parsed is None:
        return UnparsableFrequency(f"unrecognised frequency text: {text!r}")

    interval, unit = parsed
    if unit is not standard.unit:
        return UnparsableFrequency(f"unit mismatch: {unit.value} vs standard {standard.unit.value}")

    ratio = interval / standard.interval
    if ratio <= STANDARD_VARIANCE_RATIO:
        return StandardInterval(ratio)
    return ExtendedInterval(ratio)
