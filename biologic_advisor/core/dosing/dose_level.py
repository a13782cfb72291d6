"""
Dose-Level Detector

Classifies the current regimen as standard, 25% reduced or 50% reduced
from the interval extension ratio. Never raises: unknown drugs and
unreadable frequency text are read as standard dosing.
"""
from __future__ import annotations

import logging

from biologic_advisor.core.clinical.base import DoseReductionLevel
from .frequency import (
    STANDARD_VARIANCE_RATIO,
    ExtendedInterval,
    StandardInterval,
    UnparsableFrequency,
    parse_frequency,
)
from .standard import get_standard_dosing

logger = logging.getLogger(__name__)

# Extension ratio bands (ratio = current interval / label interval)
REDUCED_25_MAX_RATIO = 1.6   # 16%-60% extension ≈ 25% dose reduction; beyond ≈ 50%


def classify_extension_ratio(ratio: float) -> DoseReductionLevel:
    if ratio <= STANDARD_VARIANCE_RATIO:
        return DoseReductionLevel.STANDARD
    if ratio <= REDUCED_25_MAX_RATIO:
        return DoseReductionLevel.REDUCED_25
    return DoseReductionLevel.REDUCED_50


def detect_dose_reduction_level(drug_name: str, current_frequency: str) -> DoseReductionLevel:
    result = parse_frequency(current_frequency, get_standard_dosing(drug_name))

    if isinstance(result, UnparsableFrequency):
        logger.debug(f"Dose level for {drug_name}: assuming standard ({result.reason})")
        return DoseReductionLevel.STANDARD
    if isinstance(result, StandardInterval):
        return DoseReductionLevel.STANDARD
    if isinstance(result, ExtendedInterval):
        level = classify_extension_ratio(result.ratio)
        logger.info(f"Dose level for {drug_name}: {int(level)}% reduction (ratio {result.ratio:.2f})")
        return level
    raise TypeError(f"Unhandled frequency parse result: {result!r}")
