"""
Dosing Layer

Maintenance-interval table, frequency parsing, dose-level detection,
label dosing reference and claims-based frequency inference.
"""
from .standard import IntervalUnit, MaintenanceInterval, STANDARD_MAINTENANCE_DOSING, get_standard_dosing
from .frequency import (
    ExtendedInterval,
    StandardInterval,
    UnparsableFrequency,
    parse_frequency,
    parse_interval,
)
from .dose_level import classify_extension_ratio, detect_dose_reduction_level
from .reference import LabelDosing, label_dosing_for, standard_dosing_for_class
from .claims import current_biologic_from_claims, infer_frequency

__all__ = [
    "IntervalUnit",
    "MaintenanceInterval",
    "STANDARD_MAINTENANCE_DOSING",
    "get_standard_dosing",
    "ExtendedInterval",
    "StandardInterval",
    "UnparsableFrequency",
    "parse_frequency",
    "parse_interval",
    "classify_extension_ratio",
    "detect_dose_reduction_level",
    "LabelDosing",
    "label_dosing_for",
    "standard_dosing_for_class",
    "current_biologic_from_claims",
    "infer_frequency",
]
