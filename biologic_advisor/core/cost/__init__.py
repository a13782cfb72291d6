"""
Cost Estimation Layer
"""
from .estimator import (
    CostEstimate,
    TIER_ANNUAL_COST,
    calculate_assumed_costs,
    estimate_dose_reduction_savings,
    estimate_switch_savings,
)

__all__ = [
    "CostEstimate",
    "TIER_ANNUAL_COST",
    "calculate_assumed_costs",
    "estimate_dose_reduction_savings",
    "estimate_switch_savings",
]
