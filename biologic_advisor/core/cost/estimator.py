"""
Tier-Based Cost Estimator

Assumed annual costs per formulary tier. These are planning estimates,
never claims pricing: when neither a tier drop nor a dose reduction
applies, no cost claim is made at all (None).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

# Rough assumed annual cost by tier (USD)
TIER_ANNUAL_COST: Dict[int, float] = {
    1: 50_000,
    2: 70_000,
    3: 90_000,
    4: 100_000,
}
# Tiers outside the table (tier 5, off-formulary)
DEFAULT_CURRENT_TIER_COST     = 80_000
DEFAULT_RECOMMENDED_TIER_COST = 50_000


@dataclass(frozen=True)
class CostEstimate:
    current_annual_cost: float
    recommended_annual_cost: float
    annual_savings: float
    savings_percent: float

    def to_dict(self) -> dict:
        return {
            "current_annual_cost": self.current_annual_cost,
            "recommended_annual_cost": self.recommended_annual_cost,
            "annual_savings": self.annual_savings,
            "savings_percent": round(self.savings_percent, 2),
        }


def assumed_tier_cost(tier: Optional[int], default: float) -> float:
    return TIER_ANNUAL_COST.get(tier, default) if tier else default


def estimate_switch_savings(
    current_tier: Optional[int],
    recommended_tier: Optional[int],
) -> Optional[CostEstimate]:
    """Savings from moving to a lower tier; None unless the target tier is lower."""
    if not current_tier or not recommended_tier or recommended_tier >= current_tier:
        return None

    current_cost = assumed_tier_cost(current_tier, DEFAULT_CURRENT_TIER_COST)
    recommended_cost = assumed_tier_cost(recommended_tier, DEFAULT_RECOMMENDED_TIER_COST)
    savings = current_cost - recommended_cost
    if savings <= 0:
        # A lower tier number whose assumed cost is not lower: no claim
        return None

    return CostEstimate(
        current_annual_cost=current_cost,
        recommended_annual_cost=recommended_cost,
        annual_savings=savings,
        savings_percent=savings / current_cost * 100,
    )


def estimate_dose_reduction_savings(
    current_tier: Optional[int],
    reduction_percent: Optional[float],
) -> Optional[CostEstimate]:
    """Scale the current tier's assumed cost by (1 - reduction%)."""
    if not current_tier or not reduction_percent or reduction_percent <= 0:
        return None

    current_cost = assumed_tier_cost(current_tier, DEFAULT_CURRENT_TIER_COST)
    recommended_cost = current_cost * (1 - reduction_percent / 100)
    return CostEstimate(
        current_annual_cost=current_cost,
        recommended_annual_cost=recommended_cost,
        annual_savings=current_cost - recommended_cost,
        savings_percent=float(reduction_percent),
    )


def calculate_assumed_costs(
    current_tier: Optional[int],
    recommended_tier: Optional[int],
    dose_reduction_percent: Optional[float] = None,
) -> Optional[CostEstimate]:
    """Tier-switch mode first, then dose-reduction mode; None when neither holds."""
    return (
        estimate_switch_savings(current_tier, recommended_tier)
        or estimate_dose_reduction_savings(current_tier, dose_reduction_percent)
    )
