"""
Stability, Formulary Status and Quadrant Resolution

Pure classification, re-evaluated on every assessment. Five states in
total: the four stability × formulary quadrants plus the
stable-short-duration case, which is resolved first.

Thresholds:
  - DLQI 0-4 (no/small effect on quality of life) counts as disease control.
  - Six months of sustained control is the evidence bar for dose reduction.
  - Only Tier 1 without prior authorization is formulary-optimal.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from .base import FormularyDrug, Quadrant

logger = logging.getLogger(__name__)

# ── Thresholds ────────────────────────────────────────────────────────────────
STABLE_DLQI_MAX           = 4
STABILITY_MONTHS_REQUIRED = 6
OPTIMAL_TIER              = 1


def determine_stability(dlqi_score: int, months_stable: int) -> bool:
    return dlqi_score <= STABLE_DLQI_MAX and months_stable >= STABILITY_MONTHS_REQUIRED


def is_stable_short_duration(dlqi_score: int, months_stable: int) -> bool:
    """Controlled, but not yet for long enough to justify dose reduction."""
    return dlqi_score <= STABLE_DLQI_MAX and months_stable < STABILITY_MONTHS_REQUIRED


def determine_formulary_status(current_drug: Optional[FormularyDrug]) -> bool:
    """A drug missing from the formulary is never optimal."""
    if current_drug is None:
        return False
    return current_drug.tier == OPTIMAL_TIER and not current_drug.pa_required


def get_quadrant(is_stable: bool, is_formulary_optimal: bool) -> Quadrant:
    if is_stable and is_formulary_optimal:
        return Quadrant.STABLE_FORMULARY_ALIGNED
    if is_stable:
        return Quadrant.STABLE_NON_FORMULARY
    if is_formulary_optimal:
        return Quadrant.UNSTABLE_FORMULARY_ALIGNED
    return Quadrant.UNSTABLE_NON_FORMULARY


@dataclass(frozen=True)
class TreatmentState:
    is_stable: bool
    is_formulary_optimal: bool
    quadrant: Quadrant


def classify_treatment_state(
    dlqi_score: int,
    months_stable: int,
    current_drug: Optional[FormularyDrug],
    current_tier: int,
    lowest_tier: int,
) -> TreatmentState:
    """
    Resolve the treatment state for one assessment.

    The short-duration case is checked before the quadrant logic. In that
    state the patient counts as stable, and formulary optimality means
    "already on the lowest tier any safe candidate occupies".
    """
    if is_stable_short_duration(dlqi_score, months_stable):
        state = TreatmentState(
            is_stable=True,
            is_formulary_optimal=current_tier == lowest_tier,
            quadrant=Quadrant.STABLE_SHORT_DURATION,
        )
    else:
        is_stable = determine_stability(dlqi_score, months_stable)
        is_optimal = determine_formulary_status(current_drug)
        state = TreatmentState(
            is_stable=is_stable,
            is_formulary_optimal=is_optimal,
            quadrant=get_quadrant(is_stable, is_optimal),
        )

    logger.info(
        f"Treatment state: {state.quadrant.value} "
        f"(DLQI {dlqi_score}, {months_stable} months, tier {current_tier})"
    )
    return state
