"""
Claims-Based Biologic Inference

When no current biologic is charted, the most recent pharmacy fill is
taken as the active therapy and the dosing frequency is inferred from
the spacing of recent fills.
"""
from __future__ import annotations

import logging
from typing import Optional, Sequence

from biologic_advisor.core.clinical.base import CurrentBiologic, PharmacyClaim

logger = logging.getLogger(__name__)

FILLS_CONSIDERED = 3

# (max average days between fills, frequency label)
_FILL_GAP_BANDS = (
    (10, "Weekly"),
    (17, "Every 2 weeks"),
    (35, "Monthly"),
    (45, "Every 6 weeks"),
    (65, "Every 8 weeks"),
    (95, "Every 12 weeks"),
)
LONG_GAP_FREQUENCY = "Every 3+ months"

CLASS_DEFAULT_FREQUENCY = {
    "TNF_INHIBITOR":     "Every 2 weeks",
    "IL17_INHIBITOR":    "Monthly (after loading)",
    "IL23_INHIBITOR":    "Every 8 weeks (after loading)",
    "IL12_23_INHIBITOR": "Every 12 weeks (after loading)",
    "IL4_13_INHIBITOR":  "Every 2 weeks",
    "JAK_INHIBITOR":     "Daily",
}
UNKNOWN_FREQUENCY = "As prescribed"


def infer_frequency(claims: Sequence[PharmacyClaim], drug_class: Optional[str] = None) -> str:
    """
    Infer dosing frequency from fill spacing.

    Args:
        claims: Pharmacy claims, most recent first.
        drug_class: Used for the class default when fewer than two fills exist.
    """
    recent = list(claims[:FILLS_CONSIDERED])
    if len(recent) >= 2:
        gaps = [
            abs((recent[i].fill_date - recent[i + 1].fill_date).days)
            for i in range(len(recent) - 1)
        ]
        avg_days = sum(gaps) / len(gaps)
        for max_days, label in _FILL_GAP_BANDS:
            if avg_days <= max_days:
                return label
        return LONG_GAP_FREQUENCY

    return CLASS_DEFAULT_FREQUENCY.get(drug_class or "", UNKNOWN_FREQUENCY)


def current_biologic_from_claims(
    claims: Sequence[PharmacyClaim],
    drug_class: Optional[str] = None,
) -> Optional[CurrentBiologic]:
    """Biologic of the most recent fill, or None without usable claims."""
    ordered = sorted(claims, key=lambda c: c.fill_date, reverse=True)
    latest = next((c for c in ordered if c.drug_name), None)
    if latest is None:
        return None

    same_drug = [c for c in ordered if c.drug_name.lower() == latest.drug_name.lower()]
    frequency = infer_frequency(same_drug, drug_class)
    logger.info(f"Current biologic inferred from claims: {latest.drug_name} ({frequency})")
    return CurrentBiologic(drug_name=latest.drug_name, dose="As prescribed", frequency=frequency)
