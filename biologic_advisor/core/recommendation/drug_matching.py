"""
Drug Name Matching

Locates the patient's charted biologic in the plan formulary by brand
name, or by generic name so that biosimilars
(e.g. "adalimumab-adbm") are found from "Humira" or "adalimumab".
"""
from __future__ import annotations

from typing import Optional, Sequence

from biologic_advisor.core.clinical.base import FormularyDrug

BRAND_TO_GENERIC = {
    "dupixent": "dupilumab",
    "humira": "adalimumab",
    "stelara": "ustekinumab",
    "skyrizi": "risankizumab",
    "tremfya": "guselkumab",
    "cosentyx": "secukinumab",
    "taltz": "ixekizumab",
    "otezla": "apremilast",
    "rinvoq": "upadacitinib",
    "cibinqo": "abrocitinib",
    "adbry": "tralokinumab",
    "ilumya": "tildrakizumab",
    "siliq": "brodalumab",
    "remicade": "infliximab",
    "enbrel": "etanercept",
    "simponi": "golimumab",
    "cimzia": "certolizumab",
    "actemra": "tocilizumab",
    "orencia": "abatacept",
    "sotyktu": "deucravacitinib",
}


def normalize_to_generic(drug_name: str) -> str:
    """Lower-cased generic name for a brand, or the input lower-cased."""
    normalized = (drug_name or "").strip().lower()
    return BRAND_TO_GENERIC.get(normalized, normalized)


def _generic_matches(formulary_generic: str, name: str) -> bool:
    return formulary_generic == name or formulary_generic.startswith(name + "-")


def find_current_formulary_drug(
    drug_name: str,
    formulary: Sequence[FormularyDrug],
) -> Optional[FormularyDrug]:
    """Exact brand match first, then generic / biosimilar-suffix match."""
    target = (drug_name or "").strip().lower()
    if not target:
        return None

    for drug in formulary:
        if drug.drug_name.lower() == target:
            return drug

    names = {target, normalize_to_generic(target)}
    for drug in formulary:
        generic = (drug.generic_name or "").lower()
        if any(_generic_matches(generic, n) for n in names):
            return drug
    return None


def same_drug(a: str, b: str) -> bool:
    """True when two names denote the same molecule (brand or generic)."""
    return normalize_to_generic(a) == normalize_to_generic(b)
