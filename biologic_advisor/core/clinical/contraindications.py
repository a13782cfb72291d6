"""
Contraindication Rules: Drug Class × Patient Condition

Screens formulary candidates against a patient's documented
contraindications and partitions them into safe vs. contraindicated.

Design principles:
  - Rules are data, not branches: each row of CONTRAINDICATION_RULES is
    (class patterns, condition types) → (severity, reason). One generic
    matcher evaluates them all.
  - Drug classes are normalised (upper-case, whitespace → "_") and
    matched by substring, so "TNF Inhibitor", "TNF_INHIBITOR" and
    "anti-TNF" all hit the TNF rows.
  - Class-agnostic rows flagged ``only_if_uncovered`` add a reason only
    when no class-specific row already explained that condition.
  - Any matched rule makes the drug contraindicated. ABSOLUTE rows are a
    hard exclusion; RELATIVE rows still leave the automatic candidate
    pool but are surfaced to the clinician with their reasons.
"""
from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, List, Optional, Sequence, Set, Tuple

from .base import (
    ContraindicatedDrug,
    Contraindication,
    ContraindicationReason,
    ContraindicationType as CT,
    FormularyDrug,
    Severity,
)

logger = logging.getLogger(__name__)

# ── Drug class patterns ───────────────────────────────────────────────────────
TNF_CLASS  = ("TNF",)
JAK_CLASS  = ("JAK", "TYK2")
IL17_CLASS = ("IL17", "IL-17")
ANY_CLASS: Tuple[str, ...] = ()


@dataclass(frozen=True)
class ContraindicationRule:
    rule_id: str
    class_patterns: Tuple[str, ...]
    types: FrozenSet[CT]
    severity: Severity
    reason: str
    only_if_uncovered: bool = False

    def applies_to_class(self, normalized_class: str) -> bool:
        if not self.class_patterns:
            return True
        return any(p in normalized_class for p in self.class_patterns)


def _rule(rule_id, classes, types, severity, reason, only_if_uncovered=False) -> ContraindicationRule:
    return ContraindicationRule(
        rule_id=rule_id,
        class_patterns=tuple(classes),
        types=frozenset(types),
        severity=severity,
        reason=reason,
        only_if_uncovered=only_if_uncovered,
    )


# Class-specific rows come first so class-agnostic fallbacks can see them.
CONTRAINDICATION_RULES: Tuple[ContraindicationRule, ...] = (
    # ── TNF inhibitors ────────────────────────────────────────────────────
    _rule("TNF-HF", TNF_CLASS, [CT.HEART_FAILURE], Severity.ABSOLUTE,
          "TNF inhibitors can worsen heart failure and increase mortality"),
    _rule("TNF-DEMYEL", TNF_CLASS, [CT.MULTIPLE_SCLEROSIS, CT.DEMYELINATING_DISEASE], Severity.ABSOLUTE,
          "TNF inhibitors can exacerbate demyelinating diseases"),
    _rule("TNF-LYMPHOMA", TNF_CLASS, [CT.LYMPHOMA], Severity.RELATIVE,
          "History of lymphoma - TNF inhibitors may increase recurrence risk. "
          "Consider risk/benefit with oncology."),
    _rule("TNF-MALIG", TNF_CLASS, [CT.MALIGNANCY], Severity.RELATIVE,
          "Active or recent malignancy - TNF inhibitors may affect tumor surveillance. "
          "Discuss with oncology."),
    _rule("TNF-HBV", TNF_CLASS, [CT.HEPATITIS_B], Severity.RELATIVE,
          "Hepatitis B can reactivate with TNF inhibitors. "
          "Requires antiviral prophylaxis and monitoring."),
    _rule("TNF-LTBI", TNF_CLASS, [CT.LATENT_TUBERCULOSIS], Severity.RELATIVE,
          "Latent TB requires prophylactic treatment before starting TNF inhibitor."),
    _rule("TNF-TB", TNF_CLASS, [CT.ACTIVE_TUBERCULOSIS], Severity.ABSOLUTE,
          "Active TB must be treated before starting any biologic, especially TNF inhibitors."),

    # ── JAK / TYK2 inhibitors ─────────────────────────────────────────────
    _rule("JAK-VTE", JAK_CLASS, [CT.THROMBOSIS, CT.VENOUS_THROMBOEMBOLISM], Severity.ABSOLUTE,
          "JAK inhibitors significantly increase VTE risk. "
          "Contraindicated in patients with thrombosis history."),
    _rule("JAK-CV", JAK_CLASS, [CT.CARDIOVASCULAR_DISEASE], Severity.RELATIVE,
          "JAK inhibitors increase MACE risk. Consider in patients >50 with CV risk factors. "
          "Monitor closely."),
    _rule("JAK-MALIG", JAK_CLASS, [CT.MALIGNANCY], Severity.RELATIVE,
          "JAK inhibitors may increase cancer risk. "
          "Discuss risk/benefit in patients with cancer history."),
    _rule("JAK-CYTO", JAK_CLASS, [CT.CYTOPENIAS], Severity.RELATIVE,
          "JAK inhibitors can worsen cytopenias. Requires baseline labs and monitoring."),

    # ── IL-17 inhibitors ──────────────────────────────────────────────────
    _rule("IL17-IBD", IL17_CLASS, [CT.INFLAMMATORY_BOWEL_DISEASE], Severity.RELATIVE,
          "IL-17 inhibitors can worsen or trigger IBD. Use with caution and GI consultation."),
    _rule("IL17-DIVERT", IL17_CLASS, [CT.DIVERTICULITIS], Severity.RELATIVE,
          "IL-17 inhibitors may increase intestinal perforation risk. Monitor for GI symptoms."),

    # ── All biologics ─────────────────────────────────────────────────────
    _rule("ALL-INFECTION", ANY_CLASS, [CT.ACTIVE_INFECTION], Severity.ABSOLUTE,
          "Active infection must be treated before starting any biologic therapy."),
    _rule("ALL-TB", ANY_CLASS, [CT.ACTIVE_TUBERCULOSIS], Severity.ABSOLUTE,
          "Active TB must be treated before starting any biologic therapy.",
          only_if_uncovered=True),
    _rule("ALL-OI", ANY_CLASS, [CT.OPPORTUNISTIC_INFECTION], Severity.ABSOLUTE,
          "History of opportunistic infection requires ID consultation before biologics."),
    _rule("ALL-MALIG", ANY_CLASS, [CT.MALIGNANCY], Severity.RELATIVE,
          "Active or recent malignancy - biologics may affect tumor surveillance. "
          "Requires oncology clearance.",
          only_if_uncovered=True),
    _rule("ALL-IMMUNO", ANY_CLASS, [CT.IMMUNOCOMPROMISED], Severity.RELATIVE,
          "Immunocompromised state increases infection risk with biologics. Monitor closely.",
          only_if_uncovered=True),
    _rule("ALL-PREG", ANY_CLASS, [CT.PREGNANCY], Severity.RELATIVE,
          "Pregnancy requires careful risk/benefit assessment. Some biologics are safer than others. "
          "Consult maternal-fetal medicine."),
    _rule("ALL-LIVEVAX", ANY_CLASS, [CT.LIVE_VACCINE_RECENT], Severity.RELATIVE,
          "Wait 4+ weeks after live vaccine before starting biologics. "
          "No live vaccines while on therapy."),
    _rule("ALL-SURGERY", ANY_CLASS, [CT.SURGERY_PLANNED], Severity.RELATIVE,
          "Hold biologics peri-operatively to reduce infection risk. Timing depends on drug half-life."),
)


def normalize_drug_class(drug_class: Optional[str]) -> str:
    return re.sub(r"\s+", "_", (drug_class or "").strip().upper())


def evaluate_drug(
    drug: FormularyDrug,
    contraindications: Sequence[Contraindication],
    rules: Sequence[ContraindicationRule] = CONTRAINDICATION_RULES,
) -> List[ContraindicationReason]:
    """Every reason the patient's conditions give against this drug (empty = safe)."""
    normalized = normalize_drug_class(drug.drug_class)
    applicable = [r for r in rules if r.applies_to_class(normalized)]

    reasons: List[ContraindicationReason] = []
    for ci in contraindications:
        covered: Set = set()
        for rule in applicable:
            if ci.type not in rule.types:
                continue
            if rule.only_if_uncovered and ci.type in covered:
                continue
            reasons.append(ContraindicationReason(
                type=ci.type,
                severity=rule.severity,
                reason=rule.reason,
                details=ci.details,
            ))
            covered.add(ci.type)
    return reasons


@dataclass
class ContraindicationScreen:
    """Both partitions of one screening pass."""
    safe: List[FormularyDrug] = field(default_factory=list)
    contraindicated: List[ContraindicatedDrug] = field(default_factory=list)

    @property
    def absolute_drug_names(self) -> Set[str]:
        return {c.drug.drug_name.lower() for c in self.contraindicated if c.is_absolute}


def filter_contraindications(
    drugs: Iterable[FormularyDrug],
    contraindications: Sequence[Contraindication],
) -> ContraindicationScreen:
    """Partition drugs into safe vs. contraindicated (with full reason lists)."""
    drugs = list(drugs)
    if not contraindications:
        return ContraindicationScreen(safe=drugs)

    screen = ContraindicationScreen()
    for drug in drugs:
        reasons = evaluate_drug(drug, contraindications)
        if not reasons:
            screen.safe.append(drug)
            continue

        item = ContraindicatedDrug(drug=drug, reasons=reasons)
        screen.contraindicated.append(item)
        logger.warning(
            f"{item.severity.value} contraindication: {drug.drug_name} - "
            + ", ".join(r.type.value for r in reasons)
        )

    logger.info(
        f"Contraindication filtering: {len(drugs)} total → "
        f"{len(screen.safe)} safe, {len(screen.contraindicated)} contraindicated"
    )
    return screen


def check_contraindications(
    drug: FormularyDrug,
    contraindications: Sequence[Contraindication],
) -> Tuple[bool, Optional[str]]:
    """
    Single-drug check. Returns (contraindicated, reason) where the reason
    is the first ABSOLUTE one if any, else the first reason found.
    """
    reasons = evaluate_drug(drug, contraindications)
    if not reasons:
        return False, None
    absolute = [r for r in reasons if r.severity is Severity.ABSOLUTE]
    return True, (absolute or reasons)[0].reason
