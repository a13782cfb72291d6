"""
Tier Cascade Recommender

Walks a quadrant-specific strategy over the safe, indicated candidates
and emits at most three ranked recommendations.

Strategies (one coroutine per quadrant, registered in _STRATEGIES):
  stable_short_duration       lower-tier switches → continue → one more alternative
  stable_non_formulary        lower-tier switches → dose reduction → higher tiers (last resort)
  stable_formulary_aligned    branch on current dose level (0 / 25 / 50 %)
  unstable_formulary_aligned  dose/adherence levers → different-mechanism switch or adjunct
  unstable_non_formulary      return to standard → lower-tier switches → adherence

Within a tier, candidate order comes from the injected EfficacyRanker.
No drug in the ABSOLUTE-contraindicated set is ever emitted, switch
targets are never repeated, and ranks are renumbered 1..N at the end.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Set, Tuple

from biologic_advisor.core.clinical.base import (
    AssessmentInput,
    Contraindication,
    CurrentBiologic,
    DoseReductionLevel,
    FormularyDrug,
    Quadrant,
    RecommendationOutput,
    RecommendationType,
)
from biologic_advisor.core.clinical.contraindications import (
    ContraindicationScreen,
    check_contraindications,
    normalize_drug_class,
)
from biologic_advisor.core.clinical.stability import STABILITY_MONTHS_REQUIRED
from biologic_advisor.core.cost import CostEstimate, calculate_assumed_costs
from biologic_advisor.core.dosing import label_dosing_for
from biologic_advisor.core.evidence import KnowledgeSearch, NullKnowledgeSearch, find_dose_reduction_evidence
from biologic_advisor.core.llm.efficacy_ranker import (
    FAILED_REASONING,
    EfficacyRanker,
    FormularyOrderRanker,
    PatientProfile,
    RankedDrug,
    formulary_order,
)
from .drug_matching import same_drug

logger = logging.getLogger(__name__)

MAX_RECOMMENDATIONS = 3
MAX_LOWER_TIER_SWITCHES = 2
DOSE_STEP_PERCENT = 25
THERAPEUTIC_SWITCH_MAX_TIER = 2
# Sentinel tier for "not on formulary" / "no safe candidates"
NO_TIER = 999

RETURN_TO_STANDARD = "Return to standard dosing"
LIMITED_EVIDENCE_NOTE = "Limited clinical evidence available for dose reduction."

_SWITCH_TYPES = {
    RecommendationType.SWITCH_TO_PREFERRED,
    RecommendationType.SWITCH_TO_BIOSIMILAR,
    RecommendationType.THERAPEUTIC_SWITCH,
}

_DOSE_LEVEL_TEXT = {
    DoseReductionLevel.STANDARD: "standard dosing",
    DoseReductionLevel.REDUCED_25: "25% dose reduction",
    DoseReductionLevel.REDUCED_50: "50% dose reduction",
}


@dataclass(frozen=True)
class CascadeContext:
    """Per-assessment inputs to the cascade, fully resolved by the engine."""
    assessment: AssessmentInput
    current_biologic: CurrentBiologic
    current_drug: Optional[FormularyDrug]
    candidates: Tuple[FormularyDrug, ...]
    screen: ContraindicationScreen
    contraindications: Tuple[Contraindication, ...]
    quadrant: Quadrant
    dose_level: DoseReductionLevel

    @property
    def available_tiers(self) -> List[int]:
        return sorted({d.tier for d in self.candidates})

    @property
    def lowest_tier(self) -> int:
        tiers = self.available_tiers
        return tiers[0] if tiers else NO_TIER

    @property
    def current_tier(self) -> int:
        return self.current_drug.tier if self.current_drug else NO_TIER

    @property
    def profile(self) -> PatientProfile:
        a = self.assessment
        return PatientProfile(
            diagnosis=a.diagnosis,
            has_psoriatic_arthritis=a.has_psoriatic_arthritis,
            contraindications=self.contraindications,
            current_drug=self.current_biologic.drug_name,
            dlqi_score=a.dlqi_score,
            months_stable=a.months_stable,
            notes=a.additional_notes,
        )

    def is_current(self, drug: FormularyDrug) -> bool:
        if self.current_drug is not None and drug == self.current_drug:
            return True
        return same_drug(drug.drug_name, self.current_biologic.drug_name)

    def candidates_in_tier(self, tier: int) -> List[FormularyDrug]:
        """Safe candidates in a tier, excluding the patient's current drug."""
        return [d for d in self.candidates if d.tier == tier and not self.is_current(d)]

    def basis(self) -> str:
        """The quadrant-driving evidence, appended to every rationale."""
        tier = f"Tier {self.current_tier}" if self.current_drug else "not on formulary"
        return (
            f"Basis: DLQI {self.assessment.dlqi_score}, {self.assessment.months_stable} months stable, "
            f"current {tier}, {_DOSE_LEVEL_TEXT[self.dose_level]}."
        )


class _RecommendationSet:
    """Bounded, duplicate-free accumulator; ranks are assigned by ``finalize``."""

    def __init__(self, blocked_names: Set[str]):
        self._items: List[RecommendationOutput] = []
        self._keys: Set[tuple] = set()
        self._blocked = blocked_names

    def __len__(self) -> int:
        return len(self._items)

    @property
    def room(self) -> int:
        return MAX_RECOMMENDATIONS - len(self._items)

    def recommended_drugs(self) -> Set[str]:
        return {r.drug_name.lower() for r in self._items if r.type in _SWITCH_TYPES}

    def add(self, rec: RecommendationOutput) -> bool:
        if self.room <= 0:
            return False
        if rec.drug_name.lower() in self._blocked:
            logger.warning(f"Skipping {rec.type.value} for {rec.drug_name}: absolute contraindication")
            return False

        if rec.type in _SWITCH_TYPES:
            key = ("switch", rec.drug_name.lower())
        else:
            key = (rec.type, rec.drug_name.lower(), rec.new_dose, rec.new_frequency)
        if key in self._keys:
            return False

        self._keys.add(key)
        self._items.append(rec)
        return True

    def finalize(self) -> List[RecommendationOutput]:
        return [
            replace(r, rank=i + 1)
            for i, r in enumerate(self._items[:MAX_RECOMMENDATIONS])
        ]


class TierCascadeRecommender:
    """
    Quadrant-driven recommendation orchestrator.

    Stateless apart from its collaborators; one instance can serve
    concurrent assessments.
    """

    def __init__(
        self,
        ranker: Optional[EfficacyRanker] = None,
        knowledge_search: Optional[KnowledgeSearch] = None,
    ):
        self.ranker = ranker or FormularyOrderRanker()
        self.knowledge_search = knowledge_search or NullKnowledgeSearch()

    async def recommend(self, ctx: CascadeContext) -> List[RecommendationOutput]:
        blocked = set(ctx.screen.absolute_drug_names)
        if ctx.current_drug is not None and ctx.current_drug.drug_name.lower() in blocked:
            blocked.add(ctx.current_biologic.drug_name.lower())

        recs = _RecommendationSet(blocked)
        strategy = _STRATEGIES[ctx.quadrant]
        await strategy(self, ctx, recs)

        final = recs.finalize()
        logger.info(
            f"Cascade [{ctx.quadrant.value}]: {len(final)} recommendation(s): "
            + ", ".join(f"{r.type.value}:{r.drug_name}" for r in final)
        )
        return final

    # ── Collaborator calls ────────────────────────────────────────────────

    async def _rank(self, ctx: CascadeContext, drugs: Sequence[FormularyDrug]) -> List[RankedDrug]:
        if not drugs:
            return []
        try:
            return await self.ranker.rank(list(drugs), ctx.profile)
        except Exception as exc:
            # Ranker contract says never raise; an injected one might anyway
            logger.error(f"Efficacy ranker raised {exc}; using formulary order", exc_info=True)
            return formulary_order(drugs, FAILED_REASONING)

    async def _dose_reduction_evidence(self, ctx: CascadeContext) -> List[str]:
        return await find_dose_reduction_evidence(
            self.knowledge_search,
            ctx.current_biologic.drug_name,
            ctx.assessment.diagnosis.value,
        )

    # ── Recommendation builders ───────────────────────────────────────────

    def _current(
        self,
        ctx: CascadeContext,
        rec_type: RecommendationType,
        rationale: str,
        monitoring_plan: str,
        new_dose: Optional[str] = None,
        new_frequency: Optional[str] = None,
        cost: Optional[CostEstimate] = None,
        evidence: Sequence[str] = (),
    ) -> RecommendationOutput:
        """A recommendation that keeps the patient on the current biologic."""
        flagged, reason = (False, None)
        if ctx.current_drug is not None:
            flagged, reason = check_contraindications(ctx.current_drug, ctx.contraindications)

        return RecommendationOutput(
            rank=0,
            type=rec_type,
            drug_name=ctx.current_biologic.drug_name,
            new_dose=new_dose if new_dose is not None else ctx.current_biologic.dose,
            new_frequency=new_frequency if new_frequency is not None else ctx.current_biologic.frequency,
            rationale=f"{rationale} {ctx.basis()}",
            evidence_sources=tuple(evidence),
            monitoring_plan=monitoring_plan,
            tier=ctx.current_drug.tier if ctx.current_drug else None,
            requires_pa=ctx.current_drug.requires_pa_flag if ctx.current_drug else False,
            contraindicated=flagged,
            contraindication_reason=reason,
            **(cost.to_dict() if cost else {}),
        )

    def _switch(
        self,
        ctx: CascadeContext,
        ranked: RankedDrug,
        rationale: str,
        monitoring_plan: str,
        rec_type: RecommendationType = RecommendationType.SWITCH_TO_PREFERRED,
    ) -> RecommendationOutput:
        """A recommendation that moves the patient to another formulary drug."""
        drug = ranked.drug
        if rec_type is RecommendationType.SWITCH_TO_PREFERRED and drug.biosimilar_of and (
            same_drug(drug.biosimilar_of, ctx.current_biologic.drug_name)
            or (ctx.current_drug is not None and same_drug(drug.biosimilar_of, ctx.current_drug.drug_name))
        ):
            rec_type = RecommendationType.SWITCH_TO_BIOSIMILAR

        dosing = label_dosing_for(drug.drug_name)
        cost = calculate_assumed_costs(ctx.current_tier, drug.tier)
        return RecommendationOutput(
            rank=0,
            type=rec_type,
            drug_name=drug.drug_name,
            new_dose=dosing.dose,
            new_frequency=dosing.frequency,
            rationale=f"{rationale} {ctx.basis()}",
            evidence_sources=(),
            monitoring_plan=monitoring_plan,
            tier=drug.tier,
            requires_pa=drug.requires_pa_flag,
            contraindicated=False,
            **(cost.to_dict() if cost else {}),
        )

    def _add_switches(
        self,
        recs: _RecommendationSet,
        ranked: Sequence[RankedDrug],
        limit: int,
        build: Callable[[RankedDrug], RecommendationOutput],
    ) -> int:
        added = 0
        for item in ranked:
            if added >= limit or recs.room <= 0:
                break
            if recs.add(build(item)):
                added += 1
        return added

    def _dose_reduction(
        self,
        ctx: CascadeContext,
        target_percent: int,
        new_frequency: str,
        rationale: str,
        monitoring_plan: str,
        evidence: Sequence[str],
    ) -> RecommendationOutput:
        note = "" if evidence else f" {LIMITED_EVIDENCE_NOTE}"
        return self._current(
            ctx,
            RecommendationType.DOSE_REDUCTION,
            rationale=f"{rationale}{note}",
            monitoring_plan=monitoring_plan,
            new_frequency=new_frequency,
            cost=calculate_assumed_costs(ctx.current_tier, ctx.current_tier, target_percent),
            evidence=evidence,
        )

    def _return_to_standard(self, ctx: CascadeContext, rationale: str, monitoring_plan: str) -> RecommendationOutput:
        return self._current(
            ctx,
            RecommendationType.DOSE_REDUCTION,
            rationale=rationale,
            monitoring_plan=monitoring_plan,
            new_frequency=RETURN_TO_STANDARD,
        )

    # ── Strategies ────────────────────────────────────────────────────────

    async def _stable_short_duration(self, ctx: CascadeContext, recs: _RecommendationSet):
        """Tier switches are allowed, dose reduction is not (needs 6 months)."""
        a = ctx.assessment
        months_needed = STABILITY_MONTHS_REQUIRED - a.months_stable
        current_tier = ctx.current_tier

        if current_tier > ctx.lowest_tier:
            for tier in ctx.available_tiers:
                if tier >= current_tier or len(recs) >= MAX_LOWER_TIER_SWITCHES:
                    break
                ranked = await self._rank(ctx, ctx.candidates_in_tier(tier))
                self._add_switches(
                    recs, ranked, MAX_LOWER_TIER_SWITCHES - len(recs),
                    lambda r: self._switch(
                        ctx, r,
                        rationale=(
                            f"Switch to Tier {r.drug.tier} {r.drug.class_label}. "
                            f"Patient stable (DLQI {a.dlqi_score}, {a.months_stable} months). {r.reasoning}"
                        ),
                        monitoring_plan=(
                            f"Assess DLQI at 12-16 weeks post-switch. Patient stable for {a.months_stable} months "
                            "- not yet at 6-month threshold for dose reduction consideration."
                        ),
                    ),
                )

        prefix = "Patient on lowest formulary tier. " if len(recs) == 0 else ""
        recs.add(self._current(
            ctx,
            RecommendationType.CONTINUE_CURRENT,
            rationale=(
                f"{prefix}Continue current therapy for {months_needed} more months to reach 6-month "
                "stability threshold. Dose reduction will be considered after sustained stability is confirmed."
            ),
            monitoring_plan=(
                f"Monitor DLQI monthly. Re-assess at {a.months_stable + months_needed} months for dose "
                "reduction opportunities once 6-month threshold is met."
            ),
        ))

        if recs.room > 0 and current_tier > ctx.lowest_tier:
            already = recs.recommended_drugs()
            # Same tier first, then lower tiers cheapest first; one ranking call per tier
            tiers = [current_tier] + [t for t in ctx.available_tiers if t < current_tier]
            for tier in tiers:
                pool = [d for d in ctx.candidates_in_tier(tier) if d.drug_name.lower() not in already]
                if not pool:
                    continue
                ranked = await self._rank(ctx, pool)
                added = self._add_switches(
                    recs, ranked, 1,
                    lambda r: self._switch(
                        ctx, r,
                        rationale=f"Alternative in Tier {r.drug.tier}: {r.reasoning}",
                        monitoring_plan="Assess DLQI at 12-16 weeks post-switch.",
                    ),
                )
                if added:
                    break

    async def _stable_non_formulary(self, ctx: CascadeContext, recs: _RecommendationSet):
        """Lowest tier first, then dose reduction at the current tier, then higher tiers."""
        a = ctx.assessment
        current_tier = ctx.current_tier

        for tier in ctx.available_tiers:
            if tier >= current_tier or recs.room <= 0:
                break
            ranked = await self._rank(ctx, ctx.candidates_in_tier(tier))
            self._add_switches(
                recs, ranked, min(MAX_LOWER_TIER_SWITCHES, recs.room),
                lambda r: self._switch(
                    ctx, r,
                    rationale=(
                        f"Switch to Tier {r.drug.tier} {r.drug.class_label}. {r.reasoning} "
                        f"Patient stable (DLQI={a.dlqi_score}) for {a.months_stable} months "
                        "- excellent likelihood of successful transition."
                    ),
                    monitoring_plan=(
                        "Assess DLQI at 12-16 weeks post-switch to confirm maintenance of disease control. "
                        "Monitor for injection site reactions, infections, and any signs of disease flare. "
                        "If DLQI remains ≤4 at 6 months on standard dosing, consider future dose reduction strategies."
                    ),
                ),
            )

        if recs.room > 0 and ctx.current_drug is not None and ctx.dose_level < DoseReductionLevel.REDUCED_50:
            current_level = int(ctx.dose_level)
            next_level = current_level + DOSE_STEP_PERCENT
            evidence = await self._dose_reduction_evidence(ctx)
            drug_name = ctx.current_biologic.drug_name
            recs.add(self._dose_reduction(
                ctx,
                target_percent=DOSE_STEP_PERCENT,
                new_frequency=f"Extended interval to achieve {next_level}% dose reduction",
                rationale=(
                    f"Dose reduction of current {drug_name} from {current_level}% to {next_level}% reduction. "
                    f"Patient stable (DLQI {a.dlqi_score}) for {a.months_stable} months."
                ),
                monitoring_plan=(
                    "Close monitoring required. Assess DLQI monthly for first 3 months, then quarterly. "
                    "Be prepared to resume previous dosing if disease activity increases."
                ),
                evidence=evidence,
            ))

        # Last resort: less preferred tiers
        for tier in ctx.available_tiers:
            if recs.room <= 0:
                break
            if tier <= current_tier:
                continue
            ranked = await self._rank(ctx, ctx.candidates_in_tier(tier))
            self._add_switches(
                recs, ranked, recs.room,
                lambda r: self._switch(
                    ctx, r,
                    rationale=f"Tier {r.drug.tier} option (less preferred): {r.reasoning}",
                    monitoring_plan="Assess DLQI at 12-16 weeks post-switch. Monitor closely for efficacy and safety.",
                ),
            )

    async def _stable_formulary_aligned(self, ctx: CascadeContext, recs: _RecommendationSet):
        """Already optimal tier: the lever is the dose interval."""
        a = ctx.assessment
        level = ctx.dose_level

        if level == DoseReductionLevel.STANDARD:
            evidence = await self._dose_reduction_evidence(ctx)
            recs.add(self._dose_reduction(
                ctx,
                target_percent=25,
                new_frequency="Extended interval (25% dose reduction)",
                rationale=(
                    f"Dose reduction to 25%. Patient stable (DLQI {a.dlqi_score}) for "
                    f"{a.months_stable} months on lowest tier."
                ),
                monitoring_plan=(
                    "Close monitoring. Assess DLQI monthly for 3 months, then quarterly. "
                    "Resume standard if disease activity increases."
                ),
                evidence=evidence,
            ))
            recs.add(self._current(
                ctx,
                RecommendationType.CONTINUE_CURRENT,
                rationale=(
                    "Continue standard dosing. Patient stable and on lowest tier - dose reduction offers "
                    "cost savings but continuing provides certainty."
                ),
                monitoring_plan="Monitor DLQI quarterly.",
            ))
            await self._formulary_aligned_alternative(ctx, recs)

        elif level == DoseReductionLevel.REDUCED_25:
            evidence = await self._dose_reduction_evidence(ctx)
            recs.add(self._dose_reduction(
                ctx,
                target_percent=50,
                new_frequency="Extended interval (50% dose reduction - maximum)",
                rationale=(
                    f"Further dose reduction to 50% (maximum). Patient stable (DLQI {a.dlqi_score}) for "
                    f"{a.months_stable} months on 25% reduced dose."
                ),
                monitoring_plan="Very close monitoring. Assess DLQI every 2-4 weeks initially.",
                evidence=evidence,
            ))
            recs.add(self._current(
                ctx,
                RecommendationType.CONTINUE_CURRENT,
                rationale="Continue 25% dose-reduced regimen. Good balance of cost savings and clinical stability.",
                monitoring_plan="Monitor DLQI quarterly.",
            ))
            recs.add(self._return_to_standard(
                ctx,
                rationale="Return to standard dosing if patient/provider prefer maximum certainty of disease control.",
                monitoring_plan="Monitor DLQI quarterly.",
            ))

        else:
            recs.add(self._current(
                ctx,
                RecommendationType.CONTINUE_CURRENT,
                rationale=(
                    "Continue maximum dose reduction (50%). Optimal cost-effectiveness achieved - lowest tier "
                    f"+ maximum dose reduction + stable disease (DLQI {a.dlqi_score})."
                ),
                monitoring_plan="Monitor DLQI quarterly.",
            ))
            recs.add(self._current(
                ctx,
                RecommendationType.DOSE_REDUCTION,
                rationale=(
                    "Return to 25% dose reduction if disease activity increases or patient prefers "
                    "more conservative dosing."
                ),
                monitoring_plan="Monitor DLQI quarterly.",
                new_frequency="Increase to 25% dose reduction",
            ))
            recs.add(self._return_to_standard(
                ctx,
                rationale="Return to standard dosing if needed for disease control.",
                monitoring_plan="Monitor DLQI quarterly.",
            ))

    async def _formulary_aligned_alternative(self, ctx: CascadeContext, recs: _RecommendationSet):
        """Same-tier alternative if one exists, else the best drug of the next tier up."""
        same_tier = ctx.candidates_in_tier(ctx.current_tier)
        if same_tier:
            ranked = await self._rank(ctx, same_tier)
            self._add_switches(
                recs, ranked, 1,
                lambda r: self._switch(
                    ctx, r,
                    rationale=f"Alternative in same tier: {r.reasoning}",
                    monitoring_plan="Assess DLQI at 12-16 weeks post-switch.",
                ),
            )
            return

        higher = [t for t in ctx.available_tiers if t > ctx.current_tier]
        if not higher:
            return
        ranked = await self._rank(ctx, ctx.candidates_in_tier(higher[0]))
        self._add_switches(
            recs, ranked, 1,
            lambda r: self._switch(
                ctx, r,
                rationale=f"Tier {r.drug.tier} option: {r.reasoning}",
                monitoring_plan="Assess DLQI at 12-16 weeks.",
            ),
        )

    async def _unstable_formulary_aligned(self, ctx: CascadeContext, recs: _RecommendationSet):
        """Use the dose and adherence levers before any switch."""
        a = ctx.assessment
        level = int(ctx.dose_level)

        if ctx.dose_level > DoseReductionLevel.STANDARD:
            recs.add(self._return_to_standard(
                ctx,
                rationale=(
                    f"Disease not adequately controlled (DLQI {a.dlqi_score}) on {level}% dose-reduced regimen. "
                    "Return to standard dosing to restore full therapeutic effect."
                ),
                monitoring_plan="Assess DLQI at 4, 8, and 12 weeks after returning to standard dosing.",
            ))
            recs.add(self._current(
                ctx,
                RecommendationType.OPTIMIZE_CURRENT,
                rationale=(
                    f"Before returning to standard dosing, verify adherence to current {level}% reduced regimen. "
                    "Poor adherence may explain inadequate control."
                ),
                monitoring_plan="Reassess adherence barriers. Patient education. Re-evaluate in 4 weeks.",
                new_dose="Verify adherence",
            ))
        else:
            recs.add(self._current(
                ctx,
                RecommendationType.OPTIMIZE_CURRENT,
                rationale=(
                    f"Disease not adequately controlled (DLQI {a.dlqi_score}). Focus on adherence optimization "
                    "and ensure proper dosing before considering therapy change."
                ),
                monitoring_plan=(
                    "Reassess adherence barriers. Consider patient education, auto-injector training. "
                    "Re-evaluate in 12 weeks."
                ),
                new_dose="Verify adherence and optimize per label",
            ))
            recs.add(self._current(
                ctx,
                RecommendationType.OPTIMIZE_CURRENT,
                rationale=(
                    "Continue current lowest tier therapy with close monitoring. Disease may be in temporary "
                    "flare or control may not yet be established if recently started."
                ),
                monitoring_plan=(
                    "Monitor DLQI every 4 weeks. Allow adequate time for therapy to demonstrate full "
                    "efficacy before considering switch."
                ),
            ))

        current_class = normalize_drug_class(ctx.current_drug.drug_class) if ctx.current_drug else ""
        alternatives = [
            d for d in ctx.candidates
            if d.tier <= THERAPEUTIC_SWITCH_MAX_TIER
            and not ctx.is_current(d)
            and normalize_drug_class(d.drug_class) != current_class
        ]
        if alternatives:
            best_tier = min(d.tier for d in alternatives)
            ranked = await self._rank(ctx, [d for d in alternatives if d.tier == best_tier])
            added = self._add_switches(
                recs, ranked, 1,
                lambda r: self._switch(
                    ctx, r,
                    rationale=(
                        f"If adherence optimization fails: Consider switch to {r.drug.class_label} with different "
                        "mechanism of action. May improve outcomes if current therapy is truly inadequate."
                    ),
                    monitoring_plan=(
                        "Only pursue if optimization attempts fail. Baseline labs if indicated. "
                        "Assess response at 12-16 weeks."
                    ),
                    rec_type=RecommendationType.THERAPEUTIC_SWITCH,
                ),
            )
            if added:
                return

        recs.add(self._current(
            ctx,
            RecommendationType.OPTIMIZE_CURRENT,
            rationale=(
                "Consider adding adjunctive topical therapy or addressing comorbidities that may be impacting "
                "disease control while maintaining optimal biologic."
            ),
            monitoring_plan="Re-evaluate need for systemic therapy change after optimizing adjunctive treatments.",
            new_dose="Consider adjunctive topical therapy",
        ))

    async def _unstable_non_formulary(self, ctx: CascadeContext, recs: _RecommendationSet):
        """Restore standard dosing, then move down the tiers, then adherence."""
        a = ctx.assessment

        if ctx.dose_level > DoseReductionLevel.STANDARD:
            recs.add(self._return_to_standard(
                ctx,
                rationale=(
                    f"Disease not adequately controlled (DLQI {a.dlqi_score}) on {int(ctx.dose_level)}% "
                    "dose-reduced regimen. Return to standard dosing before considering medication switch."
                ),
                monitoring_plan=(
                    "Assess DLQI at 4, 8, and 12 weeks. If control not achieved at standard dosing, "
                    "consider therapeutic switch."
                ),
            ))

        for tier in ctx.available_tiers:
            if tier >= ctx.current_tier or recs.room <= 0:
                break
            ranked = await self._rank(ctx, ctx.candidates_in_tier(tier))
            self._add_switches(
                recs, ranked, recs.room,
                lambda r: self._switch(
                    ctx, r,
                    rationale=(
                        f"Disease inadequately controlled. Switch to Tier {r.drug.tier} "
                        f"{r.drug.class_label}. {r.reasoning}"
                    ),
                    monitoring_plan="Baseline labs if indicated. Assess response at 12-16 weeks.",
                    rec_type=RecommendationType.THERAPEUTIC_SWITCH,
                ),
            )

        if recs.room > 0:
            recs.add(self._current(
                ctx,
                RecommendationType.OPTIMIZE_CURRENT,
                rationale=(
                    "Before switching, ensure adherence is optimized and adequate time given for current therapy."
                ),
                monitoring_plan="Address adherence barriers. Re-evaluate in 8-12 weeks.",
                new_dose="Optimize adherence",
            ))


# ── Registry: quadrant → strategy ─────────────────────────────────────────────
_Strategy = Callable[[TierCascadeRecommender, CascadeContext, _RecommendationSet], Awaitable[None]]

_STRATEGIES: Dict[Quadrant, _Strategy] = {
    Quadrant.STABLE_SHORT_DURATION:      TierCascadeRecommender._stable_short_duration,
    Quadrant.STABLE_NON_FORMULARY:       TierCascadeRecommender._stable_non_formulary,
    Quadrant.STABLE_FORMULARY_ALIGNED:   TierCascadeRecommender._stable_formulary_aligned,
    Quadrant.UNSTABLE_FORMULARY_ALIGNED: TierCascadeRecommender._unstable_formulary_aligned,
    Quadrant.UNSTABLE_NON_FORMULARY:     TierCascadeRecommender._unstable_non_formulary,
}
