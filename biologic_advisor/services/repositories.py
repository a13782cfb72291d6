"""
Read Repositories

Narrow read interfaces the assessment service depends on, plus
in-memory implementations backed by plain dicts. A database-backed
implementation only has to satisfy the same Protocols.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Protocol, Sequence, Tuple

from biologic_advisor.core.clinical.base import (
    Contraindication,
    CurrentBiologic,
    FormularyDrug,
    PharmacyClaim,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PatientRecord:
    patient_id: str
    plan_id: Optional[str] = None
    current_biologics: Tuple[CurrentBiologic, ...] = ()


@dataclass(frozen=True)
class FormularySnapshot:
    """One formulary upload for a plan; the newest upload wins."""
    plan_id: str
    uploaded_at: datetime
    drugs: Tuple[FormularyDrug, ...] = ()


# ── Interfaces ────────────────────────────────────────────────────────────────

class PatientRepository(Protocol):
    def get_patient(self, patient_id: str) -> Optional[PatientRecord]:
        ...


class FormularyRepository(Protocol):
    def latest_formulary(self, plan_id: str) -> Tuple[FormularyDrug, ...]:
        ...


class ContraindicationRepository(Protocol):
    def contraindications_for(self, patient_id: str) -> Tuple[Contraindication, ...]:
        ...


class ClaimsRepository(Protocol):
    def recent_claims(self, patient_id: str, limit: int) -> Tuple[PharmacyClaim, ...]:
        """Most recent fills first."""
        ...


# ── In-memory implementations ─────────────────────────────────────────────────

class InMemoryPatientRepository:
    def __init__(self, patients: Iterable[PatientRecord] = ()):
        self._patients: Dict[str, PatientRecord] = {p.patient_id: p for p in patients}

    def add(self, patient: PatientRecord):
        self._patients[patient.patient_id] = patient

    def get_patient(self, patient_id: str) -> Optional[PatientRecord]:
        return self._patients.get(patient_id)


class InMemoryFormularyRepository:
    def __init__(self, snapshots: Iterable[FormularySnapshot] = ()):
        self._snapshots: List[FormularySnapshot] = list(snapshots)

    def add(self, snapshot: FormularySnapshot):
        self._snapshots.append(snapshot)

    def latest_formulary(self, plan_id: str) -> Tuple[FormularyDrug, ...]:
        snapshots = [s for s in self._snapshots if s.plan_id == plan_id]
        if not snapshots:
            logger.warning(f"No formulary snapshot for plan {plan_id}")
            return ()
        latest = max(snapshots, key=lambda s: s.uploaded_at)
        logger.debug(f"Formulary for plan {plan_id}: snapshot {latest.uploaded_at.isoformat()}")
        return latest.drugs


@dataclass
class InMemoryContraindicationRepository:
    entries: Dict[str, List[Contraindication]] = field(default_factory=dict)

    def add(self, patient_id: str, contraindication: Contraindication):
        self.entries.setdefault(patient_id, []).append(contraindication)

    def contraindications_for(self, patient_id: str) -> Tuple[Contraindication, ...]:
        return tuple(self.entries.get(patient_id, ()))


@dataclass
class InMemoryClaimsRepository:
    entries: Dict[str, List[PharmacyClaim]] = field(default_factory=dict)

    def add(self, patient_id: str, claims: Sequence[PharmacyClaim]):
        self.entries.setdefault(patient_id, []).extend(claims)

    def recent_claims(self, patient_id: str, limit: int) -> Tuple[PharmacyClaim, ...]:
        claims = sorted(self.entries.get(patient_id, ()), key=lambda c: c.fill_date, reverse=True)
        return tuple(claims[:limit])
