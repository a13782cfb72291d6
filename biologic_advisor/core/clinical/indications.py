"""
Diagnosis / Indication Filter
"""
from __future__ import annotations

import logging
from typing import Iterable, List

from .base import Diagnosis, FormularyDrug

logger = logging.getLogger(__name__)


def is_drug_indicated_for_diagnosis(drug: FormularyDrug, diagnosis: Diagnosis) -> bool:
    """
    Membership test against the drug's FDA indications.

    Rows with no indication list are treated as indicated for every
    diagnosis so legacy formulary uploads keep producing candidates.
    """
    if not drug.fda_indications:
        logger.debug(f"{drug.drug_name}: no FDA indications on record, treating as indicated")
        return True
    return diagnosis in drug.fda_indications


def filter_indicated(drugs: Iterable[FormularyDrug], diagnosis: Diagnosis) -> List[FormularyDrug]:
    return [d for d in drugs if is_drug_indicated_for_diagnosis(d, diagnosis)]
