"""
Label Dosing Reference

FDA-label dosing used when a recommendation moves the patient to a new
drug, plus the class-level summary shown in the formulary reference.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Tuple


@dataclass(frozen=True)
class LabelDosing:
    dose: str
    frequency: str


DEFAULT_LABEL_DOSING = LabelDosing(dose="Per FDA label", frequency="Per FDA label")

# (name fragments, dosing); the first entry whose fragment appears in the name wins
_LABEL_DOSING: Tuple[Tuple[Tuple[str, ...], LabelDosing], ...] = (
    # TNF inhibitors
    (("humira", "adalimumab", "amjevita", "hyrimoz", "cyltezo", "hadlima", "abrilada", "yusimry"),
     LabelDosing("80 mg initial dose, then 40 mg",
                 "every 2 weeks starting 1 week after initial dose")),
    (("enbrel", "etanercept"),
     LabelDosing("50 mg",
                 "twice weekly for 3 months, then once weekly (or 50 mg twice weekly may continue)")),
    (("cimzia", "certolizumab"),
     LabelDosing("400 mg (given as two 200 mg injections)",
                 "every 2 weeks, or 400 mg at weeks 0, 2, 4, then every 4 weeks")),

    # IL-17 inhibitors
    (("cosentyx", "secukinumab"),
     LabelDosing("300 mg", "at weeks 0, 1, 2, 3, 4, then every 4 weeks")),
    (("taltz", "ixekizumab"),
     LabelDosing("160 mg initial dose (two 80 mg injections), then 80 mg",
                 "every 2 weeks for weeks 2, 4, 6, 8, 10, 12, then every 4 weeks")),
    (("siliq", "brodalumab"),
     LabelDosing("210 mg", "at weeks 0, 1, 2, then every 2 weeks")),

    # IL-23 inhibitors
    (("tremfya", "guselkumab"),
     LabelDosing("100 mg", "at weeks 0, 4, then every 8 weeks")),
    (("skyrizi", "risankizumab"),
     LabelDosing("150 mg (two 75 mg injections)", "at weeks 0, 4, then every 12 weeks")),
    (("ilumya", "tildrakizumab"),
     LabelDosing("100 mg", "at weeks 0, 4, then every 12 weeks")),

    # IL-12/23 inhibitor
    (("stelara", "ustekinumab"),
     LabelDosing("45 mg (for patients ≤100 kg) or 90 mg (for patients >100 kg)",
                 "at weeks 0, 4, then every 12 weeks")),

    # IL-4/13 and IL-13 inhibitors
    (("dupixent", "dupilumab"),
     LabelDosing("600 mg loading dose (two 300 mg injections), then 300 mg", "every 2 weeks")),
    (("adbry", "tralokinumab"),
     LabelDosing("600 mg loading dose (four 150 mg injections), then 300 mg",
                 "every 2 weeks (may extend to every 4 weeks after 16 weeks if clear/almost clear)")),

    # JAK / TYK2 inhibitors
    (("rinvoq", "upadacitinib"),
     LabelDosing("15 mg orally once daily",
                 "daily (may increase to 30 mg for inadequate response)")),
    (("cibinqo", "abrocitinib"),
     LabelDosing("100 mg orally once daily",
                 "daily (may adjust to 200 mg or 50 mg based on response)")),
    (("sotyktu", "deucravacitinib"),
     LabelDosing("6 mg orally once daily", "daily")),
)

_KNOWN_CLASSES = {
    "TNF_INHIBITOR",
    "IL17_INHIBITOR",
    "IL23_INHIBITOR",
    "IL12_23_INHIBITOR",
    "JAK_INHIBITOR",
}


def label_dosing_for(drug_name: str) -> LabelDosing:
    name = (drug_name or "").lower()
    for fragments, dosing in _LABEL_DOSING:
        if any(f in name for f in fragments):
            return dosing
    return DEFAULT_LABEL_DOSING


def standard_dosing_for_class(drug_class: str) -> str:
    if drug_class in _KNOWN_CLASSES:
        return "Per label (varies by drug)"
    return "Per label"
