"""
FDA Maintenance Dosing Table

Standard maintenance interval per biologic (brand and generic names,
including adalimumab/etanercept biosimilars). Loading doses are not
represented: only the steady-state interval matters for detecting
interval extension.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Dict, Optional


class IntervalUnit(str, Enum):
    WEEKS = "weeks"
    DAYS  = "days"


@dataclass(frozen=True)
class MaintenanceInterval:
    interval: int
    unit: IntervalUnit


_W = IntervalUnit.WEEKS
_D = IntervalUnit.DAYS

STANDARD_MAINTENANCE_DOSING: Dict[str, MaintenanceInterval] = {
    # IL-23 inhibitors
    "Skyrizi":         MaintenanceInterval(12, _W),
    "Risankizumab":    MaintenanceInterval(12, _W),
    "Tremfya":         MaintenanceInterval(8, _W),
    "Guselkumab":      MaintenanceInterval(8, _W),
    "Ilumya":          MaintenanceInterval(12, _W),
    "Tildrakizumab":   MaintenanceInterval(12, _W),

    # IL-17 inhibitors
    "Cosentyx":        MaintenanceInterval(4, _W),
    "Secukinumab":     MaintenanceInterval(4, _W),
    "Taltz":           MaintenanceInterval(4, _W),
    "Ixekizumab":      MaintenanceInterval(4, _W),
    "Siliq":           MaintenanceInterval(1, _W),
    "Brodalumab":      MaintenanceInterval(1, _W),

    # TNF inhibitors
    "Humira":          MaintenanceInterval(2, _W),
    "Adalimumab":      MaintenanceInterval(2, _W),
    "Adalimumab-adbm": MaintenanceInterval(2, _W),
    "Adalimumab-adaz": MaintenanceInterval(2, _W),
    "Adalimumab-aaty": MaintenanceInterval(2, _W),
    "Adalimumab-afzb": MaintenanceInterval(2, _W),
    "Cyltezo":         MaintenanceInterval(2, _W),
    "Yusimry":         MaintenanceInterval(2, _W),
    "Hyrimoz":         MaintenanceInterval(2, _W),
    "Hadlima":         MaintenanceInterval(2, _W),
    "Abrilada":        MaintenanceInterval(2, _W),
    "Enbrel":          MaintenanceInterval(1, _W),
    "Etanercept":      MaintenanceInterval(1, _W),
    "Etanercept-szzs": MaintenanceInterval(1, _W),
    "Erelzi":          MaintenanceInterval(1, _W),
    "Eticovo":         MaintenanceInterval(1, _W),
    "Cimzia":          MaintenanceInterval(2, _W),
    "Certolizumab":    MaintenanceInterval(2, _W),
    "Simponi":         MaintenanceInterval(4, _W),
    "Golimumab":       MaintenanceInterval(4, _W),

    # IL-12/23 inhibitors
    "Stelara":         MaintenanceInterval(12, _W),
    "Ustekinumab":     MaintenanceInterval(12, _W),

    # IL-4/13 inhibitors
    "Dupixent":        MaintenanceInterval(2, _W),
    "Dupilumab":       MaintenanceInterval(2, _W),

    # JAK / TYK2 inhibitors (oral, daily)
    "Rinvoq":          MaintenanceInterval(1, _D),
    "Upadacitinib":    MaintenanceInterval(1, _D),
    "Sotyktu":         MaintenanceInterval(1, _D),
    "Deucravacitinib": MaintenanceInterval(1, _D),
}

_BY_LOWER_NAME = {name.lower(): dosing for name, dosing in STANDARD_MAINTENANCE_DOSING.items()}


def get_standard_dosing(drug_name: str) -> Optional[MaintenanceInterval]:
    """Case-insensitive lookup; None for drugs outside the table."""
    return _BY_LOWER_NAME.get((drug_name or "").strip().lower())
