"""
Biologic Advisor

Recommendation decision engine for biologic therapy optimisation:
keep, dose-adjust or switch a patient's biologic while respecting
formulary tiers, contraindications and disease control.
"""
__version__ = "1.0.0"
