"""
SkyChecker Visibility Services

Status decision and merge of ephemeris results into the catalog.
"""

from .reconciler import (
    ReconcileSummary,
    StatusDecision,
    VisibilityReconciler,
    determine_status,
    moon_phase_for,
    reconcile,
)

__all__ = [
    "ReconcileSummary",
    "StatusDecision",
    "VisibilityReconciler",
    "determine_status",
    "moon_phase_for",
    "reconcile",
]
