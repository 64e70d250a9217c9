"""Scoring rules and pass/fail thresholds for audit sections."""

from .engine import (
    Choice,
    ScoreStatus,
    Severity,
    calculate_performance,
    calculate_section_score,
    calculate_value,
    needs_corrective_action,
    score_emoji,
    score_status,
    severity_from_score,
)
from .thresholds import ThresholdProvider, ThresholdSet

__all__ = [
    "Choice",
    "ScoreStatus",
    "Severity",
    "ThresholdProvider",
    "ThresholdSet",
    "calculate_performance",
    "calculate_section_score",
    "calculate_value",
    "needs_corrective_action",
    "score_emoji",
    "score_status",
    "severity_from_score",
]
