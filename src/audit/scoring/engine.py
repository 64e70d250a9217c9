"""Weighted scoring of audit answers.

Every function here is pure: it only looks at the values it is handed and
never talks to a collaborator. Items are duck-typed: anything exposing
``coefficient``, ``value`` and ``selected_choice`` attributes works, which
keeps the rules usable on both :class:`ResponseItem` models and ad-hoc
records in tests.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import Any, Iterable


class Choice(str, Enum):
    """Answer recorded by the auditor for one question."""

    YES = "Yes"
    PARTIALLY = "Partially"
    NO = "No"
    NA = "NA"

    @classmethod
    def parse(cls, raw: Any) -> "Choice | None":
        """Coerce a raw answer into the enum, ``None`` when unrecognised."""

        if isinstance(raw, cls):
            return raw
        if raw is None:
            return None
        text = str(raw).strip()
        for member in cls:
            if text.lower() == member.value.lower():
                return member
        if text.upper() in {"N/A", "NOT APPLICABLE"}:
            return cls.NA
        return None


class Severity(str, Enum):
    """Urgency of a corrective action."""

    HIGH = "High"
    MEDIUM = "Medium"
    LOW = "Low"

    @classmethod
    def parse(cls, raw: Any) -> "Severity | None":
        if isinstance(raw, cls):
            return raw
        text = str(raw or "").strip().lower()
        if text in {"high", "critical"}:
            return cls.HIGH
        if text in {"medium", "moderate"}:
            return cls.MEDIUM
        if text == "low":
            return cls.LOW
        return None


class ScoreStatus(str, Enum):
    """Verdict for a score compared with its threshold."""

    PASS = "PASS"
    FAIL = "FAIL"
    NO_DATA = "No Data"


NO_DATA_EMOJI = "⚪"
FAIL_EMOJI = "\U0001f534"
PASS_EMOJI = "\U0001f7e2"

NO_DATA_PERFORMANCE = "No Data Available"
PASS_PERFORMANCE = "Pass ✅"
FAIL_PERFORMANCE = "Fail ❌"

_PRIORITY_ORDER = {Severity.HIGH: 1, Severity.MEDIUM: 2, Severity.LOW: 3}


def round_half_up(value: float) -> int:
    """Round to the nearest integer with halves going up (``2.5 -> 3``)."""

    return int(math.floor(value + 0.5))


def _as_float(value: Any) -> float | None:
    if value is None:
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number):
        return None
    return number


def calculate_value(choice: Any, coefficient: Any) -> float | None:
    """Return the weighted contribution of one answer.

    ``Yes`` earns the full coefficient, ``Partially`` half of it and ``No``
    nothing. ``NA`` returns ``None`` so the item drops out of the section
    entirely. Unrecognised answers score ``0``.
    """

    parsed = Choice.parse(choice)
    coeff = _as_float(coefficient) or 0.0
    if parsed is Choice.YES:
        return coeff
    if parsed is Choice.PARTIALLY:
        return coeff / 2
    if parsed is Choice.NA:
        return None
    return 0.0


def calculate_section_score(items: Iterable[Any]) -> int:
    """Percentage of the achievable coefficient earned by ``items``.

    Items without a value (``NA``) are excluded from both sums.
    """

    total_value = 0.0
    total_coeff = 0.0
    for item in items:
        value = _as_float(getattr(item, "value", None))
        if value is None:
            continue
        total_value += value
        total_coeff += _as_float(getattr(item, "coefficient", None)) or 0.0
    if total_coeff == 0:
        return 0
    return round_half_up(total_value / total_coeff * 100)


def severity_from_score(value: Any, coefficient: Any) -> Severity:
    """Infer urgency from the share of the coefficient an item achieved."""

    achieved = _as_float(value)
    coeff = _as_float(coefficient)
    if not achieved or not coeff:
        return Severity.MEDIUM
    ratio = achieved / coeff
    if ratio < 0.5:
        return Severity.HIGH
    if ratio < 0.8:
        return Severity.MEDIUM
    return Severity.LOW


def severity_class(severity: Any) -> str:
    """CSS class used to colour a severity badge."""

    parsed = Severity.parse(severity)
    if parsed is Severity.HIGH:
        return "severity-high"
    if parsed is Severity.MEDIUM:
        return "severity-medium"
    return "severity-low"


def priority_rank(severity: Any) -> int:
    return _PRIORITY_ORDER.get(Severity.parse(severity), 4)


def needs_corrective_action(item: Any) -> bool:
    """Whether an item fell short of its coefficient and was applicable."""

    if Choice.parse(getattr(item, "selected_choice", None)) is Choice.NA:
        return False
    coeff = _as_float(getattr(item, "coefficient", None)) or 0.0
    value = _as_float(getattr(item, "value", None)) or 0.0
    return coeff != value


def score_status(score: Any, threshold: float) -> ScoreStatus:
    number = _as_float(score) or 0.0
    if number == 0:
        return ScoreStatus.NO_DATA
    return ScoreStatus.PASS if number >= threshold else ScoreStatus.FAIL


def score_emoji(score: Any, threshold: float) -> str:
    status = score_status(score, threshold)
    if status is ScoreStatus.NO_DATA:
        return NO_DATA_EMOJI
    return PASS_EMOJI if status is ScoreStatus.PASS else FAIL_EMOJI


def calculate_performance(score: Any, threshold: float) -> str:
    status = score_status(score, threshold)
    if status is ScoreStatus.NO_DATA:
        return NO_DATA_PERFORMANCE
    return PASS_PERFORMANCE if status is ScoreStatus.PASS else FAIL_PERFORMANCE


def format_score(score: Any) -> str:
    """Render a score as ``NN%`` or ``-`` when missing."""

    number = _as_float(score)
    if number is None:
        return "-"
    return f"{round_half_up(number)}%"


def answer_class(choice: Any) -> str:
    parsed = Choice.parse(choice)
    if parsed is Choice.YES:
        return "answer-yes"
    if parsed is Choice.PARTIALLY:
        return "answer-partial"
    if parsed is Choice.NO:
        return "answer-no"
    return "answer-na"


__all__ = [
    "Choice",
    "FAIL_EMOJI",
    "FAIL_PERFORMANCE",
    "NO_DATA_EMOJI",
    "NO_DATA_PERFORMANCE",
    "PASS_EMOJI",
    "PASS_PERFORMANCE",
    "ScoreStatus",
    "Severity",
    "answer_class",
    "calculate_performance",
    "calculate_section_score",
    "calculate_value",
    "format_score",
    "needs_corrective_action",
    "priority_rank",
    "round_half_up",
    "score_emoji",
    "score_status",
    "severity_class",
    "severity_from_score",
]
