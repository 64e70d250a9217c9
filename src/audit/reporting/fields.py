"""Prioritized accessors over loosely-shaped upstream records.

Upstream lists have been renamed several times, so each logical attribute
can live under a handful of keys. Every accessor here checks its keys in a
fixed order and always returns a value, which keeps the mapping total.
"""

from __future__ import annotations

import html
import math
from datetime import datetime
from typing import Any, Mapping, Sequence

from pydantic import ValidationError

from src.audit.reporting.schemas import (
    Choice,
    FridgeReading,
    HistoricalRecord,
    ResponseItem,
)
from src.audit.scoring.engine import round_half_up

COMMENT_KEYS = ("comment", "Comments", "Note", "notes")
CRITERIA_KEYS = ("Title", "Question", "Criteria", "cr")
REFERENCE_KEYS = ("ReferenceValue", "Reference", "Ref")
COEFFICIENT_KEYS = ("Coeff", "Coef", "coefficient")
ANSWER_KEYS = ("SelectedChoice", "Answer")
FINDING_KEYS = ("Finding", "finding")
CORRECTIVE_KEYS = ("correctedaction", "CorrectiveAction", "Action")
PRIORITY_KEYS = ("Priority", "priority", "Severity")
QUESTION_ID_KEYS = ("Id", "ID", "ImageID")
STORE_NAME_KEYS = ("Store_x0020_Name", "Store_Name", "StoreName", "Store", "Store Name")
STORE_ID_KEYS = ("StoreID", "StoreId", "store_id")
AUDITOR_KEYS = ("Auditor", "Author")
CYCLE_KEYS = ("Cycle", "cycle", "CycleLabel")
DATE_KEYS = ("AuditDate", "Created", "audit_date")
DOCUMENT_KEYS = ("DocumentNumber", "Document_x0020_Number", "document_id", "Title")
OVERALL_SCORE_KEYS = ("Score", "Scor", "TotalScore", "OverallScore")


def first_present(record: Mapping[str, Any], keys: Sequence[str]) -> Any:
    """Return the first value under ``keys`` that is neither ``None`` nor blank."""

    for key in keys:
        value = record.get(key)
        if value is None:
            continue
        if isinstance(value, str) and not value.strip():
            continue
        return value
    return None


def _text(value: Any, default: str) -> str:
    if value is None:
        return default
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value)


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return None if math.isnan(number) else number


def clean_text(text: Any) -> str:
    """Escape ``text`` and keep its line breaks and tabs visible in HTML."""

    escaped = html.escape(str(text if text is not None else ""))
    return escaped.replace("\r\n", "\n").replace("\n", "<br>").replace("\t", "    ")


def comment_of(record: Mapping[str, Any]) -> str:
    return _text(first_present(record, COMMENT_KEYS), "-")


def criteria_of(record: Mapping[str, Any]) -> str:
    return _text(first_present(record, CRITERIA_KEYS), "Criteria not specified")


def reference_of(record: Mapping[str, Any], index: int) -> str:
    """Reference value, falling back to the 1-based position in the section."""

    return _text(first_present(record, REFERENCE_KEYS), str(index + 1))


def coefficient_of(record: Mapping[str, Any]) -> float:
    return _as_float(first_present(record, COEFFICIENT_KEYS)) or 0.0


def answer_of(record: Mapping[str, Any]) -> str:
    return _text(first_present(record, ANSWER_KEYS), "No Answer")


def coefficient_display(item: ResponseItem) -> str:
    """Coefficient as shown in tables, blank for ``NA`` answers."""

    if item.selected_choice is Choice.NA:
        return ""
    return _text(item.coefficient, "")


def finding_of(record: Mapping[str, Any]) -> str:
    return _text(first_present(record, FINDING_KEYS), "-")


def corrective_action_of(record: Mapping[str, Any]) -> str:
    return _text(first_present(record, CORRECTIVE_KEYS), "-")


def question_id_of(record: Mapping[str, Any]) -> str:
    return _text(first_present(record, QUESTION_ID_KEYS), "")


def store_name_of(header: Mapping[str, Any], document_id: str = "") -> str:
    """Store name, falling back to the document number prefix (``ABC-0042`` -> ``ABC``)."""

    value = first_present(header, STORE_NAME_KEYS)
    if value is not None:
        return _text(value, "")
    return document_id.split("-", 1)[0] if document_id else ""


def store_id_of(header: Mapping[str, Any], document_id: str = "") -> str:
    value = first_present(header, STORE_ID_KEYS)
    if value is not None:
        return _text(value, "")
    return store_name_of(header, document_id)


def auditor_of(header: Mapping[str, Any]) -> str:
    return _text(first_present(header, AUDITOR_KEYS), "System Generated")


def cycle_of(record: Mapping[str, Any]) -> str:
    return _text(first_present(record, CYCLE_KEYS), "")


def audit_date_of(record: Mapping[str, Any]) -> datetime | None:
    value = first_present(record, DATE_KEYS)
    if value is None:
        return None
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return None


def document_id_of(record: Mapping[str, Any]) -> str:
    return _text(first_present(record, DOCUMENT_KEYS), "")


def overall_score_of(record: Mapping[str, Any]) -> float | None:
    return _as_float(first_present(record, OVERALL_SCORE_KEYS))


def score_of(record: Mapping[str, Any], field: str) -> int:
    """Upstream score stored under ``field``; missing or garbled reads as 0."""

    value = _as_float(record.get(field))
    if value is None:
        return 0
    return round_half_up(value)


def response_item_from_mapping(record: Mapping[str, Any], index: int) -> ResponseItem:
    """Normalise one raw answer record into a :class:`ResponseItem`."""

    return ResponseItem(
        id=question_id_of(record),
        reference_value=reference_of(record, index),
        criteria_text=criteria_of(record),
        coefficient=coefficient_of(record),
        selected_choice=first_present(record, ANSWER_KEYS),
        answer_label=answer_of(record),
        comment=comment_of(record),
        finding=finding_of(record),
        corrective_action_text=corrective_action_of(record),
        severity=first_present(record, PRIORITY_KEYS),
    )


def fridge_reading_from_mapping(record: Mapping[str, Any], reference_value: str) -> FridgeReading:
    return FridgeReading(
        reading_id=_text(first_present(record, ("ID", "Id")), ""),
        reference_value=reference_value or "-",
        unit=_text(first_present(record, ("Unit", "key")), "-"),
        display=_text(first_present(record, ("Display", "Value")), "-"),
        probe=_text(first_present(record, ("Probe",)), "-"),
        issue=_text(first_present(record, ("Issue",)), "-"),
    )


def historical_record_from_mapping(
    record: Mapping[str, Any], score_fields: Sequence[str]
) -> HistoricalRecord:
    """Build a :class:`HistoricalRecord` from a flat row.

    ``failed_references`` may be a list or a ``;`` separated string.
    """

    raw_failed = record.get("FailedReferences") or record.get("failed_references") or []
    if isinstance(raw_failed, str):
        failed = [part.strip() for part in raw_failed.split(";") if part.strip()]
    elif isinstance(raw_failed, (list, tuple)):
        failed = [str(part) for part in raw_failed]
    else:
        failed = []
    try:
        return HistoricalRecord(
            store_id=store_id_of(record),
            document_id=document_id_of(record),
            cycle_label=cycle_of(record),
            audit_date=audit_date_of(record),
            section_scores={field: _as_float(record.get(field)) for field in score_fields},
            overall_score=overall_score_of(record),
            failed_references=failed,
        )
    except ValidationError as exc:
        raise ValueError(f"Invalid historical record: {exc}") from exc


__all__ = [
    "answer_of",
    "audit_date_of",
    "auditor_of",
    "clean_text",
    "coefficient_display",
    "coefficient_of",
    "comment_of",
    "corrective_action_of",
    "criteria_of",
    "cycle_of",
    "document_id_of",
    "finding_of",
    "first_present",
    "fridge_reading_from_mapping",
    "historical_record_from_mapping",
    "overall_score_of",
    "question_id_of",
    "reference_of",
    "response_item_from_mapping",
    "score_of",
    "store_id_of",
    "store_name_of",
]
