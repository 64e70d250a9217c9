"""Trailing-cycle comparison values built from earlier audits.

Scores are 0-100 integers upstream, so ``"0.1"`` can never be a real value
and is used as the "no historical data" marker. Only :func:`display_value`
turns it into the ``-`` placeholder.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timezone
from typing import Iterable

import structlog

from src.audit.reporting.layout import ReportLayout
from src.audit.reporting.schemas import HistoricalRecord
from src.audit.scoring.engine import round_half_up
from src.audit.sources.base import HistoricalSource

logger = structlog.get_logger(__name__)

NO_DATA = "0.1"

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def _recency_key(record: HistoricalRecord) -> datetime:
    stamp = record.audit_date
    if stamp is None:
        return _EPOCH
    if stamp.tzinfo is None:
        return stamp.replace(tzinfo=timezone.utc)
    return stamp


def _score_text(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else str(value)


def sort_by_recency(records: Iterable[HistoricalRecord]) -> list[HistoricalRecord]:
    """Most recent audit first; undated records keep their order at the end."""

    return sorted(records, key=_recency_key, reverse=True)


def cycle_matches(record_cycle: str, requested: str) -> bool:
    if not requested:
        return False
    return requested in record_cycle or record_cycle.startswith(requested)


def display_value(raw: str, *, rounded: bool = False) -> str:
    """Render a comparison value: the marker becomes ``-``, anything else ``N%``."""

    if raw == NO_DATA:
        return "-"
    try:
        number = float(raw)
    except (TypeError, ValueError):
        return "-"
    if rounded:
        return f"{round_half_up(number)}%"
    return f"{_score_text(number)}%"


class HistoricalAggregator:
    """Per-report view over the historical audits of a store.

    Records are fetched once per store on first use and reused for every
    later query of the same report. The audit being generated is never
    treated as history.
    """

    def __init__(
        self,
        source: HistoricalSource | None,
        layout: ReportLayout,
        current_document_id: str,
    ) -> None:
        self._source = source
        self._layout = layout
        self._current_document_id = current_document_id
        self._cache: dict[str, list[HistoricalRecord]] = {}
        self._last_store: str | None = None

    def records_for(self, store_id: str) -> list[HistoricalRecord]:
        self._last_store = store_id
        if store_id in self._cache:
            return self._cache[store_id]
        records: list[HistoricalRecord] = []
        if self._source is not None and store_id:
            try:
                records = sort_by_recency(self._source.get_records_for_store(store_id))
            except Exception as exc:
                logger.warning("historical_fetch_failed", store_id=store_id, error=str(exc))
                records = []
        logger.debug("historical_records_cached", store_id=store_id, count=len(records))
        self._cache[store_id] = records
        return records

    def find_record(self, store_id: str, cycle_label: str) -> HistoricalRecord | None:
        """First (most recent) record of ``cycle_label`` other than the current audit."""

        for record in self.records_for(store_id):
            if record.document_id == self._current_document_id:
                continue
            if cycle_matches(record.cycle_label, cycle_label):
                return record
        return None

    def score_for_section(self, store_id: str, section_title: str, cycle_label: str) -> str:
        record = self.find_record(store_id, cycle_label)
        if record is None:
            return NO_DATA
        score_field = self._layout.score_field_for(section_title)
        if score_field is None:
            return NO_DATA
        value = record.section_scores.get(score_field)
        if value is None:
            return NO_DATA
        return _score_text(value)

    def overall_score_for_cycle(self, cycle_label: str, store_id: str | None = None) -> str:
        store = store_id if store_id is not None else self._last_store
        if not store:
            return NO_DATA
        record = self.find_record(store, cycle_label)
        if record is None or record.overall_score is None:
            return NO_DATA
        return _score_text(record.overall_score)

    def category_historical_average(
        self, store_id: str, section_titles: Iterable[str], cycle_label: str
    ) -> str:
        """Rounded mean of the sections that have history, or the marker."""

        scores = [
            float(value)
            for value in (
                self.score_for_section(store_id, title, cycle_label) for title in section_titles
            )
            if value != NO_DATA
        ]
        if not scores:
            return NO_DATA
        return str(round_half_up(sum(scores) / len(scores)))

    def repeat_counts(self, store_id: str) -> dict[str, int]:
        """How many earlier audits failed each reference value."""

        counts: Counter[str] = Counter()
        for record in self.records_for(store_id):
            if record.document_id == self._current_document_id:
                continue
            counts.update(set(record.failed_references))
        return dict(counts)


__all__ = [
    "NO_DATA",
    "HistoricalAggregator",
    "cycle_matches",
    "display_value",
    "sort_by_recency",
]
