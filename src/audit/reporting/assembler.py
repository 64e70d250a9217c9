"""Assemble a scored, illustrated audit report from its collaborators."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Sequence

import structlog

from src.audit.config import Settings, get_settings
from src.audit.evidence.classifier import (
    EvidenceClassifier,
    extract_question_id,
    filter_by_corrective,
)
from src.audit.history.aggregator import HistoricalAggregator, display_value
from src.audit.reporting.action_plan import build_action_plan
from src.audit.reporting.fields import (
    audit_date_of,
    auditor_of,
    criteria_of,
    cycle_of,
    fridge_reading_from_mapping,
    overall_score_of,
    reference_of,
    response_item_from_mapping,
    score_of,
    store_id_of,
    store_name_of,
)
from src.audit.reporting.layout import CategoryLayout, ReportLayout, SectionLayout, load_layout
from src.audit.reporting.schemas import (
    AuditDocument,
    Category,
    ChartPoint,
    FridgeReading,
    FridgeTables,
    ImageAttachment,
    ReportResult,
    ResponseItem,
    Section,
    TrendRow,
)
from src.audit.scoring.engine import (
    ScoreStatus,
    calculate_performance,
    round_half_up,
    score_emoji,
    score_status,
)
from src.audit.scoring.thresholds import ThresholdProvider, ThresholdSet
from src.audit.sources.base import AttachmentProvider, HistoricalSource, ResponseProvider

logger = structlog.get_logger(__name__)

HISTORY_CYCLES = ("C2", "C3", "C4", "C5", "C6")
TEMPERATURE_QUESTION = "air temperature of fridges and freezers"
DEFAULT_TEMPERATURE_REFERENCE = "2.26"

ImageIndex = Mapping[str, Sequence[ImageAttachment]]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(microsecond=0)


def no_data_section(layout: SectionLayout) -> Section:
    """Placeholder used when a section cannot be processed."""

    return Section(
        key=layout.key,
        title=layout.title,
        icon=layout.icon,
        score_field=layout.score_field,
        items=[],
        score=0,
        status=ScoreStatus.NO_DATA,
        emoji=score_emoji(0, 0),
        performance=calculate_performance(0, 0),
    )


def attach_evidence(
    item: ResponseItem, images: ImageIndex, repeat_counts: Mapping[str, int]
) -> ResponseItem:
    """Copy ``item`` with its before/after photos and repeat count filled in."""

    group = list(images.get(extract_question_id(item.id), []))
    update: dict[str, Any] = {
        "before_images": tuple(filter_by_corrective(group, False)),
        "after_images": tuple(filter_by_corrective(group, True)),
    }
    if item.needs_corrective_action:
        update["repeat_count"] = repeat_counts.get(item.reference_value, 0)
    # model_copy skips validation, so collections are passed as tuples.
    return item.model_copy(update=update)


def temperature_reference(raw_items: Sequence[Mapping[str, Any]]) -> str:
    """Reference value of the air-temperature question, shared by every reading."""

    for index, record in enumerate(raw_items):
        if TEMPERATURE_QUESTION in criteria_of(record).lower():
            return reference_of(record, index)
    return DEFAULT_TEMPERATURE_REFERENCE


class ReportAssembler:
    """Run scoring, evidence, history and thresholds for one document at a time.

    The assembler holds no per-report state: every call to
    :meth:`generate_report` builds its own historical cache and evidence
    index, so one instance can serve concurrent requests. Only the threshold
    provider cache is shared.
    """

    def __init__(
        self,
        responses: ResponseProvider,
        *,
        attachments: AttachmentProvider | None = None,
        thresholds: ThresholdProvider | None = None,
        history: HistoricalSource | None = None,
        layout: ReportLayout | None = None,
        attachment_workers: int = 4,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._responses = responses
        self._attachments = attachments
        self._thresholds = thresholds or ThresholdProvider()
        self._history = history
        self._layout = layout or load_layout()
        self._attachment_workers = attachment_workers
        self._clock = clock

    @property
    def layout(self) -> ReportLayout:
        return self._layout

    def generate_report(self, document_id: str) -> ReportResult:
        """Build the :class:`AuditDocument` for ``document_id``.

        Never raises: a missing or unreadable header yields an unsuccessful
        result, while problems inside a section, an image or the history only
        degrade that part of the report.
        """

        log = logger.bind(document_id=document_id)
        try:
            header = self._responses.get_document(document_id)
        except Exception as exc:
            log.warning("document_fetch_failed", error=str(exc))
            return ReportResult(success=False, error=str(exc))
        if not header:
            log.warning("document_not_found")
            return ReportResult(success=False, error=f"Audit document '{document_id}' not found")

        thresholds = self._thresholds.get_thresholds()
        store_id = store_id_of(header, document_id)
        history = HistoricalAggregator(self._history, self._layout, document_id)
        repeat_counts = history.repeat_counts(store_id)
        images = EvidenceClassifier(
            self._attachments, workers=self._attachment_workers
        ).collect(document_id)

        sections = [
            self._build_section(document_id, header, layout, thresholds, images, repeat_counts)
            for layout in self._layout.sections
        ]
        categories = self._build_categories(header, sections, thresholds)
        overall = round_half_up(overall_score_of(header) or 0)

        document = AuditDocument(
            document_id=document_id,
            store_id=store_id,
            store_name=store_name_of(header, document_id),
            audit_date=audit_date_of(header),
            auditor=auditor_of(header),
            cycle_label=cycle_of(header),
            overall_score=overall,
            status=score_status(overall, thresholds.overall),
            emoji=score_emoji(overall, thresholds.overall),
            performance=calculate_performance(overall, thresholds.overall),
            thresholds=thresholds,
            sections=sections,
            categories=categories,
            trend=self._build_trend(store_id, overall, categories, history),
            chart=self._build_chart(categories, sections),
            action_plan=build_action_plan(sections),
            generated_at=self._clock(),
        )
        log.info(
            "report_generated",
            overall_score=overall,
            sections=len(sections),
            corrective_actions=len(document.action_plan.items),
        )
        return ReportResult(success=True, document=document)

    def _build_section(
        self,
        document_id: str,
        header: Mapping[str, Any],
        layout: SectionLayout,
        thresholds: ThresholdSet,
        images: ImageIndex,
        repeat_counts: Mapping[str, int],
    ) -> Section:
        try:
            raw_items = list(self._responses.get_section_items(document_id, layout.key))
            items = [
                attach_evidence(response_item_from_mapping(record, index), images, repeat_counts)
                for index, record in enumerate(raw_items)
            ]
            score = score_of(header, layout.score_field)
            fridges = (
                self._build_fridge_tables(document_id, raw_items, images)
                if layout.temperature
                else None
            )
            return Section(
                key=layout.key,
                title=layout.title,
                icon=layout.icon,
                score_field=layout.score_field,
                items=items,
                score=score,
                status=score_status(score, thresholds.section),
                emoji=score_emoji(score, thresholds.section),
                performance=calculate_performance(score, thresholds.section),
                fridges=fridges,
            )
        except Exception as exc:
            logger.warning(
                "section_failed",
                document_id=document_id,
                section=layout.title,
                error=str(exc),
            )
            return no_data_section(layout)

    def _build_fridge_tables(
        self,
        document_id: str,
        raw_items: Sequence[Mapping[str, Any]],
        images: ImageIndex,
    ) -> FridgeTables | None:
        try:
            readings = self._responses.get_temperature_readings(document_id) or {}
        except Exception as exc:
            logger.warning("temperature_readings_failed", document_id=document_id, error=str(exc))
            return None

        reference = temperature_reference(raw_items)

        def _rows(records: Sequence[Mapping[str, Any]], prefix: str) -> list[FridgeReading]:
            rows: list[FridgeReading] = []
            for record in records:
                reading = fridge_reading_from_mapping(record, reference)
                photos = tuple(images.get(f"{prefix}_{reading.reading_id}", ()))
                rows.append(reading.model_copy(update={"images": photos}))
            return rows

        return FridgeTables(
            reference_value=reference,
            findings=_rows(readings.get("findings") or [], "finding"),
            compliant=_rows(readings.get("compliant") or [], "good"),
        )

    def _build_categories(
        self,
        header: Mapping[str, Any],
        sections: Sequence[Section],
        thresholds: ThresholdSet,
    ) -> list[Category]:
        by_title = {section.title: section for section in sections}
        categories: list[Category] = []
        for layout in self._layout.categories:
            # Read from its own header field, never averaged from the sub-sections.
            score = score_of(header, layout.score_field)
            categories.append(
                Category(
                    name=layout.name,
                    score_field=layout.score_field,
                    category_score=score,
                    status=score_status(score, thresholds.category),
                    emoji=score_emoji(score, thresholds.category),
                    sub_sections=[by_title[title] for title in layout.sections if title in by_title],
                )
            )
        return categories

    def _category_layout(self, name: str) -> CategoryLayout:
        for layout in self._layout.categories:
            if layout.name == name:
                return layout
        raise KeyError(name)

    def _build_trend(
        self,
        store_id: str,
        overall: int,
        categories: Sequence[Category],
        history: HistoricalAggregator,
    ) -> list[TrendRow]:
        rows: list[TrendRow] = []
        for category in categories:
            titles = self._category_layout(category.name).history_sections
            rows.append(
                TrendRow(
                    label=category.name,
                    is_category=True,
                    values=[f"{category.category_score}%"]
                    + [
                        display_value(history.category_historical_average(store_id, titles, cycle))
                        for cycle in HISTORY_CYCLES
                    ],
                )
            )
            for section in category.sub_sections:
                rows.append(
                    TrendRow(
                        label=section.title,
                        values=[f"{section.score}%"]
                        + [
                            display_value(history.score_for_section(store_id, section.title, cycle))
                            for cycle in HISTORY_CYCLES
                        ],
                    )
                )
        rows.append(
            TrendRow(
                label="Total Score",
                is_total=True,
                values=[f"{overall}%"]
                + [
                    display_value(history.overall_score_for_cycle(cycle, store_id), rounded=True)
                    for cycle in HISTORY_CYCLES
                ],
            )
        )
        return rows

    def _build_chart(
        self, categories: Sequence[Category], sections: Sequence[Section]
    ) -> list[ChartPoint]:
        by_title = {section.title: section for section in sections}
        points: list[ChartPoint] = []
        for category in categories:
            points.append(
                ChartPoint(
                    name=category.name,
                    score=category.category_score,
                    is_category=True,
                    section_id=None,
                )
            )
            layout = self._category_layout(category.name)
            for title in layout.sections or layout.chart_sections:
                section = by_title.get(title)
                if section is None:
                    continue
                points.append(
                    ChartPoint(
                        name=f"  {section.title}",
                        score=section.score,
                        is_category=False,
                        section_id=section.anchor,
                    )
                )
        return points


def build_assembler(settings: Settings | None = None) -> ReportAssembler:
    """Wire a :class:`ReportAssembler` over the file-backed collaborators."""

    from src.audit.sources.files import (
        CsvHistoricalSource,
        FileAttachmentProvider,
        FileResponseProvider,
        FileThresholdSource,
    )

    settings = settings or get_settings()
    defaults = ThresholdSet(
        overall=settings.default_overall_threshold,
        section=settings.default_section_threshold,
        category=settings.default_category_threshold,
    )
    layout = load_layout()
    return ReportAssembler(
        FileResponseProvider(settings.data_dir),
        attachments=FileAttachmentProvider(
            settings.data_dir, timeout=settings.http_timeout_seconds
        ),
        thresholds=ThresholdProvider(
            FileThresholdSource(settings.data_dir),
            ttl_seconds=settings.threshold_cache_seconds,
            defaults=defaults,
        ),
        history=CsvHistoricalSource(settings.data_dir, layout.score_fields),
        layout=layout,
        attachment_workers=settings.attachment_workers,
    )


def generate_report(document_id: str, assembler: ReportAssembler | None = None) -> ReportResult:
    """Entry point: ``{success, document, error}`` for ``document_id``."""

    return (assembler or build_assembler()).generate_report(document_id)


__all__ = [
    "DEFAULT_TEMPERATURE_REFERENCE",
    "HISTORY_CYCLES",
    "ReportAssembler",
    "attach_evidence",
    "build_assembler",
    "generate_report",
    "no_data_section",
    "temperature_reference",
]
