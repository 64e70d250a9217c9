"""Typed models for food-safety audit reports."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field, field_validator

from src.audit.evidence.classifier import extract_question_id, is_corrective_flag
from src.audit.scoring.engine import (
    Choice,
    ScoreStatus,
    Severity,
    calculate_section_score,
    calculate_value,
    needs_corrective_action,
)
from src.audit.scoring.thresholds import ThresholdSet


class ImageAttachment(BaseModel):
    """Photographic evidence attached to one question (or fridge reading)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    composite_id: str = Field(description="Upstream identifier, e.g. DOC-1-87")
    file_name: str = Field(default="", description="Original file name, drives the MIME type")
    is_corrective: bool = Field(default=False, description="True for 'after' evidence")
    url: str | None = Field(default=None, description="Remote location of the binary")
    path: str | None = Field(default=None, description="Local location of the binary")
    data_url: str | None = Field(
        default=None,
        description="Embedded base64 data URL, filled once the binary is fetched",
    )

    @field_validator("is_corrective", mode="before")
    @classmethod
    def _parse_flag(cls, value: Any) -> bool:
        return is_corrective_flag(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def question_id(self) -> str:
        """Question part of ``composite_id``."""

        return extract_question_id(self.composite_id)


class ResponseItem(BaseModel):
    """Single answered question inside a section."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    id: str = Field(default="", description="Question identifier")
    reference_value: str = Field(description="Checklist reference, e.g. 1.2")
    criteria_text: str = Field(description="Requirement wording")
    coefficient: float = Field(default=0.0, description="Question weight")
    selected_choice: Choice | None = Field(
        default=None, description="Auditor answer, None when unrecognised"
    )
    answer_label: str = Field(default="No Answer", description="Answer as recorded upstream")
    comment: str = Field(default="-")
    finding: str = Field(default="")
    corrective_action_text: str = Field(default="")
    severity: Severity | None = Field(default=None, description="Priority set by the auditor")
    before_images: tuple[ImageAttachment, ...] = Field(default_factory=tuple)
    after_images: tuple[ImageAttachment, ...] = Field(default_factory=tuple)
    repeat_count: int = Field(default=0, description="Prior audits that failed this reference")

    @field_validator("selected_choice", mode="before")
    @classmethod
    def _parse_choice(cls, value: Any) -> Choice | None:
        return Choice.parse(value)

    @field_validator("severity", mode="before")
    @classmethod
    def _parse_severity(cls, value: Any) -> Severity | None:
        return Severity.parse(value)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def value(self) -> float | None:
        """Weighted contribution derived from the answer and coefficient."""

        return calculate_value(self.selected_choice, self.coefficient)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def needs_corrective_action(self) -> bool:
        return needs_corrective_action(self)


class FridgeReading(BaseModel):
    """One temperature-monitoring row (finding or compliant)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    reading_id: str = ""
    reference_value: str = "-"
    unit: str = "-"
    display: str = "-"
    probe: str = "-"
    issue: str = "-"
    images: tuple[ImageAttachment, ...] = Field(default_factory=tuple)


class FridgeTables(BaseModel):
    """Temperature readings split into two disjoint tables."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    reference_value: str
    findings: tuple[FridgeReading, ...] = Field(default_factory=tuple)
    compliant: tuple[FridgeReading, ...] = Field(default_factory=tuple)


class Section(BaseModel):
    """Scored block of related questions."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    key: str
    title: str
    icon: str = ""
    score_field: str = Field(description="Header field holding the authoritative score")
    items: tuple[ResponseItem, ...] = Field(default_factory=tuple)
    score: int = Field(default=0, description="Authoritative upstream score")
    status: ScoreStatus = ScoreStatus.NO_DATA
    emoji: str = ""
    performance: str = ""
    fridges: FridgeTables | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def anchor(self) -> str:
        return f"section-{self.key}"

    @computed_field  # type: ignore[prop-decorator]
    @property
    def computed_score(self) -> int:
        """Bottom-up score from the items, informational only."""

        return calculate_section_score(self.items)

    @property
    def corrective_items(self) -> list[ResponseItem]:
        return [item for item in self.items if item.needs_corrective_action]

    @property
    def compliant_items(self) -> list[ResponseItem]:
        return [item for item in self.items if not item.needs_corrective_action]


class Category(BaseModel):
    """Group of sections with its own upstream score."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    score_field: str
    category_score: int = Field(default=0, description="Authoritative upstream score")
    status: ScoreStatus = ScoreStatus.NO_DATA
    emoji: str = ""
    sub_sections: tuple[Section, ...] = Field(default_factory=tuple)


class HistoricalRecord(BaseModel):
    """Scores of one earlier audit of the same store."""

    model_config = ConfigDict(extra="ignore")

    store_id: str
    document_id: str
    cycle_label: str = ""
    audit_date: datetime | None = None
    section_scores: dict[str, float | None] = Field(
        default_factory=dict, description="Scores keyed by section score field"
    )
    overall_score: float | None = None
    failed_references: list[str] = Field(
        default_factory=list, description="References answered No/Partially"
    )


class TrendRow(BaseModel):
    """Row of the six-cycle comparison table (C1 current, C2..C6 history)."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    label: str
    is_category: bool = False
    is_total: bool = False
    values: tuple[str, ...] = Field(description="Display values for C1..C6")


class ChartPoint(BaseModel):
    """One bar of the score chart."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    name: str
    score: int
    is_category: bool
    section_id: str | None = None


class ActionPlanItem(BaseModel):
    """Corrective action to schedule, ordered by priority."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    section: str
    reference_value: str
    criteria_text: str
    finding: str
    corrective_action_text: str
    priority: Severity
    repeat_count: int = 0


class ActionPlan(BaseModel):
    """Corrective actions across all sections with priority counts."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    items: tuple[ActionPlanItem, ...] = Field(default_factory=tuple)
    high: int = 0
    medium: int = 0
    low: int = 0
    repetitive: int = 0


class AuditDocument(BaseModel):
    """Fully assembled report for one audit.

    The document and every nested report model are frozen, and collections
    are tuples, so nothing can change once the assembler returns it.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    document_id: str
    store_id: str
    store_name: str
    audit_date: datetime | None = None
    auditor: str
    cycle_label: str = ""
    overall_score: int = 0
    status: ScoreStatus = ScoreStatus.NO_DATA
    emoji: str = ""
    performance: str = ""
    thresholds: ThresholdSet = Field(default_factory=ThresholdSet)
    sections: tuple[Section, ...] = Field(default_factory=tuple)
    categories: tuple[Category, ...] = Field(default_factory=tuple)
    trend: tuple[TrendRow, ...] = Field(default_factory=tuple)
    chart: tuple[ChartPoint, ...] = Field(default_factory=tuple)
    action_plan: ActionPlan = Field(default_factory=ActionPlan)
    generated_at: datetime

    @property
    def threshold_set(self) -> ThresholdSet:
        return self.thresholds


class ReportResult(BaseModel):
    """Outcome of :func:`generate_report`."""

    model_config = ConfigDict(extra="ignore")

    success: bool
    document: AuditDocument | None = None
    error: str | None = None


__all__ = [
    "ActionPlan",
    "ActionPlanItem",
    "AuditDocument",
    "Category",
    "ChartPoint",
    "Choice",
    "FridgeReading",
    "FridgeTables",
    "HistoricalRecord",
    "ImageAttachment",
    "ReportResult",
    "ResponseItem",
    "ScoreStatus",
    "Section",
    "Severity",
    "TrendRow",
]
