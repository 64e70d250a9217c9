"""Fixtures wiring the in-memory collaborators into an assembler."""
from __future__ import annotations

from typing import Any

import pytest

from src.audit.reporting.assembler import ReportAssembler
from src.audit.reporting.layout import load_layout
from src.audit.reporting.schemas import ImageAttachment
from src.audit.scoring.thresholds import ThresholdProvider
from tests.fakes import (
    DOCUMENT_ID,
    FIXED_NOW,
    HEADER,
    SECTIONS,
    TEMPERATURE,
    FakeAttachments,
    FakeHistory,
    FakeResponses,
    FakeThresholdSource,
    history_record,
)


@pytest.fixture
def documents() -> dict[str, dict[str, Any]]:
    return {DOCUMENT_ID: {"header": dict(HEADER), "sections": SECTIONS, "temperature": TEMPERATURE}}


@pytest.fixture
def attachments() -> FakeAttachments:
    return FakeAttachments(
        [
            ImageAttachment(composite_id=f"{DOCUMENT_ID}-2", file_name="labels.jpg"),
            ImageAttachment(composite_id=f"{DOCUMENT_ID}-2", file_name="labels-fixed.png", is_corrective="true"),
            ImageAttachment(composite_id=f"{DOCUMENT_ID}-10", file_name="chiller.png"),
            ImageAttachment(composite_id=f"{DOCUMENT_ID}-finding_7", file_name="walk-in.png"),
        ]
    )


@pytest.fixture
def history() -> FakeHistory:
    return FakeHistory(
        [
            history_record(
                "GMRL-FSACR-0031",
                "C2 2023",
                "2023-11-20",
                overall=81.6,
                failed=["1.2", "2.1"],
                FoodScore=88,
                FridgesScore=70,
                HygScore=96,
                MaintScore=65,
            ),
            history_record(
                "GMRL-FSACR-0019",
                "C3 2023",
                "2023-06-02",
                overall=79,
                failed=["1.2"],
                FoodScore=85,
                FridgesScore=None,
                MaintScore=60,
            ),
        ]
    )


@pytest.fixture
def assembler(documents, attachments, history) -> ReportAssembler:
    return ReportAssembler(
        FakeResponses(documents),
        attachments=attachments,
        thresholds=ThresholdProvider(FakeThresholdSource({"OverallPassingScore": 83})),
        history=history,
        layout=load_layout(),
        attachment_workers=2,
        clock=lambda: FIXED_NOW,
    )
