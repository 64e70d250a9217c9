from __future__ import annotations

import io
import json
import zipfile
from datetime import datetime, timezone
from pathlib import Path

import pytest

from src.audit.reporting.archive import build_report_archive
from src.audit.reporting.html import build_report_html, format_finding
from src.audit.reporting.store import (
    load_report,
    report_file_name,
    save_report_html,
    save_report_json,
)
from tests.fakes import DOCUMENT_ID


@pytest.fixture
def document(assembler):
    return assembler.generate_report(DOCUMENT_ID).document


def test_report_file_name() -> None:
    assert (
        report_file_name("GMRL-FSACR-0048", datetime(2024, 6, 12))
        == "Food_Safety_Audit_Report_GMRL-FSACR-0048_2024-06-12.html"
    )
    assert report_file_name("a/b", datetime(2024, 1, 2)).startswith("Food_Safety_Audit_Report_a_b_")


def test_html_contains_report_blocks(document) -> None:
    html = build_report_html(document)

    assert "Mall Branch" in html
    assert 'id="section-food-storage"' in html
    assert "Sauce tubs without dates" in html
    assert "⚠️ FRIDGES WITH FINDINGS" in html
    assert "✅ COMPLIANT FRIDGES" in html
    assert "✅ NO CORRECTIVE ACTIONS REQUIRED" in html
    assert "🔄 2x" in html
    assert "data:image/png;base64," in html
    assert "⚪" in html


def test_html_escapes_upstream_text(documents, assembler) -> None:
    documents[DOCUMENT_ID]["header"]["Store_x0020_Name"] = "<script>alert(1)</script>"
    html = build_report_html(assembler.generate_report(DOCUMENT_ID).document)
    assert "<script>alert(1)</script>" not in html
    assert "&lt;script&gt;" in html


def test_good_observation_is_highlighted() -> None:
    assert "good-observation" in format_finding("Good Observation: clean floors")
    assert "good-observation" not in format_finding("Dirty floors")


def test_each_save_creates_a_new_html_file(document, tmp_path: Path) -> None:
    first = save_report_html(document, "<html></html>", report_dir=tmp_path)
    second = save_report_html(document, "<html></html>", report_dir=tmp_path)

    assert first != second
    assert first.name == "Food_Safety_Audit_Report_GMRL-FSACR-0048_2024-06-12.html"
    assert second.name == "Food_Safety_Audit_Report_GMRL-FSACR-0048_2024-06-12_2.html"


def test_json_round_trip(document, tmp_path: Path) -> None:
    path = save_report_json(document, report_dir=tmp_path)
    assert path.name == "Food_Safety_Audit_Report_GMRL-FSACR-0048_2024-06-12.json"
    loaded = load_report(DOCUMENT_ID, report_dir=tmp_path)

    assert loaded.overall_score == document.overall_score
    assert loaded.action_plan == document.action_plan
    with pytest.raises(FileNotFoundError):
        load_report("OTHER-1", report_dir=tmp_path)


def test_regenerated_json_keeps_earlier_artifacts(document, tmp_path: Path) -> None:
    first = save_report_json(document, report_dir=tmp_path)
    first_payload = first.read_text(encoding="utf-8")
    same_day = save_report_json(document, report_dir=tmp_path)
    later = document.model_copy(
        update={"generated_at": datetime(2024, 7, 1, 9, 30, tzinfo=timezone.utc), "overall_score": 91}
    )
    newest = save_report_json(later, report_dir=tmp_path)

    assert same_day.name == "Food_Safety_Audit_Report_GMRL-FSACR-0048_2024-06-12_2.json"
    assert newest.name == "Food_Safety_Audit_Report_GMRL-FSACR-0048_2024-07-01.json"
    assert first.read_text(encoding="utf-8") == first_payload
    assert len(list(tmp_path.glob("*.json"))) == 3

    loaded = load_report(DOCUMENT_ID, report_dir=tmp_path)
    assert loaded.overall_score == 91
    assert loaded.generated_at == later.generated_at


def test_archive_bundle(document) -> None:
    with zipfile.ZipFile(io.BytesIO(build_report_archive(document))) as archive:
        names = set(archive.namelist())
        plan = json.loads(archive.read("action_plan.json"))

    assert names == {
        "index.html",
        "Food_Safety_Audit_Report_GMRL-FSACR-0048_2024-06-12.json",
        "action_plan.json",
    }
    assert [item["reference_value"] for item in plan["items"]] == ["2.1", "1.2"]
