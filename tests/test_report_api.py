from __future__ import annotations

import io
import zipfile

import pytest
from fastapi.testclient import TestClient

from src.audit.api.routes.deps import get_assembler
from src.main import app
from tests.fakes import DOCUMENT_ID


client = TestClient(app)


@pytest.fixture(autouse=True)
def _override_assembler(assembler):
    app.dependency_overrides[get_assembler] = lambda: assembler
    yield
    app.dependency_overrides.clear()


def test_report_endpoint_returns_document() -> None:
    response = client.get(f"/api/report/{DOCUMENT_ID}")
    assert response.status_code == 200
    payload = response.json()
    assert payload["document_id"] == DOCUMENT_ID
    assert payload["overall_score"] == 86
    assert payload["status"] == "PASS"
    assert payload["sections"][0]["anchor"] == "section-food-storage"
    assert payload["sections"][0]["items"][1]["needs_corrective_action"] is True
    assert [item["reference_value"] for item in payload["action_plan"]["items"]] == ["2.1", "1.2"]


def test_unknown_document_returns_404() -> None:
    response = client.get("/api/report/UNKNOWN-1")
    assert response.status_code == 404
    assert response.json() == {
        "error": "not_found",
        "message": "Audit document 'UNKNOWN-1' not found",
        "details": {"document_id": "UNKNOWN-1"},
    }


def test_html_export() -> None:
    response = client.get(f"/report/{DOCUMENT_ID}")
    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/html")
    assert "Food Safety Audit Report" in response.text
    assert 'id="section-food-storage"' in response.text
    assert "Sauce tubs without dates" in response.text


def test_archive_export() -> None:
    response = client.get(f"/report/{DOCUMENT_ID}/archive")
    assert response.status_code == 200
    assert response.headers["content-type"] == "application/zip"
    assert "Food_Safety_Audit_Report_GMRL-FSACR-0048_2024-06-12.zip" in response.headers["content-disposition"]
    with zipfile.ZipFile(io.BytesIO(response.content)) as archive:
        assert "index.html" in archive.namelist()


def test_pdf_export_without_weasyprint(monkeypatch) -> None:
    from src.audit.api.routes import export

    def _unavailable(document) -> bytes:
        raise RuntimeError("missing")

    monkeypatch.setattr(export, "build_report_pdf", _unavailable)
    response = client.get(f"/report/{DOCUMENT_ID}/pdf")
    assert response.status_code == 503
    assert response.json()["detail"] == "WeasyPrint not installed"


def test_export_of_unknown_document_returns_404() -> None:
    assert client.get("/report/UNKNOWN-1").status_code == 404
