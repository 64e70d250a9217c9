from __future__ import annotations

"""Helpers for producing ZIP bundles of assembled reports."""

import io
import json
import zipfile

from src.audit.reporting.schemas import AuditDocument
from src.audit.reporting.store import report_file_name

from .html import build_report_html

__all__ = ["build_report_archive"]


def build_report_archive(document: AuditDocument) -> bytes:
    """Create a ZIP archive with the rendered report and its JSON payload."""

    html_name = report_file_name(document.document_id, document.generated_at)
    payload = document.model_dump(mode="json")

    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as archive:
        archive.writestr("index.html", build_report_html(document))
        archive.writestr(html_name.replace(".html", ".json"), json.dumps(payload, indent=2, sort_keys=True))
        archive.writestr(
            "action_plan.json",
            json.dumps(payload["action_plan"], indent=2, sort_keys=True),
        )

    buffer.seek(0)
    return buffer.getvalue()
