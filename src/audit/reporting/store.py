"""Persistence of generated report artifacts."""

from __future__ import annotations

import json
import re
from datetime import date, datetime
from pathlib import Path

from src.audit.config import get_settings
from src.audit.reporting.schemas import AuditDocument

_UNSAFE = re.compile(r"[^A-Za-z0-9_.\-]+")
_ARTIFACT_SUFFIX = re.compile(r"^(\d{4}-\d{2}-\d{2})(?:_(\d+))?$")


def _report_dir(report_dir: Path | None) -> Path:
    directory = report_dir or get_settings().report_dir
    directory.mkdir(parents=True, exist_ok=True)
    return directory


def _safe(document_id: str) -> str:
    return _UNSAFE.sub("_", document_id).strip("._") or "report"


def report_file_name(document_id: str, generated: date | datetime) -> str:
    """``Food_Safety_Audit_Report_<document>_<YYYY-MM-DD>.html``."""

    stamp = generated.strftime("%Y-%m-%d")
    return f"Food_Safety_Audit_Report_{_safe(document_id)}_{stamp}.html"


def _unique(path: Path) -> Path:
    if not path.exists():
        return path
    counter = 2
    while True:
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


def save_report_html(document: AuditDocument, html: str, *, report_dir: Path | None = None) -> Path:
    """Write a new HTML artifact; earlier artifacts for the same audit are left untouched."""

    directory = _report_dir(report_dir)
    path = _unique(directory / report_file_name(document.document_id, document.generated_at))
    path.write_text(html, encoding="utf-8")
    return path


def save_report_pdf(document: AuditDocument, pdf: bytes, *, report_dir: Path | None = None) -> Path:
    directory = _report_dir(report_dir)
    name = report_file_name(document.document_id, document.generated_at).replace(".html", ".pdf")
    path = _unique(directory / name)
    path.write_bytes(pdf)
    return path


def save_report_json(document: AuditDocument, *, report_dir: Path | None = None) -> Path:
    """Persist the assembled document in canonical JSON form.

    Every call writes a new dated artifact, so a re-generated report never
    replaces one saved earlier.
    """

    directory = _report_dir(report_dir)
    name = report_file_name(document.document_id, document.generated_at).replace(".html", ".json")
    path = _unique(directory / name)
    with path.open("x", encoding="utf-8") as handle:
        json.dump(document.model_dump(mode="json"), handle, indent=2, sort_keys=True)
    return path


def _latest_json(directory: Path, document_id: str) -> Path | None:
    prefix = f"Food_Safety_Audit_Report_{_safe(document_id)}_"
    latest: tuple[str, int] | None = None
    found: Path | None = None
    for path in directory.glob(f"{prefix}*.json"):
        match = _ARTIFACT_SUFFIX.match(path.stem[len(prefix):])
        if match is None:
            continue
        key = (match.group(1), int(match.group(2) or 1))
        if latest is None or key > latest:
            latest, found = key, path
    return found


def load_report(document_id: str, *, report_dir: Path | None = None) -> AuditDocument:
    """Load the most recently saved artifact for ``document_id``."""

    directory = report_dir or get_settings().report_dir
    path = _latest_json(directory, document_id) if directory.is_dir() else None
    if path is None:
        raise FileNotFoundError(directory / f"Food_Safety_Audit_Report_{_safe(document_id)}_*.json")
    with path.open("r", encoding="utf-8") as handle:
        raw = json.load(handle)
    return AuditDocument.model_validate(raw)


__all__ = [
    "load_report",
    "report_file_name",
    "save_report_html",
    "save_report_json",
    "save_report_pdf",
]
