"""Rendered report downloads (HTML, PDF and ZIP bundle)."""

from __future__ import annotations

import io

import structlog
from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import HTMLResponse, Response, StreamingResponse

from src.audit.reporting.archive import build_report_archive
from src.audit.reporting.html import build_report_html
from src.audit.reporting.pdf import build_report_pdf
from src.audit.reporting.schemas import AuditDocument
from src.audit.reporting.store import report_file_name

from .deps import assemble_document

logger = structlog.get_logger(__name__)

router = APIRouter(prefix="/report", tags=["export"])


def _attachment(filename: str) -> dict[str, str]:
    return {"Content-Disposition": f'attachment; filename="{filename}"'}


@router.get("/{document_id}", response_class=HTMLResponse)
def report_html(document: AuditDocument = Depends(assemble_document)) -> HTMLResponse:
    return HTMLResponse(build_report_html(document))


@router.get("/{document_id}/pdf")
def report_pdf(document: AuditDocument = Depends(assemble_document)) -> Response:
    try:
        pdf = build_report_pdf(document)
    except RuntimeError as exc:
        logger.warning("pdf_export_unavailable", document_id=document.document_id, error=str(exc))
        raise HTTPException(status_code=503, detail="WeasyPrint not installed") from exc
    filename = report_file_name(document.document_id, document.generated_at).replace(".html", ".pdf")
    return Response(content=pdf, media_type="application/pdf", headers=_attachment(filename))


@router.get("/{document_id}/archive")
def report_archive(document: AuditDocument = Depends(assemble_document)) -> StreamingResponse:
    blob = build_report_archive(document)
    filename = report_file_name(document.document_id, document.generated_at).replace(".html", ".zip")
    return StreamingResponse(
        io.BytesIO(blob),
        media_type="application/zip",
        headers=_attachment(filename),
    )


__all__ = ["router"]
