"""Read-only API endpoint serving assembled audit reports as JSON."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from src.audit.reporting.schemas import AuditDocument

from .deps import assemble_document

router = APIRouter(prefix="/api/report", tags=["report"])


@router.get("/{document_id}", response_model=AuditDocument)
def get_report(document: AuditDocument = Depends(assemble_document)) -> AuditDocument:
    """Return the scored report for ``document_id``."""

    return document


__all__ = ["router"]
