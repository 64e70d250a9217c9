"""Shared dependencies for the report routes."""

from __future__ import annotations

from functools import lru_cache

from fastapi import Depends

from src.audit.errors import DocumentNotFoundError
from src.audit.reporting.assembler import ReportAssembler, build_assembler
from src.audit.reporting.schemas import AuditDocument


@lru_cache(maxsize=1)
def get_assembler() -> ReportAssembler:
    """Assembler over the configured data directory, built once per process."""

    return build_assembler()


def assemble_document(
    document_id: str, assembler: ReportAssembler = Depends(get_assembler)
) -> AuditDocument:
    result = assembler.generate_report(document_id)
    if not result.success or result.document is None:
        raise DocumentNotFoundError(document_id)
    return result.document


__all__ = ["assemble_document", "get_assembler"]
