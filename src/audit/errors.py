"""Exception hierarchy shared by collaborators, the assembler and the API."""

from __future__ import annotations

from typing import Any

from fastapi import status


class AuditReportError(Exception):
    """Base exception for report generation failures."""

    def __init__(
        self,
        message: str,
        code: str = "error",
        status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


class DocumentNotFoundError(AuditReportError):
    """No audit header exists for the requested document."""

    def __init__(self, document_id: str):
        super().__init__(
            message=f"Audit document '{document_id}' not found",
            code="not_found",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"document_id": document_id},
        )


class SourceUnavailableError(AuditReportError):
    """An upstream collaborator could not be reached or returned garbage."""

    def __init__(self, source: str, reason: str):
        super().__init__(
            message=f"{source} unavailable: {reason}",
            code="source_unavailable",
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            details={"source": source},
        )


class AttachmentFetchError(AuditReportError):
    """A single evidence image could not be downloaded or decoded."""

    def __init__(self, composite_id: str, reason: str):
        super().__init__(
            message=f"Attachment '{composite_id}' could not be fetched: {reason}",
            code="attachment_fetch_failed",
            status_code=status.HTTP_502_BAD_GATEWAY,
            details={"composite_id": composite_id},
        )


class LayoutError(AuditReportError):
    """The section/category layout configuration is invalid."""

    def __init__(self, message: str):
        super().__init__(message=message, code="layout_error")


__all__ = [
    "AttachmentFetchError",
    "AuditReportError",
    "DocumentNotFoundError",
    "LayoutError",
    "SourceUnavailableError",
]
