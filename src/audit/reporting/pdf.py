from __future__ import annotations

"""PDF rendering of assembled audit reports through WeasyPrint."""

import structlog

from src.audit.reporting.schemas import AuditDocument

from .html import build_report_html

logger = structlog.get_logger(__name__)

# Printed reports go to store managers on A4 with numbered pages.
_PAGE_CSS = """
@page {
  size: A4;
  margin: 14mm 12mm 16mm;
  @bottom-right { content: "Page " counter(page) " / " counter(pages); font-size: 9px; color: #6b7280; }
}
.section { break-inside: avoid-page; }
.table tr { break-inside: avoid; }
.gallery__image, .picture-cell__image { max-width: 45mm; }
"""


def html_to_pdf_bytes(html: str, *, base_url: str = ".") -> bytes:
    """Convert report HTML to PDF bytes using WeasyPrint, if available."""
    try:
        from weasyprint import CSS, HTML  # type: ignore
    except Exception as e:  # pragma: no cover - depends on system libraries
        raise RuntimeError(
            "PDF export requires WeasyPrint. Install with: 'pip install weasyprint' "
            "and ensure system libraries (cairo, pango) are present."
        ) from e
    return HTML(string=html, base_url=base_url).write_pdf(stylesheets=[CSS(string=_PAGE_CSS)])


def build_report_pdf(document: AuditDocument) -> bytes:
    """Render ``document`` to HTML and print it to PDF."""

    pdf = html_to_pdf_bytes(build_report_html(document))
    logger.info("report_pdf_rendered", document_id=document.document_id, size=len(pdf))
    return pdf


__all__ = ["build_report_pdf", "html_to_pdf_bytes"]
