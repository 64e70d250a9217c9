"""Generate a food-safety audit report from the command line."""
from __future__ import annotations

import argparse
import sys
from pathlib import Path

from src.audit.config import get_settings
from src.audit.logging import get_logger, setup_logging
from src.audit.reporting.assembler import build_assembler
from src.audit.reporting.html import build_report_html
from src.audit.reporting.pdf import build_report_pdf
from src.audit.reporting.store import save_report_html, save_report_json, save_report_pdf

logger = get_logger(__name__)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("document_id", help="Document number of the audit, e.g. GMRL-FSACR-0048")
    parser.add_argument("--data-dir", type=Path, default=None, help="Override AUDIT_DATA_DIR")
    parser.add_argument("--output", type=Path, default=None, help="Directory for the artifact")
    parser.add_argument(
        "--format",
        choices=("html", "pdf", "json"),
        default="html",
        help="Artifact to write (default: html)",
    )
    return parser.parse_args(argv)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging()

    settings = get_settings()
    if args.data_dir is not None:
        settings = settings.model_copy(update={"data_dir": args.data_dir})
    output = args.output or settings.report_dir

    result = build_assembler(settings).generate_report(args.document_id)
    if not result.success or result.document is None:
        logger.error("report_failed", document_id=args.document_id, error=result.error)
        return 1

    document = result.document
    if args.format == "json":
        path = save_report_json(document, report_dir=output)
    elif args.format == "pdf":
        try:
            pdf = build_report_pdf(document)
        except RuntimeError as exc:
            logger.error("pdf_export_unavailable", error=str(exc))
            return 2
        path = save_report_pdf(document, pdf, report_dir=output)
    else:
        path = save_report_html(document, build_report_html(document), report_dir=output)

    logger.info("report_written", document_id=document.document_id, path=str(path))
    print(path)
    return 0


if __name__ == "__main__":
    sys.exit(main())
