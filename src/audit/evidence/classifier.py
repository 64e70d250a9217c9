"""Group evidence images by question and split them into before/after sets."""

from __future__ import annotations

import base64
from collections import defaultdict
from concurrent.futures import ThreadPoolExecutor
from pathlib import PurePosixPath
from typing import TYPE_CHECKING, Any, Iterable, Mapping

import structlog

from src.audit.errors import AttachmentFetchError

if TYPE_CHECKING:
    from src.audit.reporting.schemas import ImageAttachment
    from src.audit.sources.base import AttachmentProvider

logger = structlog.get_logger(__name__)

SEPARATOR = "-"

_MIME_TYPES = {
    "png": "image/png",
    "gif": "image/gif",
    "bmp": "image/bmp",
    "webp": "image/webp",
}
_DEFAULT_MIME = "image/jpeg"
_CORRECTIVE_KEYS = ("is_corrective", "Iscorrective", "IsCorrective", "isCorrective")


def extract_question_id(composite_id: str | None) -> str:
    """Return the question part of an attachment identifier.

    Identifiers look like ``<prefix>-<sequence>-<question>`` (for example
    ``GMRL-FSACR-0048-87`` or ``DOC-1-87``). The question is the text after
    the last separator. Identifiers that stop at the document part
    (``DOC-1``) or have no separator at all are returned whole.
    """

    text = str(composite_id or "").strip()
    if text.count(SEPARATOR) < 2:
        return text
    return text.rsplit(SEPARATOR, 1)[-1]


def is_corrective_flag(raw: Any) -> bool:
    """Interpret an upstream corrective marker (``True``, ``"true"`` or ``1``)."""

    if isinstance(raw, bool):
        return raw
    if isinstance(raw, (int, float)):
        return raw == 1
    if isinstance(raw, str):
        return raw.strip().lower() == "true"
    return False


def _flag_of(attachment: Any) -> Any:
    if isinstance(attachment, Mapping):
        for key in _CORRECTIVE_KEYS:
            if key in attachment:
                return attachment[key]
        return None
    return getattr(attachment, "is_corrective", None)


def _id_of(attachment: Any) -> str:
    if isinstance(attachment, Mapping):
        return str(attachment.get("composite_id") or attachment.get("ImageID") or "")
    return str(getattr(attachment, "composite_id", "") or "")


def group_by_question(attachments: Iterable[Any]) -> dict[str, list[Any]]:
    """Map question id to its attachments, preserving input order per group."""

    grouped: dict[str, list[Any]] = defaultdict(list)
    for attachment in attachments:
        grouped[extract_question_id(_id_of(attachment))].append(attachment)
    return dict(grouped)


def filter_by_corrective(attachments: Iterable[Any], want_corrective: bool) -> list[Any]:
    """Keep attachments whose corrective flag equals ``want_corrective``."""

    return [item for item in attachments if is_corrective_flag(_flag_of(item)) is want_corrective]


def mime_type_for(file_name: str | None) -> str:
    suffix = PurePosixPath(str(file_name or "")).suffix.lower().lstrip(".")
    return _MIME_TYPES.get(suffix, _DEFAULT_MIME)


def to_data_url(binary: bytes, file_name: str | None) -> str:
    """Embed ``binary`` as a base64 ``data:`` URL."""

    encoded = base64.b64encode(binary).decode("ascii")
    return f"data:{mime_type_for(file_name)};base64,{encoded}"


class EvidenceClassifier:
    """Download, embed and group the attachments of one audit.

    Binaries are fetched by a bounded thread pool. Grouping happens after all
    downloads complete and follows the upstream listing order, so the result
    does not depend on which download finishes first.
    """

    def __init__(self, provider: "AttachmentProvider | None", *, workers: int = 4) -> None:
        self._provider = provider
        self._workers = max(1, workers)

    def collect(self, document_id: str) -> dict[str, list["ImageAttachment"]]:
        """Return embedded attachments of ``document_id`` keyed by question id."""

        if self._provider is None:
            return {}
        try:
            attachments = list(self._provider.get_attachments(document_id))
        except Exception as exc:
            logger.warning("attachments_unavailable", document_id=document_id, error=str(exc))
            return {}
        if not attachments:
            return {}

        with ThreadPoolExecutor(max_workers=min(self._workers, len(attachments))) as pool:
            futures = [pool.submit(self._embed, attachment) for attachment in attachments]
            embedded = [future.result() for future in futures]

        kept = [item for item in embedded if item is not None]
        logger.info(
            "attachments_collected",
            document_id=document_id,
            total=len(attachments),
            embedded=len(kept),
        )
        return group_by_question(kept)

    def _embed(self, attachment: "ImageAttachment") -> "ImageAttachment | None":
        if attachment.data_url:
            return attachment
        try:
            binary = self._provider.fetch_binary(attachment)  # type: ignore[union-attr]
            if not binary:
                raise AttachmentFetchError(attachment.composite_id, "empty payload")
        except Exception as exc:
            logger.warning(
                "attachment_skipped",
                composite_id=attachment.composite_id,
                file_name=attachment.file_name,
                error=str(exc),
            )
            return None
        return attachment.model_copy(update={"data_url": to_data_url(binary, attachment.file_name)})


__all__ = [
    "EvidenceClassifier",
    "extract_question_id",
    "filter_by_corrective",
    "group_by_question",
    "is_corrective_flag",
    "mime_type_for",
    "to_data_url",
]
