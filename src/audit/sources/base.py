"""Interfaces of the collaborators consumed by report generation."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Mapping, Protocol, Sequence

if TYPE_CHECKING:
    from src.audit.reporting.schemas import HistoricalRecord, ImageAttachment


class ResponseProvider(Protocol):
    """Audit headers, raw answers and temperature readings."""

    def get_document(self, document_id: str) -> Mapping[str, Any] | None:
        """Return the raw header record or ``None`` when it does not exist."""

    def get_section_items(self, document_id: str, section_key: str) -> Sequence[Mapping[str, Any]]:
        """Return the raw (unscored) answer records of one section."""

    def get_temperature_readings(self, document_id: str) -> Mapping[str, Sequence[Mapping[str, Any]]]:
        """Return ``{"findings": [...], "compliant": [...]}`` fridge readings."""


class AttachmentProvider(Protocol):
    """Evidence image metadata and binaries."""

    def get_attachments(self, document_id: str) -> Sequence["ImageAttachment"]:
        """Return metadata for every image attached to the audit."""

    def fetch_binary(self, attachment: "ImageAttachment") -> bytes:
        """Return the image bytes for ``attachment``."""


class ThresholdSource(Protocol):
    """Configured pass marks."""

    def get_thresholds(self) -> Mapping[str, Any]:
        """Return raw threshold values keyed by level."""


class HistoricalSource(Protocol):
    """Scores of earlier audits."""

    def get_records_for_store(self, store_id: str) -> Sequence["HistoricalRecord"]:
        """Return every stored audit of ``store_id``."""


__all__ = ["AttachmentProvider", "HistoricalSource", "ResponseProvider", "ThresholdSource"]
