"""File-backed collaborators reading a local data directory.

Layout of ``data_dir``::

    documents/<document id>.json   header, section answers, fridge readings, attachments
    images/...                     evidence binaries referenced by ``path``
    thresholds.json                configured pass marks
    history.csv                    one row per past audit
"""

from __future__ import annotations

import json
import re
import threading
from pathlib import Path
from typing import Any, Mapping, Sequence

import httpx
import pandas as pd
import structlog
from pydantic import ValidationError

from src.audit.errors import AttachmentFetchError, SourceUnavailableError
from src.audit.reporting.fields import DATE_KEYS, historical_record_from_mapping
from src.audit.reporting.schemas import HistoricalRecord, ImageAttachment

logger = structlog.get_logger(__name__)

_SAFE_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.\-]*$")


def _document_path(data_dir: Path, document_id: str) -> Path | None:
    if not _SAFE_ID.match(document_id) or ".." in document_id:
        return None
    return data_dir / "documents" / f"{document_id}.json"


def _read_document(data_dir: Path, document_id: str) -> dict[str, Any] | None:
    path = _document_path(data_dir, document_id)
    if path is None or not path.exists():
        return None
    try:
        with path.open("r", encoding="utf-8") as handle:
            payload = json.load(handle)
    except (OSError, json.JSONDecodeError) as exc:
        raise SourceUnavailableError("document store", f"{path.name}: {exc}") from exc
    if not isinstance(payload, dict):
        raise SourceUnavailableError("document store", f"{path.name} is not an object")
    return payload


class FileResponseProvider:
    """Headers, answers and fridge readings from ``documents/<id>.json``."""

    def __init__(self, data_dir: str | Path) -> None:
        self._data_dir = Path(data_dir)

    def get_document(self, document_id: str) -> Mapping[str, Any] | None:
        payload = _read_document(self._data_dir, document_id)
        if payload is None:
            return None
        header = payload.get("header")
        return header if isinstance(header, Mapping) and header else None

    def get_section_items(self, document_id: str, section_key: str) -> Sequence[Mapping[str, Any]]:
        payload = _read_document(self._data_dir, document_id) or {}
        sections = payload.get("sections") or {}
        items = sections.get(section_key) or []
        if not isinstance(items, list):
            raise ValueError(f"Section '{section_key}' must be a list of answers.")
        return items

    def get_temperature_readings(self, document_id: str) -> Mapping[str, Sequence[Mapping[str, Any]]]:
        payload = _read_document(self._data_dir, document_id) or {}
        block = payload.get("temperature") or {}
        return {
            "findings": list(block.get("findings") or []),
            "compliant": list(block.get("compliant") or []),
        }


class FileAttachmentProvider:
    """Attachment metadata from the document file; binaries from disk or HTTP."""

    def __init__(
        self,
        data_dir: str | Path,
        *,
        timeout: float = 15.0,
        client: httpx.Client | None = None,
    ) -> None:
        self._data_dir = Path(data_dir)
        self._timeout = timeout
        self._client = client
        self._client_lock = threading.Lock()

    def get_attachments(self, document_id: str) -> Sequence[ImageAttachment]:
        payload = _read_document(self._data_dir, document_id) or {}
        attachments: list[ImageAttachment] = []
        for entry in payload.get("attachments") or []:
            try:
                attachments.append(ImageAttachment.model_validate(entry))
            except ValidationError as exc:
                logger.warning("attachment_metadata_invalid", document_id=document_id, error=str(exc))
        return attachments

    def fetch_binary(self, attachment: ImageAttachment) -> bytes:
        if attachment.path:
            target = (self._data_dir / attachment.path).resolve()
            if self._data_dir.resolve() not in target.parents:
                raise AttachmentFetchError(attachment.composite_id, "path escapes the data directory")
            try:
                return target.read_bytes()
            except OSError as exc:
                raise AttachmentFetchError(attachment.composite_id, str(exc)) from exc
        if attachment.url:
            try:
                response = self._http().get(attachment.url)
                response.raise_for_status()
            except httpx.HTTPError as exc:
                raise AttachmentFetchError(attachment.composite_id, str(exc)) from exc
            return response.content
        raise AttachmentFetchError(attachment.composite_id, "no path or url")

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def _http(self) -> httpx.Client:
        with self._client_lock:
            if self._client is None:
                self._client = httpx.Client(timeout=self._timeout, follow_redirects=True)
            return self._client


class FileThresholdSource:
    """Pass marks read from ``thresholds.json``."""

    def __init__(self, data_dir: str | Path, file_name: str = "thresholds.json") -> None:
        self._path = Path(data_dir) / file_name

    def get_thresholds(self) -> Mapping[str, Any]:
        try:
            with self._path.open("r", encoding="utf-8") as handle:
                payload = json.load(handle)
        except (OSError, json.JSONDecodeError) as exc:
            raise SourceUnavailableError("threshold source", str(exc)) from exc
        if not isinstance(payload, Mapping):
            raise SourceUnavailableError("threshold source", "expected a JSON object")
        return payload


class CsvHistoricalSource:
    """Past audits stored as rows of ``history.csv``.

    Rows are returned most recent first (by ``AuditDate``/``Created``), with
    undated rows last in file order.
    """

    def __init__(
        self,
        data_dir: str | Path,
        score_fields: Sequence[str],
        file_name: str = "history.csv",
    ) -> None:
        self._path = Path(data_dir) / file_name
        self._score_fields = tuple(score_fields)

    def load_frame(self) -> pd.DataFrame:
        try:
            # Identifiers such as "0048" must keep their leading zeros.
            frame = pd.read_csv(self._path, dtype=str)
        except (OSError, pd.errors.ParserError, pd.errors.EmptyDataError) as exc:
            raise SourceUnavailableError("historical source", str(exc)) from exc

        date_column = next((column for column in DATE_KEYS if column in frame.columns), None)
        if date_column is not None:
            frame["_recency"] = pd.to_datetime(frame[date_column], errors="coerce", utc=True)
            frame = frame.sort_values(
                "_recency", ascending=False, na_position="last", kind="stable"
            ).drop(columns="_recency")
        return frame.astype(object).where(pd.notna(frame), None)

    def get_records_for_store(self, store_id: str) -> Sequence[HistoricalRecord]:
        frame = self.load_frame()
        records: list[HistoricalRecord] = []
        for row in frame.to_dict(orient="records"):
            try:
                record = historical_record_from_mapping(row, self._score_fields)
            except ValueError as exc:
                logger.warning("historical_row_skipped", path=str(self._path), error=str(exc))
                continue
            if record.store_id == str(store_id):
                records.append(record)
        return records


__all__ = [
    "CsvHistoricalSource",
    "FileAttachmentProvider",
    "FileResponseProvider",
    "FileThresholdSource",
]
