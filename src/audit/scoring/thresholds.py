"""Pass/fail thresholds with static fallbacks and a time-boxed cache."""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass
from typing import Any, Callable, Literal, Mapping

import structlog

from src.audit.config import (
    DEFAULT_CATEGORY_THRESHOLD,
    DEFAULT_OVERALL_THRESHOLD,
    DEFAULT_SECTION_THRESHOLD,
)
from src.audit.sources.base import ThresholdSource

logger = structlog.get_logger(__name__)

ThresholdKind = Literal["overall", "section", "category"]

_KEYS: dict[str, tuple[str, ...]] = {
    "overall": ("overall", "OverallPassingScore"),
    "section": ("section", "SectionPassingScore"),
    "category": ("category", "CategoryPassingScore"),
}


def _parse_int(raw: Any) -> int | None:
    if raw is None or isinstance(raw, bool):
        return None
    try:
        return int(float(str(raw).strip()))
    except (TypeError, ValueError):
        return None


@dataclass(slots=True, frozen=True)
class ThresholdSet:
    """Minimum passing scores (percent) for each level of the report."""

    overall: int = DEFAULT_OVERALL_THRESHOLD
    section: int = DEFAULT_SECTION_THRESHOLD
    category: int = DEFAULT_CATEGORY_THRESHOLD

    @classmethod
    def from_mapping(
        cls, payload: Mapping[str, Any], defaults: "ThresholdSet | None" = None
    ) -> "ThresholdSet":
        """Parse a raw source payload, falling back per value.

        Zero, missing or unparsable values fall back to ``defaults``.
        ``SettingValue`` is honoured for the overall threshold when no
        dedicated key is present.
        """

        base = defaults or cls()
        values: dict[str, int] = {}
        for kind, keys in _KEYS.items():
            parsed = None
            for key in keys:
                parsed = _parse_int(payload.get(key))
                if parsed:
                    break
            if not parsed and kind == "overall":
                parsed = _parse_int(payload.get("SettingValue"))
            values[kind] = parsed or getattr(base, kind)
        return cls(**values)

    def for_kind(self, kind: ThresholdKind) -> int:
        if kind not in _KEYS:
            raise ValueError(f"Unknown threshold kind '{kind}'.")
        return getattr(self, kind)


@dataclass(slots=True, frozen=True)
class _CacheEntry:
    value: ThresholdSet
    expires_at: float


class ThresholdProvider:
    """Serve thresholds from a source, cached for ``ttl_seconds``.

    The cache belongs to the provider instance. A refresh only happens when
    the entry observed before taking the lock is still the current one, so
    concurrent callers that raced on an expired entry share a single
    upstream read.
    """

    def __init__(
        self,
        source: ThresholdSource | None = None,
        *,
        ttl_seconds: float = 300.0,
        defaults: ThresholdSet | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._source = source
        self._ttl = ttl_seconds
        self._defaults = defaults or ThresholdSet()
        self._clock = clock
        self._entry: _CacheEntry | None = None
        self._lock = threading.Lock()

    @property
    def defaults(self) -> ThresholdSet:
        return self._defaults

    def get_thresholds(self, force_refresh: bool = False) -> ThresholdSet:
        observed = self._entry
        if not force_refresh and observed is not None and observed.expires_at > self._clock():
            return observed.value

        with self._lock:
            current = self._entry
            if current is not observed and current is not None and not force_refresh:
                return current.value
            value = self._fetch()
            self._entry = _CacheEntry(value=value, expires_at=self._clock() + self._ttl)
            return value

    def clear_cache(self) -> None:
        with self._lock:
            self._entry = None

    def is_passing(self, score: float | int | None, kind: ThresholdKind = "overall") -> bool:
        """Whether ``score`` meets the threshold of the given ``kind``."""

        if score is None:
            return False
        return float(score) >= self.get_thresholds().for_kind(kind)

    def _fetch(self) -> ThresholdSet:
        if self._source is None:
            return self._defaults
        try:
            payload = self._source.get_thresholds()
        except Exception as exc:
            logger.warning("threshold_source_failed", error=str(exc))
            return self._defaults
        if not isinstance(payload, Mapping):
            logger.warning("threshold_source_invalid", payload_type=type(payload).__name__)
            return self._defaults
        thresholds = ThresholdSet.from_mapping(payload, self._defaults)
        logger.debug(
            "thresholds_loaded",
            overall=thresholds.overall,
            section=thresholds.section,
            category=thresholds.category,
        )
        return thresholds


__all__ = ["ThresholdKind", "ThresholdProvider", "ThresholdSet"]
