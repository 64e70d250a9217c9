"""Cross-cycle comparison against earlier audits of the same store."""

from .aggregator import NO_DATA, HistoricalAggregator, display_value

__all__ = ["NO_DATA", "HistoricalAggregator", "display_value"]
