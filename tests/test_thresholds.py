from __future__ import annotations

import pytest

from src.audit.scoring.thresholds import ThresholdProvider, ThresholdSet
from tests.fakes import FakeThresholdSource


class FakeClock:
    def __init__(self) -> None:
        self.now = 1000.0

    def __call__(self) -> float:
        return self.now


def test_defaults_without_source() -> None:
    provider = ThresholdProvider()
    assert provider.get_thresholds() == ThresholdSet(overall=83, section=89, category=83)


def test_from_mapping_falls_back_per_value() -> None:
    parsed = ThresholdSet.from_mapping(
        {"OverallPassingScore": "85", "SectionPassingScore": 0, "CategoryPassingScore": "n/a"}
    )
    assert parsed == ThresholdSet(overall=85, section=89, category=83)


def test_setting_value_feeds_overall_threshold() -> None:
    assert ThresholdSet.from_mapping({"SettingValue": "80"}).overall == 80


def test_for_kind_rejects_unknown_kind() -> None:
    with pytest.raises(ValueError):
        ThresholdSet().for_kind("store")  # type: ignore[arg-type]


def test_source_failure_returns_defaults() -> None:
    provider = ThresholdProvider(FakeThresholdSource(error=True))
    assert provider.get_thresholds() == ThresholdSet()


def test_cache_expires_after_ttl() -> None:
    clock = FakeClock()
    source = FakeThresholdSource({"OverallPassingScore": 90})
    provider = ThresholdProvider(source, ttl_seconds=300, clock=clock)

    assert provider.get_thresholds().overall == 90
    clock.now += 299
    provider.get_thresholds()
    assert source.calls == 1

    clock.now += 2
    source.payload = {"OverallPassingScore": 75}
    assert provider.get_thresholds().overall == 75
    assert source.calls == 2


def test_force_refresh_and_clear_cache() -> None:
    source = FakeThresholdSource({"SectionPassingScore": 91})
    provider = ThresholdProvider(source)
    provider.get_thresholds()
    provider.get_thresholds(force_refresh=True)
    assert source.calls == 2
    provider.clear_cache()
    provider.get_thresholds()
    assert source.calls == 3


def test_is_passing_uses_requested_kind() -> None:
    provider = ThresholdProvider(defaults=ThresholdSet(overall=83, section=89, category=83))
    assert provider.is_passing(85)
    assert not provider.is_passing(85, "section")
    assert not provider.is_passing(None)
