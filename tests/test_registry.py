"""
Tests for the provider registry.
"""

import logging

import pytest

from android_exporter.exposition import encode
from android_exporter.models import ProviderResult, reading
from android_exporter.providers import MemoryProvider, Provider, build_providers
from android_exporter.registry import ProviderRegistry


class StaticProvider(Provider):
    def __init__(self, name: str, *values: float) -> None:
        super().__init__(host=None)
        self.name = name
        self.values = values

    def read(self):
        return [reading(f"{self.name}_{index}", value) for index, value in enumerate(self.values)]


class ExplodingProvider(Provider):
    """Breaks the provider contract by raising from sample()."""

    name = "exploding"

    def read(self):
        return []

    def sample(self) -> ProviderResult:
        raise RuntimeError("boom")


def test_collect_preserves_registration_order() -> None:
    registry = ProviderRegistry([StaticProvider("b", 1, 2), StaticProvider("a", 3)])

    snapshot = registry.collect()

    assert snapshot.names() == ("b_0", "b_1", "a_0")
    assert snapshot.failed == ()


def test_register_rejects_duplicates() -> None:
    registry = ProviderRegistry([StaticProvider("a", 1)])

    with pytest.raises(ValueError, match="already registered"):
        registry.register(StaticProvider("a", 2))

    assert len(registry) == 1


def test_storage_failure_keeps_other_providers(fake_host, registry) -> None:
    fake_host.failing = {"storage"}

    snapshot = registry.collect()
    text = encode(snapshot)

    assert snapshot.failed == ("storage",)
    assert "android_storage_total_bytes" not in text
    for name in (
        "android_up",
        "android_battery_percent",
        "android_charging",
        "android_power_source",
        "android_screen_on",
        "android_memory_available_bytes",
        "android_memory_total_bytes",
        "android_cpu_usage_percent",
    ):
        assert name in snapshot.names()
        assert name in text


def test_every_provider_failing_leaves_identity_and_cpu(broken_host, settings) -> None:
    snapshot = ProviderRegistry(build_providers(broken_host, settings)).collect()

    assert snapshot.names() == ("android_up", "android_cpu_usage_percent")
    assert snapshot.failed == ("power", "display", "memory", "storage")


def test_provider_raising_from_sample_is_skipped(fake_host) -> None:
    registry = ProviderRegistry([ExplodingProvider(fake_host), MemoryProvider(fake_host)])

    snapshot = registry.collect()

    assert snapshot.failed == ("exploding",)
    assert snapshot.names() == ("android_memory_available_bytes", "android_memory_total_bytes")


def test_snapshots_are_independent(fake_host, registry) -> None:
    first = registry.collect()
    fake_host.mem = (1, 2)
    second = registry.collect()

    assert first is not second
    assert dict((item.name, item.value) for item in first)["android_memory_total_bytes"] == 8_589_934_592
    assert dict((item.name, item.value) for item in second)["android_memory_total_bytes"] == 2


def test_provider_failure_is_logged_once(fake_host, registry, caplog) -> None:
    fake_host.failing = {"storage"}

    with caplog.at_level(logging.DEBUG, logger="android_exporter"):
        registry.collect()

    storage_records = [record for record in caplog.records if "storage" in record.getMessage()]
    assert len(storage_records) == 1
    assert storage_records[0].levelno == logging.WARNING
