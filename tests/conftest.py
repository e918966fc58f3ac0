"""
Pytest configuration and fixtures.
"""

from typing import Optional

import pytest

from android_exporter.config import Settings
from android_exporter.errors import HostError
from android_exporter.host import ChargingStatus, Host, PlugType
from android_exporter.providers import build_providers
from android_exporter.registry import ProviderRegistry


class FakeHost(Host):
    """Host with fixed answers; set ``failing`` to make queries raise."""

    def __init__(self) -> None:
        self.percent = 87.0
        self.status = ChargingStatus.CHARGING
        self.plug = int(PlugType.USB)
        self.interactive = True
        self.mem = (3_221_225_472, 8_589_934_592)
        self.disk = (120_000_000_000, 60_000_000_000, 59_000_000_000)
        self.cpu_line: Optional[str] = "cpu  100 0 50 0 150 0 0 0 0 0"
        self.model = "Pixel 7"
        self.version = "14"
        self.failing: set = set()

    def _check(self, query: str) -> None:
        if query in self.failing:
            raise HostError(f"{query} unavailable")

    def battery_percent(self) -> float:
        self._check("battery_percent")
        return self.percent

    def charging_status(self) -> ChargingStatus:
        self._check("charging_status")
        return self.status

    def plug_type(self) -> int:
        self._check("plug_type")
        return self.plug

    def is_interactive(self) -> bool:
        self._check("is_interactive")
        return self.interactive

    def memory(self):
        self._check("memory")
        return self.mem

    def storage(self, path: str):
        self._check("storage")
        return self.disk

    def cpu_stat_line(self) -> str:
        self._check("cpu_stat_line")
        if self.cpu_line is None:
            raise OSError("no /proc/stat")
        return self.cpu_line

    def device_model(self) -> str:
        self._check("device_model")
        return self.model

    def os_version(self) -> str:
        self._check("os_version")
        return self.version


ALL_QUERIES = {
    "battery_percent",
    "charging_status",
    "plug_type",
    "is_interactive",
    "memory",
    "storage",
    "cpu_stat_line",
    "device_model",
    "os_version",
}


@pytest.fixture
def fake_host() -> FakeHost:
    return FakeHost()


@pytest.fixture
def settings() -> Settings:
    return Settings(port=0, host="127.0.0.1", storage_path="/", metadata=False)


@pytest.fixture
def registry(fake_host: FakeHost, settings: Settings) -> ProviderRegistry:
    return ProviderRegistry(build_providers(fake_host, settings))


@pytest.fixture
def broken_host() -> FakeHost:
    host = FakeHost()
    host.failing = set(ALL_QUERIES)
    return host
