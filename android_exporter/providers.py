"""Metric providers, one per host subsystem."""
from __future__ import annotations

import logging
import time
from abc import ABC, abstractmethod
from typing import Callable, Dict, List, Sequence, Tuple

from .config import Settings
from .errors import ConfigError
from .host import ChargingStatus, Host, PlugType
from .models import MetricReading, ProviderResult, reading

logger = logging.getLogger(__name__)

UNKNOWN_LABEL = "unknown"

_POWER_SOURCES = {
    PlugType.AC: "ac",
    PlugType.USB: "usb",
    PlugType.WIRELESS: "wireless",
}

_CHARGING_STATES = (ChargingStatus.CHARGING, ChargingStatus.FULL)


class Provider(ABC):
    """Samples one subsystem and reports every reading or a failure."""

    name = "unknown"

    def __init__(self, host: Host) -> None:
        self.host = host

    @abstractmethod
    def read(self) -> List[MetricReading]:
        """Return the readings for this pass; may raise on failure."""

    def sample(self) -> ProviderResult:
        try:
            readings = self.read()
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Provider %s failed: %s", self.name, exc)
            return ProviderResult.failure(self.name, str(exc) or type(exc).__name__)
        if not readings:
            logger.warning("Provider %s returned no readings", self.name)
            return ProviderResult.failure(self.name, "no readings")
        return ProviderResult.success(self.name, readings)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}({self.name!r})"


class IdentityProvider(Provider):
    """Static device identity, resolved once at startup."""

    name = "identity"

    def __init__(self, host: Host) -> None:
        super().__init__(host)
        self.model = self._lookup("device model", host.device_model)
        self.os_version = self._lookup("OS version", host.os_version)

    @staticmethod
    def _lookup(what: str, query: Callable[[], str]) -> str:
        try:
            return query() or UNKNOWN_LABEL
        except Exception as exc:  # pylint: disable=broad-except
            logger.warning("Could not determine %s: %s", what, exc)
            return UNKNOWN_LABEL

    def read(self) -> List[MetricReading]:
        return [
            reading(
                "android_up",
                1,
                "Exporter is up, labelled with device identity.",
                model=self.model,
                os_version=self.os_version,
            )
        ]


def power_source_label(plug_code: int) -> str:
    """Map a plug code to usb/ac/wireless, or none when unrecognized."""
    try:
        return _POWER_SOURCES.get(PlugType(plug_code), "none")
    except ValueError:
        return "none"


def is_charging(status: int) -> bool:
    return status in _CHARGING_STATES


class PowerProvider(Provider):
    name = "power"

    def read(self) -> List[MetricReading]:
        percent = self.host.battery_percent()
        status = self.host.charging_status()
        plug = self.host.plug_type()
        percent = min(100, max(0, int(round(percent))))
        return [
            reading("android_battery_percent", percent, "Battery charge level in percent."),
            reading(
                "android_charging",
                1 if is_charging(status) else 0,
                "Whether the battery is charging or full.",
            ),
            reading(
                "android_power_source",
                1,
                "Active power source.",
                type=power_source_label(plug),
            ),
        ]


class DisplayProvider(Provider):
    name = "display"

    def read(self) -> List[MetricReading]:
        screen_on = self.host.is_interactive()
        return [reading("android_screen_on", 1 if screen_on else 0, "Whether the screen is on.")]


class MemoryProvider(Provider):
    name = "memory"

    def read(self) -> List[MetricReading]:
        available, total = self.host.memory()
        return [
            reading(
                "android_memory_available_bytes",
                max(0, int(available)),
                "Memory available to applications in bytes.",
            ),
            reading("android_memory_total_bytes", max(0, int(total)), "Total memory in bytes."),
        ]


class StorageProvider(Provider):
    name = "storage"

    def __init__(self, host: Host, path: str) -> None:
        super().__init__(host)
        self.path = path

    def read(self) -> List[MetricReading]:
        total, free, available = self.host.storage(self.path)
        return [
            reading(
                "android_storage_total_bytes",
                max(0, int(total)),
                "Size of the data partition in bytes.",
            ),
            reading(
                "android_storage_free_bytes",
                max(0, int(free)),
                "Free bytes on the data partition.",
            ),
            reading(
                "android_storage_available_bytes",
                max(0, int(available)),
                "Bytes on the data partition available to unprivileged users.",
            ),
        ]


def parse_cpu_times(line: str) -> Tuple[int, int]:
    """Return ``(total, idle)`` from an aggregate ``cpu`` line of /proc/stat.

    ``total`` sums every counter after the name; ``idle`` is the counter at
    index 4 of that list.
    """
    tokens = line.split()
    if not tokens or not tokens[0].startswith("cpu"):
        raise ValueError(f"not a cpu statistics line: {line!r}")
    counters = [int(token) for token in tokens[1:]]
    if len(counters) < 5:
        raise ValueError(f"too few cpu counters: {line!r}")
    return sum(counters), counters[4]


def cpu_usage_percent(total: int, idle: int) -> float:
    if total <= 0:
        return 0.0
    usage = 100.0 * (total - idle) / total
    return min(100.0, max(0.0, usage))


class CpuProvider(Provider):
    """CPU usage from aggregate time-slice counters.

    With ``sample_interval`` of 0 the ratio is taken from a single read,
    which is the busy share since boot. A positive interval reads twice and
    uses the counter deltas instead.
    """

    name = "cpu"

    def __init__(self, host: Host, sample_interval: float = 0.0) -> None:
        super().__init__(host)
        self.sample_interval = sample_interval

    def _read_times(self) -> Tuple[int, int]:
        return parse_cpu_times(self.host.cpu_stat_line())

    def usage(self) -> float:
        try:
            total, idle = self._read_times()
            if self.sample_interval > 0:
                time.sleep(self.sample_interval)
                later_total, later_idle = self._read_times()
                total, idle = later_total - total, later_idle - idle
        except Exception as exc:  # pylint: disable=broad-except
            logger.debug("CPU counters unavailable, reporting 0: %s", exc)
            return 0.0
        return cpu_usage_percent(total, idle)

    def read(self) -> List[MetricReading]:
        return [reading("android_cpu_usage_percent", self.usage(), "CPU busy time in percent.")]


PROVIDER_NAMES: Tuple[str, ...] = ("identity", "power", "display", "memory", "storage", "cpu")


def build_providers(host: Host, settings: Settings) -> List[Provider]:
    """Create the enabled providers in their canonical order."""
    factories: Dict[str, Callable[[], Provider]] = {
        "identity": lambda: IdentityProvider(host),
        "power": lambda: PowerProvider(host),
        "display": lambda: DisplayProvider(host),
        "memory": lambda: MemoryProvider(host),
        "storage": lambda: StorageProvider(host, settings.storage_path),
        "cpu": lambda: CpuProvider(host, settings.cpu_sample_interval),
    }
    enabled: Sequence[str] = settings.providers or PROVIDER_NAMES
    unknown = sorted(set(enabled) - set(factories))
    if unknown:
        raise ConfigError(f"unknown providers: {', '.join(unknown)}")
    return [factories[name]() for name in PROVIDER_NAMES if name in enabled]
