"""Access to host telemetry sources (procfs, sysfs, Android properties)."""
from __future__ import annotations

import logging
import os
import platform
import shutil
import subprocess
from abc import ABC, abstractmethod
from enum import IntEnum
from pathlib import Path
from typing import Iterator, Optional, Tuple

import psutil

from .errors import HostError

logger = logging.getLogger(__name__)

GETPROP_TIMEOUT_SECONDS = 2.0


class ChargingStatus(IntEnum):
    """Battery status codes as reported by Android's BatteryManager."""

    UNKNOWN = 1
    CHARGING = 2
    DISCHARGING = 3
    NOT_CHARGING = 4
    FULL = 5


class PlugType(IntEnum):
    """Charger plug codes as reported by Android's BatteryManager."""

    NONE = 0
    AC = 1
    USB = 2
    WIRELESS = 4


_STATUS_FILE_VALUES = {
    "charging": ChargingStatus.CHARGING,
    "discharging": ChargingStatus.DISCHARGING,
    "not charging": ChargingStatus.NOT_CHARGING,
    "full": ChargingStatus.FULL,
}

# power_supply "type" values that are not plain AC chargers; every other
# USB_* charger type is treated as AC, like Android's healthd does.
_SUPPLY_TYPE_PLUGS = {
    "mains": PlugType.AC,
    "usb": PlugType.USB,
    "usb_pd_drp": PlugType.USB,
    "wireless": PlugType.WIRELESS,
}


class Host(ABC):
    """Queries the exporter needs from the platform.

    Every query may fail on its own by raising :class:`HostError` or
    :class:`OSError`.
    """

    @abstractmethod
    def battery_percent(self) -> float:
        ...

    @abstractmethod
    def charging_status(self) -> ChargingStatus:
        ...

    @abstractmethod
    def plug_type(self) -> int:
        ...

    @abstractmethod
    def is_interactive(self) -> bool:
        ...

    @abstractmethod
    def memory(self) -> Tuple[int, int]:
        """Return ``(available_bytes, total_bytes)``."""

    @abstractmethod
    def storage(self, path: str) -> Tuple[int, int, int]:
        """Return ``(total_bytes, free_bytes, available_bytes)``."""

    @abstractmethod
    def cpu_stat_line(self) -> str:
        ...

    @abstractmethod
    def device_model(self) -> str:
        ...

    @abstractmethod
    def os_version(self) -> str:
        ...


def _read_text(path: Path) -> str:
    return path.read_text(encoding="utf-8", errors="ignore").strip()


def _read_int(path: Path) -> int:
    raw = _read_text(path)
    try:
        return int(raw)
    except ValueError as exc:
        raise HostError(f"{path}: expected an integer, got {raw!r}") from exc


class SystemHost(Host):
    """Linux/Android implementation backed by procfs, sysfs and psutil."""

    def __init__(self, proc_root: str = "/proc", sys_root: str = "/sys") -> None:
        self.proc_root = Path(proc_root)
        self.sys_root = Path(sys_root)

    @property
    def _power_supply_dir(self) -> Path:
        return self.sys_root / "class" / "power_supply"

    def _power_supplies(self) -> Iterator[Tuple[Path, str]]:
        try:
            entries = sorted(self._power_supply_dir.iterdir())
        except OSError:
            return
        for entry in entries:
            try:
                supply_type = _read_text(entry / "type")
            except OSError:
                continue
            yield entry, supply_type

    def _battery_dir(self) -> Optional[Path]:
        for entry, supply_type in self._power_supplies():
            if supply_type.lower() == "battery":
                return entry
        return None

    def battery_percent(self) -> float:
        battery = self._battery_dir()
        if battery is not None and (battery / "capacity").exists():
            return float(_read_int(battery / "capacity"))
        sensor = psutil.sensors_battery()
        if sensor is None:
            raise HostError("no battery found")
        return float(sensor.percent)

    def charging_status(self) -> ChargingStatus:
        battery = self._battery_dir()
        if battery is None:
            raise HostError("no battery found")
        status = _read_text(battery / "status").lower()
        return _STATUS_FILE_VALUES.get(status, ChargingStatus.UNKNOWN)

    def plug_type(self) -> int:
        for entry, supply_type in self._power_supplies():
            kind = supply_type.lower()
            if kind == "battery":
                continue
            try:
                online = _read_int(entry / "online")
            except (OSError, HostError):
                continue
            if not online:
                continue
            if kind in _SUPPLY_TYPE_PLUGS:
                return int(_SUPPLY_TYPE_PLUGS[kind])
            if kind.startswith("usb_"):
                return int(PlugType.AC)
            logger.debug("Ignoring online power supply %s of type %s", entry.name, supply_type)
        return int(PlugType.NONE)

    def is_interactive(self) -> bool:
        backlight_dir = self.sys_root / "class" / "backlight"
        try:
            devices = sorted(backlight_dir.iterdir())
        except OSError as exc:
            raise HostError(f"no backlight devices: {exc}") from exc
        if not devices:
            raise HostError("no backlight devices")
        for device in devices:
            bl_power_path = device / "bl_power"
            bl_power = _read_int(bl_power_path) if bl_power_path.exists() else 0
            if bl_power == 0 and _read_int(device / "brightness") > 0:
                return True
        return False

    def memory(self) -> Tuple[int, int]:
        stats = psutil.virtual_memory()
        return int(stats.available), int(stats.total)

    def storage(self, path: str) -> Tuple[int, int, int]:
        stats = os.statvfs(path)
        return (
            stats.f_blocks * stats.f_frsize,
            stats.f_bfree * stats.f_frsize,
            stats.f_bavail * stats.f_frsize,
        )

    def cpu_stat_line(self) -> str:
        with open(self.proc_root / "stat", encoding="ascii") as handle:
            line = handle.readline()
        if not line:
            raise HostError("empty cpu statistics")
        return line.strip()

    def _getprop(self, name: str) -> Optional[str]:
        getprop = shutil.which("getprop")
        if not getprop:
            return None
        try:
            result = subprocess.run(
                [getprop, name],
                capture_output=True,
                text=True,
                check=True,
                timeout=GETPROP_TIMEOUT_SECONDS,
            )
        except (OSError, subprocess.SubprocessError) as exc:
            logger.debug("getprop %s failed: %s", name, exc)
            return None
        return result.stdout.strip() or None

    def device_model(self) -> str:
        model = self._getprop("ro.product.model")
        if model:
            return model
        candidates = (
            self.proc_root / "device-tree" / "model",
            self.sys_root / "devices" / "virtual" / "dmi" / "id" / "product_name",
        )
        for candidate in candidates:
            try:
                value = _read_text(candidate).rstrip("\x00")
            except OSError:
                continue
            if value:
                return value
        machine = platform.machine()
        if not machine:
            raise HostError("device model unavailable")
        return machine

    def os_version(self) -> str:
        version = self._getprop("ro.build.version.release") or platform.release()
        if not version:
            raise HostError("OS version unavailable")
        return version
