"""Runtime configuration helpers."""
from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Mapping, Optional, Tuple

from .errors import ConfigError

ENV_PREFIX = "ANDROID_EXPORTER_"
DEFAULT_PORT = 9100
ANDROID_DATA_PATH = "/data"

_TRUE_VALUES = {"1", "true", "yes", "on"}
_FALSE_VALUES = {"0", "false", "no", "off"}
LOG_LEVELS = ("critical", "error", "warning", "info", "debug")


def default_storage_path() -> str:
    return ANDROID_DATA_PATH if os.path.isdir(ANDROID_DATA_PATH) else "/"


@dataclass(frozen=True)
class Settings:
    host: str = "0.0.0.0"
    port: int = DEFAULT_PORT
    log_level: str = "info"
    storage_path: str = "/"
    cpu_sample_interval: float = 0.0
    providers: Tuple[str, ...] = ()
    metadata: bool = True

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Build settings from ``ANDROID_EXPORTER_*`` variables."""
        env = os.environ if environ is None else environ

        def get(name: str, default: str) -> str:
            value = env.get(ENV_PREFIX + name)
            return value.strip() if value and value.strip() else default

        port_raw = get("PORT", str(DEFAULT_PORT))
        try:
            port = int(port_raw)
        except ValueError as exc:
            raise ConfigError(f"invalid port {port_raw!r}") from exc
        if not 0 <= port <= 65535:
            raise ConfigError(f"port out of range: {port}")

        interval_raw = get("CPU_SAMPLE_INTERVAL", "0")
        try:
            interval = float(interval_raw)
        except ValueError as exc:
            raise ConfigError(f"invalid CPU sample interval {interval_raw!r}") from exc
        if interval < 0:
            raise ConfigError("CPU sample interval must not be negative")

        metadata_raw = get("METADATA", "true").lower()
        if metadata_raw in _TRUE_VALUES:
            metadata = True
        elif metadata_raw in _FALSE_VALUES:
            metadata = False
        else:
            raise ConfigError(f"invalid boolean for METADATA: {metadata_raw!r}")

        log_level = get("LOG_LEVEL", "info").lower()
        if log_level not in LOG_LEVELS:
            raise ConfigError(f"invalid log level {log_level!r}")

        providers = tuple(
            name.strip().lower() for name in get("PROVIDERS", "").split(",") if name.strip()
        )

        return cls(
            host=get("HOST", "0.0.0.0"),
            port=port,
            log_level=log_level,
            storage_path=get("STORAGE_PATH", default_storage_path()),
            cpu_sample_interval=interval,
            providers=providers,
            metadata=metadata,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings from environment variables with sensible defaults."""
    return Settings.from_env()
