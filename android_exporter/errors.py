"""Exception types raised by the exporter."""
from __future__ import annotations


class ExporterError(Exception):
    """Base class for exporter errors."""


class HostError(ExporterError):
    """A host query could not be answered."""


class ConfigError(ExporterError):
    """Invalid runtime configuration."""


class EncodingError(ExporterError):
    """A metric reading cannot be rendered in exposition format."""


class BindError(ExporterError):
    """The listening socket could not be bound."""

    def __init__(self, host: str, port: int, reason: str) -> None:
        super().__init__(f"cannot bind {host}:{port}: {reason}")
        self.host = host
        self.port = port
        self.reason = reason
