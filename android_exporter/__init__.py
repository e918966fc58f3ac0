"""Prometheus metrics exporter for Android and Linux devices."""
from importlib.metadata import version

from .api import create_app
from .registry import ProviderRegistry

__all__ = ["create_app", "ProviderRegistry", "__version__"]

try:
    __version__ = version("android-metrics-exporter")
except Exception:  # pragma: no cover - fallback when package metadata missing
    __version__ = "0.1.0"
