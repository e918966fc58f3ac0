"""
Tests for configuration loading and validation.
"""

import pytest

from android_exporter import config as config_module
from android_exporter.config import DEFAULT_PORT, Settings, get_settings
from android_exporter.errors import ConfigError


def test_defaults(monkeypatch) -> None:
    monkeypatch.setattr(config_module, "default_storage_path", lambda: "/data")

    settings = Settings.from_env({})

    assert settings.host == "0.0.0.0"
    assert settings.port == DEFAULT_PORT == 9100
    assert settings.log_level == "info"
    assert settings.storage_path == "/data"
    assert settings.cpu_sample_interval == 0.0
    assert settings.providers == ()
    assert settings.metadata is True


def test_environment_overrides() -> None:
    settings = Settings.from_env(
        {
            "ANDROID_EXPORTER_HOST": "127.0.0.1",
            "ANDROID_EXPORTER_PORT": "9200",
            "ANDROID_EXPORTER_LOG_LEVEL": "DEBUG",
            "ANDROID_EXPORTER_STORAGE_PATH": "/sdcard",
            "ANDROID_EXPORTER_CPU_SAMPLE_INTERVAL": "0.5",
            "ANDROID_EXPORTER_PROVIDERS": " Power, cpu ,,memory",
            "ANDROID_EXPORTER_METADATA": "off",
        }
    )

    assert settings == Settings(
        host="127.0.0.1",
        port=9200,
        log_level="debug",
        storage_path="/sdcard",
        cpu_sample_interval=0.5,
        providers=("power", "cpu", "memory"),
        metadata=False,
    )


def test_blank_values_use_defaults() -> None:
    settings = Settings.from_env({"ANDROID_EXPORTER_PORT": "  ", "ANDROID_EXPORTER_HOST": ""})

    assert settings.port == DEFAULT_PORT
    assert settings.host == "0.0.0.0"


@pytest.mark.parametrize(
    ("name", "value"),
    [
        ("PORT", "http"),
        ("PORT", "70000"),
        ("PORT", "-1"),
        ("CPU_SAMPLE_INTERVAL", "soon"),
        ("CPU_SAMPLE_INTERVAL", "-1"),
        ("METADATA", "maybe"),
        ("LOG_LEVEL", "verbose"),
    ],
)
def test_invalid_values(name: str, value: str) -> None:
    with pytest.raises(ConfigError):
        Settings.from_env({f"ANDROID_EXPORTER_{name}": value})


def test_get_settings_reads_environment(monkeypatch) -> None:
    monkeypatch.setenv("ANDROID_EXPORTER_PORT", "9333")
    get_settings.cache_clear()
    try:
        assert get_settings().port == 9333
        assert get_settings() is get_settings()
    finally:
        get_settings.cache_clear()
