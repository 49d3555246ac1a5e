from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from helprota.config import HelprotaSettings, get_settings


def test_defaults() -> None:
    settings = HelprotaSettings(_env_file=None)

    assert settings.port == 3471
    assert settings.default_pin == "0000"
    assert settings.log_level == "INFO"
    assert settings.mcp_enabled is True


def test_environment_overrides(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setenv("HELPROTA_DATA_DIR", str(tmp_path / "board"))
    monkeypatch.setenv("HELPROTA_LOG_LEVEL", " debug ")
    monkeypatch.setenv("HELPROTA_MCP_ENABLED", "false")

    settings = HelprotaSettings(_env_file=None)

    assert settings.data_dir == tmp_path / "board"
    assert settings.log_level == "DEBUG"
    assert settings.mcp_enabled is False


@pytest.mark.parametrize(
    "variable, value",
    [
        ("HELPROTA_LOG_LEVEL", "chatty"),
        ("HELPROTA_DEFAULT_PIN", ""),
        ("HELPROTA_MAX_SUBSCRIBERS", "0"),
    ],
)
def test_invalid_values_are_rejected(monkeypatch, variable: str, value: str) -> None:
    monkeypatch.setenv(variable, value)

    with pytest.raises(ValidationError):
        HelprotaSettings(_env_file=None)


def test_get_settings_resolves_paths(monkeypatch, tmp_path: Path) -> None:
    monkeypatch.chdir(tmp_path)
    monkeypatch.setenv("HELPROTA_DATA_DIR", "relative-data")
    get_settings.cache_clear()
    try:
        settings = get_settings()
    finally:
        get_settings.cache_clear()

    assert settings.data_dir == (tmp_path / "relative-data").resolve()
