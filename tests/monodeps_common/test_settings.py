"""Tests for runtime settings."""

from __future__ import annotations

import pytest

from monodeps_common.errors import SettingsError
from monodeps_common.settings import DEFAULT_FILE_PATTERN, MonodepsSettings, load_settings


@pytest.fixture(autouse=True)
def _clean_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in ("LOG_LEVEL", "MANIFEST_NAME", "FILE_PATTERN", "DEPTH", "STRICT", "OUTPUT_FORMAT"):
        monkeypatch.delenv(f"MONODEPS_{name}", raising=False)


def test_defaults() -> None:
    settings = load_settings()

    assert settings.log_level == "WARNING"
    assert settings.manifest_name == "go.mod"
    assert settings.file_pattern == DEFAULT_FILE_PATTERN
    assert settings.depth == 1
    assert settings.strict is False
    assert settings.output_format == "json"


def test_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("MONODEPS_DEPTH", "3")
    monkeypatch.setenv("MONODEPS_STRICT", "true")
    monkeypatch.setenv("MONODEPS_LOG_LEVEL", "debug")

    settings = load_settings()

    assert settings.depth == 3
    assert settings.strict is True
    assert settings.log_level == "DEBUG"


def test_overrides_beat_environment_and_none_is_ignored(
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    monkeypatch.setenv("MONODEPS_DEPTH", "3")
    monkeypatch.setenv("MONODEPS_OUTPUT_FORMAT", "text")

    settings = load_settings(depth=2, output_format=None)

    assert settings.depth == 2
    assert settings.output_format == "text"


@pytest.mark.parametrize(
    ("overrides", "field"),
    [
        ({"depth": 0}, "depth"),
        ({"log_level": "loud"}, "log_level"),
        ({"manifest_name": "sub/go.mod"}, "manifest_name"),
        ({"output_format": "yaml"}, "output_format"),
        ({"unknown": 1}, "unknown"),
    ],
)
def test_invalid_values_raise_settings_error(overrides: dict[str, object], field: str) -> None:
    with pytest.raises(SettingsError) as exc_info:
        load_settings(**overrides)

    errors = exc_info.value.context["errors"]
    assert isinstance(errors, list)
    assert any(error["field"] == field for error in errors)


def test_settings_are_frozen() -> None:
    settings = MonodepsSettings()

    with pytest.raises(ValueError, match="frozen"):
        settings.depth = 5  # type: ignore[misc]
