# SPDX-License-Identifier: MIT
"""Runtime settings with typed configuration and fail-fast validation.

Settings are read from ``MONODEPS_*`` environment variables; CLI flags
override individual values through :func:`load_settings`.

Examples
--------
>>> from monodeps_common.settings import load_settings
>>> settings = load_settings(depth=2)
>>> settings.manifest_name
'go.mod'
"""

from __future__ import annotations

from typing import Literal

from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from monodeps_common.errors import SettingsError
from monodeps_common.logging import get_logger

__all__ = [
    "DEFAULT_FILE_PATTERN",
    "MonodepsSettings",
    "load_settings",
]

logger = get_logger(__name__)

DEFAULT_FILE_PATTERN = r"^.*(\.go|go\.mod|go\.sum)$"


class MonodepsSettings(BaseSettings):
    """Runtime configuration loaded from ``MONODEPS_*`` environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="MONODEPS_",
        extra="forbid",
        case_sensitive=False,
        frozen=True,
    )

    log_level: str = Field(
        default="WARNING", description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    manifest_name: str = Field(
        default="go.mod", min_length=1, description="Manifest file name at a module root"
    )
    file_pattern: str = Field(
        default=DEFAULT_FILE_PATTERN,
        description="Regular expression a changed file path must match",
    )
    depth: int = Field(default=1, ge=1, description="Path segments kept per changed file")
    strict: bool = Field(
        default=False,
        description="Treat unparsable manifests during a workspace scan as fatal",
    )
    output_format: Literal["json", "text"] = Field(
        default="json", description="Result format written to stdout"
    )

    @field_validator("log_level")
    @classmethod
    def _normalise_log_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            msg = f"unknown log level: {value!r}"
            raise ValueError(msg)
        return level

    @field_validator("manifest_name")
    @classmethod
    def _plain_file_name(cls, value: str) -> str:
        if "/" in value or "\\" in value:
            msg = "manifest_name must be a bare file name"
            raise ValueError(msg)
        return value


def load_settings(**overrides: object) -> MonodepsSettings:
    """Load :class:`MonodepsSettings` with optional overrides.

    ``None`` overrides are ignored so CLI options left unset fall back to the
    environment.

    Parameters
    ----------
    **overrides : object
        Field values taking precedence over environment variables.

    Returns
    -------
    MonodepsSettings
        Validated settings.

    Raises
    ------
    SettingsError
        If validation fails.
    """
    explicit = {key: value for key, value in overrides.items() if value is not None}
    try:
        return MonodepsSettings(**explicit)  # type: ignore[arg-type]
    except ValidationError as exc:
        errors = [
            {"field": ".".join(str(part) for part in err["loc"]), "issue": err["msg"]}
            for err in exc.errors()
        ]
        logger.exception(
            "Settings validation failed",
            extra={"operation": "load_settings", "error_type": type(exc).__name__},
        )
        msg = f"Configuration validation failed: {exc.error_count()} error(s)"
        raise SettingsError(msg, errors=errors, cause=exc) from exc
