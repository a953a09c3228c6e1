"""Pivot configuration.

Options are read from the ``[pivot]`` section of an INI file::

    [pivot]
    metrics_key = metrics
    column_separator = |
    date_millis_threshold = 100000
    timestamp_format = %Y-%m-%d %H:%M
    log_level = info
"""

from __future__ import annotations

import os
from configparser import ConfigParser
from typing import IO, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import ConfigurationError

__all__ = ["PivotOptions", "read_options", "DEFAULT_SECTION"]

DEFAULT_SECTION = "pivot"


class PivotOptions(BaseModel):
    """Options controlling pivot key construction and value formatting."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    metrics_key: str = Field(
        "metrics", min_length=1, description="Row key holding metrics when no columns"
    )
    row_separator: str = Field(",", min_length=1, description="Row key pair separator")
    column_separator: str = Field(
        "|", min_length=1, description="Column key pair separator"
    )
    date_millis_threshold: int = Field(
        100000,
        gt=0,
        description="Date values above this are epoch milliseconds, below are days",
    )
    timestamp_format: str | None = Field(
        None, description="strftime pattern for timestamps, None for the default"
    )
    log_level: str | None = Field(None, description="Logger level name")
    log_path: str | None = Field(None, description="Log file path")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip().upper()
        if v not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unknown log level '{v}'")
        return v

    @field_validator("row_separator", "column_separator")
    @classmethod
    def validate_separator(cls, v: str) -> str:
        if v == ":":
            raise ValueError("':' is reserved for alias:value pairs")
        return v


def read_options(
    source: str | os.PathLike | IO[str] | None = None,
    section: str = DEFAULT_SECTION,
    **overrides: Any,
) -> PivotOptions:
    """Read pivot options from an INI file `source` (path or open file).

    Keys in `overrides` take precedence over values from the file. When
    `source` is ``None`` only the defaults and overrides are used.

    Raises:
        ConfigurationError: when the file does not exist or contains
            invalid values.
    """
    values: dict[str, Any] = {}

    if source is not None:
        parser = ConfigParser(interpolation=None)

        if hasattr(source, "read"):
            parser.read_file(source)
        else:
            if not os.path.exists(source):
                raise ConfigurationError(
                    f"Configuration file '{source}' does not exist",
                    context={"path": os.fspath(source)},
                )
            parser.read(source)

        if parser.has_section(section):
            values.update(parser.items(section))

    values.update(overrides)

    try:
        return PivotOptions(**values)
    except ValidationError as e:
        raise ConfigurationError(
            f"Invalid pivot configuration: {e}", cause=e
        ) from e
