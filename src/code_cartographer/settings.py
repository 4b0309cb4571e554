from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from dotenv import dotenv_values, find_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

ENV_FILE = find_dotenv(usecwd=True)
ENV_PREFIX = "CARTOGRAPHER_"

_FIELDS_FROM_ENV = (
    "format",
    "documentation_type",
    "ignore_patterns",
    "max_file_size",
    "use_config_file",
    "debug_mode",
    "log_file",
)


class Settings(BaseModel):
    """Host-environment settings for a code_cartographer run.

    These sit between the built-in defaults and a project configuration file:
    a ``cartographer.config.json`` found in the project wins over them.
    """

    model_config = ConfigDict(arbitrary_types_allowed=True)

    repo: Path = Field(default_factory=Path.cwd, description="Project root.")
    output: Path | None = Field(default=None, description="Output file (.json, .txt or .csv).")
    format: str = Field(default="", description="Force output format (json, txt, csv).")
    documentation_type: str = Field(
        default="",
        description="structure, documentation or both.",
    )
    ignore_patterns: list[str] = Field(
        default_factory=list,
        description="Extra exclude globs appended to the configuration.",
    )
    max_file_size: int | None = Field(
        default=None,
        ge=0,
        description="Maximum size in bytes of documented files.",
    )
    use_config_file: bool = Field(
        default=True,
        description="Use cartographer.config.json when present.",
    )
    include_items: list[str] = Field(
        default_factory=list,
        description="Manual selection of paths to document.",
    )
    debug_mode: bool = Field(default=False, description="Enable debug logging.")
    log_file: str = Field(default="", description="Log file path.")

    @field_validator("ignore_patterns", "include_items", mode="before")
    @classmethod
    def _split_comma_list(cls, value: Any) -> Any:  # noqa: ANN401
        if isinstance(value, str):
            return [item.strip() for item in value.split(",") if item.strip()]
        return value

    @classmethod
    def from_env(cls, **overrides: Any) -> Settings:  # noqa: ANN401
        """Build settings from ``CARTOGRAPHER_*`` variables.

        Values from a ``.env`` file are overlaid by the process environment,
        and explicit keyword overrides win over both.

        Returns:
            Settings: the merged settings.
        """
        env: dict[str, str | None] = dict(dotenv_values(ENV_FILE)) if ENV_FILE else {}
        env.update(os.environ)
        values: dict[str, Any] = {}
        for name in _FIELDS_FROM_ENV:
            raw = env.get(ENV_PREFIX + name.upper())
            if raw is None or raw == "":
                continue
            if name in {"use_config_file", "debug_mode"}:
                values[name] = raw.strip().lower() in {"1", "true", "yes", "on"}
            else:
                values[name] = raw
        values.update({k: v for k, v in overrides.items() if v is not None})
        return cls(**values)
