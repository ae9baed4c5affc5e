"""Agent options.

Options can be built in code or loaded from ``APM_``-prefixed environment
variables (a ``.env`` file is read first; real environment variables win).
"""

from __future__ import annotations

import os
from typing import Any

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, field_validator

_TRUE = {"1", "true", "yes", "on"}


class AgentConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    app_name: str = Field(min_length=1)
    active: bool = True
    backtrace_limit: int = Field(default=0, ge=0)
    env: list[str] = Field(default_factory=list)
    cookies: list[str] = Field(default_factory=list)

    @field_validator("env", "cookies", mode="before")
    @classmethod
    def _split_names(cls, value: Any) -> Any:
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value

    @field_validator("active", mode="before")
    @classmethod
    def _parse_bool(cls, value: Any) -> Any:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE
        return value

    def get(self, name: str, default: Any = None) -> Any:
        """Look up an option by name, falling back to ``default``."""
        if name in type(self).model_fields:
            return getattr(self, name)
        return default

    @classmethod
    def from_env(cls, env_file: str | None = ".env", prefix: str = "APM_", **overrides: Any) -> AgentConfig:
        if env_file:
            load_dotenv(env_file, override=False)

        values: dict[str, Any] = {}
        for name in cls.model_fields:
            raw = os.getenv(f"{prefix}{name.upper()}")
            if raw is not None:
                values[name] = raw
        values.update(overrides)
        return cls(**values)
