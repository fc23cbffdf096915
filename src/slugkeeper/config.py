"""Application configuration: settings schema and config.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "config.yaml"
ENV_PREFIX = "SLUGKEEPER_"


class Settings(BaseModel):
    app_name:         str = "slugkeeper"
    db_url:           str = "sqlite:///slugkeeper.db"
    max_slug_length:  int = Field(default=126, ge=1, le=126, description="Max characters per slug")
    id_separator:     str = Field(default=";", min_length=1, description="Separator before the owner id in last-resort slugs")
    blacklist:        list[str] = Field(default_factory=lambda: ["new", "edit", "delete"], description="Disallowed slug texts")
    conflict_retries: int = Field(default=1, ge=0, description="Retries after a unique-constraint race on insert")
    isolation_level:  Optional[str] = Field(default=None, description="Engine isolation level, e.g. SERIALIZABLE")
    log_level:        str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$")
    log_format:       str = Field(default="console", pattern="^(console|json)$", description="console or json")

    @field_validator("blacklist", mode="before")
    @classmethod
    def _split_blacklist(cls, value: Any) -> Any:
        """Accept a comma-separated string (env vars) or a single bare word."""
        if isinstance(value, str):
            return [part.strip() for part in value.split(",") if part.strip()]
        return value


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from config.yaml, then SLUGKEEPER_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
