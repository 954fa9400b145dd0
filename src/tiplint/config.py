"""Application configuration: settings schema and tiplint.yaml loader"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from pydantic import BaseModel, Field, field_validator


CONFIG_FILE = "tiplint.yaml"


class Settings(BaseModel):
    db_url:         str = "sqlite:///tiplint.db"
    includes_dir:   Optional[str] = Field(default=None, description="Directory holding sidenav includes; None skips the check")
    disabled_rules: list[str] = Field(default_factory=list, description="Rule ids to skip")
    fail_on:        str = Field(default="error", pattern="^(error|warning)$", description="Lowest severity that fails a check run")
    max_versions:   int = Field(default=10, ge=0, description="Max stored versions per doc; 0 disables pruning")
    output_dir:     str = Field(default="dist", description="Directory for the exported catalog JSON")
    parser_config:  str = Field(default="commonmark", description="MarkdownIt parser preset name")

    @field_validator("disabled_rules", mode="before")
    @classmethod
    def _split_rules(cls, value: Any) -> Any:
        """Accept a comma-separated string (env vars) as well as a list."""
        if isinstance(value, str):
            return [r.strip() for r in value.split(",") if r.strip()]
        return value


def load_config(overrides: dict[str, Any] = None) -> Settings:
    """Load Settings from tiplint.yaml, then TIPLINT_<FIELD> env vars, then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    for name in Settings.model_fields:
        if val := os.getenv(f"TIPLINT_{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
