"""Preprocessor configuration: settings schema and layered loader"""

import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, field_validator

from mdbook_mermaid.core.transform import DEFAULT_CSS_CLASS, DEFAULT_LABEL


CONFIG_FILE = "mermaid.yaml"
ENV_PREFIX = "MDBOOK_MERMAID_"


class Settings(BaseModel):
    label:     str = Field(default=DEFAULT_LABEL, min_length=1, description="Fence label of the blocks to convert")
    css_class: str = Field(default=DEFAULT_CSS_CLASS, min_length=1, description="Class of the generated <pre> element")
    renderers: list[str] = Field(default_factory=lambda: ["html"], description="Renderers the preprocessor runs for")
    log_level: str = Field(default="WARNING", pattern="^(DEBUG|INFO|WARNING|ERROR|CRITICAL)$", description="Log level on stderr")

    @field_validator("renderers", mode="before")
    @classmethod
    def _split_renderers(cls, value: Any) -> Any:
        """Accept "html,markdown" as well as a list."""
        if isinstance(value, str):
            return [r.strip() for r in value.split(",") if r.strip()]
        return value

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value: Any) -> Any:
        return value.upper() if isinstance(value, str) else value


def load_config(overrides: dict[str, Any] = None, book_options: dict[str, Any] = None) -> Settings:
    """Load Settings from mermaid.yaml, then the book.toml table, then MDBOOK_MERMAID_<FIELD> env vars,
    then non-None CLI overrides."""
    data: dict[str, Any] = {}
    if Path(CONFIG_FILE).exists():
        try:
            data = yaml.safe_load(Path(CONFIG_FILE).read_text()) or {}
        except yaml.YAMLError as e:
            raise ValueError(f"Invalid {CONFIG_FILE}: {e}") from e
        if not isinstance(data, dict):
            raise ValueError(f"Invalid {CONFIG_FILE}: expected a mapping, got {type(data).__name__}")

    if book_options:
        # book.toml also carries mdBook's own keys (command, before, after)
        data.update({k: v for k, v in book_options.items() if k in Settings.model_fields})

    for name in Settings.model_fields:
        if val := os.getenv(f"{ENV_PREFIX}{name.upper()}"):
            data[name] = val

    if overrides:
        data.update({k: v for k, v in overrides.items() if v is not None})
    return Settings(**data)
