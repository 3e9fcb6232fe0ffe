from __future__ import annotations

import json
import os
from pathlib import Path
from typing import Any, Iterable, List

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CategoryOption(BaseModel):
    value: str
    label: str


DEFAULT_CATEGORIES: List[CategoryOption] = [
    CategoryOption(value="direct", label="Direct Therapy"),
    CategoryOption(value="supervision", label="Supervision"),
    CategoryOption(value="parent_training", label="Parent Training"),
    CategoryOption(value="documentation", label="Documentation"),
    CategoryOption(value="travel", label="Travel"),
    CategoryOption(value="admin", label="Admin"),
    CategoryOption(value="training", label="Training"),
]


def ensure_unique_categories(options: Iterable[CategoryOption]) -> List[CategoryOption]:
    options = list(options)
    seen: set[str] = set()
    for option in options:
        if option.value in seen:
            raise ValueError(f"Duplicate category value: {option.value}")
        seen.add(option.value)
    return options


def parse_categories(value: Any) -> List[CategoryOption]:
    """Accept a JSON list of ``{value, label}`` objects or ``value:Label`` pairs.

    Category values must be unique; a repeated value raises ``ValueError``.
    """
    if value is None:
        return []
    if isinstance(value, list):
        return ensure_unique_categories(
            [item if isinstance(item, CategoryOption) else CategoryOption.model_validate(item) for item in value]
        )
    text = str(value).strip()
    if not text:
        return []
    if text.startswith("["):
        return ensure_unique_categories([CategoryOption.model_validate(item) for item in json.loads(text)])
    options: List[CategoryOption] = []
    for chunk in text.split(","):
        chunk = chunk.strip()
        if not chunk:
            continue
        raw_value, _, label = chunk.partition(":")
        raw_value = raw_value.strip()
        options.append(CategoryOption(value=raw_value, label=label.strip() or raw_value))
    return ensure_unique_categories(options)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", case_sensitive=False, extra="ignore")
    """Application runtime configuration."""

    app_name: str = "RBTCA Time Tracker"
    host: str = os.getenv("TL_HOST", "127.0.0.1")
    port: int = int(os.getenv("TL_PORT", "8080"))
    log_level: str = os.getenv("TL_LOG_LEVEL", "INFO")
    cors_origins: List[str] = Field(
        default_factory=lambda: [
            origin.strip()
            for origin in os.getenv("TL_CORS_ORIGINS", "http://127.0.0.1:5173,http://localhost:5173").split(",")
            if origin.strip()
        ]
    )

    export_dir: Path = Path(os.getenv("TL_EXPORT_DIR", "./data/exports"))
    export_prefix: str = os.getenv("TL_EXPORT_PREFIX", "RBTCA")
    report_title: str = os.getenv("TL_REPORT_TITLE", "RBTCA Time Log")
    supervisor_name: str = os.getenv("TL_SUPERVISOR_NAME", "")

    categories: List[CategoryOption] = Field(
        default_factory=lambda: parse_categories(os.getenv("TL_CATEGORIES")) or list(DEFAULT_CATEGORIES)
    )

    @field_validator("categories", mode="before")
    @classmethod
    def _parse_categories(cls, value: Any) -> List[CategoryOption]:
        options = parse_categories(value)
        if not options:
            return list(DEFAULT_CATEGORIES)
        return options

    @field_validator("cors_origins", mode="before")
    @classmethod
    def _split_origins(cls, value: str | List[str]) -> List[str]:
        if isinstance(value, list):
            return value
        if not value:
            return []
        return [origin.strip() for origin in value.split(",") if origin.strip()]


settings = Settings()

# Ensure the export directory exists
settings.export_dir.mkdir(parents=True, exist_ok=True)
