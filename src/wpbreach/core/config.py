# Copyright (c) 2026 Veritas Aequitas Holdings LLC. All rights reserved.
"""Application configuration via environment variables and .env files."""

from __future__ import annotations

from typing import Annotated, Any

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, NoDecode, SettingsConfigDict

from wpbreach.core.constants import DetectorName
from wpbreach.core.exceptions import ConfigurationError

DEFAULT_EXTENSIONS = [".php", ".inc", ".phtml", ".module"]

DEFAULT_EXCLUDE_DIRS = [
    ".git",
    ".svn",
    ".hg",
    "node_modules",
    "vendor",
    "__pycache__",
    ".idea",
    ".vscode",
]


def _split_csv(v: object) -> object:
    if isinstance(v, str):
        return [item.strip() for item in v.split(",") if item.strip()]
    return v


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="WPBREACH_",
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
    )

    # Logging
    log_level: str = "INFO"
    log_format: str = "text"

    # Scanner
    active_categories: Annotated[list[str], NoDecode] = [
        DetectorName.SQL_INJECTION,
        DetectorName.XSS,
        DetectorName.GENERAL,
    ]
    max_file_size: int = 1_048_576
    per_file_timeout: float = 10.0
    worker_count: int = 4
    max_scan_time: float | None = None
    max_findings: int | None = 50_000
    file_extensions: Annotated[list[str], NoDecode] = list(DEFAULT_EXTENSIONS)
    exclude_dirs: Annotated[list[str], NoDecode] = list(DEFAULT_EXCLUDE_DIRS)

    @field_validator("active_categories", "file_extensions", "exclude_dirs", mode="before")
    @classmethod
    def _parse_lists(cls, v: object) -> object:
        return _split_csv(v)

    # Custom YAML rules
    custom_rules_dir: str = ""

    # Confidence boosts applied by the specialised detectors
    confidence_boost_user_input: float = Field(default=0.1, ge=0.0, le=1.0)
    confidence_boost_keyword: float = Field(default=0.05, ge=0.0, le=1.0)

    # Fix engine gates
    fix_safety_threshold: float = Field(default=0.7, ge=0.0, le=1.0)
    fix_min_confidence: float = Field(default=0.8, ge=0.0, le=1.0)

    def confidence_boosts(self) -> ConfidenceBoosts:
        return ConfidenceBoosts(
            user_input=self.confidence_boost_user_input,
            keyword=self.confidence_boost_keyword,
        )


class ConfidenceBoosts(BaseModel):
    """Additive increments applied on top of a pattern type's base confidence."""

    model_config = {"frozen": True}

    user_input: float = Field(default=0.1, ge=0.0, le=1.0)
    keyword: float = Field(default=0.05, ge=0.0, le=1.0)


class ScanConfig(BaseModel):
    """Validated configuration for one scan coordinator session.

    Unrecognised keys are dropped silently; missing required keys or
    out-of-range values raise :class:`ConfigurationError` via
    :meth:`from_options`.
    """

    model_config = {"extra": "ignore", "frozen": True}

    active_categories: list[str] = Field(min_length=1)
    target_paths: list[str] = Field(min_length=1)
    max_file_size: int = Field(default=1_048_576, gt=0)
    per_file_timeout: float = Field(default=10.0, gt=0)
    worker_count: int = Field(default=4, ge=1, le=64)
    max_scan_time: float | None = Field(default=None, gt=0)
    max_findings: int | None = Field(default=None, gt=0)
    file_extensions: list[str] = Field(default_factory=lambda: list(DEFAULT_EXTENSIONS))
    exclude_dirs: list[str] = Field(default_factory=lambda: list(DEFAULT_EXCLUDE_DIRS))

    @field_validator("active_categories", "target_paths", "file_extensions", "exclude_dirs", mode="before")
    @classmethod
    def _parse_lists(cls, v: object) -> object:
        return _split_csv(v)

    @field_validator("active_categories")
    @classmethod
    def _known_categories(cls, v: list[str]) -> list[str]:
        known = {d.value for d in DetectorName}
        unknown = [c for c in v if c not in known]
        if unknown:
            msg = f"unknown detector categories: {', '.join(unknown)} (expected one of {', '.join(sorted(known))})"
            raise ValueError(msg)
        # Preserve order, drop duplicates
        return list(dict.fromkeys(v))

    @field_validator("target_paths")
    @classmethod
    def _non_blank_paths(cls, v: list[str]) -> list[str]:
        paths = [p for p in v if p and p.strip()]
        if not paths:
            raise ValueError("at least one target path is required")
        return paths

    @classmethod
    def from_options(
        cls,
        options: dict[str, Any] | ScanConfig,
        settings: Settings | None = None,
    ) -> ScanConfig:
        """Build a config from user options, filling gaps from *settings*.

        ``active_categories`` and ``target_paths`` are required in
        *options*; resource limits fall back to the settings defaults.
        """
        if isinstance(options, ScanConfig):
            return options
        if not isinstance(options, dict):
            raise ConfigurationError(f"scan configuration must be a mapping, got {type(options).__name__}")

        for required in ("active_categories", "target_paths"):
            if required not in options or options[required] in (None, "", []):
                raise ConfigurationError(f"missing required option: {required}")

        data: dict[str, Any] = {}
        if settings is not None:
            data.update(
                max_file_size=settings.max_file_size,
                per_file_timeout=settings.per_file_timeout,
                worker_count=settings.worker_count,
                max_scan_time=settings.max_scan_time,
                max_findings=settings.max_findings,
                file_extensions=settings.file_extensions,
                exclude_dirs=settings.exclude_dirs,
            )
        data.update({k: v for k, v in options.items() if v is not None})

        try:
            return cls(**data)
        except ValidationError as exc:
            raise ConfigurationError(f"invalid scan configuration: {exc}") from exc


def get_settings() -> Settings:
    return Settings()
