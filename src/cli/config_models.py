"""Pydantic configuration models for drawcast."""

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from forecasting.registry import TIER_THRESHOLDS, validate_thresholds
from history.source import DEFAULT_URL
from shared_types import ModelTier


class PathsConfig(BaseModel):
    """File paths configuration."""

    db: Path = Path("~/.drawcast/drawcast.db")
    log_file: Optional[Path] = None

    @model_validator(mode="after")
    def expand_paths(self):
        """Expand ~ in all paths."""
        self.db = self.db.expanduser()
        if self.log_file:
            self.log_file = self.log_file.expanduser()
        return self


class SourceConfig(BaseModel):
    """Upstream draw feed."""

    url: str = DEFAULT_URL
    timeout: float = 15.0
    headers: dict[str, str] = Field(default_factory=dict)

    @field_validator("url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        if not v.startswith(("http://", "https://")):
            raise ValueError(f"Source url must be http(s): {v}")
        return v


class ScheduleConfig(BaseModel):
    """Interval jobs cadence (seconds)."""

    fetch_interval_seconds: int = 30
    verify_interval_seconds: int = 45
    warm_up: bool = True

    @field_validator("fetch_interval_seconds", "verify_interval_seconds")
    @classmethod
    def validate_interval(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Interval must be at least 1 second, got {v}")
        return v


class EngineConfig(BaseModel):
    """Forecasting engine tunables."""

    window: int = 20
    retain_limit: int = 1000
    seed_issue_id: str = "20231115001"
    suffix_width: int = 4
    random_seed: Optional[int] = None
    thresholds: dict[ModelTier, int] = Field(default_factory=lambda: dict(TIER_THRESHOLDS))

    @field_validator("thresholds", mode="before")
    @classmethod
    def merge_thresholds(cls, v):
        """Partial overrides are merged over the default table."""
        if v is None:
            return dict(TIER_THRESHOLDS)
        return {**TIER_THRESHOLDS, **{ModelTier(k): val for k, val in dict(v).items()}}

    @field_validator("thresholds")
    @classmethod
    def validate_table(cls, v: dict[ModelTier, int]) -> dict[ModelTier, int]:
        return validate_thresholds(v)

    @field_validator("window", "retain_limit", "suffix_width")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Must be positive, got {v}")
        return v


class RetryConfig(BaseModel):
    """Retry/backoff configuration for the draw source."""

    max_attempts: int = 3
    min_wait: float = 1.0
    max_wait: float = 5.0


VALID_LOG_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: str = "INFO"
    json_mode: bool = False

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        v_upper = v.upper()
        if v_upper not in VALID_LOG_LEVELS:
            raise ValueError(f"Invalid log level: {v}. Must be one of {VALID_LOG_LEVELS}")
        return v_upper


class DrawcastConfig(BaseModel):
    """Main configuration model."""

    paths: PathsConfig = Field(default_factory=PathsConfig)
    source: SourceConfig = Field(default_factory=SourceConfig)
    schedule: ScheduleConfig = Field(default_factory=ScheduleConfig)
    engine: EngineConfig = Field(default_factory=EngineConfig)
    retry: RetryConfig = Field(default_factory=RetryConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def expand_env_vars(self):
        """Expand ${VAR} patterns in source headers."""
        for name, value in self.source.headers.items():
            if value.startswith("${") and value.endswith("}"):
                self.source.headers[name] = os.getenv(value[2:-1], "")
        return self

    @classmethod
    def from_dict(cls, data: dict) -> "DrawcastConfig":
        return cls.model_validate(data)

    def to_dict(self) -> dict:
        return self.model_dump(mode="python")
