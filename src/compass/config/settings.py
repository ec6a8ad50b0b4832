"""Configuration model for Compass."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field, model_validator


class ScoringConfig(BaseModel):
    intermediate_threshold: float = Field(default=0.4, ge=0.0, le=1.0)
    advanced_threshold: float = Field(default=0.75, ge=0.0, le=1.0)

    @model_validator(mode="after")
    def _ordered(self) -> "ScoringConfig":
        if self.intermediate_threshold > self.advanced_threshold:
            raise ValueError("intermediate_threshold must not exceed advanced_threshold")
        return self


class PathConfig(BaseModel):
    # Added to a module's category score when it sits one tier above the learner
    stretch_penalty: float = Field(default=0.25, ge=0.0)
    # Category score at which modules two tiers below the learner are dropped
    mastery_threshold: float = Field(default=0.75, ge=0.0, le=1.0)
    max_modules: Optional[int] = Field(default=None, ge=1)


class AdapterConfig(BaseModel):
    # Share of category strength that comes from completions rather than the assessment
    completion_weight: float = Field(default=0.5, ge=0.0, le=1.0)
    stall_min_adaptations: int = Field(default=3, ge=1)
    stall_completion_ratio: float = Field(default=0.5, ge=0.0)


class Settings(BaseModel):
    scoring: ScoringConfig = Field(default_factory=ScoringConfig)
    path: PathConfig = Field(default_factory=PathConfig)
    adapter: AdapterConfig = Field(default_factory=AdapterConfig)
    data_dir: Path = Path.home() / ".compass"
    tracks_dir: Optional[Path] = None
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "Settings":
        config_path = Path.home() / ".compass" / "config.yaml"
        data: dict = {}
        if config_path.exists():
            with open(config_path) as f:
                data = yaml.safe_load(f) or {}
        if os.environ.get("COMPASS_DATA_DIR"):
            data["data_dir"] = os.environ["COMPASS_DATA_DIR"]
        if os.environ.get("COMPASS_TRACKS_DIR"):
            data["tracks_dir"] = os.environ["COMPASS_TRACKS_DIR"]
        if os.environ.get("COMPASS_LOG_LEVEL"):
            data["log_level"] = os.environ["COMPASS_LOG_LEVEL"]
        return cls(**data)
