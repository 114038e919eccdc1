"""Lightweight settings layer wrapping environment variables with validation.

Does not replace AnalysisParams; augments it with process-level switches
(logging, grid sizing, water-bridge stage). Use get_settings() where
env-driven behavior is needed.
"""
from __future__ import annotations
from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment settings, all read from ``POCKETLENS_*`` variables."""

    model_config = SettingsConfigDict(env_prefix='POCKETLENS_', case_sensitive=False, extra='ignore')

    log_level: str = Field("INFO")
    json_logs: bool = Field(False)
    log_file: Optional[str] = Field(None)
    default_preset: str = Field("literature_default")
    # Must stay above the largest interaction cutoff so queries touch few cells
    grid_cell_size: float = Field(5.0, gt=0)
    enable_water_bridges: bool = Field(True)
    default_float_precision: int = Field(3, ge=0, le=8)

    @field_validator('log_level')
    @classmethod
    def _upper_level(cls, value: str) -> str:
        return value.strip().upper()


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings()
