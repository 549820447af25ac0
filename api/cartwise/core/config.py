from __future__ import annotations

import functools

from pydantic import field_validator
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    app_name: str = "CartWise API"
    environment: str = "development"

    database_url: str = "postgresql+psycopg://postgres:postgres@db:5432/cartwise"

    # CORS configuration
    cors_origins: str = "*"

    # Local price comparison
    comparison_max_results: int = 3
    comparison_currency: str = "USD"
    comparison_concurrency: int = 4

    model_config = {
        "env_file": ".env",
        "case_sensitive": False,
    }

    @field_validator("comparison_max_results", "comparison_concurrency")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v < 1:
            raise ValueError(f"Value must be at least 1 (got {v})")
        return v

    @field_validator("comparison_currency")
    @classmethod
    def validate_currency(cls, v: str) -> str:
        """Currency must be a three-letter ISO 4217 style code."""
        code = v.strip().upper()
        if len(code) != 3 or not code.isalpha():
            raise ValueError(f"Currency code must be three letters (got {v!r})")
        return code


@functools.lru_cache()
def get_settings() -> Settings:
    return Settings()


__all__ = ["Settings", "get_settings"]
