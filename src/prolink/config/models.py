"""Pydantic configuration models with code-baked defaults.

Sparse TOML contract: defaults baked here, prolink.toml only contains
overrides. A fresh data directory needs no config file at all.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class NetworkConfig(BaseModel):
    """[network] section."""

    model_config = {"frozen": True}

    search_page_size: int = Field(default=10, ge=1)
    suggestion_fanout: int = Field(default=10, ge=1)
    suggestion_limit: int = Field(default=5, ge=1)
    max_retries: int = Field(default=3, ge=0, le=10)
    retry_backoff_ms: int = Field(default=20, ge=0)
    require_profiles: bool = True


class DatabaseConfig(BaseModel):
    """[database] section."""

    model_config = {"frozen": True}

    busy_timeout_ms: int = Field(default=5000, ge=0)
    echo: bool = False
