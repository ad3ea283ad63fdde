"""Application settings.

All configuration is sourced from environment variables (and optionally `.env`).
Variables use the ``CHAINPROBE_`` prefix, e.g. ``CHAINPROBE_STEP_TIMEOUT_MS``.
"""

from __future__ import annotations

from typing import Optional

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Typed environment-backed settings for chainprobe."""

    model_config = SettingsConfigDict(
        env_prefix="CHAINPROBE_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Executor
    step_timeout_ms: int = Field(default=30000, gt=0)
    state_snapshot_timeout_ms: int = Field(default=30000, gt=0)
    llm_analysis_timeout_ms: int = Field(default=30000, gt=0)
    llm_summary_timeout_ms: int = Field(default=45000, gt=0)
    continue_on_error: bool = False
    analyze_steps: bool = True
    generate_summary: bool = True
    require_successful_dependencies: bool = False

    # Logging
    log_level: str = "INFO"
    json_logs: bool = False

    # MCP transport
    mcp_url: str = "http://127.0.0.1:8000/mcp"
    mcp_timeout_s: float = Field(default=120.0, gt=0)

    # Anthropic
    anthropic_api_key: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CHAINPROBE_ANTHROPIC_API_KEY", "ANTHROPIC_API_KEY"),
    )
    anthropic_model: Optional[str] = Field(
        default=None,
        validation_alias=AliasChoices("CHAINPROBE_ANTHROPIC_MODEL", "ANTHROPIC_MODEL"),
    )
