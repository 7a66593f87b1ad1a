"""
Type-safe configuration for the orchestration compiler using Pydantic Settings.

Values load from environment variables (prefixed with ``ORCHESTRATION_``) or
a local ``.env`` file.

Usage:
    from shared.config import config

    synth_id = config.synthesis_node_id
"""
from typing import List, Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CompilerSettings(BaseSettings):
    """
    Central configuration for plan compilation.

    Every value has a safe default so the compiler works without any
    environment set up.
    """
    model_config = SettingsConfigDict(
        env_prefix="ORCHESTRATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
    )

    # ============================================================================
    # Logging
    # ============================================================================

    log_level: str = Field(default="INFO", description="Log level for compiler loggers")

    # ============================================================================
    # Workflow synthesis
    # ============================================================================

    default_model: Optional[str] = Field(
        default=None,
        description="Model id stamped on compiled workflows when the caller does not pass one",
    )
    synthesis_node_id: str = Field(
        default="orchestrator_synthesize",
        description="Node id of the final synthesis node appended to every compiled plan",
    )
    result_output_name: str = Field(
        default="result",
        description="Name of the single workflow output bound to the synthesis node",
    )
    default_tools: List[str] = Field(
        default_factory=lambda: ["fs_read_file", "fs_list_files", "fs_search"],
        description="Tools attached to agent nodes when neither the agent nor the command declares any",
    )

    @field_validator("log_level")
    @classmethod
    def _normalize_level(cls, value: str) -> str:
        level = value.strip().upper()
        if level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ValueError(f"Unsupported log level: {value}")
        return level


config = CompilerSettings()
