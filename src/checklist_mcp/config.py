"""Configuration management for Checklist MCP."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ChecklistSettings(BaseSettings):
    """Runtime configuration sourced from environment variables and optional .env file."""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    max_sessions: int = Field(default=100, validation_alias="MAX_SESSIONS")
    max_work_info: int = Field(default=10, validation_alias="MAX_WORK_INFO")
    max_namespaces: int = Field(default=32, validation_alias="MAX_NAMESPACES")
    log_level: str = Field(default="INFO", validation_alias="CHECKLIST_LOG_LEVEL")
    transport: str = Field(default="stdio", validation_alias="CHECKLIST_TRANSPORT")
    host: str = Field(default="127.0.0.1", validation_alias="CHECKLIST_HOST")
    port: int = Field(default=8585, validation_alias="PORT")

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, value: str) -> str:
        normalized = value.strip().upper()
        if normalized not in {"CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"}:
            raise ValueError(
                "CHECKLIST_LOG_LEVEL must be one of CRITICAL, ERROR, WARNING, INFO, DEBUG"
            )
        return normalized

    @field_validator("transport")
    @classmethod
    def _normalize_transport(cls, value: str) -> str:
        normalized = value.strip().lower()
        if normalized not in {"stdio", "http"}:
            raise ValueError("CHECKLIST_TRANSPORT must be either 'stdio' or 'http'")
        return normalized

    @field_validator("max_sessions")
    @classmethod
    def _validate_max_sessions(cls, value: int) -> int:
        if value < 1:
            raise ValueError("MAX_SESSIONS must be >= 1")
        return value

    @field_validator("max_work_info")
    @classmethod
    def _validate_max_work_info(cls, value: int) -> int:
        if value < 1:
            raise ValueError("MAX_WORK_INFO must be >= 1")
        return value

    @field_validator("max_namespaces")
    @classmethod
    def _validate_max_namespaces(cls, value: int) -> int:
        if value < 2:
            raise ValueError("MAX_NAMESPACES must be >= 2")
        return value

    @field_validator("port")
    @classmethod
    def _validate_port(cls, value: int) -> int:
        if not 1 <= value <= 65535:
            raise ValueError("PORT must be between 1 and 65535")
        return value


@lru_cache(maxsize=1)
def get_settings() -> ChecklistSettings:
    """Return cached settings instance."""

    return ChecklistSettings()


__all__ = ["ChecklistSettings", "get_settings"]
