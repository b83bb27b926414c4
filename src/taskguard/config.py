"""Shared configuration contract for taskguard.

This module provides Pydantic-validated configuration models for the
authorization core (LOG_LEVEL, audit side-channel switches, etc.).

Applications embedding taskguard SHOULD build a ``GuardConfig`` once at
startup and pass it to the components that need it. Direct os.environ
reads are limited to :func:`load_config_from_env`.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, field_validator

_TRUTHY = ("true", "1", "yes", "on")


class LogLevel(str, Enum):
    """Standard log levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AuditConfig(BaseModel):
    """Audit log configuration.

    Environment variables:
        AUDIT_ECHO_ENABLED       — echo recorded entries to the audit logger
        AUDIT_LOGGER_NAME        — name of the side-channel logger
        AUDIT_ANONYMOUS_USER_ID  — user id recorded for unauthenticated calls
    """

    model_config = {"extra": "ignore"}

    echo_enabled: bool = Field(
        default=True,
        description="Emit every recorded entry to the audit side-channel logger.",
    )
    logger_name: str = Field(
        default="taskguard.audit",
        description="Logger used as the audit side-channel.",
    )
    anonymous_user_id: str = Field(
        default="anonymous",
        description="User id recorded when no principal is present.",
    )

    @field_validator("anonymous_user_id", "logger_name")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Value must not be blank")
        return v


class GuardConfig(BaseModel):
    """Top-level configuration for the authorization core."""

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Logging level",
    )
    log_json: bool = Field(
        default=False,
        description="Use JSON log format (default: plain text)",
    )

    service_name: Optional[str] = Field(
        default=None,
        description="Name of the embedding service (e.g., 'tasks-api')",
    )
    service_version: Optional[str] = Field(
        default=None,
        description="Version of the embedding service",
    )

    audit: AuditConfig = Field(
        default_factory=AuditConfig,
        description="Audit log configuration",
    )

    @field_validator("log_level", mode="before")
    @classmethod
    def validate_log_level(cls, v: str | LogLevel) -> LogLevel:
        """Convert string to LogLevel enum."""
        if isinstance(v, LogLevel):
            return v
        if isinstance(v, str):
            try:
                return LogLevel[v.upper()]
            except KeyError:
                raise ValueError(f"Invalid log level: {v}. Must be one of {[e.value for e in LogLevel]}")
        raise ValueError(f"Log level must be string or LogLevel enum, got {type(v)}")

    model_config = {
        "use_enum_values": True,
        "extra": "forbid",
    }


def load_config_from_env() -> GuardConfig:
    """Load configuration from environment variables.

    Environment variables:
    - LOG_LEVEL: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    - LOG_JSON: Use JSON log format (true/false, default: false)
    - SERVICE_NAME: Name of the embedding service
    - SERVICE_VERSION: Version of the embedding service
    - AUDIT_ECHO_ENABLED: Echo audit entries to the log (default: true)
    - AUDIT_LOGGER_NAME: Audit side-channel logger name
    - AUDIT_ANONYMOUS_USER_ID: Sentinel user id for anonymous callers

    Returns:
        GuardConfig instance with values from environment or defaults.
    """
    import os

    audit = AuditConfig(
        echo_enabled=os.getenv("AUDIT_ECHO_ENABLED", "true").lower() in _TRUTHY,
        logger_name=os.getenv("AUDIT_LOGGER_NAME", "taskguard.audit"),
        anonymous_user_id=os.getenv("AUDIT_ANONYMOUS_USER_ID", "anonymous"),
    )

    return GuardConfig(
        log_level=os.getenv("LOG_LEVEL", "INFO"),
        log_json=os.getenv("LOG_JSON", "false").lower() in _TRUTHY,
        service_name=os.getenv("SERVICE_NAME"),
        service_version=os.getenv("SERVICE_VERSION"),
        audit=audit,
    )


__all__ = [
    "AuditConfig",
    "GuardConfig",
    "LogLevel",
    "load_config_from_env",
]
