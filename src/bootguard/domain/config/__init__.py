"""Configuration models with Pydantic validation."""

from bootguard.domain.config.app import AppConfig
from bootguard.domain.config.connection import ConnectionConfig

__all__ = [
    "AppConfig",
    "ConnectionConfig",
]
