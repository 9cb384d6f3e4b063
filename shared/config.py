"""
Shared configuration management for the Header Gate service.
"""

from typing import Any, Dict, List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="HEADER_GATE_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")

    # Header policy, either a JSON/YAML file or an inline JSON list of rules
    policy_file: Optional[str] = Field(default=None)
    policy: Optional[List[Dict[str, Any]]] = Field(default=None)

    # Paths served without header evaluation
    exempt_paths: List[str] = Field(default_factory=list)

    # Upstream that admitted requests are forwarded to
    upstream_url: Optional[str] = Field(default=None)
    upstream_timeout_seconds: float = Field(default=10.0)


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
