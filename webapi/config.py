"""
Configuration and settings for the web API.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Dict, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment-backed settings for the FastAPI service."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_nested_delimiter="__",
        extra="ignore",
    )

    api_prefix: str = Field(default="")
    log_level: str = Field(default="INFO")

    # Service discovery: services__<name>__<scheme>__<index>=scheme://host:port
    services: Dict[str, Dict[str, Dict[str, str]]] = Field(default_factory=dict)
    backend_url: Optional[str] = Field(default=None)
    backend_timeout_seconds: float = Field(default=5.0)

    # Databases (Postgres expected). The admin URL points at a maintenance
    # database and is only used to list and create databases.
    database_url: Optional[str] = Field(default=None)
    admin_database_url: Optional[str] = Field(default=None)

    # Cache (Redis)
    redis_url: Optional[str] = Field(default=None)

    # OpenTelemetry
    otel_service_name: str = Field(default="webapi")
    otel_exporter_otlp_endpoint: Optional[str] = Field(default=None)
    otel_exporter_otlp_insecure: bool = Field(default=True)

    # Simulated work inside the "Adding" span
    add_delay_seconds: float = Field(default=0.1)

    def service_reference(
        self, name: str, scheme: str = "https", index: int = 0
    ) -> Optional[str]:
        """Return the raw ``scheme://host:port`` reference for a service."""
        return self.services.get(name, {}).get(scheme, {}).get(str(index))

    def backend_base_url(self) -> Optional[str]:
        return (
            self.service_reference("backend", "https")
            or self.service_reference("backend", "http")
            or self.backend_url
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Return cached settings instance."""
    return Settings()
