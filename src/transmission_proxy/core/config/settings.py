"""Application configuration using Pydantic Settings with YAML support.

This module provides centralized configuration management with:
- YAML-based configuration files organized by domain
- Environment-specific overrides (development, test, production)
- An optional site file named by TRANSMISSION_PROXY_CONFIG
- Environment variable loading for secrets
- Frozen, validated access policy and provider definitions
"""

from __future__ import annotations

from datetime import timedelta
from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from transmission_proxy.acl.models import AclPolicy
from transmission_proxy.auth.providers.models import ProvidersConfig

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class AppSettings(BaseModel):
    """Application identity settings."""

    name: str = "Transmission Proxy"
    version: str = "0.1.0"
    debug: bool = False


class ServerSettings(BaseModel):
    """Server configuration settings.

    Attributes:
        mount_path: Path prefix the RPC, login and callback routes live under.
        public_url: Externally visible base URL, used to build OAuth2
            callback URLs behind a reverse proxy.
    """

    host: str = "127.0.0.1"
    port: int = 3000
    mount_path: str = "/transmission"
    public_url: str | None = None

    @field_validator("mount_path")
    @classmethod
    def normalize_mount_path(cls, value: str) -> str:
        value = "/" + value.strip("/")
        return "" if value == "/" else value


class UpstreamSettings(BaseModel):
    """Transmission daemon settings."""

    url: str = "http://127.0.0.1:9091/transmission/rpc"
    timeout: float = 30.0
    download_root: str = "/downloads"
    create_directories: bool = True


class SessionSettings(BaseModel):
    """Browser session settings."""

    cookie_name: str = "_transmission_proxy"
    login_cookie_name: str = "_transmission_proxy_login"
    cookie_ttl_hours: int = 24 * 7
    cookie_secure: bool = False
    pending_login_ttl_seconds: int = 600

    @property
    def cookie_ttl(self) -> timedelta:
        return timedelta(hours=self.cookie_ttl_hours)


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Application settings with YAML + environment variable support.

    Configuration is loaded from multiple sources with the following priority
    (highest to lowest):
    1. Environment variables
    2. .env file (secrets only)
    3. YAML files (base, environment, TRANSMISSION_PROXY_CONFIG)
    4. Default values in code

    Environment variables can override any setting using the nested delimiter '__'.
    For example: UPSTREAM__URL=http://nas:9091/transmission/rpc.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    # =========================================================================
    # Environment Selection (from .env)
    # =========================================================================
    APP_ENV: str = "development"

    # =========================================================================
    # Nested Configuration Sections (from YAML)
    # =========================================================================
    app: AppSettings = AppSettings()
    server: ServerSettings = ServerSettings()
    upstream: UpstreamSettings = UpstreamSettings()
    session: SessionSettings = SessionSettings()
    logging: LoggingSettings = LoggingSettings()
    acl: AclPolicy = AclPolicy()
    providers: ProvidersConfig = ProvidersConfig()

    # =========================================================================
    # Secrets (from .env only - never in YAML)
    # =========================================================================
    SECRET_KEY: str = Field(default="", repr=False)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings loading order.

        Priority (highest to lowest):
        1. init_settings - Values passed to Settings()
        2. env_settings - Environment variables
        3. dotenv_settings - .env file (secrets)
        4. yaml_settings - YAML files
        5. file_secret_settings - Docker secrets
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    # =========================================================================
    # Computed Fields
    # =========================================================================

    @property
    def rpc_path(self) -> str:
        """Inbound RPC route."""
        return f"{self.server.mount_path}/rpc"

    @property
    def login_path(self) -> str:
        return f"{self.server.mount_path}/login"

    @property
    def web_path(self) -> str:
        """Default destination after login."""
        return f"{self.server.mount_path}/web/"

    # =========================================================================
    # Environment Helpers
    # =========================================================================

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.APP_ENV == "production"

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.APP_ENV == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Using lru_cache ensures settings are only loaded once.
    """
    return Settings()
