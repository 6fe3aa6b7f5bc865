"""
Risk Engine - Configuration Settings

Centralized configuration using Pydantic Settings for type-safe
environment variable handling with validation.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Example: FRAUD_ENABLE_VENDOR_APIS=true turns on vendor signals.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application Settings
    # =========================================================================
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    app_debug: bool = Field(
        default=False,
        description="Enable debug mode (SQL echo)"
    )
    app_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # =========================================================================
    # Redis Configuration (signal cache backend)
    # =========================================================================
    redis_enabled: bool = Field(
        default=True,
        description="Use Redis as the cache backend (falls back to memory when unreachable)"
    )
    redis_host: str = Field(
        default="localhost",
        description="Redis server hostname"
    )
    redis_port: int = Field(
        default=6379,
        description="Redis server port"
    )
    redis_db: int = Field(
        default=0,
        description="Redis database number"
    )
    redis_password: str | None = Field(
        default=None,
        description="Redis password (optional)"
    )
    cache_key_prefix: str = Field(
        default="riskintel:",
        description="Prefix for all cache keys to avoid conflicts"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def redis_url(self) -> str:
        """Construct Redis connection URL."""
        auth = f":{self.redis_password}@" if self.redis_password else ""
        return f"redis://{auth}{self.redis_host}:{self.redis_port}/{self.redis_db}"

    # =========================================================================
    # PostgreSQL Configuration (read-only user/transaction history)
    # =========================================================================
    postgres_enabled: bool = Field(
        default=False,
        description="Read user/transaction history from PostgreSQL"
    )
    postgres_host: str = Field(
        default="localhost",
        description="PostgreSQL server hostname"
    )
    postgres_port: int = Field(
        default=5432,
        description="PostgreSQL server port"
    )
    postgres_db: str = Field(
        default="trust_platform",
        description="PostgreSQL database name"
    )
    postgres_user: str = Field(
        default="risk_reader",
        description="PostgreSQL username"
    )
    postgres_password: str = Field(
        default="",
        description="PostgreSQL password (set via POSTGRES_PASSWORD env var)"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def postgres_url(self) -> str:
        """Construct PostgreSQL connection URL for asyncpg."""
        return (
            f"postgresql+asyncpg://{self.postgres_user}:{self.postgres_password}"
            f"@{self.postgres_host}:{self.postgres_port}/{self.postgres_db}"
        )

    # =========================================================================
    # API Configuration
    # =========================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="API server bind address"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_token: str | None = Field(
        default=None,
        description="API token for analysis endpoints (optional outside production)"
    )
    metrics_token: str | None = Field(
        default=None,
        description="Token required to access /metrics (optional outside production)"
    )
    metrics_enabled: bool = Field(
        default=True,
        description="Expose Prometheus metrics endpoint"
    )

    # =========================================================================
    # Feature Flags
    # =========================================================================
    fraud_enable_vendor_apis: bool = Field(
        default=False,
        description="Collect identity, IP reputation and threat intel vendor signals"
    )
    fraud_enable_ml: bool = Field(
        default=False,
        description="Emit the heuristic anomaly_detection signal"
    )

    # =========================================================================
    # Vendor Providers
    # Provider names are resolved through the vendor registry.
    # "none" disables an adapter kind entirely.
    # =========================================================================
    identity_vendor: str = Field(
        default="records",
        description="Identity provider (records, jumio, onfido, trulioo, persona, http, none)"
    )
    identity_vendor_api_key: str | None = Field(
        default=None,
        description="Identity provider API key (http provider)"
    )
    identity_vendor_api_url: str | None = Field(
        default=None,
        description="Identity provider base URL (http provider)"
    )
    ip_vendor: str = Field(
        default="maxmind",
        description="IP reputation provider (maxmind, ipqualityscore, abuseipdb, ipinfo, http, none)"
    )
    ip_vendor_api_key: str | None = Field(
        default=None,
        description="IP reputation provider API key (http provider)"
    )
    ip_vendor_api_url: str | None = Field(
        default=None,
        description="IP reputation provider base URL (http provider)"
    )
    threat_intel_vendor: str = Field(
        default="recordedfuture",
        description="Threat intel provider (recordedfuture, threatconnect, alienvault, otx, http, none)"
    )
    threat_intel_vendor_api_key: str | None = Field(
        default=None,
        description="Threat intel provider API key (http provider)"
    )
    threat_intel_vendor_api_url: str | None = Field(
        default=None,
        description="Threat intel provider base URL (http provider)"
    )
    vendor_timeout_seconds: float = Field(
        default=5.0,
        gt=0.0,
        le=5.0,
        description="Hard timeout applied to every vendor call"
    )

    # =========================================================================
    # Scoring Configuration
    # =========================================================================
    scoring_config_path: str | None = Field(
        default=None,
        description="Optional YAML file overriding scoring weights and thresholds"
    )

    @model_validator(mode="after")
    def _validate_production_security(self) -> "Settings":
        """Enforce required security settings in production."""
        if self.app_env == "production":
            missing: list[str] = []
            if not self.api_token:
                missing.append("API_TOKEN")
            if not self.metrics_token:
                missing.append("METRICS_TOKEN")
            if missing:
                raise ValueError(
                    "Missing required settings for production: "
                    + ", ".join(missing)
                )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to avoid re-parsing environment on every call.
    """
    return Settings()


# Singleton settings instance for easy import
settings = get_settings()
