"""Configuration management with YAML and environment variable support"""

import os
from typing import Any, Dict, List, Literal, Optional, Tuple, Type

import yaml
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


class BaseConfigSection(BaseSettings):
    """Base class for all config sections with correct environment variable precedence.

    This class customizes the settings source priority to ensure that:
    1. Environment variables have highest priority
    2. Init kwargs (YAML data) have second priority
    3. Default values have lowest priority
    """

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Customize settings source priority: env vars > init kwargs > defaults."""
        return (env_settings, init_settings, dotenv_settings, file_secret_settings)


class ServerConfig(BaseConfigSection):
    """Server configuration"""

    host: str = "0.0.0.0"  # nosec B104 - containerized deployment
    port: int = 3000

    model_config = SettingsConfigDict(env_prefix="APP_SERVER_")


class SecurityConfig(BaseConfigSection):
    """Security configuration"""

    api_key: Optional[str] = None
    # Comma-separated list; empty or "*" allows every origin
    allowed_origins: str = ""

    model_config = SettingsConfigDict(env_prefix="APP_SECURITY_")

    @field_validator("api_key")
    @classmethod
    def empty_key_disables_auth(cls, v: Optional[str]) -> Optional[str]:
        if v is not None and not v.strip():
            return None
        return v

    @property
    def cors_origins(self) -> List[str]:
        """Parsed CORS origin list, ["*"] when unrestricted."""
        origins = [o.strip() for o in self.allowed_origins.split(",") if o.strip()]
        if not origins or "*" in origins:
            return ["*"]
        return origins


class CacheConfig(BaseConfigSection):
    """Lookup cache configuration"""

    redis_url: Optional[str] = None
    backend: Literal["none", "memory"] = "none"
    ttl: int = 300  # seconds
    namespace: str = "extract:"
    max_entries: int = 1024

    model_config = SettingsConfigDict(env_prefix="APP_CACHE_")

    @field_validator("ttl", "max_entries")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be a positive integer")
        return v


class ProbesConfig(BaseConfigSection):
    """Size probe configuration"""

    concurrency: int = 6
    max_probes: int = 0  # 0 = probe every unresolved candidate
    head_timeout: float = 10.0
    range_timeout: float = 15.0
    max_redirects: int = 5
    range_fallback: bool = True

    model_config = SettingsConfigDict(env_prefix="APP_PROBES_")

    @field_validator("concurrency")
    @classmethod
    def validate_concurrency(cls, v: int) -> int:
        if v < 1:
            raise ValueError("concurrency must be at least 1")
        return v

    @field_validator("max_probes", "max_redirects")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        if v < 0:
            raise ValueError("must not be negative")
        return v


class ExtractorConfig(BaseConfigSection):
    """Metadata extractor configuration"""

    binary: str = "yt-dlp"
    timeout: float = 60.0  # seconds

    model_config = SettingsConfigDict(env_prefix="APP_EXTRACTOR_")


class RateLimitingConfig(BaseConfigSection):
    """Rate limiting configuration"""

    enabled: bool = True
    rpm: int = 30  # requests per minute per client
    burst_capacity: int = 30

    model_config = SettingsConfigDict(env_prefix="APP_RATE_LIMITING_")


class LoggingConfig(BaseConfigSection):
    """Logging configuration"""

    level: str = "INFO"
    format: str = "json"

    model_config = SettingsConfigDict(env_prefix="APP_LOGGING_")

    @field_validator("level")
    @classmethod
    def validate_level(cls, v: str) -> str:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"level must be one of {valid_levels}")
        return v_upper


class Config(BaseSettings):
    """Main application configuration"""

    server: ServerConfig = Field(default_factory=ServerConfig)
    security: SecurityConfig = Field(default_factory=SecurityConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    probes: ProbesConfig = Field(default_factory=ProbesConfig)
    extractor: ExtractorConfig = Field(default_factory=ExtractorConfig)
    rate_limiting: RateLimitingConfig = Field(default_factory=RateLimitingConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = SettingsConfigDict(env_prefix="APP_")


class ConfigService:
    """Service for loading and managing configuration"""

    def __init__(self, config_path: Optional[str] = None):
        self.config_path = config_path or os.environ.get("APP_CONFIG_PATH", "config.yaml")
        self._config: Optional[Config] = None

    def load(self) -> Config:
        """Load configuration from YAML file with environment variable overrides.

        BaseConfigSection.settings_customise_sources() makes environment variables
        win over YAML values, which in turn win over defaults.
        """
        config_data: Dict[str, Any] = {}

        if os.path.exists(self.config_path):
            with open(self.config_path, "r", encoding="utf-8") as f:
                yaml_data = yaml.safe_load(f)
                if yaml_data:
                    config_data = yaml_data

        self._config = Config(
            server=ServerConfig(**config_data.get("server", {})),
            security=SecurityConfig(**config_data.get("security", {})),
            cache=CacheConfig(**config_data.get("cache", {})),
            probes=ProbesConfig(**config_data.get("probes", {})),
            extractor=ExtractorConfig(**config_data.get("extractor", {})),
            rate_limiting=RateLimitingConfig(**config_data.get("rate_limiting", {})),
            logging=LoggingConfig(**config_data.get("logging", {})),
        )

        return self._config

    @property
    def config(self) -> Config:
        """Get the loaded configuration"""
        if self._config is None:
            raise ValueError("Configuration not loaded. Call load() first.")
        return self._config
