"""
Configuration management system with environment variable loading and validation.
"""

import uuid
import yaml
from pathlib import Path
from typing import Optional, Dict, Any, List
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field, field_validator
import logging

logger = logging.getLogger(__name__)


class DatabaseConfig(BaseSettings):
    """Database configuration."""
    model_config = SettingsConfigDict(env_prefix='DATABASE_', extra='ignore')

    url: str = Field(..., validation_alias='DATABASE_URL')
    pool_min_size: int = Field(default=2, ge=1, le=100)
    pool_max_size: int = Field(default=10, ge=1, le=100)
    command_timeout: int = Field(default=60, ge=1, le=600)


class APIConfig(BaseSettings):
    """API server configuration."""
    model_config = SettingsConfigDict(env_prefix='API_', extra='ignore')

    host: str = Field(default='0.0.0.0')
    port: int = Field(default=3001, ge=1, le=65535)
    workers: int = Field(default=1, ge=1, le=32)
    reload: bool = Field(default=False)
    cors_origins: List[str] = Field(default_factory=lambda: ['*'])

    @field_validator('cors_origins', mode='before')
    @classmethod
    def parse_cors_origins(cls, v):
        """Parse CORS origins from comma-separated string or list."""
        if v is None:
            return ['*']
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        if isinstance(v, list):
            return v
        return ['*']


class ScanConfig(BaseSettings):
    """Cookie scan configuration."""
    model_config = SettingsConfigDict(env_prefix='SCAN_', extra='ignore')

    timeout_ms: int = Field(default=30000, ge=1000, le=300000)
    wait_until: str = Field(default='networkidle')
    settle_seconds: float = Field(default=2.0, ge=0, le=60)
    headless: bool = Field(default=True)
    user_agent: str = Field(
        default='Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36'
    )
    history_limit_default: int = Field(default=10, ge=1, le=1000)

    @field_validator('wait_until')
    @classmethod
    def validate_wait_until(cls, v):
        """Validate the navigation wait strategy."""
        valid = {'load', 'domcontentloaded', 'networkidle', 'commit'}
        if v.lower() not in valid:
            raise ValueError(f"wait_until must be one of: {', '.join(sorted(valid))}")
        return v.lower()


class DeliveryConfig(BaseSettings):
    """Consent delivery (retry + local queue) configuration."""
    model_config = SettingsConfigDict(env_prefix='DELIVERY_', extra='ignore')

    api_url: str = Field(default='http://localhost:3001')
    max_retries: int = Field(default=3, ge=0, le=10)
    base_delay: float = Field(default=1.0, ge=0, le=60)
    max_delay: float = Field(default=60.0, ge=0, le=3600)
    attempt_timeout: float = Field(default=10.0, gt=0, le=120)
    storage_backend: str = Field(default='file')
    storage_path: Path = Field(default=Path('.consent_store.json'))
    redis_url: Optional[str] = Field(None)

    @field_validator('storage_backend')
    @classmethod
    def validate_storage_backend(cls, v):
        """Validate storage backend name."""
        valid = {'memory', 'file', 'redis'}
        if v.lower() not in valid:
            raise ValueError(f"storage_backend must be one of: {', '.join(sorted(valid))}")
        return v.lower()


class SiteResolutionConfig(BaseSettings):
    """Site id resolution configuration."""
    model_config = SettingsConfigDict(env_prefix='', extra='ignore')

    default_site_id: Optional[str] = Field(None, validation_alias='DEFAULT_SITE_ID')
    hostname_map_file: Optional[Path] = Field(None, validation_alias='HOSTNAME_MAP_FILE')
    hostname_map: Dict[str, str] = Field(default_factory=dict)


class MonitoringConfig(BaseSettings):
    """Monitoring and observability configuration."""
    model_config = SettingsConfigDict(env_prefix='', extra='ignore')

    log_level: str = Field(default='INFO')
    log_format: str = Field(default='json')
    sentry_dsn: Optional[str] = Field(None)

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v):
        """Validate log level."""
        valid_levels = {'DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL'}
        if v.upper() not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return v.upper()


class Config(BaseSettings):
    """Main configuration class."""
    model_config = SettingsConfigDict(
        env_file='.env',
        env_file_encoding='utf-8',
        case_sensitive=False,
        extra='ignore'
    )

    # Environment
    environment: str = Field(default='development')
    debug: bool = Field(default=False)

    # Sub-configurations
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    api: APIConfig = Field(default_factory=APIConfig)
    scan: ScanConfig = Field(default_factory=ScanConfig)
    delivery: DeliveryConfig = Field(default_factory=DeliveryConfig)
    sites: SiteResolutionConfig = Field(default_factory=SiteResolutionConfig)
    monitoring: MonitoringConfig = Field(default_factory=MonitoringConfig)

    @field_validator('environment')
    @classmethod
    def validate_environment(cls, v):
        """Validate environment."""
        valid_envs = {'development', 'staging', 'production', 'test'}
        if v.lower() not in valid_envs:
            raise ValueError(f"Invalid environment: {v}. Must be one of {valid_envs}")
        return v.lower()

    def validate_config(self) -> List[str]:
        """
        Validate configuration and return list of warnings/errors.

        Returns:
            List of validation messages
        """
        messages = []

        if self.environment == 'production':
            if self.debug:
                messages.append("WARNING: Debug mode enabled in production")
            if '*' in self.api.cors_origins:
                messages.append("WARNING: CORS allows all origins in production")

        if self.database.pool_min_size > self.database.pool_max_size:
            messages.append("ERROR: Database pool_min_size must be <= pool_max_size")

        if self.delivery.storage_backend == 'redis' and not self.delivery.redis_url:
            messages.append("ERROR: DELIVERY_REDIS_URL is required for the redis storage backend")

        default_site_id = self.sites.default_site_id
        if default_site_id:
            try:
                uuid.UUID(default_site_id)
            except ValueError:
                messages.append(f"ERROR: DEFAULT_SITE_ID is not a valid UUID: {default_site_id}")

        return messages


class YAMLConfigLoader:
    """Load configuration from YAML files."""

    @staticmethod
    def load_yaml_config(config_path: Path) -> Dict[str, Any]:
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to YAML config file

        Returns:
            Configuration dictionary
        """
        if not config_path.exists():
            logger.warning(f"Config file not found: {config_path}")
            return {}

        try:
            with open(config_path, 'r') as f:
                config = yaml.safe_load(f)
                logger.info(f"Loaded configuration from {config_path}")
                return config or {}
        except (OSError, yaml.YAMLError) as e:
            logger.error(f"Error loading config from {config_path}: {e}")
            return {}

    @staticmethod
    def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
        """
        Merge two configuration dictionaries (override takes precedence).

        Args:
            base: Base configuration
            override: Override configuration

        Returns:
            Merged configuration
        """
        result = base.copy()
        for key, value in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(value, dict):
                result[key] = YAMLConfigLoader.merge_configs(result[key], value)
            else:
                result[key] = value
        return result


# Global config instance
_config: Optional[Config] = None


def get_config() -> Config:
    """Get the global configuration instance, initializing it on first use."""
    global _config
    if _config is None:
        return init_config()
    return _config


def init_config(
    env_file: Optional[str] = None,
    yaml_config_path: Optional[Path] = None
) -> Config:
    """
    Initialize the global configuration instance.

    Args:
        env_file: Path to .env file (optional)
        yaml_config_path: Path to YAML config file (optional). Its
            ``hostnames`` section is merged into the site hostname map.

    Returns:
        Initialized Config instance
    """
    global _config

    if env_file:
        config = Config(_env_file=env_file)
    else:
        config = Config()

    yaml_path = yaml_config_path or config.sites.hostname_map_file
    if yaml_path:
        yaml_config = YAMLConfigLoader.load_yaml_config(Path(yaml_path))
        hostnames = yaml_config.get('hostnames') or {}
        config.sites.hostname_map = YAMLConfigLoader.merge_configs(
            config.sites.hostname_map, {str(k): str(v) for k, v in hostnames.items()}
        )

    validation_messages = config.validate_config()
    for msg in validation_messages:
        if msg.startswith('ERROR'):
            logger.error(msg)
            raise ValueError(msg)
        else:
            logger.warning(msg)

    _config = config
    logger.info(f"Configuration initialized for environment: {_config.environment}")
    return _config


def reload_config(
    env_file: Optional[str] = None,
    yaml_config_path: Optional[Path] = None
) -> Config:
    """Discard the current configuration and load it again from the environment."""
    global _config
    _config = None
    return init_config(env_file=env_file, yaml_config_path=yaml_config_path)
