### Description ###
# CRM Gateway - Multi-tenant External API
# - API Configuration -
# Date: 10/17/2026
# Python: 3.11
####################

"""
API Configuration Management

Uses Pydantic Settings for configuration with environment variable support.
Loads settings from .env file and an optional config.yaml.

Config file location (in order of precedence):
1. CRM_GATEWAY_CONFIG_PATH environment variable
2. data/config.yaml (default)

Values present in config.yaml take precedence over environment variables.
"""

import os
from functools import lru_cache
from pathlib import Path

import yaml
from pydantic_settings import BaseSettings

from gateway.config_schema import settings_overrides, validate_config


def get_project_root() -> Path:
    """Get the project root directory"""
    return Path(__file__).parent.parent


def get_config_path() -> Path:
    """
    Get the path to config.yaml.

    Priority:
    1. CRM_GATEWAY_CONFIG_PATH environment variable (if set)
    2. data/config.yaml (default location)
    """
    env_path = os.environ.get("CRM_GATEWAY_CONFIG_PATH")
    if env_path:
        return Path(env_path)
    return get_project_root() / "data" / "config.yaml"


def get_version() -> str:
    """Read version from VERSION file"""
    version_file = get_project_root() / "VERSION"
    if version_file.exists():
        return version_file.read_text().strip()
    return "1.0.0"


class APISettings(BaseSettings):
    """API Server Settings"""

    # API Configuration
    api_title: str = "CRM Gateway API"
    api_version: str = get_version()
    api_prefix: str = "/v1"
    debug: bool = False

    # Server Configuration
    host: str = "0.0.0.0"
    port: int = 8000
    cors_origins: list[str] = ["*"]

    # Storage
    database_url: str = "sqlite:///./data/crm_gateway.db"

    # Security
    api_key_header: str = "x-api-key"
    dashboard_jwt_secret: str = "change-this-dashboard-secret-in-production"  # Shared with the identity system
    dashboard_jwt_algorithm: str = "HS256"

    # Rate Limiting
    default_rate_limit_per_minute: int = 60

    # Webhooks
    webhook_timeout_seconds: float = 5.0
    webhook_max_attempts: int = 1
    webhook_signature_scheme: str = "sha256"  # "sha256" or "hmac-sha256"
    webhook_response_body_limit: int = 4096

    # Logging
    log_level: str = "INFO"
    log_to_file: bool = True

    class Config:
        env_prefix = "CRM_GATEWAY_"
        env_file = ".env"
        extra = "ignore"


DEFAULT_CONFIG = """# CRM Gateway Configuration
# Every key is optional; omitted keys fall back to environment variables
# (CRM_GATEWAY_*) and then to built-in defaults.

# Webhook delivery
webhooks:
  timeout_seconds: 5          # Per-attempt HTTP timeout
  max_attempts: 1             # 1 = no retry; retries only on network errors and 5xx
  signature_scheme: "sha256"  # "sha256" = sha256(secret + body), "hmac-sha256" = HMAC
  response_body_limit: 4096   # Characters of the remote response kept in the delivery log

# Dashboard token verification (tokens are issued by the identity system)
dashboard:
  jwt_algorithm: "HS256"
  # jwt_secret: "..."

# Rate limiting
rate_limit:
  default_per_minute: 60      # Used for keys created without an explicit limit

# Logging
logging:
  level: "INFO"               # DEBUG, INFO, WARNING, ERROR, CRITICAL
  log_to_file: true
"""


def load_yaml_config(config_path: str | None = None) -> dict:
    """Load configuration from YAML file (empty dict when the file is missing)"""
    config_file = get_config_path() if config_path is None else Path(config_path)

    if not config_file.exists():
        return {}

    with open(config_file, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def write_default_config(config_path: str | None = None) -> Path:
    """Write the commented default config.yaml if it does not exist yet"""
    config_file = get_config_path() if config_path is None else Path(config_path)
    if not config_file.exists():
        config_file.parent.mkdir(parents=True, exist_ok=True)
        config_file.write_text(DEFAULT_CONFIG, encoding="utf-8")
    return config_file


@lru_cache
def get_api_settings() -> APISettings:
    """Get cached API settings instance"""
    config = validate_config(load_yaml_config())
    return APISettings(**settings_overrides(config))
