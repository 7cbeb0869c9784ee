"""
Config Schema Validation

Pydantic models for validating config.yaml structure.
Provides clear error messages when configuration is invalid.
"""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class WebhooksConfig(BaseModel):
    """Webhook delivery configuration"""

    timeout_seconds: float = Field(default=5.0, gt=0, le=60, description="Per-attempt timeout")
    max_attempts: int = Field(default=1, ge=1, le=10, description="Delivery attempts per event")
    signature_scheme: Literal["sha256", "hmac-sha256"] = Field(
        default="sha256",
        description="sha256(secret + body) for existing consumers, or HMAC-SHA256",
    )
    response_body_limit: int = Field(
        default=4096, ge=0, description="Characters of the response body kept in the log"
    )


class DashboardConfig(BaseModel):
    """Dashboard bearer token verification"""

    jwt_algorithm: Literal["HS256", "HS384", "HS512"] = Field(default="HS256")
    jwt_secret: Optional[str] = Field(default=None, min_length=16)


class RateLimitConfig(BaseModel):
    """Rate limit defaults"""

    default_per_minute: int = Field(default=60, ge=1, le=10000)


class LoggingConfig(BaseModel):
    """Logging configuration"""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO", description="Log level"
    )
    log_to_file: bool = Field(default=True, description="Enable file logging")


class GatewayConfig(BaseModel):
    """
    Root configuration model for config.yaml

    Validates the entire configuration structure on load.
    """

    webhooks: WebhooksConfig = Field(default_factory=WebhooksConfig)
    dashboard: DashboardConfig = Field(default_factory=DashboardConfig)
    rate_limit: RateLimitConfig = Field(default_factory=RateLimitConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def validate_config(config_dict: dict) -> GatewayConfig:
    """
    Validate a config dictionary against the schema.

    Args:
        config_dict: Raw dictionary loaded from config.yaml

    Returns:
        Validated GatewayConfig instance

    Raises:
        pydantic.ValidationError: If config is invalid
    """
    return GatewayConfig.model_validate(config_dict)


def get_validation_errors(config_dict: dict) -> List[str]:
    """
    Get a list of validation errors for a config dictionary.

    Args:
        config_dict: Raw dictionary loaded from config.yaml

    Returns:
        List of error messages (empty if valid)
    """
    from pydantic import ValidationError

    try:
        validate_config(config_dict)
        return []
    except ValidationError as e:
        return [
            f"{'.'.join(str(loc) for loc in err['loc'])}: {err['msg']}"
            for err in e.errors()
        ]


# config.yaml section.key -> APISettings field
_SETTINGS_MAP = {
    ("webhooks", "timeout_seconds"): "webhook_timeout_seconds",
    ("webhooks", "max_attempts"): "webhook_max_attempts",
    ("webhooks", "signature_scheme"): "webhook_signature_scheme",
    ("webhooks", "response_body_limit"): "webhook_response_body_limit",
    ("dashboard", "jwt_algorithm"): "dashboard_jwt_algorithm",
    ("dashboard", "jwt_secret"): "dashboard_jwt_secret",
    ("rate_limit", "default_per_minute"): "default_rate_limit_per_minute",
    ("logging", "level"): "log_level",
    ("logging", "log_to_file"): "log_to_file",
}


def settings_overrides(config: GatewayConfig) -> dict:
    """
    Map the keys explicitly set in config.yaml onto APISettings field names.

    Keys left out of the file are not returned, so environment variables
    and defaults still apply to them.
    """
    explicit = config.model_dump(exclude_unset=True)
    overrides = {}
    for (section, key), field_name in _SETTINGS_MAP.items():
        if key in explicit.get(section, {}):
            overrides[field_name] = explicit[section][key]
    return overrides
