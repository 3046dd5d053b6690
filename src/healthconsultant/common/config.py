"""HealthConsultant configuration via pydantic-settings."""

import warnings
from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict

_INSECURE_DEFAULTS = {
    "secret_key": "insecure-dev-key-change-me",
}


class HealthConsultantSettings(BaseSettings):
    model_config = SettingsConfigDict(env_prefix="HC_")

    environment: str = "development"

    # Shared with the auth provider that issues session tokens.
    secret_key: str = "insecure-dev-key-change-me"
    session_max_age: int = 7 * 24 * 3600  # seconds

    # Database
    db_url: str = "sqlite+aiosqlite:///./data/healthconsultant.db"
    # SQLite writers queue on the database lock for up to this long.
    db_busy_timeout: float = 15.0  # seconds

    # API
    api_title: str = "HealthConsultant"
    api_version: str = "0.1.0"
    host: str = "0.0.0.0"
    port: int = 8080
    api_prefix: str = ""
    cors_origins: list[str] = ["http://localhost:3000"]
    log_level: str = "INFO"

    # Plans and quota
    fallback_plan_title: str = "Free"
    quota_exceeded_message: str = (
        "You have reached your monthly interaction limit. "
        "Please upgrade your plan for unlimited access."
    )

    # Stripe webhooks
    stripe_webhook_secret: str = ""
    stripe_signature_tolerance: int = 300  # seconds

    # Pagination
    default_page_size: int = 50
    max_page_size: int = 200

    def validate_for_production(self) -> None:
        """Raise if insecure defaults are used in non-development environments."""
        insecure_fields = [
            field
            for field, default in _INSECURE_DEFAULTS.items()
            if getattr(self, field) == default
        ]

        if self.environment != "development" and insecure_fields:
            env_vars = ", ".join(f"HC_{f.upper()}" for f in insecure_fields)
            raise RuntimeError(
                f"Insecure default values detected in '{self.environment}' environment. "
                f"Set these environment variables to secure values: {env_vars}. "
                "Generate secrets with: python -c \"import secrets; print(secrets.token_urlsafe(48))\""
            )

        if self.environment != "development" and not self.stripe_webhook_secret:
            warnings.warn(
                "HC_STRIPE_WEBHOOK_SECRET is not set; Stripe webhook signatures will not be verified",
                UserWarning,
                stacklevel=2,
            )

        if insecure_fields:
            warnings.warn(
                "Using insecure default secret key; set HC_SECRET_KEY for production",
                UserWarning,
                stacklevel=2,
            )


@lru_cache
def get_settings() -> HealthConsultantSettings:
    settings = HealthConsultantSettings()
    settings.validate_for_production()
    return settings
