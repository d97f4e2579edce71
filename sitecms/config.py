"""
Application configuration for sitecms
"""
import logging
import os
from typing import Optional

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

logger = logging.getLogger(__name__)


def _parse_csv(v: str | list[str], *, star_default: bool = False) -> list[str]:
    """Parse a comma-separated env value. With star_default, '' or '*' means ['*']."""
    if isinstance(v, list):
        return v
    s = (v or "").strip()
    if star_default and (not s or s == "*"):
        return ["*"]
    return [x.strip() for x in s.split(",") if x.strip()]


class Settings(BaseSettings):
    """Application settings"""

    model_config = SettingsConfigDict(
        env_prefix="SITECMS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "sitecms"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"  # nosec B104 - containerized service
    port: int = 3000

    # Storage: JSON documents (apps-config.json, ...) live here
    data_dir: str = "data"
    # Static site: HTML pages served with app injection
    site_root: str = "."

    # JWT (admin bearer tokens)
    jwt_secret_key: str = "devsecret"
    jwt_secret_file: Optional[str] = None
    jwt_algorithm: str = "HS256"
    jwt_expiration_minutes: int = 60 * 24

    # CORS: env accepts "*" or comma-separated list
    cors_origins: str | list[str] = ["http://localhost:3000"]

    # App injection
    client_loader_enabled: bool = True
    public_config_max_age: int = 300

    # Public keys exposed by /api/public-config. Env values take precedence over apps config.
    google_analytics_id: str = ""
    mixpanel_token: str = ""
    paystack_public_key: str = ""
    klaviyo_public_key: str = ""
    tawkto_property_id: str = ""
    privy_site_id: str = ""
    yotpo_api_key: str = ""
    yotpo_account_id: str = ""
    cloudflare_site_key: str = ""

    # Server-side tracking (ad-blocker fallback)
    track_forward: bool = True
    mixpanel_api_url: str = "https://api.mixpanel.com/track"
    track_timeout_seconds: float = 10.0

    @field_validator("cors_origins", mode="after")
    @classmethod
    def normalize_cors_origins(cls, v: str | list[str]) -> list[str]:
        return _parse_csv(v, star_default=True)


def load_jwt_secret(settings_obj: Settings) -> str:
    """Load JWT secret from file if specified."""
    if settings_obj.jwt_secret_file and os.path.exists(settings_obj.jwt_secret_file):
        try:
            with open(settings_obj.jwt_secret_file, "r") as f:
                secret = f.read().strip()
                if secret:
                    return secret
        except OSError as e:
            logger.warning("Could not read JWT secret file: %s", e)
    return settings_obj.jwt_secret_key


settings = Settings()
settings.jwt_secret_key = load_jwt_secret(settings)
