"""Public config API: unauthenticated well-known keys for the frontend (analytics, chat, payments)."""
import logging
from typing import Any

from fastapi import APIRouter, Depends, Response

from ..apps.service import AppsService
from ..config import Settings
from ..exceptions import StoreUnavailableError
from .deps import get_apps_service, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public-config"])

# public key -> (settings attribute, app id, config field)
PUBLIC_KEYS: dict[str, tuple[str, str, str]] = {
    "googleAnalyticsId": ("google_analytics_id", "googleAnalytics", "gaId"),
    "mixpanelToken": ("mixpanel_token", "mixpanel", "token"),
    "paystackPublicKey": ("paystack_public_key", "paystack", "publicKey"),
    "klaviyoPublicKey": ("klaviyo_public_key", "klaviyo", "publicKey"),
    "tawktoPropertyId": ("tawkto_property_id", "tawkto", "propertyId"),
    "privySiteId": ("privy_site_id", "privy", "siteId"),
    "yotpoApiKey": ("yotpo_api_key", "yotpo", "apiKey"),
    "yotpoAccountId": ("yotpo_account_id", "yotpo", "accountId"),
    "cloudflareSiteKey": ("cloudflare_site_key", "cloudflare", "siteKey"),
}


def build_public_config(settings: Settings, enabled: dict[str, dict[str, Any]]) -> dict[str, str]:
    """Merge env settings with redacted app config. Env values take precedence."""
    public: dict[str, str] = {}
    for key, (attr, app_id, field_name) in PUBLIC_KEYS.items():
        value = getattr(settings, attr) or ""
        if not value:
            stored = enabled.get(app_id, {}).get(field_name)
            value = stored if isinstance(stored, str) else ""
        public[key] = value
    return public


@router.get("/api/public-config")
def get_public_config(
    response: Response,
    service: AppsService = Depends(get_apps_service),
    settings: Settings = Depends(get_settings),
) -> dict[str, Any]:
    """
    Return public configuration for the frontend (no auth required).
    Secret keys are never returned: stored values pass through the visibility filter first.
    """
    try:
        enabled = service.get_public_config()["enabled"]
    except StoreUnavailableError as e:
        logger.warning("[public-config] apps config unavailable, using env only: %s", e.message)
        enabled = {}

    response.headers["Cache-Control"] = f"public, max-age={settings.public_config_max_age}"
    return build_public_config(settings, enabled)
