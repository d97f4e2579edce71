"""
Server-side event tracking. The client loader falls back to this endpoint when the
Mixpanel library is blocked (ad blockers), so events still reach Mixpanel.
"""
import base64
import json
import logging
import time
from typing import Any, Optional

import httpx
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import BaseModel, ConfigDict, Field

from ..apps.service import AppsService
from ..config import Settings
from ..exceptions import StoreUnavailableError
from .deps import get_apps_service, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["track"])


class TrackEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    event: Optional[str] = None
    properties: dict[str, Any] = Field(default_factory=dict)
    user_id: Optional[str] = Field(default=None, alias="userId")


def get_client_ip(request: Request) -> str:
    """Get client IP from request, honoring X-Forwarded-For when behind a proxy."""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    if request.client:
        return request.client.host
    return "unknown"


def resolve_mixpanel_token(settings: Settings, service: AppsService) -> Optional[str]:
    """Mixpanel token from settings, else from the enabled mixpanel app."""
    if settings.mixpanel_token:
        return settings.mixpanel_token
    try:
        enabled = service.read_config().enabled
    except StoreUnavailableError as e:
        logger.error("Error reading apps config: %s", e.message)
        return None
    token = enabled.get("mixpanel", {}).get("token")
    return token if isinstance(token, str) and token else None


async def send_to_mixpanel(settings: Settings, event_data: dict[str, Any]) -> None:
    """POST one event to Mixpanel's ingestion API. Raises httpx.HTTPError on failure."""
    payload = {
        "data": base64.b64encode(json.dumps(event_data).encode("utf-8")).decode("ascii"),
        "verbose": 1,
    }
    async with httpx.AsyncClient(timeout=settings.track_timeout_seconds) as client:
        r = await client.post(settings.mixpanel_api_url, json=payload)
        r.raise_for_status()


@router.post("/api/track")
async def track_event(
    body: TrackEvent,
    request: Request,
    service: AppsService = Depends(get_apps_service),
    settings: Settings = Depends(get_settings),
):
    """Track an event server-side (ad-blocker proof)."""
    if not body.event:
        raise HTTPException(status_code=400, detail="Missing event name")

    token = resolve_mixpanel_token(settings, service)
    if not token:
        raise HTTPException(status_code=501, detail="Mixpanel not configured")

    distinct_id = body.user_id or "anonymous"
    event_data = {
        "event": body.event,
        "properties": {
            "token": token,
            "time": int(time.time()),
            "distinct_id": distinct_id,
            **body.properties,
            "ip": get_client_ip(request),
            "user_agent": request.headers.get("user-agent"),
        },
    }

    if not settings.track_forward:
        logger.info("[track] event=%s properties=%s", body.event, body.properties)
        return {"ok": True, "success": True, "tracked": body.event}

    try:
        await send_to_mixpanel(settings, event_data)
    except httpx.HTTPError as e:
        logger.error("Mixpanel API error: %s", e)
        raise HTTPException(status_code=502, detail="Failed to send event to Mixpanel") from e

    return {
        "ok": True,
        "success": True,
        "tracked": body.event,
        "message": f"Event '{body.event}' tracked successfully via server-side API",
        "userId": distinct_id,
    }
