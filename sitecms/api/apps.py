"""Apps API: catalog listing, enable/disable/update, public config and injection preview."""
import html
import logging
from typing import Any, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Response
from fastapi.responses import HTMLResponse
from pydantic import BaseModel, ConfigDict, Field

from ..apps.service import AppsService
from ..auth.tokens import UserInfo, get_current_user_optional, require_user
from ..config import Settings
from ..exceptions import ConfigValidationError
from .deps import get_apps_service, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/apps", tags=["apps"])

ACTIONS = ("enable", "disable", "update")


class AppAction(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    app_id: Optional[str] = Field(default=None, alias="appId")
    action: Optional[str] = None
    config: Optional[dict[str, Any]] = None


def _public_cache(response: Response, settings: Settings) -> None:
    response.headers["Cache-Control"] = f"public, max-age={settings.public_config_max_age}"


def _is_true(value: Optional[str]) -> bool:
    return (value or "").lower() == "true"


@router.get("")
def get_apps(
    response: Response,
    id: Optional[str] = Query(None),
    registry: Optional[str] = Query(None),
    config: Optional[str] = Query(None),
    preview: Optional[str] = Query(None),
    user: Optional[UserInfo] = Depends(get_current_user_optional),
    service: AppsService = Depends(get_apps_service),
    settings: Settings = Depends(get_settings),
):
    """
    Read the catalog and app state.
    ?id= one app, ?registry=true full catalog, ?config=true stored config
    (raw for admins, redacted otherwise), ?preview=true rendered injection fragment.
    Without a selector: every app with enabled/configured flags plus config.
    """
    if id:
        app = service.catalog.require(id)
        return {"app": app.to_public_dict()}

    if _is_true(registry):
        return {"apps": {app.id: app.to_public_dict() for app in service.catalog}}

    authenticated = user is not None

    if _is_true(config):
        # Body depends on the bearer token; caches must key on it
        response.headers["Vary"] = "Authorization"
        if authenticated:
            response.headers["Cache-Control"] = "private, no-store"
        else:
            _public_cache(response, settings)
        return service.get_config(authenticated=authenticated)

    if _is_true(preview):
        return {"scripts": service.render().fragment}

    response.headers["Vary"] = "Authorization"
    apps_config = service.read_config()
    if authenticated:
        returned = apps_config.model_dump(mode="json")
    else:
        returned = service.get_public_config(apps_config)
    return {"apps": service.list_apps(apps_config), "config": returned}


@router.get("/bootstrap")
def get_bootstrap(
    response: Response,
    service: AppsService = Depends(get_apps_service),
    settings: Settings = Depends(get_settings),
):
    """Public payload for the client loader: redacted config and per-app plans."""
    _public_cache(response, settings)
    return service.bootstrap()


@router.get("/preview", response_class=HTMLResponse)
def preview_page(service: AppsService = Depends(get_apps_service)):
    """HTML page that loads the injected scripts and shows their source."""
    inject = service.render().fragment
    return f"""<!doctype html>
<html>
<head>
  <meta charset="utf-8" />
  <meta name="viewport" content="width=device-width,initial-scale=1" />
  <title>Apps Preview</title>
  <style>body{{font-family:system-ui,Segoe UI,Roboto,Arial;background:#0b0b0b;color:#ddd;padding:24px}}pre{{background:#061010;padding:12px;border-radius:6px;overflow:auto;max-height:50vh}}</style>
  {inject}
</head>
<body>
  <h1>Apps Injection Preview</h1>
  <p>Below are the scripts that the server will inject into visitor pages for currently enabled apps.</p>
  <h2>Generated Scripts</h2>
  <pre>{html.escape(inject)}</pre>
</body>
</html>"""


def _require_app_id(app_id: Optional[str]) -> str:
    if not app_id:
        raise HTTPException(status_code=400, detail="Missing appId")
    return app_id


@router.put("")
def update_app(
    body: AppAction,
    _user: UserInfo = Depends(require_user),
    service: AppsService = Depends(get_apps_service),
):
    """Enable, disable or update one app's configuration."""
    app_id = _require_app_id(body.app_id)
    service.catalog.require(app_id)
    if body.action not in ACTIONS:
        raise HTTPException(status_code=400, detail="Invalid action")

    if body.action == "enable":
        app = service.set_enabled(app_id, body.config)
    elif body.action == "disable":
        app = service.set_disabled(app_id)
    else:
        app = service.update_config(app_id, body.config)

    return {
        "success": True,
        "message": f"App {app_id} {body.action}d",
        "app": {**app.to_public_dict(), "enabled": body.action != "disable"},
    }


@router.post("")
def test_app(
    body: AppAction,
    _user: UserInfo = Depends(require_user),
    service: AppsService = Depends(get_apps_service),
):
    """Advisory check of a configuration's required fields. Never changes stored state."""
    app_id = _require_app_id(body.app_id)
    app = service.catalog.require(app_id)
    if body.action != "test":
        raise HTTPException(status_code=400, detail="Invalid action")
    if body.config is None:
        raise HTTPException(status_code=400, detail="Missing config")

    result = service.test_config(app_id, body.config)
    if not result.ok:
        logger.info("Config test for %s failed, missing: %s", app_id, ", ".join(result.missing))
        raise ConfigValidationError(app_id, result.missing)
    return {"success": True, "message": f"{app.name} configuration is valid"}


@router.delete("")
def delete_app(
    id: Optional[str] = Query(None),
    _user: UserInfo = Depends(require_user),
    service: AppsService = Depends(get_apps_service),
):
    """Remove an app's configuration (same as disable)."""
    app_id = _require_app_id(id)
    service.set_disabled(app_id)
    return {"success": True, "message": f"App {app_id} deleted"}
