"""Site pages: static HTML served with enabled-app scripts injected into <head>."""
import logging
from pathlib import Path

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import FileResponse, HTMLResponse

from ..apps.injector import render_page
from ..apps.service import AppsService
from ..config import Settings
from .deps import get_apps_service, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["pages"])

STATIC_DIR = Path(__file__).resolve().parent.parent / "static"

# Clean URLs: /about -> about.html
PAGE_MAP = {
    "index": "index.html",
    "about": "about.html",
    "services": "services.html",
    "portfolio": "portfolio.html",
    "blog": "blog.html",
    "marketing": "marketing.html",
    "contact": "contact.html",
    "terms": "terms.html",
}


def resolve_page(site_root: str, filename: str) -> Path:
    """Path of an HTML page under site_root. Raises 404 for traversal or missing files."""
    root = Path(site_root).resolve()
    path = (root / filename).resolve()
    if root not in path.parents or path.suffix.lower() not in (".html", ".htm"):
        raise HTTPException(status_code=404, detail="Not found")
    if not path.is_file():
        raise HTTPException(status_code=404, detail="Not found")
    return path


def _serve(filename: str, settings: Settings, service: AppsService) -> HTMLResponse:
    path = resolve_page(settings.site_root, filename)
    try:
        html = path.read_text(encoding="utf-8")
    except OSError as e:
        logger.error("HTML serve error for %s: %s", path, e)
        raise HTTPException(status_code=500, detail="Failed to read page") from e
    html = render_page(
        html,
        service.config_store,
        service.catalog,
        include_loader=settings.client_loader_enabled,
    )
    return HTMLResponse(html)


@router.get("/app-loader.js", include_in_schema=False)
async def app_loader():
    """Client-side loader companion to server injection."""
    return FileResponse(STATIC_DIR / "app-loader.js", media_type="application/javascript")


@router.get("/", response_class=HTMLResponse, include_in_schema=False)
def index_page(
    settings: Settings = Depends(get_settings),
    service: AppsService = Depends(get_apps_service),
):
    return _serve("index.html", settings, service)


@router.get("/{page}", response_class=HTMLResponse, include_in_schema=False)
def site_page(
    page: str,
    settings: Settings = Depends(get_settings),
    service: AppsService = Depends(get_apps_service),
):
    """Serve /about, /about.html and other top-level pages with app injection."""
    if page.lower().endswith((".html", ".htm")):
        filename = page
    elif "." in page:
        raise HTTPException(status_code=404, detail="Not found")
    else:
        filename = PAGE_MAP.get(page, f"{page}.html")
    return _serve(filename, settings, service)
