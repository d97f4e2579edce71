"""Server-side HTML injection: splice the app fragment into a page's <head>."""
import logging
import re

from ..exceptions import StoreUnavailableError
from .catalog import AppCatalog
from .renderer import render_injection
from .store import AppsConfigStore

logger = logging.getLogger(__name__)

_HEAD_CLOSE_RE = re.compile(r"</head\s*>", re.IGNORECASE)

CLIENT_LOADER_TAG = '<script src="/app-loader.js" defer></script>'


def inject_into_head(html: str, fragment: str) -> str:
    """Insert fragment immediately before the first closing head tag.

    Documents without a </head> are returned unchanged.
    """
    if not fragment:
        return html
    match = _HEAD_CLOSE_RE.search(html)
    if match is None:
        return html
    return f"{html[:match.start()]}\n{fragment}\n{html[match.start():]}"


def render_page(
    html: str,
    config_store: AppsConfigStore,
    catalog: AppCatalog,
    *,
    include_loader: bool = True,
) -> str:
    """Inject enabled apps (and the client loader tag) into an HTML page.

    Never raises for store or per-app failures: the page is served without
    injection instead.
    """
    fragment = ""
    try:
        config = config_store.read()
    except StoreUnavailableError as e:
        logger.error("App injection skipped, config store unavailable: %s", e.message)
    else:
        fragment = render_injection(config.enabled, catalog).fragment
    if include_loader:
        fragment = f"{fragment}{CLIENT_LOADER_TAG}\n"
    return inject_into_head(html, fragment.rstrip("\n"))
