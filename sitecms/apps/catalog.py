"""
App catalog: the immutable registry of integrations known to this site.

The catalog is built once at startup and handed to every component that needs it
(via app.state). It is never mutated afterwards.

Example usage:
    from sitecms.apps.catalog import build_default_catalog

    catalog = build_default_catalog()
    app = catalog.get_by_id("tawkto")
    analytics = catalog.get_by_category("analytics")
"""
from collections.abc import Iterable, Mapping
from types import MappingProxyType
from typing import Optional

from ..exceptions import AppNotFoundError
from .builtin import BUILTIN_APPS
from .definitions import AppDefinition


class AppCatalog:
    """Read-only mapping of app id to AppDefinition, in registration order."""

    def __init__(self, apps: Iterable[AppDefinition]) -> None:
        entries: dict[str, AppDefinition] = {}
        for app in apps:
            if app.id in entries:
                raise ValueError(f"Duplicate app id in catalog: {app.id}")
            entries[app.id] = app
        self._apps: Mapping[str, AppDefinition] = MappingProxyType(entries)

    def __contains__(self, app_id: object) -> bool:
        return app_id in self._apps

    def __iter__(self):
        return iter(self._apps.values())

    def __len__(self) -> int:
        return len(self._apps)

    def get_all(self) -> Mapping[str, AppDefinition]:
        return self._apps

    def get_by_id(self, app_id: str) -> Optional[AppDefinition]:
        return self._apps.get(app_id)

    def require(self, app_id: str) -> AppDefinition:
        """Like get_by_id, but raises AppNotFoundError for unknown ids."""
        if (app := self._apps.get(app_id)) is None:
            raise AppNotFoundError(app_id)
        return app

    def get_by_category(self, category: str) -> list[AppDefinition]:
        return [app for app in self._apps.values() if app.category == category]

    def categories(self) -> list[str]:
        return sorted({app.category for app in self._apps.values()})


def build_default_catalog() -> AppCatalog:
    """Catalog of all built-in integrations."""
    return AppCatalog(BUILTIN_APPS)
