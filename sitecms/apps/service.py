"""
AppsService: admin and public operations over the catalog and the apps-config store.

Mutations are read-modify-write of the whole document. Store failures propagate as
StoreUnavailableError so callers never report a save that did not happen.
"""
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from ..exceptions import AppNotEnabledError
from .catalog import AppCatalog
from .definitions import AppDefinition
from .renderer import InjectionReport, render_injection
from .store import AppsConfig, AppsConfigStore
from .visibility import redact_enabled

logger = logging.getLogger(__name__)


@dataclass
class ValidationResult:
    """Outcome of an advisory configuration test."""

    app_id: str
    missing: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.missing


class AppsService:
    """Operations behind the /api/apps endpoints.

    Attributes:
        catalog: The immutable app catalog.
        config_store: Store for the apps-config document.
    """

    catalog: AppCatalog
    config_store: AppsConfigStore

    def __init__(self, catalog: AppCatalog, config_store: AppsConfigStore, /) -> None:
        self.catalog = catalog
        self.config_store = config_store

    # --- reads ---

    def read_config(self) -> AppsConfig:
        return self.config_store.read()

    def get_public_config(self, config: Optional[AppsConfig] = None) -> dict[str, Any]:
        """Enabled apps with admin-only fields removed, plus the disabled list."""
        config = config or self.config_store.read()
        return {
            "enabled": redact_enabled(config.enabled, self.catalog),
            "disabled": list(config.disabled),
        }

    def get_config(self, *, authenticated: bool) -> dict[str, Any]:
        """Raw document for admins, redacted view for everyone else."""
        config = self.config_store.read()
        if authenticated:
            return config.model_dump(mode="json")
        return self.get_public_config(config)

    def list_apps(self, config: Optional[AppsConfig] = None) -> list[dict[str, Any]]:
        """Catalog entries annotated with enabled/configured flags."""
        config = config or self.config_store.read()
        apps = []
        for app in self.catalog:
            stored = config.enabled.get(app.id)
            entry = app.to_public_dict()
            entry["enabled"] = stored is not None
            entry["configured"] = bool(stored)
            apps.append(entry)
        return apps

    def render(self, config: Optional[AppsConfig] = None) -> InjectionReport:
        config = config or self.config_store.read()
        return render_injection(config.enabled, self.catalog)

    def bootstrap(self) -> dict[str, Any]:
        """Client loader payload: redacted config plus per-app injection plans.

        Plans are built from the redacted config only, so secrets cannot reach them.
        """
        public = self.get_public_config()
        plans: dict[str, Any] = {}
        for app_id, app_config in public["enabled"].items():
            app = self.catalog.require(app_id)
            try:
                plan = app.plan(app_config)
            except Exception as e:
                logger.warning("Client plan failed for %s: %s", app_id, e)
                continue
            if plan is not None:
                plans[app_id] = plan.model_dump(by_alias=True, mode="json")
        return {**public, "apps": plans}

    # --- mutations ---

    def set_enabled(self, app_id: str, config: Optional[dict[str, Any]] = None) -> AppDefinition:
        app = self.catalog.require(app_id)
        apps_config = self.config_store.read()
        apps_config.enable(app_id, config or {})
        self.config_store.write(apps_config)
        logger.info("Enabled app %s", app_id)
        return app

    def set_disabled(self, app_id: str) -> AppDefinition:
        app = self.catalog.require(app_id)
        apps_config = self.config_store.read()
        apps_config.disable(app_id)
        self.config_store.write(apps_config)
        logger.info("Disabled app %s", app_id)
        return app

    def update_config(self, app_id: str, partial: Optional[dict[str, Any]] = None) -> AppDefinition:
        """Shallow-merge partial into the stored config of an enabled app."""
        app = self.catalog.require(app_id)
        apps_config = self.config_store.read()
        if app_id not in apps_config.enabled:
            raise AppNotEnabledError(app_id)
        apps_config.merge(app_id, partial or {})
        self.config_store.write(apps_config)
        logger.info("Updated config for app %s", app_id)
        return app

    def test_config(self, app_id: str, config: dict[str, Any]) -> ValidationResult:
        """Report required fields that are missing or empty. Never mutates state."""
        app = self.catalog.require(app_id)
        missing = [name for name in app.required_fields() if not config.get(name)]
        return ValidationResult(app_id, missing)

