"""App integration registry and injection pipeline."""

from .catalog import AppCatalog, build_default_catalog
from .definitions import AppDefinition, ConfigField, FieldType, InjectionPlan
from .renderer import InjectionReport, render_injection
from .service import AppsService
from .store import AppsConfig, AppsConfigStore

__all__ = [
    "AppCatalog",
    "AppDefinition",
    "AppsConfig",
    "AppsConfigStore",
    "AppsService",
    "ConfigField",
    "FieldType",
    "InjectionPlan",
    "InjectionReport",
    "build_default_catalog",
    "render_injection",
]
