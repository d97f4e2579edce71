"""
Visibility filter: strips admin-only (secret) fields before configuration leaves
the server for an unauthenticated caller.

Only fields defined on the app survive; unknown stored keys are dropped rather than
leaked, and apps no longer in the catalog are left out entirely.
"""
from collections.abc import Iterable, Mapping

from .catalog import AppCatalog
from .definitions import ConfigField


def redact_app_config(
    config: Mapping[str, str], fields: Iterable[ConfigField]
) -> dict[str, str]:
    """Public subset of one app's stored configuration, in field order."""
    return {
        f.name: config[f.name]
        for f in fields
        if not f.admin_only and f.name in config and config[f.name] is not None
    }


def redact_enabled(
    enabled: Mapping[str, Mapping[str, str]], catalog: AppCatalog
) -> dict[str, dict[str, str]]:
    """Apply redact_app_config across every enabled app, keeping document order."""
    redacted: dict[str, dict[str, str]] = {}
    for app_id, config in enabled.items():
        app = catalog.get_by_id(app_id)
        if app is None:
            continue
        redacted[app_id] = redact_app_config(config or {}, app.config_fields)
    return redacted
