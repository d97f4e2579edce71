"""
Injection renderer: turns enabled-app state into one <head> fragment.

Every app renders inside its own failure boundary. A generator that raises or
returns something other than a string produces a failed RenderResult and the
loop moves on, so one broken integration never takes the page down.
"""
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .catalog import AppCatalog

logger = logging.getLogger(__name__)


class RenderStatus(str, Enum):
    OK = "ok"
    EMPTY = "empty"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class RenderResult:
    app_id: str
    status: RenderStatus
    fragment: str = ""
    error: Optional[str] = None


@dataclass
class InjectionReport:
    results: list[RenderResult] = field(default_factory=list)

    @property
    def fragment(self) -> str:
        """Non-empty fragments in document order, each followed by a blank line."""
        return "".join(f"{r.fragment}\n\n" for r in self.results if r.status == RenderStatus.OK)

    @property
    def failures(self) -> list[RenderResult]:
        return [r for r in self.results if r.status == RenderStatus.FAILED]

    @property
    def rendered_ids(self) -> list[str]:
        return [r.app_id for r in self.results if r.status == RenderStatus.OK]


def render_app(app_id: str, config: Mapping[str, str], catalog: AppCatalog) -> RenderResult:
    app = catalog.get_by_id(app_id)
    if app is None:
        # Removed from the catalog but still referenced by stored config
        logger.debug("Skipping unknown app %s", app_id)
        return RenderResult(app_id, RenderStatus.SKIPPED)
    try:
        output = app.script_injection(config or {})
    except Exception as e:
        logger.warning("Script generation failed for %s: %s", app_id, e, exc_info=True)
        return RenderResult(app_id, RenderStatus.FAILED, error=f"{type(e).__name__}: {e}")
    if not isinstance(output, str):
        logger.warning("Script generation for %s returned %s, not str", app_id, type(output).__name__)
        return RenderResult(app_id, RenderStatus.FAILED, error=f"returned {type(output).__name__}")
    if not output:
        return RenderResult(app_id, RenderStatus.EMPTY)
    return RenderResult(app_id, RenderStatus.OK, fragment=output)


def render_injection(
    enabled: Mapping[str, Mapping[str, str]], catalog: AppCatalog
) -> InjectionReport:
    """Render every enabled app in document order."""
    report = InjectionReport()
    for app_id, config in enabled.items():
        report.results.append(render_app(app_id, config, catalog))
    if report.failures:
        logger.info(
            "Injection rendered %d app(s), %d failed: %s",
            len(report.rendered_ids),
            len(report.failures),
            ", ".join(r.app_id for r in report.failures),
        )
    return report
