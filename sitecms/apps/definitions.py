"""
App definitions: typed configuration fields, injection plans and their HTML rendering.

An AppDefinition pairs display metadata and a list of ConfigField descriptors with a
pure builder that turns a stored configuration into an InjectionPlan. The plan is the
single description of what an app puts on a page: the server renders it into a
<head> fragment, and the client loader consumes the same plan as JSON.
"""
import html
import json
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

# Marks every tag rendered for an app so the client loader can tell what the server injected
APP_MARKER_ATTR = "data-sitecms-app"


class FieldType(str, Enum):
    TEXT = "text"
    PASSWORD = "password"
    SELECT = "select"


class _Frozen(BaseModel):
    model_config = ConfigDict(frozen=True, alias_generator=to_camel, populate_by_name=True)


class ConfigField(_Frozen):
    """One configuration field of an app. admin_only marks a secret never shown publicly."""

    name: str
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    default: Optional[str] = None
    options: Optional[list[str]] = None
    placeholder: Optional[str] = None
    admin_only: bool = False

    @model_validator(mode="after")
    def check_options(self):
        if self.type == FieldType.SELECT and not self.options:
            raise ValueError(f"select field {self.name!r} needs options")
        return self


class ScriptTag(_Frozen):
    """External script. on_load/on_error are JS statements run when the script settles."""

    src: str
    is_async: bool = False
    defer: bool = False
    type: Optional[str] = None
    charset: Optional[str] = None
    on_load: Optional[str] = None
    on_error: Optional[str] = None


class Behavior(_Frozen):
    """Named client-side DOM behaviour (e.g. CAPTCHA widget placement) with JSON options."""

    name: str
    options: dict[str, Any] = Field(default_factory=dict)


class InjectionPlan(_Frozen):
    """Structured page side effects of one app."""

    globals: dict[str, Any] = Field(default_factory=dict)
    stylesheets: list[str] = Field(default_factory=list)
    scripts: list[ScriptTag] = Field(default_factory=list)
    inline: list[str] = Field(default_factory=list)
    behaviors: list[Behavior] = Field(default_factory=list)


PlanBuilder = Callable[[Mapping[str, str]], Optional[InjectionPlan]]


class AppDefinition(_Frozen):
    """Catalog entry describing one third-party integration."""

    id: str
    name: str
    category: str
    description: str = ""
    icon: str = ""
    help_url: str = ""
    version: str = "1.0.0"
    config_fields: tuple[ConfigField, ...] = ()
    build: PlanBuilder = Field(exclude=True, repr=False)

    @model_validator(mode="after")
    def check_unique_fields(self):
        names = [f.name for f in self.config_fields]
        dupes = sorted({n for n in names if names.count(n) > 1})
        if dupes:
            raise ValueError(f"app {self.id!r} has duplicate config fields: {', '.join(dupes)}")
        return self

    def field(self, name: str) -> Optional[ConfigField]:
        return next((f for f in self.config_fields if f.name == name), None)

    def required_fields(self) -> list[str]:
        return [f.name for f in self.config_fields if f.required]

    def public_field_names(self) -> list[str]:
        return [f.name for f in self.config_fields if not f.admin_only]

    def plan(self, config: Mapping[str, str]) -> Optional[InjectionPlan]:
        """Build the injection plan; None when required values are missing. May raise on malformed input."""
        return self.build(config)

    def script_injection(self, config: Mapping[str, str]) -> str:
        """Render this app's <head> fragment for the given configuration ('' when not renderable)."""
        plan = self.build(config)
        if plan is None:
            return ""
        return render_plan(self, plan)

    def to_public_dict(self) -> dict[str, Any]:
        """JSON-ready catalog entry (camelCase keys, no builder)."""
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)


def js_literal(value: Any) -> str:
    """Serialize a value as a JS literal that is safe inside a <script> element."""
    return json.dumps(value).replace("<", "\\u003c")


def globals_js(values: Mapping[str, Any]) -> str:
    """JS statements seeding window globals. Object values merge into an existing object."""
    lines = []
    for key, value in values.items():
        target = f"window[{js_literal(key)}]"
        if isinstance(value, dict):
            lines.append(f"{target} = Object.assign({target} || {{}}, {js_literal(value)});")
        else:
            lines.append(f"{target} = {js_literal(value)};")
    return "\n".join(lines)


def _attr(name: str, value: str) -> str:
    return f'{name}="{html.escape(value, quote=True)}"'


def render_script_tag(app_id: str, tag: ScriptTag) -> str:
    attrs = [_attr("src", tag.src)]
    if tag.type:
        attrs.append(_attr("type", tag.type))
    if tag.charset:
        attrs.append(_attr("charset", tag.charset))
    if tag.is_async:
        attrs.append("async")
    if tag.defer:
        attrs.append("defer")
    if tag.on_load:
        attrs.append(_attr("onload", tag.on_load))
    if tag.on_error:
        attrs.append(_attr("onerror", tag.on_error))
    attrs.append(_attr(APP_MARKER_ATTR, app_id))
    return f"<script {' '.join(attrs)}></script>"


def render_plan(app: AppDefinition, plan: InjectionPlan) -> str:
    """Render a plan as HTML for the document head.

    Behaviours are client-only and are not rendered; the client loader runs them
    for apps it finds already injected.
    """
    marker = _attr(APP_MARKER_ATTR, app.id)
    parts = [f"<!-- {html.escape(app.name)} v{html.escape(app.version)} -->"]
    if plan.globals:
        parts.append(f"<script {marker}>\n{globals_js(plan.globals)}\n</script>")
    for href in plan.stylesheets:
        parts.append(f'<link rel="stylesheet" {_attr("href", href)} {marker}>')
    for tag in plan.scripts:
        parts.append(render_script_tag(app.id, tag))
    for code in plan.inline:
        parts.append(f"<script {marker}>\n{code}\n</script>")
    return "\n".join(parts)
