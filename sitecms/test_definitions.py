import pytest
from pydantic import ValidationError

from .apps.definitions import (
    APP_MARKER_ATTR,
    ConfigField,
    FieldType,
    InjectionPlan,
    ScriptTag,
    js_literal,
    render_plan,
)


def test_select_field_needs_options():
    with pytest.raises(ValidationError):
        ConfigField(name="position", label="Position", type=FieldType.SELECT)


def test_js_literal_cannot_close_script_element():
    out = js_literal("</script><script>alert(1)</script>")
    assert "</script>" not in out
    assert out.startswith('"')


def test_render_plan_marks_every_tag(catalog):
    app = catalog.require("paystack")
    plan = InjectionPlan(
        globals={"paystackPublicKey": "pk_x"},
        stylesheets=["https://cdn.example.com/a.css"],
        scripts=[ScriptTag(src="https://js.example.com/a.js?x=1&y=2", is_async=True, on_load="go();")],
        inline=["console.log('hi');"],
    )
    html = render_plan(app, plan)
    assert html.startswith("<!-- Paystack Payment Gateway v1.0.0 -->")
    assert html.count(f'{APP_MARKER_ATTR}="paystack"') == 4
    assert 'window["paystackPublicKey"] = "pk_x";' in html
    assert 'src="https://js.example.com/a.js?x=1&amp;y=2"' in html
    assert " async " in html
    assert 'onload="go();"' in html


def test_tawkto_accepts_bare_or_combined_property_id(catalog):
    app = catalog.require("tawkto")
    assert app.plan({"propertyId": "abc123"}).scripts[0].src == "https://embed.tawk.to/abc123/default"
    assert app.plan({"propertyId": "abc123/1hxyz"}).scripts[0].src == "https://embed.tawk.to/abc123/1hxyz"
    assert "abc123" in app.script_injection({"propertyId": " abc123 "})


def test_missing_required_value_renders_nothing(catalog):
    for app in catalog:
        assert app.script_injection({}) == "" or not app.required_fields()


def test_builders_never_render_admin_only_values(catalog):
    checked = []
    for app in catalog:
        secrets = [f for f in app.config_fields if f.admin_only]
        if not secrets:
            continue
        config = {
            f.name: f.options[0] if f.options else f"{app.id}-{f.name}-value"
            for f in app.config_fields
        }
        html = app.script_injection(config)
        plan = app.plan(config).model_dump_json()
        assert html, app.id
        for f in secrets:
            assert config[f.name] not in html, app.id
            assert config[f.name] not in plan, app.id
        checked.append(app.id)
    assert {"paystack", "cloudflare"} <= set(checked)


def test_cloudflare_plan_carries_turnstile_behavior(catalog):
    plan = catalog.require("cloudflare").plan({"siteKey": "0xSITE"})
    assert plan.globals["cloudflare"] == {"siteKey": "0xSITE"}
    assert plan.behaviors[0].name == "turnstile-widgets"
    assert plan.behaviors[0].options["siteKey"] == "0xSITE"
    # behaviors run in the browser only
    assert "turnstile-widgets" not in catalog.require("cloudflare").script_injection({"siteKey": "0xSITE"})


def test_mixpanel_falls_back_to_server_tracking(catalog):
    plan = catalog.require("mixpanel").plan({"token": "tok"})
    assert "trackEvent" in plan.scripts[0].on_error
    dumped = plan.model_dump(by_alias=True, mode="json")
    assert dumped["scripts"][0]["onError"] == plan.scripts[0].on_error


def test_cookie_consent_escapes_privacy_url(catalog):
    html = catalog.require("cookieConsent").script_injection({"privacyUrl": '"><script>x()</script>'})
    assert "<script>x()" not in html
    assert "--cc-bg" in html


def test_cookie_consent_rejects_unknown_position(catalog):
    with pytest.raises(ValueError):
        catalog.require("cookieConsent").plan({"position": "sideways"})


def test_sumo_requires_https(catalog):
    with pytest.raises(ValueError):
        catalog.require("sumo").plan({"scriptUrl": "http://load.sumome.com/k.js"})


def test_non_string_value_raises(catalog):
    with pytest.raises(TypeError):
        catalog.require("hotjar").plan({"siteId": 12345})
