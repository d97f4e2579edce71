"""
Built-in third-party integrations.

Each builder returns None when a required value is missing, so a half-configured app
renders nothing instead of a broken tag.
"""
import html
from collections.abc import Mapping
from typing import Optional
from urllib.parse import quote

from .definitions import (
    AppDefinition,
    Behavior,
    ConfigField,
    FieldType,
    InjectionPlan,
    ScriptTag,
    js_literal,
)

COOKIECONSENT_BASE = "https://cdn.jsdelivr.net/gh/orestbida/cookieconsent@3.0.1/dist"

# Forms that receive a Turnstile widget when Cloudflare is enabled
TURNSTILE_FORMS = {"loginForm": "turnstile-login", "signupForm": "turnstile-signup"}


def _value(config: Mapping[str, str], name: str) -> str:
    """Stripped string value; raises TypeError for non-string input."""
    raw = config.get(name)
    if raw is None:
        return ""
    if not isinstance(raw, str):
        raise TypeError(f"{name} must be a string, got {type(raw).__name__}")
    return raw.strip()


def _google_analytics(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    ga_id = _value(config, "gaId")
    if not ga_id:
        return None
    return InjectionPlan(
        scripts=[
            ScriptTag(
                src=f"https://www.googletagmanager.com/gtag/js?id={quote(ga_id)}",
                is_async=True,
            )
        ],
        inline=[
            "window.dataLayer = window.dataLayer || [];\n"
            "function gtag(){dataLayer.push(arguments);}\n"
            "window.gtag = gtag;\n"
            "gtag('js', new Date());\n"
            f"gtag('config', {js_literal(ga_id)});"
        ],
    )


KLAVIYO_PROXY = (
    '!function(){if(!window.klaviyo){window._klOnsite=window._klOnsite||[];try{window.klaviyo=new Proxy({},'
    '{get:function(n,i){return"push"===i?function(){var n;(n=window._klOnsite).push.apply(n,arguments)}'
    ':function(){for(var n=arguments.length,o=new Array(n),w=0;w<n;w++)o[w]=arguments[w];var t="function"'
    '==typeof o[o.length-1]?o.pop():void 0,e=new Promise((function(n){window._klOnsite.push([i].concat(o,'
    '[function(i){t&&t(i),n(i)}]))}));return e}}})}catch(e){window.klaviyo=window.klaviyo||[],'
    'window.klaviyo.push=function(){var n;(n=window._klOnsite).push.apply(n,arguments)}}}}();'
)


def _klaviyo(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    company = _value(config, "publicKey")
    if not company:
        return None
    account = _value(config, "accountId")
    src = (
        f"https://static.klaviyo.com/onsite/js/{quote(company)}/klaviyo.js"
        f"?company_id={quote(company)}"
    )
    if account:
        src += f"&account_id={quote(account)}"
    return InjectionPlan(
        scripts=[ScriptTag(src=src, is_async=True, type="text/javascript")],
        inline=[KLAVIYO_PROXY],
    )


def _paystack(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    public_key = _value(config, "publicKey")
    if not public_key:
        return None
    return InjectionPlan(
        globals={"paystackPublicKey": public_key},
        scripts=[
            ScriptTag(
                src="https://js.paystack.co/v1/inline.js",
                on_load="window.paystack = window.PaystackPop || {};",
            )
        ],
    )


def _cloudflare(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    site_key = _value(config, "siteKey")
    if not site_key:
        return None
    return InjectionPlan(
        globals={"cloudflareEnable": True, "cloudflare": {"siteKey": site_key}},
        scripts=[
            ScriptTag(
                src="https://challenges.cloudflare.com/turnstile/v0/api.js",
                is_async=True,
                defer=True,
            )
        ],
        behaviors=[
            Behavior(
                name="turnstile-widgets",
                options={"siteKey": site_key, "forms": TURNSTILE_FORMS},
            )
        ],
    )


def _cookie_consent(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    position = _value(config, "position") or "bottom"
    if position not in ("bottom", "top"):
        raise ValueError(f"invalid banner position: {position!r}")
    options = {
        "guiOptions": {"consentModal": {"position": f"{position} center"}},
        "categories": {
            "necessary": {"enabled": True, "readOnly": True},
            "analytics": {"enabled": False, "readOnly": False},
            "marketing": {"enabled": False, "readOnly": False},
        },
        "language": {
            "default": "en",
            "translations": {
                "en": {
                    "consentModal": {
                        "title": "We use cookies",
                        "description": (
                            "This website uses cookies to enhance user experience "
                            "and analyze site traffic."
                        ),
                        "acceptAllBtn": "Accept all",
                        "acceptNecessaryBtn": "Reject all",
                        "showPreferencesBtn": "Manage preferences",
                    },
                    "preferencesModal": {
                        "title": "Manage cookie preferences",
                        "acceptAllBtn": "Accept all",
                        "acceptNecessaryBtn": "Reject all",
                        "savePreferencesBtn": "Save preferences",
                    },
                }
            },
        },
    }
    privacy_url = _value(config, "privacyUrl")
    if privacy_url:
        options["language"]["translations"]["en"]["consentModal"]["footer"] = (
            f'<a href="{html.escape(privacy_url, quote=True)}">Privacy Policy</a>'
        )
    color = _value(config, "color") or "#1e293b"
    return InjectionPlan(
        globals={"cookieConsentOptions": options},
        stylesheets=[f"{COOKIECONSENT_BASE}/cookieconsent.css"],
        scripts=[
            ScriptTag(
                src=f"{COOKIECONSENT_BASE}/cookieconsent.umd.js",
                on_load=(
                    "if (window.CookieConsent) "
                    "window.CookieConsent.run(window.cookieConsentOptions);"
                ),
            )
        ],
        inline=[
            "document.documentElement.style.setProperty("
            f"'--cc-bg', {js_literal(color)});"
        ],
    )


def _drift(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    app_id = _value(config, "appId")
    if not app_id:
        return None
    return InjectionPlan(
        inline=[
            "!function() {\n"
            "  var t = window.driftt = window.drift = window.drift || [];\n"
            "  if (t.init || t.invoked) return;\n"
            "  t.invoked = !0;\n"
            "  t.methods = ['identify', 'config', 'track', 'reset', 'debug', 'show', 'ping', 'page', 'hide', 'off', 'on'];\n"
            "  t.factory = function(e) { return function() { var n = Array.prototype.slice.call(arguments); n.unshift(e); t.push(n); return t; }; };\n"
            "  t.methods.forEach(function(e) { t[e] = t.factory(e); });\n"
            "  t.load = function(e) {\n"
            "    var n = !1, o = document.createElement('script');\n"
            "    o.async = !0;\n"
            "    o.src = 'https://js.driftt.com/include/' + e + '/platform.js';\n"
            "    o.onload = function() { if (!n) { n = !0; t.identify(); t.config(); t.show(); } };\n"
            "    o.onerror = function() { n = !0; };\n"
            "    document.body.appendChild(o);\n"
            "  };\n"
            "  if (document.readyState === 'loading') document.addEventListener('DOMContentLoaded', function() {\n"
            f"    t.load({js_literal(app_id)});\n"
            "  });\n"
            f"  else t.load({js_literal(app_id)});\n"
            "}();"
        ],
    )


def _mixpanel(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    token = _value(config, "token")
    if not token:
        return None
    return InjectionPlan(
        globals={"mixpanelToken": token},
        scripts=[
            ScriptTag(
                src="https://cdn.mxpnl.com/libs/mixpanel-latest.min.js",
                on_load=(
                    "if (window.mixpanel && typeof window.mixpanel.init === 'function') {"
                    " window.mixpanel.init(window.mixpanelToken,"
                    " {track_pageview: true, persistence: 'localStorage'});"
                    " window.mixpanel.track('Page View'); }"
                ),
                # Blocked CDN (ad blockers): route the page view through our own backend
                on_error=(
                    "if (window.trackEvent) "
                    "window.trackEvent('Page View', {source: 'server-side-fallback'});"
                ),
            )
        ],
    )


def _freshchat(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    token = _value(config, "token")
    if not token:
        return None
    return InjectionPlan(
        globals={"freshchatConfig": {"token": token, "host": "https://wchat.freshchat.com"}},
        scripts=[
            ScriptTag(
                src="https://assets.freshchat.com/js/widget.js",
                on_load=(
                    "if (window.fcWidget && typeof window.fcWidget.init === 'function') "
                    "window.fcWidget.init(window.freshchatConfig);"
                ),
            )
        ],
    )


def _hotjar(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    site_id = _value(config, "siteId")
    if not site_id:
        return None
    return InjectionPlan(
        scripts=[
            ScriptTag(
                src=f"https://script.hotjar.com/modules.js?hjid={quote(site_id)}&hjsv=6",
                is_async=True,
            )
        ],
    )


SEGMENT_METHODS = [
    "trackSubmit", "trackClick", "trackLink", "trackForm", "pageview", "identify",
    "reset", "group", "track", "ready", "alias", "debug", "page", "once", "off", "on",
    "addSourceMiddleware", "addIntegrationMiddleware", "setAnonymousId",
    "addDestinationMiddleware",
]


def _segment(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    write_key = _value(config, "writeKey")
    if not write_key:
        return None
    return InjectionPlan(
        inline=[
            "!function(){var analytics=window.analytics=window.analytics||[];"
            "if(analytics.initialize)return;"
            "if(analytics.invoked){window.console&&console.error&&console.error('Segment snippet included twice.');return;}"
            f"analytics.invoked=!0;analytics.methods={js_literal(SEGMENT_METHODS)};"
            "analytics.factory=function(e){return function(){var t=Array.prototype.slice.call(arguments);"
            "t.unshift(e);analytics.push(t);return analytics}};"
            "for(var e=0;e<analytics.methods.length;e++){var t=analytics.methods[e];analytics[t]=analytics.factory(t)}"
            "analytics.load=function(e,t){var n=document.createElement('script');n.type='text/javascript';n.async=!0;"
            "n.src='https://cdn.segment.com/analytics.js/v1/'+e+'/analytics.min.js';"
            "var a=document.getElementsByTagName('script')[0];a.parentNode.insertBefore(n,a);analytics._loadOptions=t};"
            f"analytics._writeKey={js_literal(write_key)};analytics.SNIPPET_VERSION='4.15.3';"
            f"analytics.load({js_literal(write_key)});analytics.page()}}();"
        ],
    )


def _typeform(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    if not _value(config, "scriptUrl"):
        return None
    return InjectionPlan(scripts=[ScriptTag(src="https://embed.typeform.com/embed.js")])


def _intercom(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    app_id = _value(config, "appId")
    if not app_id:
        return None
    widget = f"https://widget.intercom.io/widget/{quote(app_id)}"
    return InjectionPlan(
        globals={"intercomSettings": {"api_base": "https://api-iam.intercom.io", "app_id": app_id}},
        inline=[
            "(function(){var w=window;var ic=w.Intercom;if(typeof ic==='function'){"
            "ic('reattach_activator');ic('update',w.intercomSettings);}else{var d=document;"
            "var i=function(){i.c(arguments);};i.q=[];i.c=function(args){i.q.push(args);};w.Intercom=i;"
            "function l(){var s=d.createElement('script');s.type='text/javascript';s.async=true;"
            f"s.src={js_literal(widget)};"
            "var x=d.getElementsByTagName('script')[0];x.parentNode.insertBefore(s,x);}"
            "if(document.readyState==='loading'){d.addEventListener('DOMContentLoaded',l);}else{l();}}})();"
        ],
    )


def _tawkto(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    property_id = _value(config, "propertyId")
    if not property_id:
        return None
    # Accept either "propertyId" or a combined "propertyId/widgetId"
    if "/" not in property_id:
        property_id += "/default"
    return InjectionPlan(
        globals={"Tawk_API": {}},
        scripts=[
            ScriptTag(
                src="https://embed.tawk.to/" + "/".join(quote(p) for p in property_id.split("/")),
                is_async=True,
                type="text/javascript",
                charset="UTF-8",
            )
        ],
        inline=["window.Tawk_LoadStart = new Date();"],
    )


def _privy(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    site_id = _value(config, "siteId")
    if not site_id:
        return None
    return InjectionPlan(
        globals={"Privy": {"site_id": site_id}},
        scripts=[ScriptTag(src="https://widget.privy.com/assets/privy.js", is_async=True)],
    )


def _sumo(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    script_url = _value(config, "scriptUrl")
    if not script_url:
        return None
    if not script_url.startswith(("https://", "//")):
        raise ValueError("Sumo script URL must be https")
    return InjectionPlan(scripts=[ScriptTag(src=script_url, is_async=True)])


def _yotpo(config: Mapping[str, str]) -> Optional[InjectionPlan]:
    api_key = _value(config, "apiKey")
    if not api_key:
        return None
    yotpo_config = {"api_key": api_key}
    account_id = _value(config, "accountId")
    if account_id:
        yotpo_config["account_id"] = account_id
    return InjectionPlan(
        globals={"Yotpo": {"config": yotpo_config}},
        scripts=[
            ScriptTag(src="https://cdn.yotpo.com/loader.js", is_async=True, type="text/javascript")
        ],
    )


BUILTIN_APPS: tuple[AppDefinition, ...] = (
    AppDefinition(
        id="googleAnalytics",
        name="Google Analytics",
        category="analytics",
        description="Track visitor traffic and user behavior with Google Analytics",
        icon="📊",
        help_url="https://analytics.google.com/analytics/web/",
        config_fields=[
            ConfigField(name="gaId", label="Google Analytics ID", placeholder="G-XXXXXXXXXX", required=True),
        ],
        build=_google_analytics,
    ),
    AppDefinition(
        id="klaviyo",
        name="Klaviyo Email Marketing",
        category="marketing",
        description="Email marketing and customer automation with Klaviyo",
        icon="📧",
        help_url="https://www.klaviyo.com/",
        config_fields=[
            ConfigField(name="publicKey", label="Public API Key", placeholder="pk_xxx...", required=True),
            ConfigField(name="accountId", label="Account ID", placeholder="Your Klaviyo account ID"),
        ],
        build=_klaviyo,
    ),
    AppDefinition(
        id="paystack",
        name="Paystack Payment Gateway",
        category="payments",
        description="Accept payments with Paystack",
        icon="💳",
        help_url="https://dashboard.paystack.com/",
        config_fields=[
            ConfigField(name="publicKey", label="Paystack Public Key", placeholder="pk_live_...", required=True),
            ConfigField(
                name="secretKey",
                label="Paystack Secret Key",
                type=FieldType.PASSWORD,
                placeholder="sk_live_...",
                required=True,
                admin_only=True,
            ),
        ],
        build=_paystack,
    ),
    AppDefinition(
        id="cloudflare",
        name="Cloudflare Turnstile",
        category="security",
        description="Bot protection and CAPTCHA with Cloudflare Turnstile",
        icon="🔐",
        help_url="https://dash.cloudflare.com/",
        config_fields=[
            ConfigField(name="siteKey", label="Site Key", placeholder="0x...", required=True),
            ConfigField(
                name="secretKey",
                label="Secret Key",
                type=FieldType.PASSWORD,
                placeholder="Your secret key",
                required=True,
                admin_only=True,
            ),
        ],
        build=_cloudflare,
    ),
    AppDefinition(
        id="cookieConsent",
        name="Cookie Consent Manager",
        category="compliance",
        description="GDPR compliant cookie consent banner",
        icon="🍪",
        help_url="https://github.com/orestbida/cookieconsent",
        config_fields=[
            ConfigField(
                name="position",
                label="Banner Position",
                type=FieldType.SELECT,
                options=["bottom", "top"],
                default="bottom",
            ),
            ConfigField(name="color", label="Banner Color", placeholder="#1e293b", default="#1e293b"),
            ConfigField(name="privacyUrl", label="Privacy Policy URL", placeholder="/privacy-policy.html"),
        ],
        build=_cookie_consent,
    ),
    AppDefinition(
        id="drift",
        name="Drift Live Chat",
        category="messaging",
        description="Live chat and conversational marketing with Drift",
        icon="💬",
        help_url="https://app.drift.com/",
        config_fields=[
            ConfigField(name="appId", label="Drift App ID", placeholder="Your Drift App ID", required=True),
        ],
        build=_drift,
    ),
    AppDefinition(
        id="mixpanel",
        name="Mixpanel Analytics",
        category="analytics",
        description="Advanced product analytics and user behavior tracking",
        icon="📈",
        help_url="https://mixpanel.com/",
        config_fields=[
            ConfigField(name="token", label="Mixpanel Token", placeholder="Your Mixpanel token", required=True),
        ],
        build=_mixpanel,
    ),
    AppDefinition(
        id="freshchat",
        name="Freshchat Messaging",
        category="messaging",
        description="Customer messaging and support with Freshchat",
        icon="💭",
        help_url="https://app.freshchat.com/",
        config_fields=[
            ConfigField(name="token", label="Freshchat Token", placeholder="Your Freshchat token", required=True),
        ],
        build=_freshchat,
    ),
    AppDefinition(
        id="hotjar",
        name="Hotjar Analytics",
        category="analytics",
        description="User behavior analytics, heatmaps, and session recordings",
        icon="🔥",
        help_url="https://insights.hotjar.com/",
        config_fields=[
            ConfigField(name="siteId", label="Hotjar Site ID", placeholder="Your site ID", required=True),
        ],
        build=_hotjar,
    ),
    AppDefinition(
        id="segment",
        name="Segment Analytics",
        category="analytics",
        description="Customer data platform for unified analytics",
        icon="🔗",
        help_url="https://segment.com/",
        config_fields=[
            ConfigField(name="writeKey", label="Segment Write Key", placeholder="Your write key", required=True),
        ],
        build=_segment,
    ),
    AppDefinition(
        id="typeform",
        name="Typeform Surveys",
        category="engagement",
        description="Embed surveys and forms with Typeform",
        icon="📋",
        help_url="https://admin.typeform.com/",
        config_fields=[
            ConfigField(
                name="scriptUrl",
                label="Typeform Script URL",
                placeholder="https://embed.typeform.com/...",
                required=True,
            ),
        ],
        build=_typeform,
    ),
    AppDefinition(
        id="intercom",
        name="Intercom Support",
        category="messaging",
        description="Customer support and messaging platform",
        icon="🆘",
        help_url="https://app.intercom.com/",
        config_fields=[
            ConfigField(name="appId", label="Intercom App ID", placeholder="Your Intercom app ID", required=True),
        ],
        build=_intercom,
    ),
    AppDefinition(
        id="tawkto",
        name="tawk.to Live Chat",
        category="messaging",
        description="Embed tawk.to live chat widget",
        icon="💬",
        help_url="https://www.tawk.to",
        config_fields=[
            ConfigField(
                name="propertyId",
                label="tawk.to Property ID",
                placeholder="e.g. 5f12345678901234567890abc",
                required=True,
            ),
        ],
        build=_tawkto,
    ),
    AppDefinition(
        id="privy",
        name="Privy Popups & Emails",
        category="marketing",
        description="Privy popups, banners, and email capture",
        icon="📣",
        help_url="https://www.privy.com",
        config_fields=[
            ConfigField(name="siteId", label="Privy Site ID", placeholder="Privy site id or script key", required=True),
        ],
        build=_privy,
    ),
    AppDefinition(
        id="sumo",
        name="Sumo Popups",
        category="marketing",
        description="Sumo (list building & popups) integration",
        icon="🎯",
        help_url="https://sumo.com",
        config_fields=[
            ConfigField(
                name="scriptUrl",
                label="Sumo Script URL",
                placeholder="e.g. https://load.sumome.com/YOUR_KEY.js",
                required=True,
            ),
        ],
        build=_sumo,
    ),
    AppDefinition(
        id="yotpo",
        name="Yotpo Email & SMS",
        category="marketing",
        description="Email and SMS marketing automation with Yotpo",
        icon="💬",
        help_url="https://www.yotpo.com/",
        config_fields=[
            ConfigField(name="apiKey", label="Yotpo API Key", placeholder="Your Yotpo API key", required=True),
            ConfigField(name="accountId", label="Account ID", placeholder="Your Yotpo Account ID"),
        ],
        build=_yotpo,
    ),
)
