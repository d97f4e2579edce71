from fastapi.testclient import TestClient

from .apps.store import APPS_CONFIG_NAME
from .main import create_app
from .services.kv_store import MemoryStore
from .conftest import BrokenStore


def _enable(client, headers, app_id, config):
    return client.put(
        "/api/apps",
        json={"appId": app_id, "action": "enable", "config": config},
        headers=headers,
    )


def test_list_apps(client):
    resp = client.get("/api/apps")
    assert resp.status_code == 200
    body = resp.json()
    assert len(body["apps"]) == 16
    assert body["config"] == {"enabled": {}, "disabled": []}
    assert all(app["enabled"] is False for app in body["apps"])


def test_get_single_app(client):
    resp = client.get("/api/apps", params={"id": "tawkto"})
    assert resp.status_code == 200
    app = resp.json()["app"]
    assert app["configFields"][0]["name"] == "propertyId"
    assert "build" not in app


def test_get_unknown_app(client):
    resp = client.get("/api/apps", params={"id": "nope"})
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"


def test_registry(client):
    resp = client.get("/api/apps", params={"registry": "true"})
    assert set(resp.json()["apps"]) >= {"paystack", "cloudflare", "tawkto"}


def test_mutations_require_auth(client):
    resp = client.put("/api/apps", json={"appId": "tawkto", "action": "enable", "config": {}})
    assert resp.status_code == 401
    assert resp.headers["www-authenticate"] == "Bearer"
    assert resp.json() == {"error": "Unauthorized", "code": "UNAUTHORIZED"}
    assert client.post("/api/apps", json={"appId": "tawkto", "action": "test", "config": {}}).status_code == 401
    assert client.delete("/api/apps", params={"id": "tawkto"}).status_code == 401


def test_invalid_token_rejected(client):
    resp = client.put(
        "/api/apps",
        json={"appId": "tawkto", "action": "enable", "config": {}},
        headers={"Authorization": "Bearer not-a-jwt"},
    )
    assert resp.status_code == 401


def test_enable_tawkto(client, auth_headers):
    resp = _enable(client, auth_headers, "tawkto", {"propertyId": "abc123"})
    assert resp.status_code == 200
    body = resp.json()
    assert body["success"] is True
    assert body["message"] == "App tawkto enabled"
    assert body["app"]["enabled"] is True

    public = client.get("/api/apps", params={"config": "true"}).json()
    assert public["enabled"]["tawkto"] == {"propertyId": "abc123"}

    scripts = client.get("/api/apps", params={"preview": "true"}).json()["scripts"]
    assert "embed.tawk.to/abc123/default" in scripts


def test_paystack_secret_redacted_for_public(client, auth_headers):
    _enable(client, auth_headers, "paystack", {"publicKey": "pk_x", "secretKey": "sk_y"})

    public = client.get("/api/apps", params={"config": "true"})
    assert public.json()["enabled"]["paystack"] == {"publicKey": "pk_x"}
    assert public.headers["cache-control"].startswith("public")
    assert "authorization" in public.headers["vary"].lower()
    listing = client.get("/api/apps")
    assert "sk_y" not in listing.text
    assert "authorization" in listing.headers["vary"].lower()

    admin = client.get("/api/apps", params={"config": "true"}, headers=auth_headers)
    assert admin.json()["enabled"]["paystack"] == {"publicKey": "pk_x", "secretKey": "sk_y"}
    assert admin.headers["cache-control"] == "private, no-store"
    assert "authorization" in admin.headers["vary"].lower()


def test_read_only_store_still_lists_apps(settings, catalog):
    store = BrokenStore(None)
    client = TestClient(create_app(settings, store, catalog))
    resp = client.get("/api/apps")
    assert resp.status_code == 200
    assert resp.json()["config"] == {"enabled": {}, "disabled": []}
    assert client.get("/api/apps", params={"config": "true"}).status_code == 200
    assert store.writes >= 1


def test_enable_unknown_app_leaves_config_unchanged(settings, catalog, auth_headers):
    doc = {"enabled": {"drift": {"appId": "d"}}, "disabled": []}
    store = MemoryStore({APPS_CONFIG_NAME: doc})
    client = TestClient(create_app(settings, store, catalog))

    resp = _enable(client, auth_headers, "nonexistentApp", {})
    assert resp.status_code == 404
    assert resp.json()["code"] == "NOT_FOUND"
    assert store.read(APPS_CONFIG_NAME) == doc


def test_bad_requests(client, auth_headers):
    resp = client.put("/api/apps", json={"action": "enable"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing appId"

    resp = client.put("/api/apps", json={"appId": "drift", "action": "explode"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Invalid action"

    resp = client.put(
        "/api/apps", json={"appId": "drift", "action": "update", "config": {"appId": "x"}}, headers=auth_headers
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "APP_NOT_ENABLED"


def test_update_and_disable(client, auth_headers):
    _enable(client, auth_headers, "klaviyo", {"publicKey": "old", "accountId": "acc"})
    resp = client.put(
        "/api/apps", json={"appId": "klaviyo", "action": "update", "config": {"publicKey": "new"}}, headers=auth_headers
    )
    assert resp.json()["message"] == "App klaviyo updated"
    config = client.get("/api/apps", params={"config": "true"}, headers=auth_headers).json()
    assert config["enabled"]["klaviyo"] == {"publicKey": "new", "accountId": "acc"}

    resp = client.put("/api/apps", json={"appId": "klaviyo", "action": "disable"}, headers=auth_headers)
    assert resp.json()["message"] == "App klaviyo disabled"
    assert resp.json()["app"]["enabled"] is False
    config = client.get("/api/apps", params={"config": "true"}, headers=auth_headers).json()
    assert config == {"enabled": {}, "disabled": ["klaviyo"]}


def test_delete(client, auth_headers):
    _enable(client, auth_headers, "drift", {"appId": "d"})
    resp = client.delete("/api/apps", params={"id": "drift"}, headers=auth_headers)
    assert resp.json() == {"success": True, "message": "App drift deleted"}
    assert client.delete("/api/apps", params={"id": "nope"}, headers=auth_headers).status_code == 404
    assert client.delete("/api/apps", headers=auth_headers).status_code == 400


def test_config_test_action(client, auth_headers):
    resp = client.post(
        "/api/apps",
        json={"appId": "paystack", "action": "test", "config": {"publicKey": "pk"}},
        headers=auth_headers,
    )
    assert resp.status_code == 400
    assert resp.json()["code"] == "VALIDATION_FAILED"
    assert resp.json()["fields"] == ["secretKey"]

    resp = client.post(
        "/api/apps",
        json={"appId": "paystack", "action": "test", "config": {"publicKey": "pk", "secretKey": "sk"}},
        headers=auth_headers,
    )
    assert resp.status_code == 200
    assert resp.json()["message"] == "Paystack Payment Gateway configuration is valid"

    resp = client.post("/api/apps", json={"appId": "paystack", "action": "test"}, headers=auth_headers)
    assert resp.status_code == 400
    assert resp.json()["error"] == "Missing config"

    # advisory only
    assert client.get("/api/apps", params={"config": "true"}).json()["enabled"] == {}


def test_store_write_failure_is_reported(settings, catalog, auth_headers):
    client = TestClient(create_app(settings, BrokenStore({"enabled": {}, "disabled": []}), catalog))
    resp = _enable(client, auth_headers, "drift", {"appId": "d"})
    assert resp.status_code == 500
    body = resp.json()
    assert body["error"] == "Failed to save configuration"
    assert body["code"] == "STORE_UNAVAILABLE"
    assert "success" not in body


def test_bootstrap_endpoint(client, auth_headers):
    _enable(client, auth_headers, "cloudflare", {"siteKey": "0xSITE", "secretKey": "0xSECRET"})
    resp = client.get("/api/apps/bootstrap")
    assert resp.status_code == 200
    assert "0xSECRET" not in resp.text
    assert resp.json()["apps"]["cloudflare"]["behaviors"][0]["options"]["siteKey"] == "0xSITE"


def test_preview_page(client, auth_headers):
    _enable(client, auth_headers, "hotjar", {"siteId": "42"})
    resp = client.get("/api/apps/preview")
    assert resp.status_code == 200
    assert resp.headers["content-type"].startswith("text/html")
    assert "hjid=42" in resp.text
    assert "&lt;script" in resp.text


def test_api_root_and_health(client):
    assert client.get("/api/health").json() == {"status": "healthy"}
    assert client.get("/api").json()["status"] == "operational"


def test_entry_module_carries_license():
    from . import main

    assert "MIT License" in main.__doc__
