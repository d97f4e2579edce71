import json

import pytest

from .apps.store import APPS_CONFIG_NAME, AppsConfig, AppsConfigStore
from .exceptions import StoreUnavailableError
from .services.kv_store import JsonFileStore, MemoryStore
from .conftest import BrokenStore


def test_json_store_round_trip(tmp_path):
    store = JsonFileStore(tmp_path / "data")
    doc = {"enabled": {"tawkto": {"propertyId": "abc123"}}, "disabled": ["drift"]}
    store.write("apps-config", doc)
    assert store.read("apps-config") == doc
    assert json.loads((tmp_path / "data" / "apps-config.json").read_text()) == doc


def test_json_store_missing_document(tmp_path):
    assert JsonFileStore(tmp_path).read("apps-config") is None


def test_json_store_corrupt_document(tmp_path):
    (tmp_path / "apps-config.json").write_text("{not json")
    with pytest.raises(StoreUnavailableError) as exc:
        JsonFileStore(tmp_path).read("apps-config")
    assert exc.value.operation == "read"
    assert exc.value.message == "Failed to load configuration"


def test_json_store_failed_write_leaves_no_temp_files(tmp_path):
    store = JsonFileStore(tmp_path)
    store.write("apps-config", {"enabled": {}})
    with pytest.raises(StoreUnavailableError) as exc:
        store.write("apps-config", {"bad": object()})
    assert exc.value.message == "Failed to save configuration"
    assert sorted(p.name for p in tmp_path.iterdir()) == ["apps-config.json"]
    assert store.read("apps-config") == {"enabled": {}}


@pytest.mark.parametrize("name", ["../etc/passwd", "", ".hidden", "a/b"])
def test_invalid_document_names(tmp_path, name):
    with pytest.raises(ValueError):
        JsonFileStore(tmp_path).read(name)


def test_memory_store_copies_values():
    store = MemoryStore()
    doc = {"enabled": {"a": {}}}
    store.write("x", doc)
    doc["enabled"]["b"] = {}
    assert store.read("x") == {"enabled": {"a": {}}}


def test_first_read_initializes_default():
    kv = MemoryStore()
    config = AppsConfigStore(kv).read()
    assert config == AppsConfig()
    assert kv.read(APPS_CONFIG_NAME) == {"enabled": {}, "disabled": []}


def test_first_read_on_read_only_store_returns_default():
    kv = BrokenStore(None)
    assert AppsConfigStore(kv).read() == AppsConfig()
    assert kv.writes == 1


def test_unreadable_store_still_raises():
    with pytest.raises(StoreUnavailableError) as exc:
        AppsConfigStore(BrokenStore(fail_read=True)).read()
    assert exc.value.operation == "read"


def test_invalid_shape_is_unavailable():
    kv = MemoryStore({APPS_CONFIG_NAME: {"enabled": ["not", "a", "map"]}})
    with pytest.raises(StoreUnavailableError):
        AppsConfigStore(kv).read()


def test_enable_and_disable_are_idempotent():
    config = AppsConfig()
    config.enable("drift", {"appId": "d1"})
    config.enable("drift", {"appId": "d1"})
    assert config.enabled == {"drift": {"appId": "d1"}}

    config.disable("drift")
    config.disable("drift")
    assert config.enabled == {}
    assert config.disabled == ["drift"]

    config.enable("drift", {})
    assert config.disabled == []
    assert config.enabled == {"drift": {}}


def test_merge_is_shallow():
    config = AppsConfig(enabled={"klaviyo": {"publicKey": "old", "accountId": "x"}})
    config.merge("klaviyo", {"publicKey": "new"})
    assert config.enabled["klaviyo"] == {"publicKey": "new", "accountId": "x"}


def test_apps_config_round_trip(tmp_path):
    store = AppsConfigStore(JsonFileStore(tmp_path))
    config = AppsConfig(enabled={"paystack": {"publicKey": "pk", "secretKey": "sk"}}, disabled=["hotjar"])
    store.write(config)
    assert store.read() == config
