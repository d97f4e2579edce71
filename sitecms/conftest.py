from typing import Optional

import pytest
from fastapi.testclient import TestClient

from .apps.catalog import build_default_catalog
from .auth.tokens import create_access_token
from .config import Settings
from .exceptions import StoreUnavailableError
from .main import create_app
from .services.kv_store import MemoryStore


class BrokenStore:
    """Store whose reads and/or writes fail like an unreachable backend."""

    def __init__(self, doc: Optional[dict] = None, *, fail_read: bool = False) -> None:
        self.doc = doc
        self.fail_read = fail_read
        self.writes = 0

    def read(self, name):
        if self.fail_read:
            raise StoreUnavailableError(name, "connection refused", operation="read")
        return self.doc

    def write(self, name, value):
        self.writes += 1
        raise StoreUnavailableError(name, "disk full", operation="write")


@pytest.fixture
def settings(tmp_path) -> Settings:
    site = tmp_path / "site"
    site.mkdir()
    return Settings(
        data_dir=str(tmp_path / "data"),
        site_root=str(site),
        jwt_secret_key="test-secret",
        track_forward=False,
        mixpanel_token="",
        google_analytics_id="",
        paystack_public_key="",
    )


@pytest.fixture
def catalog():
    return build_default_catalog()


@pytest.fixture
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def client(settings, store, catalog) -> TestClient:
    return TestClient(create_app(settings, store, catalog))


@pytest.fixture
def auth_headers(settings) -> dict[str, str]:
    token = create_access_token("admin", settings, email="admin@example.com")
    return {"Authorization": f"Bearer {token}"}
