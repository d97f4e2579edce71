"""
AppsConfigStore: read/modify/write of the single apps-config document.

The document is always read and written whole. There is no version token, so two
concurrent admin edits race and the later write wins.
"""
import logging
from typing import Any

from pydantic import BaseModel, Field, ValidationError

from ..exceptions import StoreUnavailableError
from ..services.kv_store import KeyValueStore

logger = logging.getLogger(__name__)

APPS_CONFIG_NAME = "apps-config"


class AppsConfig(BaseModel):
    """Which apps are enabled (with their field values) and which were turned off."""

    enabled: dict[str, dict[str, Any]] = Field(default_factory=dict)
    disabled: list[str] = Field(default_factory=list)

    def enable(self, app_id: str, config: dict[str, Any]) -> None:
        self.enabled[app_id] = dict(config)
        self.disabled = [i for i in self.disabled if i != app_id]

    def disable(self, app_id: str) -> None:
        self.enabled.pop(app_id, None)
        if app_id not in self.disabled:
            self.disabled.append(app_id)

    def merge(self, app_id: str, partial: dict[str, Any]) -> None:
        self.enabled[app_id] = {**self.enabled[app_id], **partial}


class AppsConfigStore:
    """Persists AppsConfig through a key-value store."""

    def __init__(self, store: KeyValueStore, /, *, name: str = APPS_CONFIG_NAME) -> None:
        self.store = store
        self.name = name

    def read(self) -> AppsConfig:
        """Current config; on first access an empty default is returned and stored when possible.

        Raises:
            StoreUnavailableError: the document cannot be read or has an invalid shape.
        """
        raw = self.store.read(self.name)
        if raw is None:
            config = AppsConfig()
            # Concurrent first reads may both write; the content is identical
            try:
                self.write(config)
            except StoreUnavailableError as e:
                logger.warning("Could not initialize %s document, using defaults: %s", self.name, e.cause)
            else:
                logger.info("Initialized empty %s document", self.name)
            return config
        try:
            return AppsConfig.model_validate(raw)
        except ValidationError as e:
            logger.error("Invalid %s document: %s", self.name, e)
            raise StoreUnavailableError(self.name, "invalid document", operation="read") from e

    def write(self, config: AppsConfig) -> None:
        """Replace the stored document (last writer wins)."""
        self.store.write(self.name, config.model_dump(mode="json"))
