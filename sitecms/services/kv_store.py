"""
Key-value store for JSON documents (apps-config, settings, ...).

JsonFileStore keeps one <name>.json file per key under a data directory. Writes go
through a temp file and os.replace so readers never see a half-written document.
MemoryStore keeps documents in a dict (tests, ephemeral deployments).
"""
import copy
import json
import logging
import os
import re
import tempfile
from pathlib import Path
from typing import Any, Optional, Protocol

from ..exceptions import StoreUnavailableError

logger = logging.getLogger(__name__)

_NAME_RE = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_.-]*$")


class KeyValueStore(Protocol):
    """Collaborator interface: read/write whole JSON documents by name."""

    def read(self, name: str) -> Optional[Any]:
        """Return the stored document, or None when it does not exist."""
        ...

    def write(self, name: str, value: Any) -> None:
        """Replace the stored document."""
        ...


def _check_name(name: str) -> str:
    if not _NAME_RE.match(name) or ".." in name:
        raise ValueError(f"Invalid document name: {name!r}")
    return name


class JsonFileStore:
    """JSON documents stored as files under data_dir."""

    def __init__(self, data_dir: str | Path) -> None:
        self.data_dir = Path(data_dir)

    def path_for(self, name: str) -> Path:
        return self.data_dir / f"{_check_name(name)}.json"

    def read(self, name: str) -> Optional[Any]:
        path = self.path_for(name)
        try:
            with open(path, "r", encoding="utf-8") as f:
                raw = f.read()
        except FileNotFoundError:
            return None
        except OSError as e:
            logger.error("Failed to read %s: %s", path, e)
            raise StoreUnavailableError(name, str(e), operation="read") from e
        if not raw.strip():
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            logger.error("Corrupt JSON document %s: %s", path, e)
            raise StoreUnavailableError(name, f"invalid JSON: {e}", operation="read") from e

    def write(self, name: str, value: Any) -> None:
        path = self.path_for(name)
        tmp_name = None
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=self.data_dir, prefix=f".{name}.", suffix=".tmp"
            )
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(value, f, indent=2, ensure_ascii=False)
            os.replace(tmp_name, path)
            tmp_name = None
        except (OSError, TypeError, ValueError) as e:
            logger.error("Failed to write %s: %s", path, e)
            raise StoreUnavailableError(name, str(e), operation="write") from e
        finally:
            if tmp_name is not None:
                try:
                    os.unlink(tmp_name)
                except OSError:
                    pass


class MemoryStore:
    """In-process store. Values are deep-copied in and out, like a real round trip."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._docs: dict[str, Any] = copy.deepcopy(initial) if initial else {}

    def read(self, name: str) -> Optional[Any]:
        _check_name(name)
        if name not in self._docs:
            return None
        return copy.deepcopy(self._docs[name])

    def write(self, name: str, value: Any) -> None:
        _check_name(name)
        self._docs[name] = copy.deepcopy(value)
