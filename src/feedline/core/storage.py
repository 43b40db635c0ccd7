"""
Durable key-value persistence for the authentication token
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional, Protocol

logger = logging.getLogger(__name__)

TOKEN_KEY = "access token"


class KeyValueStore(Protocol):
    """Scalar string store keyed by name"""

    def get(self, key: str) -> Optional[str]:
        ...

    def set(self, key: str, value: Optional[str]) -> None:
        ...


class MemoryStore:
    """Process-local store, lost on exit"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        if value is None:
            self._values.pop(key, None)
        else:
            self._values[key] = value


class JSONFileStore:
    """
    Store backed by a single JSON object on disk.

    Every ``set`` rewrites the file through a temporary sibling and an atomic
    rename, so a crash never leaves a half-written file behind.
    """

    def __init__(self, path: Path):
        self.path = Path(path).expanduser()

    def _read(self) -> Dict[str, str]:
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return {}
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            logger.warning(f"Ignoring unreadable store {self.path}: {e}")
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Ignoring store {self.path}: expected a JSON object")
            return {}
        return {k: v for k, v in data.items() if isinstance(v, str)}

    def get(self, key: str) -> Optional[str]:
        return self._read().get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        data = self._read()
        if value is None:
            data.pop(key, None)
        else:
            data[key] = value

        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, indent=2, sort_keys=True)
                f.flush()
                os.fsync(f.fileno())
            os.replace(tmp_name, self.path)
        except OSError:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        logger.debug(f"Persisted '{key}' to {self.path}")


class TokenStore:
    """The authentication token under a single fixed key"""

    def __init__(self, store: KeyValueStore, key: str = TOKEN_KEY):
        self.store = store
        self.key = key

    def get(self) -> Optional[str]:
        return self.store.get(self.key)

    def set(self, value: Optional[str]) -> None:
        self.store.set(self.key, value)
