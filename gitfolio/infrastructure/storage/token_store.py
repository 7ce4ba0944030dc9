"""Access-token persistence on top of the KeyValueStore interface.

Storage failures never break the client: they are logged and the operation
degrades to a no-op (or to "no token" for reads).
"""

import logging
import os
from pathlib import Path
from typing import Dict, Optional

import yaml

from gitfolio.domain.interfaces.key_value_store import KeyValueStore
from gitfolio.domain.models.common import AccessToken

logger = logging.getLogger(__name__)

TOKEN_STORAGE_KEY = "github-token"
DEFAULT_CREDENTIALS_FILE = Path.home() / ".gitfolio" / "credentials.yaml"


class InMemoryKeyValueStore(KeyValueStore):
    """Process-local store, mainly for tests and ephemeral sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._values: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._values.get(key)

    def set(self, key: str, value: str) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)


class YamlFileKeyValueStore(KeyValueStore):
    """Stores values in a small YAML mapping on disk (owner read/write only)."""

    def __init__(self, path: Path = DEFAULT_CREDENTIALS_FILE):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        with open(self.path, 'r', encoding='utf-8') as f:
            data = yaml.safe_load(f)
        if data is None:
            return {}
        if not isinstance(data, dict):
            raise ValueError(f"{self.path} does not contain a mapping")
        return {str(k): str(v) for k, v in data.items() if v is not None}

    def _save(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = self.path.with_suffix('.tmp')
        with open(temp_path, 'w', encoding='utf-8') as f:
            yaml.safe_dump(data, f, default_flow_style=False)
        os.chmod(temp_path, 0o600)
        os.replace(temp_path, self.path)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)


class TokenStore:
    """Reads and writes the GitHub token, logging and continuing on storage failure."""

    def __init__(self, store: KeyValueStore, key: str = TOKEN_STORAGE_KEY):
        self.store = store
        self.key = key

    def get(self) -> Optional[AccessToken]:
        try:
            value = self.store.get(self.key)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to load GitHub token from storage: {e}")
            return None
        return AccessToken(value) if value else None

    def set(self, token: str) -> None:
        try:
            self.store.set(self.key, token)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to save GitHub token to storage: {e}")

    def remove(self) -> None:
        try:
            self.store.remove(self.key)
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning(f"Failed to remove GitHub token from storage: {e}")
