"""Interface for simple persistent key-value storage.

Used to keep the GitHub access token between runs without the client knowing
whether it lives in a file, the environment, or memory.
"""

import abc
from typing import Optional


class KeyValueStore(abc.ABC):
    """Abstract Base Class for string key-value persistence."""

    @abc.abstractmethod
    def get(self, key: str) -> Optional[str]:
        """Returns the stored value, or None if absent."""
        pass

    @abc.abstractmethod
    def set(self, key: str, value: str) -> None:
        """Stores a value under key, replacing any previous value."""
        pass

    @abc.abstractmethod
    def remove(self, key: str) -> None:
        """Removes key if present."""
        pass
