"""Key-value stores behind the prefill channel and the admin config."""

from __future__ import annotations

import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)


class KeyValueStore(ABC):
    """Minimal string store with explicit get/set/clear."""

    @abstractmethod
    def get(self, key: str) -> Optional[str]:
        ...

    @abstractmethod
    def set(self, key: str, value: str) -> None:
        ...

    @abstractmethod
    def clear(self, key: str) -> None:
        ...


class InMemoryStore(KeyValueStore):
    """Lives as long as the object. Used for page-lifetime state."""

    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def clear(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStore(KeyValueStore):
    """Durable store backed by a single JSON object on disk."""

    def __init__(self, file_path: Path | str):
        self._path = Path(file_path)

    def _load(self) -> dict[str, str]:
        if not self._path.exists():
            return {}
        try:
            with open(self._path, "r") as f:
                raw = json.load(f)
        except (OSError, ValueError) as e:
            logger.error(f"Could not read config store {self._path}: {e}")
            return {}
        if not isinstance(raw, dict):
            logger.error(f"Config store {self._path} is not a JSON object")
            return {}
        return {str(k): str(v) for k, v in raw.items()}

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._path, "w") as f:
            json.dump(data, f, indent=2)

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._save(data)

    def clear(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._save(data)
