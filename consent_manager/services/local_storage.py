"""
Local key-value storage backing the consent retry queue and the
last-known-consent mirror.

All backends store string values under string keys and expose
``get`` / ``set`` / ``remove``.
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Dict, Optional

import redis

logger = logging.getLogger(__name__)


class LocalStorage:
    """Key-value storage interface."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def remove(self, key: str) -> None:
        raise NotImplementedError


class InMemoryStorage(LocalStorage):
    """Process-local storage, lost on exit."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def set(self, key: str, value: str) -> None:
        self._data[key] = value

    def remove(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileStorage(LocalStorage):
    """
    Storage persisted as a single JSON object on disk.

    Every write rewrites the whole file through a temporary file followed
    by an atomic rename.
    """

    def __init__(self, path: Path):
        self.path = Path(path)

    def _load(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            with open(self.path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            logger.error(f"Corrupt storage file {self.path}, starting empty: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _dump(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=str(self.path.parent), prefix=f'.{self.path.name}.')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2)
            os.replace(tmp_path, self.path)
        except BaseException:
            if os.path.exists(tmp_path):
                os.unlink(tmp_path)
            raise

    def get(self, key: str) -> Optional[str]:
        return self._load().get(key)

    def set(self, key: str, value: str) -> None:
        data = self._load()
        data[key] = value
        self._dump(data)

    def remove(self, key: str) -> None:
        data = self._load()
        if key in data:
            del data[key]
            self._dump(data)


class RedisStorage(LocalStorage):
    """Storage kept in Redis, for deployments sharing one queue between processes."""

    def __init__(self, client, key_prefix: str = 'consent_manager:'):
        """
        Args:
            client: redis.Redis client created with ``decode_responses=True``
            key_prefix: Prefix applied to every key
        """
        self.client = client
        self.key_prefix = key_prefix

    @classmethod
    def from_url(cls, url: str, key_prefix: str = 'consent_manager:') -> "RedisStorage":
        return cls(redis.Redis.from_url(url, decode_responses=True), key_prefix)

    def _key(self, key: str) -> str:
        return f"{self.key_prefix}{key}"

    def get(self, key: str) -> Optional[str]:
        value = self.client.get(self._key(key))
        if isinstance(value, bytes):
            return value.decode('utf-8')
        return value

    def set(self, key: str, value: str) -> None:
        self.client.set(self._key(key), value)

    def remove(self, key: str) -> None:
        self.client.delete(self._key(key))


def create_storage(delivery_config) -> LocalStorage:
    """
    Create the storage backend selected by a ``DeliveryConfig``.

    Args:
        delivery_config: Delivery configuration

    Returns:
        LocalStorage instance
    """
    backend = delivery_config.storage_backend
    if backend == 'memory':
        return InMemoryStorage()
    if backend == 'redis':
        if not delivery_config.redis_url:
            raise ValueError("redis_url is required for the redis storage backend")
        logger.info("Using Redis consent storage")
        return RedisStorage.from_url(delivery_config.redis_url)
    logger.info(f"Using JSON file consent storage at {delivery_config.storage_path}")
    return JsonFileStorage(delivery_config.storage_path)
