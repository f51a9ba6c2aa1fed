"""Key-value stores for monitor configurations.

Values are JSON-compatible (dicts, lists, strings). The monitor engine only
needs ``get``/``set``; none of the backends offers transactions.
"""

from __future__ import annotations

import copy
import json
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import psycopg2
import psycopg2.extras
import redis

from realty_agent.config import Settings


MONITORS_LIST_KEY = "monitors-list"


class KeyValueStore:
    def get(self, key: str) -> Optional[Any]:
        raise NotImplementedError

    def set(self, key: str, value: Any) -> None:
        raise NotImplementedError


class MemoryStore(KeyValueStore):
    """In-process store; values are deep-copied so callers never share state."""

    def __init__(self, initial: Optional[Dict[str, Any]] = None) -> None:
        self._data: Dict[str, Any] = copy.deepcopy(initial or {})

    def get(self, key: str) -> Optional[Any]:
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)


class RedisStore(KeyValueStore):
    def __init__(self, url: str, namespace: str = "real-estate-monitors") -> None:
        self.namespace = namespace
        self._redis = redis.Redis.from_url(url)

    def _key(self, key: str) -> str:
        return f"{self.namespace}:{key}"

    def get(self, key: str) -> Optional[Any]:
        val = self._redis.get(self._key(key))
        if val is None:
            return None
        if isinstance(val, (bytes, bytearray)):
            val = val.decode("utf-8")
        return json.loads(val)

    def set(self, key: str, value: Any) -> None:
        self._redis.set(self._key(key), json.dumps(value))


class PostgresStore(KeyValueStore):
    """One ``kv_store`` row per key, namespaced, with a JSONB value."""

    def __init__(self, db_url: str, namespace: str = "real-estate-monitors") -> None:
        self.db_url = db_url
        self.namespace = namespace

    @contextmanager
    def connect(self) -> Iterator[Any]:
        conn = psycopg2.connect(self.db_url)
        try:
            yield conn
        finally:
            conn.close()

    def init_schema(self) -> None:
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                      namespace TEXT NOT NULL,
                      key TEXT NOT NULL,
                      value JSONB,
                      updated_at TIMESTAMPTZ NOT NULL DEFAULT now(),
                      PRIMARY KEY (namespace, key)
                    );
                    """
                )
            conn.commit()

    def get(self, key: str) -> Optional[Any]:
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    "SELECT value FROM kv_store WHERE namespace=%s AND key=%s",
                    (self.namespace, key),
                )
                row = cur.fetchone()
        return row[0] if row else None

    def set(self, key: str, value: Any) -> None:
        with self.connect() as conn:
            with conn.cursor() as cur:
                cur.execute(
                    """
                    INSERT INTO kv_store (namespace, key, value)
                    VALUES (%s, %s, %s)
                    ON CONFLICT (namespace, key) DO UPDATE SET
                      value = EXCLUDED.value,
                      updated_at = now()
                    """,
                    (self.namespace, key, psycopg2.extras.Json(value)),
                )
            conn.commit()


def get_store(settings: Optional[Settings] = None) -> KeyValueStore:
    """Pick a backend from configuration: Redis, then Postgres, then memory."""
    cfg = settings or Settings.from_env()
    if cfg.redis_url:
        return RedisStore(cfg.redis_url, namespace=cfg.store_namespace)
    if cfg.db_url:
        store = PostgresStore(cfg.db_url, namespace=cfg.store_namespace)
        store.init_schema()
        return store
    return MemoryStore()
