from __future__ import annotations

from typing import Any, Dict, Optional

import psycopg2
import pytest
import redis

from realty_agent.config import Settings
from realty_agent.repositories import MemoryStore, PostgresStore, RedisStore, get_store


class FakeRedis:
    def __init__(self) -> None:
        self.data: Dict[str, bytes] = {}

    def get(self, key: str) -> Optional[bytes]:
        return self.data.get(key)

    def set(self, key: str, value: Any) -> None:
        self.data[key] = value.encode("utf-8") if isinstance(value, str) else value


def test_memory_store_copies_values() -> None:
    store = MemoryStore()
    value = {"ids": ["a"]}
    store.set("k", value)
    value["ids"].append("b")

    got = store.get("k")
    got["ids"].append("c")

    assert store.get("k") == {"ids": ["a"]}
    assert store.get("missing") is None


def test_redis_store_round_trips_json(monkeypatch: pytest.MonkeyPatch) -> None:
    fake = FakeRedis()
    monkeypatch.setattr(redis.Redis, "from_url", lambda url: fake)

    store = RedisStore("redis://localhost:6379/0", namespace="test")
    store.set("monitors-list", ["m1", "m2"])

    assert store.get("monitors-list") == ["m1", "m2"]
    assert "test:monitors-list" in fake.data
    assert store.get("nope") is None


def test_get_store_picks_backend(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(redis.Redis, "from_url", lambda url: FakeRedis())

    assert isinstance(get_store(Settings()), MemoryStore)
    assert isinstance(get_store(Settings(redis_url="redis://localhost:6379/0")), RedisStore)


class FakeCursor:
    def __init__(self, conn: "FakeConnection") -> None:
        self.conn = conn
        self.result: Optional[tuple] = None

    def __enter__(self) -> "FakeCursor":
        return self

    def __exit__(self, *exc: Any) -> None:
        return None

    def execute(self, sql: str, params: tuple = ()) -> None:
        self.conn.statements.append(" ".join(sql.split()))
        if sql.lstrip().startswith("SELECT"):
            row = self.conn.rows.get(params)
            self.result = (row,) if row is not None else None
        elif sql.lstrip().startswith("INSERT"):
            namespace, key, value = params
            self.conn.rows[(namespace, key)] = value.adapted

    def fetchone(self) -> Optional[tuple]:
        return self.result


class FakeConnection:
    def __init__(self, rows: Dict[tuple, Any]) -> None:
        self.rows = rows
        self.statements: list = []
        self.commits = 0
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def commit(self) -> None:
        self.commits += 1

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def pg_connections(monkeypatch: pytest.MonkeyPatch) -> list:
    rows: Dict[tuple, Any] = {}
    opened: list = []

    def fake_connect(dsn: str) -> FakeConnection:
        conn = FakeConnection(rows)
        opened.append(conn)
        return conn

    monkeypatch.setattr(psycopg2, "connect", fake_connect)
    return opened


def test_postgres_store_round_trips_json(pg_connections: list) -> None:
    store = PostgresStore("postgresql://localhost/realty", namespace="test")

    store.set("m1", {"id": "m1", "frequency": "daily"})
    store.set("m1", {"id": "m1", "frequency": "weekly"})

    assert store.get("m1") == {"id": "m1", "frequency": "weekly"}
    assert store.get("missing") is None
    insert = pg_connections[0].statements[0]
    assert insert.startswith("INSERT INTO kv_store (namespace, key, value) VALUES (%s, %s, %s)")
    assert "ON CONFLICT (namespace, key) DO UPDATE SET" in insert
    assert pg_connections[2].statements == ["SELECT value FROM kv_store WHERE namespace=%s AND key=%s"]
    assert all(conn.closed for conn in pg_connections)
    assert [conn.commits for conn in pg_connections[:2]] == [1, 1]


def test_get_store_initializes_postgres_schema(pg_connections: list) -> None:
    store = get_store(Settings(db_url="postgresql://localhost/realty"))

    assert isinstance(store, PostgresStore)
    schema = pg_connections[0].statements[0]
    assert schema.startswith("CREATE TABLE IF NOT EXISTS kv_store")
    assert "PRIMARY KEY (namespace, key)" in schema
    assert pg_connections[0].commits == 1
