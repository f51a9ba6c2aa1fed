from .store import MONITORS_LIST_KEY, KeyValueStore, MemoryStore, PostgresStore, RedisStore, get_store

__all__ = ["MONITORS_LIST_KEY", "KeyValueStore", "MemoryStore", "PostgresStore", "RedisStore", "get_store"]
