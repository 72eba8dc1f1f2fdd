"""Shared fixtures for redisview tests."""

from __future__ import annotations

from fnmatch import fnmatchcase
from typing import Any

import pytest
import redis

from redisview.formatter.value import EMPTY, FieldMapValue, ScalarValue
from redisview.lookup import KeyType, LookupFailed, LookupResult


class FakeLookup:
    """In-memory :class:`~redisview.lookup.Lookup` recording every call."""

    def __init__(
        self,
        results: dict[str, LookupResult],
        failing_patterns: set[str] | None = None,
        failing_keys: set[str] | None = None,
    ) -> None:
        self.results = results
        self.failing_patterns = failing_patterns or set()
        self.failing_keys = failing_keys or set()
        self.fetched: list[tuple[str, bool]] = []

    def resolve(self, pattern: str) -> list[str]:
        if pattern in self.failing_patterns:
            raise LookupFailed(f"KEYS {pattern!r}: boom")
        # Reverse order so tests do not depend on insertion order.
        return [key for key in reversed(self.results) if fnmatchcase(key, pattern)]

    def fetch(self, key: str, *, include_value: bool = True) -> LookupResult:
        self.fetched.append((key, include_value))
        if key in self.failing_keys:
            raise LookupFailed(f"fetch {key!r}: boom")
        result = self.results.get(key, LookupResult())
        if not include_value:
            return LookupResult(result.key_type, result.ttl, EMPTY)
        return result


def string(value: str | bytes, ttl: int | None = None) -> LookupResult:
    """Build a string-typed lookup result."""
    data = value.encode("utf-8") if isinstance(value, str) else value
    return LookupResult(KeyType.STRING, ttl, ScalarValue(data))


class FakeRedisClient:
    """Minimal stand-in for ``redis.Redis`` replying with bytes.

    Values are stored as ``{key: (type, value)}`` where ``value`` is
    ``bytes`` for strings, a list for lists, a set for sets, a dict for
    hashes and a list of ``(member, score)`` pairs for sorted sets.
    """

    def __init__(
        self,
        data: dict[bytes, tuple[str, Any]] | None = None,
        ttls: dict[bytes, int] | None = None,
        fail_on: set[str] | None = None,
    ) -> None:
        self.data = data or {}
        self.ttls = ttls or {}
        self.fail_on = fail_on or set()
        self.closed = False

    def _check(self, command: str) -> None:
        if command in self.fail_on:
            raise redis.ConnectionError(f"{command} failed")

    def ping(self) -> bool:
        self._check("ping")
        return True

    def close(self) -> None:
        self.closed = True

    def keys(self, pattern: str) -> list[bytes]:
        self._check("keys")
        return [k for k in self.data if fnmatchcase(k.decode("latin-1"), pattern)]

    def type(self, name: bytes) -> bytes:
        self._check("type")
        if name not in self.data:
            return b"none"
        return self.data[name][0].encode()

    def ttl(self, name: bytes) -> int:
        self._check("ttl")
        if name not in self.data:
            return -2
        return self.ttls.get(name, -1)

    def get(self, name: bytes) -> bytes | None:
        self._check("get")
        entry = self.data.get(name)
        return entry[1] if entry else None

    def lrange(self, name: bytes, start: int, end: int) -> list[bytes]:
        self._check("lrange")
        return list(self.data[name][1])

    def smembers(self, name: bytes) -> set[bytes]:
        self._check("smembers")
        return set(self.data[name][1])

    def hgetall(self, name: bytes) -> dict[bytes, bytes]:
        self._check("hgetall")
        return dict(self.data[name][1])

    def zrange(
        self,
        name: bytes,
        start: int,
        end: int,
        withscores: bool = False,
        score_cast_func: Any = float,
    ) -> list[Any]:
        self._check("zrange")
        return [(m, score_cast_func(s)) for m, s in self.data[name][1]]


@pytest.fixture
def task_lookup() -> FakeLookup:
    """Lookup holding a small ``tasks`` namespace.

    Structure::

        tasks
        ├── a
        │   ├── 1   string "hello"
        │   └── 2   string "world" (ttl 60)
        └── b       hash {state: done}
    """
    return FakeLookup(
        {
            "tasks:a:1": string("hello"),
            "tasks:a:2": string("world", ttl=60),
            "tasks:b": LookupResult(
                KeyType.HASH, None, FieldMapValue((("state", "done"),))
            ),
        }
    )
