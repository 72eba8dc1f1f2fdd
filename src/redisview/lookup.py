"""Lookup collaborator: key enumeration and per-key type/TTL/value fetch."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum
from typing import Any, Final, Protocol

import redis

from redisview import RedisViewError
from redisview.formatter.value import (
    EMPTY,
    FetchedValue,
    FieldMapValue,
    ListValue,
    ScalarValue,
    SetValue,
)
from redisview.trie import TrieNode, ingest, new_tree

logger = logging.getLogger(__name__)

DEFAULT_URL: Final[str] = "redis://127.0.0.1:6379"


class KeyType(str, Enum):
    """Redis data type of a key."""

    STRING = "string"
    LIST = "list"
    SET = "set"
    HASH = "hash"
    ZSET = "zset"
    STREAM = "stream"
    UNKNOWN = "unknown"

    @classmethod
    def from_reply(cls, reply: str) -> KeyType:
        try:
            return cls(reply)
        except ValueError:
            return cls.UNKNOWN


class LookupFailed(Exception):
    """A resolve or fetch call to the store failed."""


@dataclass(frozen=True, slots=True)
class LookupResult:
    """Type, TTL and value of one key.

    Attributes:
        key_type: Data type, or ``None`` when it could not be fetched.
        ttl: Remaining seconds, or ``None`` when the key does not expire.
        value: Fetched value, :data:`EMPTY` when not fetched.
    """

    key_type: KeyType | None = None
    ttl: int | None = None
    value: FetchedValue = EMPTY


BLANK_RESULT: Final[LookupResult] = LookupResult()


class Lookup(Protocol):
    """Protocol for the store the tree is built from."""

    def resolve(self, pattern: str) -> list[str]: ...

    def fetch(self, key: str, *, include_value: bool = True) -> LookupResult: ...


@dataclass(frozen=True, slots=True)
class LookupOptions:
    """Connection settings for :class:`RedisLookup`.

    Attributes:
        url: Redis URL, e.g. ``redis://127.0.0.1:6379/0``.
    """

    url: str = DEFAULT_URL


def _text(raw: bytes | str) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="replace")
    return str(raw)


def _key_name(raw: bytes | str) -> str:
    if isinstance(raw, bytes):
        return raw.decode("utf-8", errors="surrogateescape")
    return raw


def _key_bytes(key: str) -> bytes:
    return key.encode("utf-8", errors="surrogateescape")


class RedisLookup:
    """:class:`Lookup` backed by a single Redis connection.

    Use as a context manager: entering connects and pings the server,
    leaving closes the client.
    """

    def __init__(
        self, options: LookupOptions | None = None, client: Any = None
    ) -> None:
        """Initialize lookup.

        Args:
            options: Connection settings. Defaults to ``LookupOptions()``.
            client: Pre-built client, mainly for tests. When given, no
                connection is opened from ``options.url``.
        """
        self._options = options or LookupOptions()
        self._client = client

    def __enter__(self) -> RedisLookup:
        self.open()
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    @property
    def client(self) -> Any:
        if self._client is None:
            raise RedisViewError("redis connection is not open")
        return self._client

    def open(self) -> None:
        """Create the client and check the server answers.

        Raises:
            RedisViewError: If the URL is malformed or the server is unreachable.
        """
        url = self._options.url
        if self._client is None:
            try:
                self._client = redis.Redis.from_url(url)
            except ValueError as exc:
                raise RedisViewError(f"fail to parse url '{url}': {exc}") from exc
        try:
            self._client.ping()
        except redis.RedisError as exc:
            raise RedisViewError(
                f"unable to connect to redis server at '{url}'"
            ) from exc

    def close(self) -> None:
        if self._client is not None:
            self._client.close()
            self._client = None

    def resolve(self, pattern: str) -> list[str]:
        """Return key names matching glob *pattern*.

        Raises:
            LookupFailed: If the ``KEYS`` command fails.
        """
        try:
            raw_keys = self.client.keys(pattern)
        except redis.RedisError as exc:
            raise LookupFailed(f"KEYS {pattern!r}: {exc}") from exc
        return [_key_name(raw) for raw in raw_keys]

    def fetch(self, key: str, *, include_value: bool = True) -> LookupResult:
        """Fetch type, TTL and (optionally) value of *key*.

        Raises:
            LookupFailed: If any command fails.
        """
        name = _key_bytes(key)
        try:
            key_type = KeyType.from_reply(_text(self.client.type(name)))
            ttl = int(self.client.ttl(name))
            value = self._fetch_value(name, key_type) if include_value else EMPTY
        except redis.RedisError as exc:
            raise LookupFailed(f"fetch {key!r}: {exc}") from exc
        # TTL replies -1 (no expiry) and -2 (no such key) both render blank.
        return LookupResult(
            key_type=key_type,
            ttl=ttl if ttl >= 0 else None,
            value=value,
        )

    def _fetch_value(self, name: bytes, key_type: KeyType) -> FetchedValue:
        client = self.client
        if key_type is KeyType.STRING:
            raw = client.get(name)
            return EMPTY if raw is None else ScalarValue(bytes(raw))
        if key_type is KeyType.LIST:
            items = client.lrange(name, 0, -1)
            return ListValue(tuple(_text(item) for item in items))
        if key_type is KeyType.SET:
            return SetValue(tuple(sorted(_text(m) for m in client.smembers(name))))
        if key_type is KeyType.HASH:
            pairs = client.hgetall(name).items()
            return FieldMapValue(
                tuple(sorted((_text(f), _text(v)) for f, v in pairs))
            )
        if key_type is KeyType.ZSET:
            pairs = client.zrange(name, 0, -1, withscores=True, score_cast_func=_text)
            return FieldMapValue(tuple((_text(m), _text(s)) for m, s in pairs))
        return EMPTY


def build_tree(lookup: Lookup, patterns: Iterable[str], separator: str) -> TrieNode:
    """Resolve each pattern and ingest the keys into a fresh tree.

    Patterns whose resolution fails contribute no keys.

    Args:
        lookup: Store to enumerate keys from.
        patterns: Glob patterns, resolved in order.
        separator: Key segment separator.

    Returns:
        TrieNode: Root of the populated tree.
    """
    tree = new_tree()
    for pattern in patterns:
        try:
            keys = lookup.resolve(pattern)
        except LookupFailed as exc:
            logger.debug("Skipping pattern %r: %s", pattern, exc)
            continue
        ingest(tree, keys, separator)
    return tree
