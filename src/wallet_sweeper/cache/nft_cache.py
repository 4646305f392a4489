"""TTL-based local cache for NFT listings."""

import json
import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from wallet_sweeper.cache.stores import KeyValueStore, MemoryStore, StorageFullError

logger = logging.getLogger(__name__)


class CacheEntry:
    """
    Cache entry with TTL support.

    Parameters
    ----------
    key : str
        Store key
    payload : Any
        Cached value; an empty list is a valid payload
    timestamp_ms : int
        Creation time in epoch milliseconds

    """

    def __init__(self, key: str, payload: Any, timestamp_ms: int) -> None:
        self.key = key
        self.payload = payload
        self.timestamp_ms = timestamp_ms

    def is_expired(self, now_ms: int, ttl_ms: int) -> bool:
        """
        Check if cache entry has expired.

        Parameters
        ----------
        now_ms : int
            Current time in epoch milliseconds
        ttl_ms : int
            Time-to-live in milliseconds

        Returns
        -------
        bool
            True if expired, False otherwise

        """
        return (now_ms - self.timestamp_ms) > ttl_ms

    def dumps(self) -> str:
        return json.dumps({"data": self.payload, "timestamp": self.timestamp_ms})

    @classmethod
    def loads(cls, key: str, raw: str) -> "CacheEntry":
        """
        Parse a stored entry.

        Raises
        ------
        ValueError
            If the stored text is not a cache entry

        """
        parsed = json.loads(raw)
        if not isinstance(parsed, dict) or "data" not in parsed or "timestamp" not in parsed:
            msg = f"Malformed cache entry for {key}"
            raise ValueError(msg)
        return cls(key, parsed["data"], int(parsed["timestamp"]))


class NftCache:
    """
    Per-wallet, per-chain NFT listing cache on top of a key-value store.

    Keys follow ``{prefix}nft_{owner_lowercased}_{chain_id}`` and values are
    ``{"data": ..., "timestamp": millis}``. Expired entries are removed on
    read. When the store reports it is full, the oldest entries under the
    prefix are evicted and the write is retried once.

    Parameters
    ----------
    store : KeyValueStore | None
        Backing store. Uses an unbounded MemoryStore if None.
    ttl_ms : int
        Entry lifetime in milliseconds
    prefix : str
        Key prefix shared by every entry this cache owns
    eviction_batch : int
        Entries removed per overflow
    clock : Callable[[], float]
        Time source returning epoch seconds

    """

    def __init__(
        self,
        store: KeyValueStore | None = None,
        ttl_ms: int = 60 * 60 * 1000,
        prefix: str = "sweep_cache_",
        eviction_batch: int = 10,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.store = store if store is not None else MemoryStore()
        self.ttl_ms = ttl_ms
        self.prefix = prefix
        self.eviction_batch = eviction_batch
        self.clock = clock
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def make_key(self, owner_address: str, chain_id: int) -> str:
        return f"{self.prefix}nft_{owner_address.lower()}_{chain_id}"

    def lock(self, owner_address: str, chain_id: int) -> threading.Lock:
        """
        Advisory lock serializing fetch-and-store for one cache key.

        Returns
        -------
        threading.Lock
            The same lock object for every call with the same key

        """
        key = self.make_key(owner_address, chain_id)
        with self._locks_guard:
            return self._locks.setdefault(key, threading.Lock())

    def _now_ms(self) -> int:
        return int(self.clock() * 1000)

    def get(self, owner_address: str, chain_id: int) -> list[Any] | None:
        """
        Get the cached listing if present and fresh.

        Parameters
        ----------
        owner_address : str
            Wallet address
        chain_id : int
            Chain id

        Returns
        -------
        list[Any] | None
            Cached payload (possibly empty), or None on miss

        """
        key = self.make_key(owner_address, chain_id)
        raw = self.store.get(key)
        if raw is None:
            return None

        try:
            entry = CacheEntry.loads(key, raw)
        except (ValueError, TypeError):
            self.store.delete(key)
            return None

        if entry.is_expired(self._now_ms(), self.ttl_ms) or not isinstance(entry.payload, list):
            self.store.delete(key)
            return None

        return entry.payload

    def set(self, owner_address: str, chain_id: int, payload: list[Any]) -> bool:
        """
        Store a listing, evicting the oldest entries if the store is full.

        Returns
        -------
        bool
            True if stored, False if the store stayed full

        """
        key = self.make_key(owner_address, chain_id)
        entry = CacheEntry(key, payload, self._now_ms())
        raw = entry.dumps()

        try:
            self.store.set(key, raw)
            return True
        except StorageFullError:
            evicted = self.evict_oldest(self.eviction_batch, keep=key)
            logger.info("NFT cache full, evicted %d oldest entries", evicted)

        try:
            self.store.set(key, raw)
            return True
        except StorageFullError:
            logger.warning("NFT cache still full after eviction, not caching %s", key)
            return False

    def invalidate(self, owner_address: str, chain_id: int) -> None:
        self.store.delete(self.make_key(owner_address, chain_id))

    def evict_oldest(self, count: int, keep: str | None = None) -> int:
        """
        Remove the oldest entries under this cache's prefix.

        Unparseable entries count as oldest.

        Parameters
        ----------
        count : int
            Maximum entries to remove
        keep : str | None
            Key that must not be evicted

        Returns
        -------
        int
            Number of entries removed

        """
        aged: list[tuple[int, str]] = []
        for key in self.store.keys():
            if not key.startswith(self.prefix) or key == keep:
                continue
            raw = self.store.get(key)
            try:
                timestamp = CacheEntry.loads(key, raw).timestamp_ms if raw is not None else -1
            except (ValueError, TypeError):
                timestamp = -1
            aged.append((timestamp, key))

        aged.sort()
        victims = [key for _, key in aged[:count]]
        for key in victims:
            self.store.delete(key)
        return len(victims)

    def cleanup_expired(self) -> int:
        """
        Remove all expired entries under this cache's prefix.

        Returns
        -------
        int
            Number of entries removed

        """
        now = self._now_ms()
        removed = 0
        for key in self.store.keys():
            if not key.startswith(self.prefix):
                continue
            raw = self.store.get(key)
            try:
                expired = raw is None or CacheEntry.loads(key, raw).is_expired(now, self.ttl_ms)
            except (ValueError, TypeError):
                expired = True
            if expired:
                self.store.delete(key)
                removed += 1
        return removed
