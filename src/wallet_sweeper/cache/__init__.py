"""Local TTL cache for NFT listings and its backing stores."""

from wallet_sweeper.cache.nft_cache import CacheEntry, NftCache
from wallet_sweeper.cache.stores import JsonFileStore, KeyValueStore, MemoryStore, StorageFullError

__all__ = [
    "CacheEntry",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "NftCache",
    "StorageFullError",
]
