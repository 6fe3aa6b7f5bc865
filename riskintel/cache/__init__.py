# Signal Cache Module
from .service import SignalCache, hash_key
from .backends import MemoryBackend, RedisBackend

__all__ = ["SignalCache", "hash_key", "MemoryBackend", "RedisBackend"]
