"""Key-value backends for the indexing layer."""

from kvindex.backends.base import KeyValueBackend, ScoreBound
from kvindex.backends.in_memory import InMemoryBackend
from kvindex.backends.redis_backend import RedisBackend
from kvindex.config import StoreConfig


def open_backend(config: StoreConfig) -> KeyValueBackend:
    """Open the backend selected by configuration.

    Call once at process start and reuse the returned object; close it with
    ``await backend.close()`` on shutdown.

    Args:
        config: Store configuration

    Returns:
        An in-memory backend when ``config.backend == "memory"``, else Redis
    """
    if config.backend == "memory":
        return InMemoryBackend()
    return RedisBackend.from_config(config)


__all__ = ["KeyValueBackend", "ScoreBound", "InMemoryBackend", "RedisBackend", "open_backend"]
