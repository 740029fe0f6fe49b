"""Redis key-value backend.

Wraps an injected ``redis.asyncio.Redis`` client. The client is created once
at process start (see ``RedisBackend.from_config``) and reused for every call;
its socket timeouts bound every command. Transport failures surface as
``BackendUnavailableError`` with the redis exception chained. No retries are
attempted here.
"""

import time
from collections.abc import Awaitable, Callable, Mapping
from typing import Any, Optional, TypeVar

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import RedisError
from redis.exceptions import TimeoutError as RedisTimeoutError

from kvindex.backends.base import KeyValueBackend, ScoreBound
from kvindex.config import StoreConfig
from kvindex.errors import BackendUnavailableError
from kvindex.observability.logging import get_logger
from kvindex.observability.metrics import MetricsCollector, get_metrics_collector

logger = get_logger(__name__)

T = TypeVar("T")


class RedisBackend(KeyValueBackend):
    """Backend issuing one Redis command per operation.

    Attributes:
        _client: Async Redis client (must use ``decode_responses=True``)
        _key_prefix: Namespace prepended to every key
        _metrics: Metrics collector for command counts and latencies

    Example:
        >>> backend = RedisBackend.from_config(StoreConfig(redis_url="redis://cache:6379/0"))
        >>> await backend.hset("users:user:1", {"email": "a@example.com"})
        >>> await backend.close()
    """

    def __init__(
        self,
        client: Any,
        key_prefix: str = "",
        metrics: Optional[MetricsCollector] = None,
    ) -> None:
        """Initialize the backend around an existing client.

        Args:
            client: Async Redis client (or a compatible object)
            key_prefix: Namespace prepended to every key, joined with ":"
            metrics: Optional metrics collector (defaults to the global one)
        """
        self._client = client
        self._key_prefix = key_prefix.rstrip(":")
        self._metrics = metrics or get_metrics_collector()

    @classmethod
    def from_config(cls, config: StoreConfig) -> "RedisBackend":
        """Create a backend with a new client built from configuration.

        Args:
            config: Store configuration

        Returns:
            RedisBackend owning a freshly created client
        """
        client = Redis.from_url(
            config.redis_url,
            password=config.redis_password,
            decode_responses=True,
            socket_timeout=config.socket_timeout_seconds,
            socket_connect_timeout=config.connect_timeout_seconds,
        )
        logger.info(
            "redis_backend_opened",
            key_prefix=config.key_prefix,
            socket_timeout=config.socket_timeout_seconds,
        )
        return cls(client, key_prefix=config.key_prefix)

    def _key(self, key: str) -> str:
        if not self._key_prefix:
            return key
        return f"{self._key_prefix}:{key}"

    async def _call(self, operation: str, key: str, command: Callable[[], Awaitable[T]]) -> T:
        """Run one command, recording metrics and translating transport errors."""
        started = time.perf_counter()
        try:
            result = await command()
        except (RedisConnectionError, RedisTimeoutError) as exc:
            self._metrics.record_backend_operation(
                operation, "error", time.perf_counter() - started
            )
            logger.warning("backend_unavailable", operation=operation, key=key, error=str(exc))
            raise BackendUnavailableError(operation, key, str(exc)) from exc
        except RedisError as exc:
            self._metrics.record_backend_operation(
                operation, "error", time.perf_counter() - started
            )
            logger.error("backend_command_failed", operation=operation, key=key, error=str(exc))
            raise
        self._metrics.record_backend_operation(operation, "success", time.perf_counter() - started)
        return result

    async def hset(self, key: str, mapping: Mapping[str, str]) -> int:
        name = self._key(key)
        return await self._call(
            "hset", name, lambda: self._client.hset(name, mapping=dict(mapping))
        )

    async def hgetall(self, key: str) -> dict[str, str]:
        name = self._key(key)
        result = await self._call("hgetall", name, lambda: self._client.hgetall(name))
        return dict(result or {})

    async def hincrby(self, key: str, field: str, amount: int = 1) -> int:
        name = self._key(key)
        result = await self._call(
            "hincrby", name, lambda: self._client.hincrby(name, field, amount)
        )
        return int(result)

    async def delete(self, *keys: str) -> int:
        names = [self._key(key) for key in keys]
        if not names:
            return 0
        return await self._call("delete", names[0], lambda: self._client.delete(*names))

    async def sadd(self, key: str, *members: str) -> int:
        name = self._key(key)
        if not members:
            return 0
        return await self._call("sadd", name, lambda: self._client.sadd(name, *members))

    async def smembers(self, key: str) -> set[str]:
        name = self._key(key)
        result = await self._call("smembers", name, lambda: self._client.smembers(name))
        return set(result or ())

    async def srem(self, key: str, *members: str) -> int:
        name = self._key(key)
        if not members:
            return 0
        return await self._call("srem", name, lambda: self._client.srem(name, *members))

    async def zadd(self, key: str, mapping: Mapping[str, float]) -> int:
        name = self._key(key)
        return await self._call("zadd", name, lambda: self._client.zadd(name, dict(mapping)))

    async def zcard(self, key: str) -> int:
        name = self._key(key)
        return int(await self._call("zcard", name, lambda: self._client.zcard(name)))

    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        name = self._key(key)
        result = await self._call(
            "zrevrange", name, lambda: self._client.zrevrange(name, start, stop)
        )
        return list(result)

    async def zrangebyscore(self, key: str, min: ScoreBound, max: ScoreBound) -> list[str]:
        name = self._key(key)
        result = await self._call(
            "zrangebyscore", name, lambda: self._client.zrangebyscore(name, min, max)
        )
        return list(result)

    async def zrevrangebyscore(self, key: str, max: ScoreBound, min: ScoreBound) -> list[str]:
        name = self._key(key)
        result = await self._call(
            "zrevrangebyscore", name, lambda: self._client.zrevrangebyscore(name, max, min)
        )
        return list(result)

    async def zrem(self, key: str, *members: str) -> int:
        name = self._key(key)
        if not members:
            return 0
        return await self._call("zrem", name, lambda: self._client.zrem(name, *members))

    async def zremrangebyrank(self, key: str, start: int, stop: int) -> int:
        name = self._key(key)
        return await self._call(
            "zremrangebyrank", name, lambda: self._client.zremrangebyrank(name, start, stop)
        )

    async def close(self) -> None:
        """Close the client connection pool."""
        await self._client.aclose()
        logger.info("redis_backend_closed")
