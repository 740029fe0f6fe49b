"""Store configuration models and utilities.

This module provides configuration for the key-value backend connection,
key namespacing, retention capacities and logging output.
"""

import os
from typing import Literal, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator

DEFAULT_WINDOW_CAPACITY = 1000


class StoreConfig(BaseModel):
    """Configuration for the indexing layer.

    Attributes:
        backend: Which backend to open ("redis" or "memory")
        redis_url: Redis connection URL
        redis_password: Optional password (sensitive - not logged)
        key_prefix: Namespace prepended to every key written by this process
        socket_timeout_seconds: Per-command transport timeout
        connect_timeout_seconds: Connection establishment timeout
        uptime_capacity: Retained entries in the uptime time-window index
        page_list_limit: Default number of pages returned by listings
        log_level: Logging level name
        json_logs: Emit JSON logs instead of console output

    Example:
        >>> config = StoreConfig(redis_url="redis://cache:6379/0", key_prefix="site1")
        >>> config.uptime_capacity
        1000
    """

    backend: Literal["redis", "memory"] = Field(
        default="redis", description="Backend implementation to open"
    )
    redis_url: str = Field(default="redis://localhost:6379/0", description="Redis URL")
    redis_password: Optional[str] = Field(
        default=None, repr=False, description="Redis password (sensitive)"
    )
    key_prefix: str = Field(default="", description="Namespace prepended to every key")
    socket_timeout_seconds: float = Field(
        default=5.0, gt=0, le=60, description="Per-command timeout (0-60s)"
    )
    connect_timeout_seconds: float = Field(
        default=5.0, gt=0, le=60, description="Connect timeout (0-60s)"
    )
    uptime_capacity: int = Field(
        default=DEFAULT_WINDOW_CAPACITY, ge=1, description="Retained uptime checks"
    )
    page_list_limit: int = Field(default=50, ge=1, description="Default page listing size")
    log_level: str = Field(default="INFO", description="Logging level")
    json_logs: bool = Field(default=True, description="JSON log output")

    @field_validator("key_prefix")
    @classmethod
    def validate_key_prefix(cls, value: str) -> str:
        """Strip a trailing separator so prefixes join with a single colon.

        Args:
            value: The key prefix to validate

        Returns:
            The normalized prefix

        Raises:
            ValueError: If the prefix contains whitespace
        """
        if any(ch.isspace() for ch in value):
            raise ValueError("key_prefix must not contain whitespace")
        return value.rstrip(":")

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate the log level name.

        Args:
            value: Level name to validate

        Returns:
            Upper-cased level name

        Raises:
            ValueError: If the level is unknown
        """
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {value}")
        return level

    class Config:
        """Pydantic config."""

        frozen = True  # Immutable after creation


def load_config_from_env() -> StoreConfig:
    """Load store configuration from environment variables.

    Reads a ``.env`` file first when one is present. Recognized variables:
    - KVINDEX_BACKEND: "redis" or "memory"
    - KVINDEX_REDIS_URL: Redis connection URL
    - KVINDEX_REDIS_PASSWORD: Redis password
    - KVINDEX_KEY_PREFIX: Key namespace
    - KVINDEX_SOCKET_TIMEOUT: Per-command timeout in seconds
    - KVINDEX_CONNECT_TIMEOUT: Connect timeout in seconds
    - KVINDEX_UPTIME_CAPACITY: Retained uptime checks
    - KVINDEX_PAGE_LIST_LIMIT: Default page listing size
    - KVINDEX_LOG_LEVEL: Logging level
    - KVINDEX_JSON_LOGS: "true"/"false"

    Returns:
        StoreConfig populated from the environment, defaults elsewhere

    Raises:
        pydantic.ValidationError: If a variable holds an invalid value
    """
    load_dotenv()

    env_map = {
        "backend": "KVINDEX_BACKEND",
        "redis_url": "KVINDEX_REDIS_URL",
        "redis_password": "KVINDEX_REDIS_PASSWORD",
        "key_prefix": "KVINDEX_KEY_PREFIX",
        "socket_timeout_seconds": "KVINDEX_SOCKET_TIMEOUT",
        "connect_timeout_seconds": "KVINDEX_CONNECT_TIMEOUT",
        "uptime_capacity": "KVINDEX_UPTIME_CAPACITY",
        "page_list_limit": "KVINDEX_PAGE_LIST_LIMIT",
        "log_level": "KVINDEX_LOG_LEVEL",
    }

    values: dict[str, object] = {}
    for field_name, env_var in env_map.items():
        raw = os.getenv(env_var)
        if raw is not None and raw != "":
            values[field_name] = raw

    json_logs = os.getenv("KVINDEX_JSON_LOGS")
    if json_logs:
        values["json_logs"] = json_logs.lower() in ("true", "1", "yes")

    return StoreConfig(**values)
