"""kvindex: secondary indexes and windowed aggregation over a key-value store.

The layer synthesizes record storage, membership indexes, ranked indexes,
bounded time-window indexes and windowed statistics on top of a primitive
hash/set/sorted-set store such as Redis.
"""

from kvindex.aggregator import Aggregator
from kvindex.backends import InMemoryBackend, KeyValueBackend, RedisBackend, open_backend
from kvindex.config import StoreConfig, load_config_from_env
from kvindex.data_layer import SiteDataLayer
from kvindex.errors import BackendUnavailableError, InvalidInputError, KVIndexError
from kvindex.identifiers import IdentifierGenerator
from kvindex.indexes import RankedIndex, SetIndex, TimeWindowIndex
from kvindex.models import StatsQuery, WindowStats
from kvindex.record_store import RecordStore

__version__ = "0.1.0"

__all__ = [
    "Aggregator",
    "BackendUnavailableError",
    "IdentifierGenerator",
    "InMemoryBackend",
    "InvalidInputError",
    "KVIndexError",
    "KeyValueBackend",
    "RankedIndex",
    "RecordStore",
    "RedisBackend",
    "SetIndex",
    "SiteDataLayer",
    "StatsQuery",
    "StoreConfig",
    "TimeWindowIndex",
    "WindowStats",
    "load_config_from_env",
    "open_backend",
]
