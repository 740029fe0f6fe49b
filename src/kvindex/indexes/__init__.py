"""Secondary indexes synthesized over key-value sets and sorted sets."""

from kvindex.indexes.ranked import RankedIndex
from kvindex.indexes.set_index import SetIndex
from kvindex.indexes.time_window import TimeWindowIndex

__all__ = ["SetIndex", "RankedIndex", "TimeWindowIndex"]
