"""Tests for the ranked index."""

import pytest

from kvindex.backends.in_memory import InMemoryBackend
from kvindex.errors import InvalidInputError
from kvindex.indexes.ranked import RankedIndex


@pytest.fixture
def ranked(backend: InMemoryBackend) -> RankedIndex:
    """Ranked index on the in-memory backend."""
    return RankedIndex(backend)


class TestRankedIndex:
    """Tests for RankedIndex."""

    @pytest.mark.asyncio
    async def test_top_n_descending(self, ranked: RankedIndex) -> None:
        """top_n() should return the highest scores first."""
        await ranked.add("pages:index", "page:a", 100)
        await ranked.add("pages:index", "page:b", 300)
        await ranked.add("pages:index", "page:c", 200)

        assert await ranked.top_n("pages:index", 2) == ["page:b", "page:c"]

    @pytest.mark.asyncio
    async def test_top_n_with_fewer_members(self, ranked: RankedIndex) -> None:
        """top_n() should return all members if there are fewer than n."""
        await ranked.add("pages:index", "page:a", 1)

        assert await ranked.top_n("pages:index", 50) == ["page:a"]

    @pytest.mark.asyncio
    async def test_top_n_zero(self, ranked: RankedIndex) -> None:
        """top_n(0) should return an empty list."""
        await ranked.add("pages:index", "page:a", 1)

        assert await ranked.top_n("pages:index", 0) == []

    @pytest.mark.asyncio
    async def test_add_updates_score(self, ranked: RankedIndex) -> None:
        """Re-adding an identifier should move it, not duplicate it."""
        await ranked.add("pages:index", "page:a", 1)
        await ranked.add("pages:index", "page:b", 2)
        await ranked.add("pages:index", "page:a", 3)

        assert await ranked.top_n("pages:index", 10) == ["page:a", "page:b"]
        assert await ranked.count("pages:index") == 2

    @pytest.mark.asyncio
    async def test_remove(self, ranked: RankedIndex) -> None:
        """remove() should drop the identifier and leave the rest ranked."""
        await ranked.add("pages:index", "page:a", 1)
        await ranked.add("pages:index", "page:b", 2)

        assert await ranked.remove("pages:index", "page:b") is True
        assert await ranked.remove("pages:index", "page:b") is False
        assert await ranked.top_n("pages:index", 10) == ["page:a"]

    @pytest.mark.asyncio
    async def test_ties_break_towards_later_identifier(self, ranked: RankedIndex) -> None:
        """Equal scores should list the later-created identifier first."""
        await ranked.add("pages:index", "page:0000000001000-000000-aa", 1000)
        await ranked.add("pages:index", "page:0000000001000-000001-00", 1000)

        assert await ranked.top_n("pages:index", 2) == [
            "page:0000000001000-000001-00",
            "page:0000000001000-000000-aa",
        ]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("score", [float("nan"), float("inf"), "100", None, True])
    async def test_malformed_scores_rejected(self, ranked: RankedIndex, score: object) -> None:
        """Non-finite and non-numeric scores should be rejected before writing."""
        with pytest.raises(InvalidInputError):
            await ranked.add("pages:index", "page:a", score)  # type: ignore[arg-type]

        assert await ranked.count("pages:index") == 0
