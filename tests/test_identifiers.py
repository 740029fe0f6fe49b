"""Tests for identifier generation."""

from datetime import datetime, timezone

from kvindex.identifiers import IdentifierGenerator, timestamp_of, to_epoch_ms


class TestIdentifierGenerator:
    """Tests for IdentifierGenerator."""

    def test_identifier_shape(self) -> None:
        """Identifiers should carry prefix, millisecond, sequence and suffix."""
        generator = IdentifierGenerator(clock=lambda: 1760870400123)

        identifier = generator.new("user")

        prefix, body = identifier.split(":")
        millis, sequence, suffix = body.split("-")
        assert prefix == "user"
        assert millis == "1760870400123"
        assert sequence == "000000"
        assert len(suffix) == 8

    def test_same_millisecond_identifiers_are_distinct_and_ordered(self) -> None:
        """Identifiers in one millisecond should sort in creation order."""
        generator = IdentifierGenerator(clock=lambda: 1000)

        identifiers = [generator.new("check") for _ in range(50)]

        assert len(set(identifiers)) == 50
        assert identifiers == sorted(identifiers)

    def test_sequence_resets_on_new_millisecond(self) -> None:
        """A later millisecond should restart the sequence at zero."""
        ticks = iter([1000, 1000, 1001])
        generator = IdentifierGenerator(clock=lambda: next(ticks))

        first, second, third = (generator.new("page") for _ in range(3))

        assert "-000001-" in second
        assert "-000000-" in third
        assert first < second < third

    def test_clock_going_backwards_keeps_order(self) -> None:
        """A clock step backwards should not produce a smaller identifier."""
        ticks = iter([2000, 1500])
        generator = IdentifierGenerator(clock=lambda: next(ticks))

        first = generator.new("event")
        second = generator.new("event")

        assert second > first
        assert timestamp_of(second) == 2000

    def test_distinct_generators_do_not_collide(self) -> None:
        """Two generators in the same millisecond should differ by suffix."""
        one = IdentifierGenerator(clock=lambda: 5000)
        two = IdentifierGenerator(clock=lambda: 5000)

        assert one.new("user") != two.new("user")


def test_timestamp_of_round_trips() -> None:
    """timestamp_of() should recover the creation millisecond."""
    identifier = IdentifierGenerator(clock=lambda: 1760870400123).new("page")

    assert timestamp_of(identifier) == 1760870400123


def test_timestamp_of_unknown_shape() -> None:
    """Identifiers of another shape should yield None."""
    assert timestamp_of("page:home") is None


def test_to_epoch_ms_treats_naive_as_utc() -> None:
    """Naive datetimes should be interpreted as UTC."""
    aware = datetime(2026, 10, 19, tzinfo=timezone.utc)

    assert to_epoch_ms(aware.replace(tzinfo=None)) == to_epoch_ms(aware)
    assert to_epoch_ms(aware) == 1792368000000
