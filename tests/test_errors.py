"""Tests for the exception hierarchy."""

from kvindex.errors import BackendUnavailableError, InvalidInputError, KVIndexError


def test_invalid_input_error_carries_field() -> None:
    """InvalidInputError should expose field and reason in its context."""
    error = InvalidInputError("score must be finite", field="score")

    assert isinstance(error, KVIndexError)
    assert error.error_code == "invalid_input"
    assert error.context == {"reason": "score must be finite", "field": "score"}
    assert str(error) == "Invalid input for 'score': score must be finite"


def test_invalid_input_error_without_field() -> None:
    """Without a field the message should be generic."""
    error = InvalidInputError("bad")

    assert error.message == "Invalid input: bad"
    assert "field" not in error.context


def test_backend_unavailable_error() -> None:
    """BackendUnavailableError should describe the failed command."""
    error = BackendUnavailableError("zadd", "uptime:index", "timed out")

    assert isinstance(error, KVIndexError)
    assert error.error_code == "backend_unavailable"
    assert error.operation == "zadd"
    assert "uptime:index" in error.message
