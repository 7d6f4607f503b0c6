"""
Unit tests for correlation module.

Tests correlation ID generation, scoping, and per-thread isolation.
"""

import contextvars
import threading

from tello_comm.correlation import (
    SHORT_ID_LENGTH,
    correlation_context,
    ensure_correlation_id,
    get_correlation_id,
    new_correlation_id,
    short_correlation_id,
)


def _in_fresh_context(func):
    """Run ``func`` in a context where no correlation ID is set."""
    return contextvars.Context().run(func)


class TestNewCorrelationId:
    """Tests for new_correlation_id function"""

    def test_generates_unique_id(self):
        """Test that new_correlation_id creates unique IDs"""
        assert new_correlation_id() != new_correlation_id()

    def test_generates_valid_uuid_format(self):
        """Test that generated ID is valid UUID4 hex format"""
        corr_id = new_correlation_id()

        # UUID4 hex should be 32 characters (no dashes)
        assert len(corr_id) == 32
        assert all(c in "0123456789abcdef" for c in corr_id)


class TestShortCorrelationId:
    """Tests for short_correlation_id function"""

    def test_placeholder_without_id(self):
        """Test that dashes stand in when no ID is set"""
        assert _in_fresh_context(short_correlation_id) == "-" * SHORT_ID_LENGTH

    def test_prefix_of_current_id(self):
        """Test that the short form is the leading characters of the ID"""
        with correlation_context("0123456789abcdef"):
            assert short_correlation_id() == "01234567"


class TestCorrelationContext:
    """Tests for correlation_context context manager"""

    def test_context_generates_id(self):
        """Test that a new ID is generated when none is given"""

        def _check() -> None:
            with correlation_context() as corr_id:
                assert len(corr_id) == 32
                assert get_correlation_id() == corr_id

        _in_fresh_context(_check)

    def test_context_with_custom_id(self):
        """Test that a given ID is used as-is"""
        with correlation_context(correlation_id="custom-correlation-id") as corr_id:
            assert corr_id == "custom-correlation-id"
            assert get_correlation_id() == "custom-correlation-id"

    def test_context_restores_previous_id(self):
        """Test that the outer ID is back after the block"""
        with correlation_context("previous-id"):
            with correlation_context():
                assert get_correlation_id() != "previous-id"
            assert get_correlation_id() == "previous-id"

    def test_context_restores_absence(self):
        """Test that leaving the outermost scope clears the ID"""

        def _check() -> str | None:
            with correlation_context("outer"):
                with correlation_context("inner"):
                    assert get_correlation_id() == "inner"
                assert get_correlation_id() == "outer"
            return get_correlation_id()

        assert _in_fresh_context(_check) is None

    def test_context_restored_after_exception(self):
        """Test that an exception inside the block still restores the ID"""
        with correlation_context("steady"):
            try:
                with correlation_context("failing"):
                    msg = "boom"
                    raise RuntimeError(msg)
            except RuntimeError:
                pass
            assert get_correlation_id() == "steady"


class TestEnsureCorrelationId:
    """Tests for ensure_correlation_id function"""

    def test_creates_id_if_missing(self):
        """Test that a missing ID is created and kept"""

        def _check() -> None:
            result = ensure_correlation_id()
            assert len(result) == 32
            assert get_correlation_id() == result

        _in_fresh_context(_check)

    def test_returns_existing_id(self):
        """Test that an existing ID is left alone"""
        with correlation_context("existing-correlation-id"):
            assert ensure_correlation_id() == "existing-correlation-id"

    def test_threads_do_not_share_ids(self):
        """Test that a new thread starts without the caller's ID"""
        seen: list[str | None] = []

        def _worker() -> None:
            seen.append(get_correlation_id())
            seen.append(ensure_correlation_id())

        with correlation_context("main-thread-id"):
            thread = threading.Thread(target=_worker)
            thread.start()
            thread.join()
            assert get_correlation_id() == "main-thread-id"

        assert seen[0] is None
        assert seen[1] != "main-thread-id"
