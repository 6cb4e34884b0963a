"""Tests for cancellation tokens and scopes."""

import threading

import pytest

from flightroute.core.cancellation import (
    CancellationScope,
    CancellationToken,
    ComputationCancelled,
)


class TestCancellationToken:
    """Test suite for CancellationToken."""

    def test_new_token_is_active(self) -> None:
        """Test that a fresh token does not raise."""
        token = CancellationToken(3)

        assert not token.cancelled
        token.raise_if_cancelled()

    def test_cancel_is_idempotent(self) -> None:
        """Test that cancelling twice keeps the token cancelled."""
        token = CancellationToken(1)
        token.cancel()
        token.cancel()

        assert token.cancelled
        with pytest.raises(ComputationCancelled, match="Computation 1"):
            token.raise_if_cancelled()

    def test_cancel_from_other_thread(self) -> None:
        """Test that cancellation requested on another thread is seen."""
        token = CancellationToken()
        worker = threading.Thread(target=token.cancel)
        worker.start()
        worker.join()

        assert token.cancelled


class TestCancellationScope:
    """Test suite for CancellationScope."""

    def test_latest_wins(self) -> None:
        """Test that beginning a computation cancels the previous one."""
        scope = CancellationScope("KORD-KDEN")
        first = scope.begin()
        second = scope.begin()

        assert first.cancelled
        assert not second.cancelled
        assert second.generation > first.generation
        assert not scope.is_current(first)
        assert scope.is_current(second)

    def test_cancel_all(self) -> None:
        """Test that cancel_all leaves no current computation."""
        scope = CancellationScope()
        token = scope.begin()
        scope.cancel_all()

        assert token.cancelled
        assert not scope.is_current(token)

    def test_cancel_all_without_computation(self) -> None:
        """Test that cancel_all on an idle scope is harmless."""
        CancellationScope().cancel_all()

    def test_foreign_token_is_not_current(self) -> None:
        """Test that tokens issued by another scope are never current."""
        scope = CancellationScope()
        scope.begin()

        assert not scope.is_current(CancellationScope().begin())
