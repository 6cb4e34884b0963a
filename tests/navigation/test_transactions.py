"""Tests for the undo/redo transaction log."""

import pytest

from flightroute.navigation.fixes import Airport
from flightroute.navigation.flight_plan import FlightPlan
from flightroute.navigation.geo import Coordinate
from flightroute.navigation.legs import Leg, LegType
from flightroute.navigation.transactions import TransactionLog


def snapshot(altitude):
    plan = FlightPlan(
        legs=[Leg(LegType.INITIAL_FIX, Airport("KORD", "K5", Coordinate(41.98, -87.9)))],
        cruise_altitude_ft=altitude,
    )
    return plan.snapshot()


class TestTransactionLog:
    """Test TransactionLog."""

    def test_empty(self):
        """Test that an empty log has nothing to undo or redo."""
        log = TransactionLog()

        assert log.undo() is None
        assert log.redo() is None
        assert not log.can_undo
        assert log.undo_label is None

    def test_invalid_depth(self):
        with pytest.raises(ValueError):
            TransactionLog(max_depth=0)

    def test_undo_then_redo(self):
        """Test that undo and redo hand back the same transaction."""
        log = TransactionLog()
        log.record("Cruise 20000", snapshot(10000), snapshot(20000))

        undone = log.undo()
        assert undone.before.cruise_altitude_ft == 10000
        assert log.can_redo
        assert log.redo_label == "Cruise 20000"

        redone = log.redo()
        assert redone is undone
        assert redone.after.cruise_altitude_ft == 20000
        assert log.undo_label == "Cruise 20000"

    def test_record_clears_redo(self):
        """Test that a new change discards undone changes."""
        log = TransactionLog()
        log.record("A", snapshot(1000), snapshot(2000))
        log.undo()
        log.record("B", snapshot(1000), snapshot(3000))

        assert not log.can_redo
        assert log.undo_label == "B"

    def test_depth_limit_drops_oldest(self):
        """Test that the undo stack keeps only the newest transactions."""
        log = TransactionLog(max_depth=2)
        for altitude in (1000, 2000, 3000):
            log.record(f"Cruise {altitude}", snapshot(altitude - 1000), snapshot(altitude))

        assert len(log) == 2
        assert log.undo().label == "Cruise 3000"
        assert log.undo().label == "Cruise 2000"
        assert log.undo() is None

    def test_clear(self):
        log = TransactionLog()
        log.record("A", snapshot(1000), snapshot(2000))
        log.undo()
        log.clear()

        assert not log.can_undo
        assert not log.can_redo
