"""Undo/redo log of flight plan transactions.

Every committed transaction stores immutable snapshots of the plan before
and after the change, so undo and redo restore exact states without inverse
operations.

Typical usage:
    log = TransactionLog(max_depth=50)
    log.record("Delete", before, plan.snapshot())
    transaction = log.undo()
    plan.restore(transaction.before)
"""

from collections import deque
from dataclasses import dataclass

from flightroute.core.logging_system import get_logger
from flightroute.navigation.flight_plan import FlightPlanSnapshot

logger = get_logger(__name__)


@dataclass(frozen=True)
class Transaction:
    """One committed change.

    Attributes:
        label: Name shown for undo/redo (e.g., "Insert KJFK")
        before: Plan state before the change
        after: Plan state after the change
    """

    label: str
    before: FlightPlanSnapshot
    after: FlightPlanSnapshot


class TransactionLog:
    """Bounded undo stack plus redo stack.

    Recording a new transaction discards everything that could be redone.
    When the undo stack is full the oldest transaction is dropped.

    Attributes:
        max_depth: Maximum number of undoable transactions
    """

    def __init__(self, max_depth: int = 100) -> None:
        if max_depth < 1:
            raise ValueError("max_depth must be at least 1")
        self.max_depth = max_depth
        self._undo: deque[Transaction] = deque(maxlen=max_depth)
        self._redo: list[Transaction] = []

    def record(self, label: str, before: FlightPlanSnapshot, after: FlightPlanSnapshot) -> None:
        self._undo.append(Transaction(label, before, after))
        self._redo.clear()
        logger.debug("Recorded transaction %r (%d undoable)", label, len(self._undo))

    def undo(self) -> Transaction | None:
        """Pop the latest transaction for undo.

        Returns:
            Transaction whose before state must be restored, None if empty.
        """
        if not self._undo:
            return None
        transaction = self._undo.pop()
        self._redo.append(transaction)
        return transaction

    def redo(self) -> Transaction | None:
        """Pop the latest undone transaction for redo.

        Returns:
            Transaction whose after state must be restored, None if empty.
        """
        if not self._redo:
            return None
        transaction = self._redo.pop()
        self._undo.append(transaction)
        return transaction

    @property
    def can_undo(self) -> bool:
        return bool(self._undo)

    @property
    def can_redo(self) -> bool:
        return bool(self._redo)

    @property
    def undo_label(self) -> str | None:
        return self._undo[-1].label if self._undo else None

    @property
    def redo_label(self) -> str | None:
        return self._redo[-1].label if self._redo else None

    def clear(self) -> None:
        self._undo.clear()
        self._redo.clear()

    def __len__(self) -> int:
        return len(self._undo)
