"""Cancellation tokens for superseding in-flight computations.

Every profile computation for a flight plan receives a token from the plan's
CancellationScope. Starting a new computation cancels the token of the
previous one, so only the latest request can publish its result.

Typical usage example:
    scope = CancellationScope("KJFK-EINN")
    token = scope.begin()
    profile = solver.solve(plan, performance, token=token)
    if scope.is_current(token):
        publish(profile)
"""

import itertools
import threading

from flightroute.core.logging_system import get_logger

logger = get_logger(__name__)


class ComputationCancelled(Exception):
    """Raised inside a computation whose token was cancelled."""


class CancellationToken:
    """Thread-safe cancellation flag handed to one computation.

    Attributes:
        generation: Sequence number assigned by the issuing scope.
    """

    def __init__(self, generation: int = 0) -> None:
        self.generation = generation
        self._event = threading.Event()

    @property
    def cancelled(self) -> bool:
        """True once cancel() was called."""
        return self._event.is_set()

    def cancel(self) -> None:
        """Request cancellation. Idempotent."""
        self._event.set()

    def raise_if_cancelled(self) -> None:
        """Raise ComputationCancelled if cancellation was requested.

        Raises:
            ComputationCancelled: If the token is cancelled.
        """
        if self._event.is_set():
            raise ComputationCancelled(f"Computation {self.generation} was superseded")

    def __repr__(self) -> str:
        return f"CancellationToken(generation={self.generation}, cancelled={self.cancelled})"


class CancellationScope:
    """Issues tokens for one flight plan with latest-wins ordering.

    Examples:
        >>> scope = CancellationScope()
        >>> first = scope.begin()
        >>> second = scope.begin()
        >>> first.cancelled, second.cancelled
        (True, False)
    """

    def __init__(self, name: str = "") -> None:
        self.name = name
        self._lock = threading.Lock()
        self._counter = itertools.count(1)
        self._current: CancellationToken | None = None

    def begin(self) -> CancellationToken:
        """Cancel the running computation, if any, and issue a new token.

        Returns:
            Token for the new computation.
        """
        with self._lock:
            if self._current is not None and not self._current.cancelled:
                logger.debug(
                    "Superseding computation %d of %s", self._current.generation, self.name
                )
                self._current.cancel()
            self._current = CancellationToken(next(self._counter))
            return self._current

    def is_current(self, token: CancellationToken) -> bool:
        """Check whether the token belongs to the latest, still active request."""
        with self._lock:
            return token is self._current and not token.cancelled

    def cancel_all(self) -> None:
        """Cancel the running computation without starting a new one."""
        with self._lock:
            if self._current is not None:
                self._current.cancel()
