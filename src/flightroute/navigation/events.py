"""Events published by the route engine on the core event bus."""

from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from flightroute.core.event_bus import Event

if TYPE_CHECKING:
    from flightroute.navigation.vertical_profile import VerticalProfile


@dataclass
class FlightPlanChangedEvent(Event):
    """A flight plan transaction was committed, undone or redone.

    Attributes:
        label: Name of the transaction (e.g., "Reverse", "Undo Delete")
        revision: Revision of the plan after the change
        source: Assembler owning the changed plan
    """

    label: str = ""
    revision: int = 0
    source: Any = None


@dataclass
class ProfileUpdatedEvent(Event):
    """The vertical profile of a session was recomputed.

    Exactly one of profile and error is set.

    Attributes:
        revision: Plan revision the profile belongs to
        profile: New profile
        error: Message of the configuration error preventing a profile
        source: Session owning the profile
    """

    revision: int = 0
    profile: "VerticalProfile | None" = None
    error: str | None = None
    source: Any = None
