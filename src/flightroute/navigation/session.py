"""Flight plan session.

A FlightPlanSession owns one flight plan through its RouteAssembler and keeps
the vertical profile in step with it: every committed transaction, undo and
redo publishes a FlightPlanChangedEvent, and the session recomputes the
profile before lower priority subscribers see the change. Each computation
receives a token from the session's CancellationScope; starting a new one
cancels the previous (latest wins).

Typical usage:
    session = FlightPlanSession(query, performance, settings)
    warnings = session.load_route_string("KORD DCT KDEN")
    session.profile.top_of_descent_nm
    session.assembler.reverse()
"""

from collections.abc import Callable
from concurrent.futures import Executor, Future
from dataclasses import dataclass, field

from flightroute.core.cancellation import CancellationScope, ComputationCancelled
from flightroute.core.config import PlannerSettings
from flightroute.core.event_bus import EventBus, EventPriority
from flightroute.core.logging_system import LoggerMixin
from flightroute.navigation.assembler import RouteAssembler
from flightroute.navigation.errors import ConfigurationError
from flightroute.navigation.events import FlightPlanChangedEvent, ProfileUpdatedEvent
from flightroute.navigation.flight_plan import FlightPlan
from flightroute.navigation.geo import Coordinate
from flightroute.navigation.navdata import NavDatabaseQuery
from flightroute.navigation.performance import AircraftPerformanceProfile
from flightroute.navigation.route_string import build_route_string
from flightroute.navigation.vertical_profile import VerticalProfile, VerticalProfileSolver


@dataclass
class RoutePreview:
    """Plan and profile computed for a route string outside the session.

    Attributes:
        plan: Assembled flight plan
        warnings: Tokens dropped while assembling
        profile: Vertical profile, None if it could not be computed
        error: Why no profile was computed
    """

    plan: FlightPlan
    warnings: list[str] = field(default_factory=list)
    profile: VerticalProfile | None = None
    error: str | None = None


class FlightPlanSession(LoggerMixin):
    """One flight plan, its editing history and its vertical profile.

    Attributes:
        event_bus: Bus carrying plan and profile events
        assembler: Assembler owning the plan
        solver: Vertical profile solver
        performance: Aircraft performance used for the profile
        warnings: Warnings of the last loaded route string
    """

    def __init__(
        self,
        query: NavDatabaseQuery,
        performance: AircraftPerformanceProfile,
        settings: PlannerSettings | None = None,
        event_bus: EventBus | None = None,
        name: str = "session",
    ) -> None:
        self.attach_logger(f"flightroute.session.{name}")
        self.name = name
        self.settings = settings or PlannerSettings()
        self.event_bus = event_bus or EventBus()
        self.assembler = RouteAssembler(query, self.settings, self.event_bus)
        self.solver = VerticalProfileSolver(self.settings)
        self.performance = performance
        self.warnings: list[str] = []

        self._scope = CancellationScope(name)
        self._preview_scope = CancellationScope(f"{name} preview")
        self._profile: VerticalProfile | None = None
        self._profile_error: ConfigurationError | None = None
        self._profile_revision = -1

        self.event_bus.subscribe(FlightPlanChangedEvent, self._on_plan_changed, EventPriority.HIGH)

    @property
    def plan(self) -> FlightPlan:
        return self.assembler.plan

    @property
    def revision(self) -> int:
        return self.assembler.revision

    @property
    def profile(self) -> VerticalProfile | None:
        """Profile of the current plan, None if it cannot be computed.

        Never stale: a profile older than the plan is recomputed first.
        """
        self._ensure_profile()
        return self._profile

    @property
    def profile_error(self) -> ConfigurationError | None:
        """Error that prevents a profile for the current plan."""
        self._ensure_profile()
        return self._profile_error

    def require_profile(self) -> VerticalProfile:
        """Get the current profile.

        Raises:
            ConfigurationError: If no profile can be computed.
        """
        self._ensure_profile()
        if self._profile_error is not None:
            raise self._profile_error
        return self._profile

    def load_route_string(self, text: str, reference: Coordinate | None = None) -> list[str]:
        """Replace the plan with one built from a route string.

        Returns:
            Warnings for dropped tokens.
        """
        self.warnings = self.assembler.load_route_string(text, reference=reference)
        self.log_info(
            "Loaded %s with %d legs (%d warnings)",
            " ".join(self.plan.idents()),
            len(self.plan),
            len(self.warnings),
        )
        return self.warnings

    def route_string(self, **kwargs) -> str:
        """Route string of the current plan, see build_route_string."""
        return build_route_string(self.plan, **kwargs)

    def set_performance(self, performance: AircraftPerformanceProfile) -> None:
        self.performance = performance
        self._recompute()

    def undo(self) -> bool:
        return self.assembler.undo()

    def redo(self) -> bool:
        return self.assembler.redo()

    def close(self) -> None:
        """Cancel running computations and stop following plan changes."""
        self._scope.cancel_all()
        self._preview_scope.cancel_all()
        self.event_bus.unsubscribe(FlightPlanChangedEvent, self._on_plan_changed)

    def compute_preview(
        self,
        route_string: str,
        executor: Executor | None = None,
        reference: Coordinate | None = None,
    ) -> RoutePreview | Future:
        """Assemble a route string and its profile without touching the plan.

        A newer preview cancels an older one that has not finished.

        Args:
            route_string: Route to preview.
            executor: Runs the preview in the background when given.
            reference: Position used to disambiguate the departure.

        Returns:
            The preview, or a Future of it when an executor is given. The
            Future raises ComputationCancelled if a newer preview superseded it.

        Raises:
            ParseError: If the route string lacks departure or destination.
            ResolutionError: If departure or destination cannot be resolved.
        """
        token = self._preview_scope.begin()

        def run() -> RoutePreview:
            result = self.assembler.assemble_route_string(route_string, reference=reference)
            token.raise_if_cancelled()
            preview = RoutePreview(result.plan, result.warnings)
            try:
                preview.profile = self.solver.solve(result.plan, self.performance, token=token)
            except ConfigurationError as e:
                preview.error = str(e)
            token.raise_if_cancelled()
            return preview

        if executor is None:
            return run()
        return executor.submit(run)

    def on_profile_updated(self, handler: Callable[[ProfileUpdatedEvent], None]) -> None:
        """Subscribe to profile updates of this session only."""

        def forward(event: ProfileUpdatedEvent) -> None:
            if event.source is self:
                handler(event)

        self.event_bus.subscribe(ProfileUpdatedEvent, forward)

    def _on_plan_changed(self, event: FlightPlanChangedEvent) -> None:
        if event.source is not self.assembler:
            return
        self.log_debug("Plan changed (%s), revision %d", event.label, event.revision)
        self._recompute()

    def _ensure_profile(self) -> None:
        if self._profile_revision != self.assembler.revision:
            self._recompute()

    def _recompute(self) -> None:
        token = self._scope.begin()
        revision = self.assembler.revision
        try:
            profile = self.solver.solve(self.plan, self.performance, token=token)
        except ComputationCancelled:
            self.log_debug("Profile computation %d superseded", token.generation)
            return
        except ConfigurationError as e:
            self.log_warning("No vertical profile: %s", e)
            profile, error = None, e
        else:
            error = None

        if not self._scope.is_current(token):
            return

        self._profile = profile
        self._profile_error = error
        self._profile_revision = revision
        self.event_bus.publish(
            ProfileUpdatedEvent(
                revision=revision,
                profile=profile,
                error=str(error) if error else None,
                source=self,
            )
        )
