# per-actor walking façade
# src/npc_core/walker.py
"""
NpcWalker: owns one actor's authoritative location and its active walk.

Walks are started through a two-phase contract with an optional
WalkListener:

    on_walk_start(WalkStartEvent)  → may veto, change speed or commit policy
    on_walk_stop(WalkStopEvent)    → may change the commit policy

Only one walk is active per walker; starting a new one cancels the old.
"""

from __future__ import annotations

import logging
from typing import Optional, Sequence, Tuple

from contracts.presentation import PresentationSink, WalkListener, WalkStartEvent
from contracts.types import Path, Waypoint
from contracts.world import BlockAccess
from env.schema import WalkerProfile
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from .nav.mover import EndCallback, PathFollower
from .nav.route import ProgressCallback, RouteComposer, RouteResult


log = logging.getLogger(__name__)

MIN_SPEED = 0.1
MAX_SPEED = 1.0


def clamp_speed(speed: float) -> float:
    return max(MIN_SPEED, min(MAX_SPEED, speed))


class NpcWalker:
    """
    Walking façade for one actor.

    Not thread-safe: call walk_to/tick/cancel_walking from the tick thread.
    """

    def __init__(
        self,
        actor_id: str,
        location: Waypoint,
        blocks: BlockAccess,
        presentation: PresentationSink,
        listener: Optional[WalkListener] = None,
        settings: Optional[WalkerProfile] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        self.actor_id = actor_id
        self._location = location
        self._blocks = blocks
        self._presentation = presentation
        self._listener = listener
        self.settings = settings or WalkerProfile()
        self._bus = bus
        self._follower: Optional[PathFollower] = None
        self._composer = RouteComposer(blocks, self.settings.pathfinding, bus=bus)

    @property
    def location(self) -> Waypoint:
        return self._location

    @property
    def follower(self) -> Optional[PathFollower]:
        return self._follower

    @property
    def is_walking(self) -> bool:
        return self._follower is not None and not self._follower.finished

    def teleport(self, location: Waypoint) -> None:
        """Set the authoritative location directly (cancels any walk)."""
        self.cancel_walking()
        self._location = location

    def walk_to(
        self,
        path: Path,
        speed: Optional[float] = None,
        update_real_location: Optional[bool] = None,
        on_end: Optional[EndCallback] = None,
    ) -> Optional[PathFollower]:
        """
        Start walking `path`. Returns the follower, or None if vetoed.
        """
        self.cancel_walking()

        movement = self.settings.movement
        event = WalkStartEvent(
            actor_id=self.actor_id,
            path=path,
            speed=clamp_speed(speed if speed is not None else movement.speed),
            update_real_location=(
                update_real_location
                if update_real_location is not None
                else movement.update_real_location
            ),
        )
        if self._listener is not None:
            self._listener.on_walk_start(event)

        if event.cancelled:
            log.info("Walk vetoed actor=%s", self.actor_id)
            log_event(
                self._bus,
                module="npc_core.walker",
                event_type=EventType.WALK_VETOED,
                message="Walk vetoed by listener",
                payload={"actor_id": self.actor_id, "points": len(path)},
                correlation_id=self.actor_id,
            )
            return None

        follower = PathFollower(
            self.actor_id,
            path,
            self._blocks,
            self._presentation,
            start=self._location,
            speed=clamp_speed(event.speed),
            update_real_location=event.update_real_location,
            settings=movement,
            listener=self._listener,
            on_end=on_end,
            commit=self._commit_location,
            bus=self._bus,
        )
        follower.start()
        self._follower = follower

        log.info(
            "Walk started actor=%s points=%d speed=%.2f",
            self.actor_id,
            len(path),
            follower.speed,
        )
        log_event(
            self._bus,
            module="npc_core.walker",
            event_type=EventType.WALK_STARTED,
            message="Walk started",
            payload={
                "actor_id": self.actor_id,
                "points": len(path),
                "speed": follower.speed,
                "update_real_location": follower.update_real_location,
            },
            correlation_id=self.actor_id,
        )
        return follower

    def walk_route(
        self,
        waypoints: Sequence[Waypoint],
        speed: Optional[float] = None,
        update_real_location: Optional[bool] = None,
        on_end: Optional[EndCallback] = None,
        progress_callback: Optional[ProgressCallback] = None,
    ) -> Tuple[RouteResult, Optional[PathFollower]]:
        """Compose a route through `waypoints` and walk it if it succeeded."""
        result = self._composer.compose(waypoints, progress_callback)
        if not result.success or result.path is None:
            return result, None
        follower = self.walk_to(
            result.path,
            speed=speed,
            update_real_location=update_real_location,
            on_end=on_end,
        )
        return result, follower

    def cancel_walking(self) -> None:
        if self._follower is not None:
            self._follower.cancel()
            self._follower = None

    def tick(self) -> bool:
        """Advance the active walk by one tick. Returns is_walking."""
        if self._follower is None:
            return False
        return self._follower.tick()

    # scheduler task protocol
    @property
    def finished(self) -> bool:
        return not self.is_walking

    def cancel(self) -> None:
        self.cancel_walking()

    def _commit_location(self, location: Waypoint) -> None:
        log.debug("Committing location actor=%s location=%s", self.actor_id, location)
        self._location = location
