# presentation + walk listener interfaces
# src/contracts/presentation.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .types import GridCell, MotionSample, Path, WalkingResult, Waypoint


class PresentationSink(Protocol):
    """
    Consumer of simulated motion (packet layer, renderer, test recorder).

    Implementations must not raise; the follower treats an exception here
    like any other tick hazard and cancels the walk.
    """

    def move(self, actor_id: str, sample: MotionSample) -> None:
        """Per-tick position/rotation update."""
        ...

    def snap(self, actor_id: str, waypoint: Waypoint) -> None:
        """Discrete teleport + rotation (final facing at the end of a walk)."""
        ...

    def door_opened(self, actor_id: str, world: str, cell: GridCell) -> None:
        ...

    def door_closed(self, actor_id: str, world: str, cell: GridCell) -> None:
        ...


# ---------------------------------------------------------------------------
# Two-phase walk notifications
# ---------------------------------------------------------------------------


@dataclass
class WalkStartEvent:
    """
    Fired before a walk begins.

    Listeners may set `cancelled` to veto the walk, or override `speed`
    and `update_real_location`.
    """

    actor_id: str
    path: Path
    speed: float
    update_real_location: bool
    cancelled: bool = False


@dataclass
class WalkStopEvent:
    """
    Fired once when a walk completes or is cancelled.

    Listeners may override `update_real_location` to decide whether the
    simulated end position becomes the actor's authoritative location.
    """

    actor_id: str
    result: WalkingResult
    update_real_location: bool


class WalkListener(Protocol):
    def on_walk_start(self, event: WalkStartEvent) -> None:
        ...

    def on_walk_stop(self, event: WalkStopEvent) -> None:
        ...
