# per-tick path following: steering, gravity, step-ups, doors, rotation
# src/npc_core/nav/mover.py
"""
PathFollower: advance one actor along a composed Path, one tick at a time.

Each tick:
- checks whether the current dense point is reached
- opens doors on the way and closes the ones left behind
- moves horizontally towards the current point
- integrates vertical motion (ground snap, step-up, jump, gravity)
- turns smoothly towards the next points
- emits a MotionSample to the presentation sink

The follower never blocks and never raises out of tick(); any error is
logged, published as TICK_EXCEPTION and turned into a cancellation.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from contracts.presentation import PresentationSink, WalkListener, WalkStopEvent
from contracts.types import (
    GridCell,
    MotionSample,
    Path,
    Vec3,
    WalkingResult,
    WalkState,
    Waypoint,
    ZERO,
)
from contracts.world import BlockAccess, WorldUnavailableError
from env.schema import MovementSettings
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from .grid import NavGrid


log = logging.getLogger(__name__)

REACHED_HORIZONTAL_SQ = 0.04
REACHED_VERTICAL = 0.2
FINISH_DISTANCE_SQ = 0.04
DOOR_PROBE_DISTANCE_SQ = 4.0
DOOR_RELEASE_DISTANCE_SQ = 1.69
GROUND_EPSILON = 1e-4
MOVE_EPSILON = 1e-6

# on_end(result) is called once when the walk completes or is cancelled.
EndCallback = Callable[[WalkingResult], None]
# commit(location) makes a location the actor's authoritative one.
CommitCallback = Callable[[Waypoint], None]


@dataclass
class MoverState:
    """Mutable per-walk state. Owned by exactly one PathFollower."""

    position: Vec3
    index: int = 0
    vertical_velocity: float = 0.0
    on_ground: bool = True
    prev_yaw: float = 0.0
    prev_pitch: float = 0.0
    prev_direction: Vec3 = ZERO
    opened_doors: List[GridCell] = field(default_factory=list)
    finished: bool = False
    walk_state: WalkState = WalkState.IDLE
    tick: int = 0
    terminal_resamples: int = 0


@dataclass
class _Physics:
    y_change: float
    on_ground: bool


def normalize_angle(angle: float) -> float:
    """Wrap an angle in degrees into (-180, 180]."""
    while angle > 180.0:
        angle -= 360.0
    while angle <= -180.0:
        angle += 360.0
    return angle


def yaw_to_direction(yaw: float) -> Vec3:
    """Horizontal unit vector an actor with this yaw is facing."""
    rad = math.radians(yaw)
    return Vec3(-math.sin(rad), 0.0, math.cos(rad))


class PathFollower:
    """
    Tick-driven follower for one walk.

    Lifecycle: IDLE → FOLLOWING → COMPLETED | CANCELED. Both terminal
    states call `on_end` once, notify the listener once and close every
    door this walk opened.
    """

    def __init__(
        self,
        actor_id: str,
        path: Path,
        blocks: BlockAccess,
        presentation: PresentationSink,
        *,
        start: Waypoint,
        speed: Optional[float] = None,
        update_real_location: Optional[bool] = None,
        settings: Optional[MovementSettings] = None,
        listener: Optional[WalkListener] = None,
        on_end: Optional[EndCallback] = None,
        commit: Optional[CommitCallback] = None,
        bus: Optional[EventBus] = None,
    ) -> None:
        if not path.points:
            raise ValueError("PathFollower needs a path with at least one point")

        self.actor_id = actor_id
        self.path = path
        self.settings = settings or MovementSettings()
        self.speed = speed if speed is not None else self.settings.speed
        self.update_real_location = (
            update_real_location
            if update_real_location is not None
            else self.settings.update_real_location
        )

        self._grid = NavGrid(blocks, path.world)
        self._presentation = presentation
        self._listener = listener
        self._on_end = on_end
        self._commit = commit
        self._bus = bus

        self._points: List[Waypoint] = list(path.points)
        self._state = MoverState(
            position=start.position,
            prev_yaw=start.yaw,
            prev_pitch=start.pitch,
            prev_direction=yaw_to_direction(start.yaw),
        )

    # ------------------------------------------------------------------
    # Introspection
    # ------------------------------------------------------------------

    @property
    def state(self) -> MoverState:
        return self._state

    @property
    def walk_state(self) -> WalkState:
        return self._state.walk_state

    @property
    def finished(self) -> bool:
        return self._state.finished

    @property
    def position(self) -> Vec3:
        return self._state.position

    @property
    def points(self) -> List[Waypoint]:
        return list(self._points)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    def start(self) -> None:
        if self._state.walk_state is WalkState.IDLE:
            self._state.walk_state = WalkState.FOLLOWING

    def tick(self) -> bool:
        """Advance one tick. Returns True while the walk is still active."""
        if self._state.finished:
            return False

        self.start()
        try:
            self._step()
        except Exception as exc:
            log.exception("Walk tick failed actor=%s", self.actor_id)
            log_event(
                self._bus,
                module="npc_core.nav.mover",
                event_type=EventType.TICK_EXCEPTION,
                message="Walk tick raised; cancelling walk",
                payload={
                    "actor_id": self.actor_id,
                    "error": repr(exc),
                    "index": self._state.index,
                },
                correlation_id=self.actor_id,
            )
            self.cancel()

        return not self._state.finished

    def cancel(self) -> None:
        """
        Stop the walk now. No-op on a walk that already finished.

        The current position is committed if the (possibly overridden)
        update_real_location policy asks for it.
        """
        st = self._state
        if st.finished:
            return

        location = Waypoint.at(self._grid.world, st.position, st.prev_yaw, st.prev_pitch)
        self._finish(WalkingResult.CANCELLED, WalkState.CANCELED, location)

    # ------------------------------------------------------------------
    # Tick body
    # ------------------------------------------------------------------

    def _step(self) -> None:
        st = self._state

        if st.index >= len(self._points):
            self._finish_path()
            return

        target = self._points[st.index]
        to_target = target.position - st.position

        if self._reached(to_target):
            st.index += 1
            return

        self._process_doors(target)
        self._cleanup_doors()

        old_position = st.position
        movement, snapped = self._horizontal_movement(to_target, target)

        if snapped:
            st.vertical_velocity = 0.0
            st.on_ground = st.position.y <= self._grid.ground_y(st.position) + GROUND_EPSILON
        else:
            physics = self._apply_physics(movement)
            movement = movement.with_y(physics.y_change)
            st.position = st.position + movement
            st.on_ground = physics.on_ground

        yaw, pitch = self._smooth_rotation()
        st.tick += 1

        self._presentation.move(
            self.actor_id,
            MotionSample(
                tick=st.tick,
                position=st.position,
                movement=st.position - old_position,
                yaw=yaw,
                pitch=pitch,
                on_ground=st.on_ground,
            ),
        )

    @staticmethod
    def _reached(to_target: Vec3) -> bool:
        return (
            to_target.horizontal().length_sq() < REACHED_HORIZONTAL_SQ
            and abs(to_target.y) < REACHED_VERTICAL
        )

    def _finish_path(self) -> None:
        st = self._state
        terminal = self.path.terminal

        if terminal is None:
            self._finish(WalkingResult.SUCCESS, WalkState.COMPLETED, self._points[-1])
            return

        if st.position.distance_sq(terminal.position) > FINISH_DISTANCE_SQ:
            if st.terminal_resamples < self.settings.max_terminal_resamples:
                # Retry the final waypoint as one more target next tick.
                st.terminal_resamples += 1
                self._points.append(terminal)
                log.debug(
                    "Resampling terminal waypoint actor=%s attempt=%d",
                    self.actor_id,
                    st.terminal_resamples,
                )
                return
            log.warning(
                "Terminal waypoint not reached after %d resamples actor=%s",
                st.terminal_resamples,
                self.actor_id,
            )
        else:
            st.position = terminal.position
            st.prev_yaw = terminal.yaw
            st.prev_pitch = terminal.pitch
            self._presentation.snap(self.actor_id, terminal)

        self._finish(WalkingResult.SUCCESS, WalkState.COMPLETED, terminal)

    def _finish(self, result: WalkingResult, walk_state: WalkState, location: Waypoint) -> None:
        st = self._state
        st.finished = True
        st.walk_state = walk_state
        self._force_close_doors()

        if self._on_end is not None:
            self._on_end(result)

        event = WalkStopEvent(
            actor_id=self.actor_id,
            result=result,
            update_real_location=self.update_real_location,
        )
        if self._listener is not None:
            self._listener.on_walk_stop(event)

        if event.update_real_location and self._commit is not None:
            self._commit(location)

        log.info(
            "Walk stopped actor=%s result=%s ticks=%d committed=%s",
            self.actor_id,
            result.name,
            st.tick,
            event.update_real_location,
        )
        log_event(
            self._bus,
            module="npc_core.nav.mover",
            event_type=EventType.WALK_STOPPED,
            message="Walk stopped",
            payload={
                "actor_id": self.actor_id,
                "result": result.name,
                "ticks": st.tick,
                "update_real_location": event.update_real_location,
            },
            correlation_id=self.actor_id,
        )

    # ------------------------------------------------------------------
    # Doors
    # ------------------------------------------------------------------

    def _process_doors(self, target: Waypoint) -> None:
        st = self._state
        bx, by, bz = st.position.block_coords()
        here = GridCell(bx, by, bz)
        self._open_if_closed(here)
        self._open_if_closed(here.above())

        if st.position.distance_sq(target.position) < DOOR_PROBE_DISTANCE_SQ:
            tx, ty, tz = target.position.block_coords()
            ahead = GridCell(tx, ty, tz)
            self._open_if_closed(ahead)
            self._open_if_closed(ahead.above())

    def _open_if_closed(self, cell: GridCell) -> None:
        if not self._grid.is_door_like(cell) or self._grid.is_door_open(cell):
            return

        self._grid.set_door_open(cell, True)
        if cell not in self._state.opened_doors:
            self._state.opened_doors.append(cell)
        self._presentation.door_opened(self.actor_id, self._grid.world, cell)
        self._door_event(EventType.DOOR_OPENED, cell)

    def _cleanup_doors(self) -> None:
        st = self._state
        if not st.opened_doors:
            return

        kept: List[GridCell] = []
        for cell in st.opened_doors:
            if not self._grid.is_door_like(cell):
                continue

            dx = cell.x + 0.5 - st.position.x
            dz = cell.z + 0.5 - st.position.z
            if dx * dx + dz * dz > DOOR_RELEASE_DISTANCE_SQ:
                if self._grid.is_door_open(cell):
                    self._close(cell)
                continue

            kept.append(cell)
        st.opened_doors = kept

    def _force_close_doors(self) -> None:
        for cell in self._state.opened_doors:
            try:
                if self._grid.is_door_open(cell):
                    self._close(cell)
            except WorldUnavailableError:
                log.warning(
                    "Cannot close door at %s; world %s is gone",
                    cell,
                    self._grid.world,
                )
                break
        self._state.opened_doors = []

    def _close(self, cell: GridCell) -> None:
        self._grid.set_door_open(cell, False)
        self._presentation.door_closed(self.actor_id, self._grid.world, cell)
        self._door_event(EventType.DOOR_CLOSED, cell)

    def _door_event(self, event_type: EventType, cell: GridCell) -> None:
        log_event(
            self._bus,
            module="npc_core.nav.mover",
            event_type=event_type,
            message="Door opened" if event_type is EventType.DOOR_OPENED else "Door closed",
            payload={
                "actor_id": self.actor_id,
                "world": self._grid.world,
                "cell": [cell.x, cell.y, cell.z],
            },
            correlation_id=self.actor_id,
        )

    # ------------------------------------------------------------------
    # Motion
    # ------------------------------------------------------------------

    def _horizontal_movement(self, to_target: Vec3, target: Waypoint):
        """
        Return (movement, snapped).

        When this tick's step would reach the target, the actor is placed
        on it and the index advances instead.
        """
        horizontal = to_target.horizontal()
        dist_sq = horizontal.length_sq()
        if dist_sq < MOVE_EPSILON:
            return ZERO, False

        dist = math.sqrt(dist_sq)
        step = min(self.speed, dist)

        if abs(step - dist) < MOVE_EPSILON:
            self._state.position = target.position
            self._state.index += 1
            return ZERO, True

        return horizontal.normalized().scale(step), False

    def _apply_physics(self, movement: Vec3) -> _Physics:
        st = self._state
        s = self.settings

        ground_now = self._grid.ground_y(st.position)
        next_pos = st.position + movement.with_y(0.0)
        ground_next = self._grid.ground_y(next_pos)

        on_ground = st.position.y <= ground_now + GROUND_EPSILON
        step_dy = ground_next - ground_now

        if on_ground:
            if abs(st.position.y - ground_now) > 1e-5:
                st.position = st.position.with_y(ground_now)

            if GROUND_EPSILON < step_dy <= s.step_height and movement.length_sq() > MOVE_EPSILON:
                st.vertical_velocity = 0.0
                return _Physics(step_dy, True)

            if step_dy > s.step_height + 1e-3:
                st.vertical_velocity = s.jump_velocity
                on_ground = False
            elif step_dy < -GROUND_EPSILON:
                # Walking off an edge.
                st.vertical_velocity = 0.0
                on_ground = False
            else:
                st.vertical_velocity = 0.0
                return _Physics(0.0, True)

        # Airborne
        st.vertical_velocity += s.gravity
        if st.vertical_velocity < s.terminal_velocity:
            st.vertical_velocity = s.terminal_velocity

        y_change = st.vertical_velocity
        # Land on the lower of the two columns; a higher one is met next tick.
        ground_air = min(self._grid.ground_y(st.position), ground_next)

        if st.position.y + y_change <= ground_air:
            y_change = ground_air - st.position.y
            st.vertical_velocity = 0.0
            on_ground = True

        return _Physics(y_change, on_ground)

    def _smooth_rotation(self):
        st = self._state
        points = self._points
        last = len(points) - 1

        if st.index + 1 < len(points):
            p1 = points[st.index].position
            p2 = points[st.index + 1].position
            look = (p1 + p2).scale(0.5) - st.position
        else:
            look = points[min(st.index, last)].position - st.position

        horizontal = look.horizontal()
        if horizontal.length_sq() < MOVE_EPSILON:
            horizontal = st.prev_direction

        target_yaw = normalize_angle(math.degrees(math.atan2(horizontal.z, horizontal.x)) - 90.0)
        diff = normalize_angle(target_yaw - st.prev_yaw)
        limit = self.settings.max_yaw_step
        diff = max(-limit, min(limit, diff))

        yaw = normalize_angle(st.prev_yaw + diff)
        st.prev_yaw = yaw
        st.prev_direction = horizontal

        to_next = points[min(st.index + 1, last)].position - st.position
        h_len = math.sqrt(to_next.x * to_next.x + to_next.z * to_next.z)
        pitch = -math.degrees(math.atan2(to_next.y, h_len)) / self.settings.pitch_damping
        st.prev_pitch = pitch

        return yaw, pitch
