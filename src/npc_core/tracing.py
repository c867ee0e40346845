# src/npc_core/tracing.py
"""
Motion tracing for npc_core.

MotionTracer is a PresentationSink that keeps a rolling buffer of what
the path follower emitted (motion samples, snaps, door changes) and logs
it. Useful for tests, the CLI demo and debugging a live embedding.

It does NOT:
- Send packets
- Render anything
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass
from typing import Deque, List, Optional

from contracts.types import GridCell, MotionSample, Waypoint


@dataclass
class DoorRecord:
    actor_id: str
    world: str
    cell: GridCell
    opened: bool


@dataclass
class SnapRecord:
    actor_id: str
    waypoint: Waypoint


class MotionTracer:
    """
    In-memory presentation sink with logging.

    Responsibilities:
    - Keep rolling buffers of samples, snaps and door changes.
    - Emit one debug line per sample and one info line per door change.
    """

    def __init__(
        self,
        *,
        logger: Optional[logging.Logger] = None,
        max_records: int = 10_000,
    ) -> None:
        self._logger = logger or logging.getLogger("npc_core.motion")
        self._samples: Deque[tuple[str, MotionSample]] = deque(maxlen=max_records)
        self._snaps: Deque[SnapRecord] = deque(maxlen=max_records)
        self._doors: Deque[DoorRecord] = deque(maxlen=max_records)

    # ------------------------------------------------------------------
    # PresentationSink
    # ------------------------------------------------------------------

    def move(self, actor_id: str, sample: MotionSample) -> None:
        self._samples.append((actor_id, sample))
        self._logger.debug(
            "move actor=%s tick=%d pos=(%.3f,%.3f,%.3f) yaw=%.1f pitch=%.1f ground=%s",
            actor_id,
            sample.tick,
            sample.position.x,
            sample.position.y,
            sample.position.z,
            sample.yaw,
            sample.pitch,
            sample.on_ground,
        )

    def snap(self, actor_id: str, waypoint: Waypoint) -> None:
        self._snaps.append(SnapRecord(actor_id=actor_id, waypoint=waypoint))
        self._logger.debug(
            "snap actor=%s pos=(%.3f,%.3f,%.3f) yaw=%.1f",
            actor_id,
            waypoint.x,
            waypoint.y,
            waypoint.z,
            waypoint.yaw,
        )

    def door_opened(self, actor_id: str, world: str, cell: GridCell) -> None:
        self._door(actor_id, world, cell, opened=True)

    def door_closed(self, actor_id: str, world: str, cell: GridCell) -> None:
        self._door(actor_id, world, cell, opened=False)

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def samples(self, actor_id: Optional[str] = None) -> List[MotionSample]:
        return [s for a, s in self._samples if actor_id is None or a == actor_id]

    def snaps(self) -> List[SnapRecord]:
        return list(self._snaps)

    def doors(self) -> List[DoorRecord]:
        return list(self._doors)

    def clear(self) -> None:
        self._samples.clear()
        self._snaps.clear()
        self._doors.clear()

    def _door(self, actor_id: str, world: str, cell: GridCell, *, opened: bool) -> None:
        self._doors.append(DoorRecord(actor_id=actor_id, world=world, cell=cell, opened=opened))
        self._logger.info(
            "door_%s actor=%s world=%s cell=(%d,%d,%d)",
            "open" if opened else "close",
            actor_id,
            world,
            cell.x,
            cell.y,
            cell.z,
        )
