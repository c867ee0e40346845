# src/contracts/__init__.py

from __future__ import annotations

"""
Public contract surface for the NPC walking core.

Re-exports value types shared across packages and the Protocols the core
consumes from its collaborators (block store, presentation, listeners).
"""

from .types import (
    Vec3,
    BoundingBox,
    BlockState,
    Waypoint,
    GridCell,
    Path,
    MotionSample,
    WalkingResult,
    WalkState,
    pack_cell,
)
from .world import BlockAccess, WorldUnavailableError
from .presentation import (
    PresentationSink,
    WalkListener,
    WalkStartEvent,
    WalkStopEvent,
)

__all__ = [
    "Vec3",
    "BoundingBox",
    "BlockState",
    "Waypoint",
    "GridCell",
    "Path",
    "MotionSample",
    "WalkingResult",
    "WalkState",
    "pack_cell",
    "BlockAccess",
    "WorldUnavailableError",
    "PresentationSink",
    "WalkListener",
    "WalkStartEvent",
    "WalkStopEvent",
]
