# src/npc_core/nav/__init__.py
"""
Navigation subsystem for npc_core.

Provides:
- NavGrid: terrain classification and ground sampling over a BlockAccess
- A* pathfinding: find_segment / AStarPathfinder
- Route composition: compose, compose_deferred, RouteComposer
- PathFollower: tick-driven movement along a composed Path
"""

from __future__ import annotations

from .grid import NavGrid
from .pathfinder import (
    AStarPathfinder,
    FailureKind,
    SearchNode,
    SegmentResult,
    find_segment,
)
from .route import (
    PathfindingError,
    RouteComposer,
    RouteResult,
    compose,
    compose_deferred,
)
from .mover import MoverState, PathFollower

__all__ = [
    "NavGrid",
    "AStarPathfinder",
    "FailureKind",
    "SearchNode",
    "SegmentResult",
    "find_segment",
    "PathfindingError",
    "RouteComposer",
    "RouteResult",
    "compose",
    "compose_deferred",
    "MoverState",
    "PathFollower",
]
