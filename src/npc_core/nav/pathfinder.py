# A* pathfinding over NavGrid
# src/npc_core/nav/pathfinder.py
"""
A* pathfinding over floor cells.

- Nodes are floor cells (the block an actor stands on).
- 26-connected neighbourhood; X/Z diagonals can be disabled.
- Euclidean heuristic from the node's feet position to the target.
- max_iterations guard to bound search time.
- Failures are returned as SegmentResult values, never raised.
"""

from __future__ import annotations

import heapq
import itertools
import logging
import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Any, Dict, List, Optional, Tuple

from contracts.types import GridCell, Vec3, Waypoint
from contracts.world import BlockAccess
from .grid import NavGrid


log = logging.getLogger(__name__)

DIAGONAL_COST = math.sqrt(2.0)

# Squared distance from a node's feet to the target that counts as arrival.
ARRIVAL_DISTANCE_SQ = 1.0


class FailureKind(Enum):
    """Why a search or composition failed."""

    # Bad arguments: not retried automatically.
    INVALID_INPUT = auto()
    # Search ran out of budget or open nodes: retry with a bigger budget.
    UNREACHABLE = auto()


@dataclass
class SegmentResult:
    """Structured result of a single start → end search."""

    success: bool
    points: List[Waypoint] = field(default_factory=list)
    cost: float = 0.0
    iterations: int = 0
    kind: Optional[FailureKind] = None
    reason: Optional[str] = None
    details: Dict[str, Any] = field(default_factory=dict)

    @classmethod
    def failure(
        cls,
        kind: FailureKind,
        reason: str,
        iterations: int = 0,
        **details: Any,
    ) -> "SegmentResult":
        return cls(
            success=False,
            iterations=iterations,
            kind=kind,
            reason=reason,
            details=details,
        )


@dataclass(eq=False)
class SearchNode:
    """
    A floor cell plus its A* bookkeeping.

    `parent` is only used to retrace the route once the goal is reached.
    """

    cell: GridCell
    g_cost: float = math.inf
    h_cost: float = 0.0
    parent: Optional["SearchNode"] = None
    closed: bool = False

    @property
    def f_cost(self) -> float:
        return self.g_cost + self.h_cost

    def calculate_h(self, target: Vec3) -> None:
        dx = (self.cell.x + 0.5) - target.x
        dy = (self.cell.y + 1.0) - target.y
        dz = (self.cell.z + 0.5) - target.z
        self.h_cost = math.sqrt(dx * dx + dy * dy + dz * dz)


def _neighbour_offsets(allow_diagonal: bool) -> Tuple[Tuple[int, int, int], ...]:
    offsets = []
    for dx in (-1, 0, 1):
        for dy in (-1, 0, 1):
            for dz in (-1, 0, 1):
                if dx == 0 and dy == 0 and dz == 0:
                    continue
                # Only X/Z diagonals are restricted; vertical combos stay.
                if not allow_diagonal and abs(dx) + abs(dz) > 1:
                    continue
                offsets.append((dx, dy, dz))
    return tuple(offsets)


def move_cost(dx: int, dy: int, dz: int) -> float:
    """1.0 for axis-aligned steps, √2 for any multi-axis step."""
    if abs(dx) + abs(dy) + abs(dz) > 1:
        return DIAGONAL_COST
    return 1.0


class AStarPathfinder:
    """
    Grid A* between two waypoints of the same world.

    One instance can run many searches; each call to find_segment()
    starts from a clean node table.
    """

    def __init__(
        self,
        blocks: BlockAccess,
        *,
        max_iterations: int = 5000,
        allow_diagonal: bool = True,
    ) -> None:
        self._blocks = blocks
        self.max_iterations = max_iterations
        self.allow_diagonal = allow_diagonal
        self._offsets = _neighbour_offsets(allow_diagonal)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def find_segment(self, start: Waypoint, end: Waypoint) -> SegmentResult:
        """
        A* search from `start` to `end`.

        Returns a SegmentResult with:
          - points: dense feet positions from start floor to goal floor
          - cost: accumulated move cost of the route
          - kind/reason: why the search failed, if it did

        This function does not mutate world state.
        """
        if start.world != end.world:
            return SegmentResult.failure(
                FailureKind.INVALID_INPUT,
                "world_mismatch",
                start_world=start.world,
                end_world=end.world,
            )

        grid = NavGrid(self._blocks, start.world)
        target = end.position

        start_cell = grid.resolve_floor_cell(start.position)
        if not grid.is_walkable_floor(start_cell):
            return SegmentResult.failure(
                FailureKind.INVALID_INPUT,
                "invalid_start_floor",
                position=_xyz(start.position),
                floor=_cell_tuple(start_cell),
            )

        end_cell = grid.resolve_floor_cell(target)
        if not grid.is_walkable_floor(end_cell):
            return SegmentResult.failure(
                FailureKind.INVALID_INPUT,
                "invalid_end_floor",
                position=_xyz(target),
                floor=_cell_tuple(end_cell),
            )

        start_node = SearchNode(start_cell, g_cost=0.0)
        start_node.calculate_h(target)

        nodes: Dict[int, SearchNode] = {start_cell.packed_id: start_node}
        counter = itertools.count()
        open_heap: List[Tuple[float, int, SearchNode]] = []
        heapq.heappush(open_heap, (start_node.f_cost, next(counter), start_node))

        iterations = 0

        while open_heap:
            if iterations > self.max_iterations:
                log.debug(
                    "A* budget exhausted world=%s start=%s end=%s iterations=%d",
                    start.world,
                    start_cell,
                    end_cell,
                    iterations,
                )
                return SegmentResult.failure(
                    FailureKind.UNREACHABLE,
                    "max_iterations_exhausted",
                    iterations=iterations,
                    max_iterations=self.max_iterations,
                )

            f_cost, _, current = heapq.heappop(open_heap)

            # Lazy deletion: skip entries superseded by a cheaper push.
            if current.closed or f_cost > current.f_cost:
                continue

            iterations += 1

            if grid.feet_position(current.cell).distance_sq(target) < ARRIVAL_DISTANCE_SQ:
                return SegmentResult(
                    success=True,
                    points=self._retrace(grid, current),
                    cost=current.g_cost,
                    iterations=iterations,
                )

            current.closed = True

            for dx, dy, dz in self._offsets:
                cell = current.cell.offset(dx, dy, dz)

                if not self._can_walk(grid, current.cell, cell):
                    continue

                neighbour = nodes.get(cell.packed_id)
                if neighbour is None:
                    neighbour = SearchNode(cell)
                    nodes[cell.packed_id] = neighbour

                if neighbour.closed:
                    continue

                new_g = current.g_cost + move_cost(dx, dy, dz)
                if new_g < neighbour.g_cost:
                    neighbour.g_cost = new_g
                    neighbour.calculate_h(target)
                    neighbour.parent = current
                    heapq.heappush(open_heap, (neighbour.f_cost, next(counter), neighbour))

        return SegmentResult.failure(
            FailureKind.UNREACHABLE,
            "no_path_found",
            iterations=iterations,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _can_walk(self, grid: NavGrid, src: GridCell, dst: GridCell) -> bool:
        """
        Check a move between floor cells.

        Feet and head occupy dst.y + 1 and dst.y + 2. For X/Z diagonals
        the two corner columns must be clear at both heights.
        """
        if not grid.is_walkable_floor(dst):
            return False

        if grid.is_blocking(dst.above(1)) or grid.is_blocking(dst.above(2)):
            return False

        if src.x != dst.x and src.z != dst.z:
            for level in (1, 2):
                corner_a = GridCell(src.x, dst.y + level, dst.z)
                corner_b = GridCell(dst.x, dst.y + level, src.z)
                if grid.is_blocking(corner_a) or grid.is_blocking(corner_b):
                    return False

        return True

    @staticmethod
    def _retrace(grid: NavGrid, node: SearchNode) -> List[Waypoint]:
        """Walk parent links back to the start and emit feet positions."""
        points: List[Waypoint] = []
        current: Optional[SearchNode] = node
        while current is not None:
            points.append(Waypoint.at(grid.world, grid.feet_position(current.cell)))
            current = current.parent
        points.reverse()
        return points


def find_segment(
    blocks: BlockAccess,
    start: Waypoint,
    end: Waypoint,
    max_iterations: int = 5000,
    allow_diagonal: bool = True,
) -> SegmentResult:
    """Functional wrapper around AStarPathfinder.find_segment."""
    finder = AStarPathfinder(
        blocks,
        max_iterations=max_iterations,
        allow_diagonal=allow_diagonal,
    )
    return finder.find_segment(start, end)


def _xyz(pos: Vec3) -> Tuple[float, float, float]:
    return (pos.x, pos.y, pos.z)


def _cell_tuple(cell: GridCell) -> Tuple[int, int, int]:
    return (cell.x, cell.y, cell.z)
