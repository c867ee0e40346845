# chain per-segment searches into one dense route
# src/npc_core/nav/route.py
"""
Route composition: waypoints → one dense Path.

- compose(): synchronous, one A* search per consecutive waypoint pair.
- compose_deferred(): same work on a worker thread, returns a Future.
- RouteComposer: bundles a block store, settings and a monitoring bus.

Composition is atomic: either every segment succeeds and a Path is
returned, or the first failing segment is reported and no Path exists.
"""

from __future__ import annotations

import logging
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from threading import Lock
from typing import Any, Callable, Dict, List, Optional, Sequence

from contracts.types import Path, Waypoint
from contracts.world import BlockAccess, WorldUnavailableError
from env.schema import PathfindingSettings
from monitoring.bus import EventBus
from monitoring.events import EventType
from monitoring.logger import log_event
from .pathfinder import AStarPathfinder, FailureKind, SegmentResult


log = logging.getLogger(__name__)

# progress_callback(completed_segments, total_segments)
ProgressCallback = Callable[[int, int], None]

SEAM_DISTANCE_SQ = 1e-6


# ---------------------------------------------------------------------------
# Errors & results
# ---------------------------------------------------------------------------


@dataclass
class PathfindingError(RuntimeError):
    """
    Raised by RouteResult.unwrap() when composition failed.

    `code` is the failure reason (e.g. "no_path_found"); `details` carries
    the failure kind, the segment index and search diagnostics.
    """

    code: str
    details: dict[str, Any]

    def __str__(self) -> str:
        return f"PathfindingError(code={self.code!r}, details={self.details!r})"


@dataclass
class RouteResult:
    """Outcome of composing a route over an ordered waypoint list."""

    success: bool
    path: Optional[Path] = None
    kind: Optional[FailureKind] = None
    reason: Optional[str] = None
    segment_index: Optional[int] = None
    iterations: int = 0
    details: Dict[str, Any] = field(default_factory=dict)

    def unwrap(self) -> Path:
        if self.success and self.path is not None:
            return self.path
        details = dict(self.details)
        details["kind"] = self.kind.name if self.kind else None
        details["segment_index"] = self.segment_index
        raise PathfindingError(code=self.reason or "unknown", details=details)


# ---------------------------------------------------------------------------
# Composition
# ---------------------------------------------------------------------------


def compose(
    blocks: BlockAccess,
    waypoints: Sequence[Waypoint],
    max_iterations: int = 5000,
    allow_diagonal: bool = True,
    progress_callback: Optional[ProgressCallback] = None,
) -> RouteResult:
    """
    Compose a dense Path through `waypoints` in order.

    progress_callback(i + 1, total) is called after every segment, also
    the failing one, before the failure is reported.
    """
    if len(waypoints) < 2:
        return RouteResult(
            success=False,
            kind=FailureKind.INVALID_INPUT,
            reason="too_few_waypoints",
            details={"waypoints": len(waypoints)},
        )

    finder = AStarPathfinder(
        blocks,
        max_iterations=max_iterations,
        allow_diagonal=allow_diagonal,
    )
    total = len(waypoints) - 1
    points: List[Waypoint] = []
    iterations = 0

    for i in range(total):
        try:
            segment = finder.find_segment(waypoints[i], waypoints[i + 1])
        except WorldUnavailableError as exc:
            segment = SegmentResult.failure(
                FailureKind.INVALID_INPUT,
                "world_unavailable",
                world=exc.world,
            )
        iterations += segment.iterations

        if progress_callback is not None:
            progress_callback(i + 1, total)

        if not segment.success:
            return RouteResult(
                success=False,
                kind=segment.kind,
                reason=segment.reason,
                segment_index=i,
                iterations=iterations,
                details=dict(segment.details),
            )

        seg_points = segment.points
        if points and seg_points and _is_seam(points[-1], seg_points[0]):
            seg_points = seg_points[1:]
        points.extend(seg_points)

    path = Path(points=tuple(points), waypoints=tuple(waypoints))
    return RouteResult(success=True, path=path, iterations=iterations)


def _is_seam(last: Waypoint, first: Waypoint) -> bool:
    return last.world == first.world and last.distance_sq(first) < SEAM_DISTANCE_SQ


_executor: Optional[ThreadPoolExecutor] = None
_executor_lock = Lock()


def _default_executor() -> ThreadPoolExecutor:
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(max_workers=2, thread_name_prefix="route-compose")
        return _executor


def compose_deferred(
    blocks: BlockAccess,
    waypoints: Sequence[Waypoint],
    max_iterations: int = 5000,
    allow_diagonal: bool = True,
    progress_callback: Optional[ProgressCallback] = None,
    executor: Optional[ThreadPoolExecutor] = None,
) -> "Future[RouteResult]":
    """
    Run compose() on a worker thread.

    The progress callback runs on the worker thread. The waypoint list is
    copied before submission so later caller edits do not leak in.
    """
    pool = executor or _default_executor()
    return pool.submit(
        compose,
        blocks,
        tuple(waypoints),
        max_iterations,
        allow_diagonal,
        progress_callback,
    )


class RouteComposer:
    """
    Composer bound to one block store and one set of search settings.

    Publishes ROUTE_COMPOSED / ROUTE_FAILED events when a bus is given.
    """

    def __init__(
        self,
        blocks: BlockAccess,
        settings: Optional[PathfindingSettings] = None,
        *,
        bus: Optional[EventBus] = None,
        executor: Optional[ThreadPoolExecutor] = None,
    ) -> None:
        self._blocks = blocks
        self.settings = settings or PathfindingSettings()
        self._bus = bus
        self._executor = executor

    def compose(
        self,
        waypoints: Sequence[Waypoint],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> RouteResult:
        result = compose(
            self._blocks,
            waypoints,
            self.settings.max_iterations,
            self.settings.allow_diagonal,
            progress_callback,
        )
        self._report(result, len(waypoints))
        return result

    def compose_deferred(
        self,
        waypoints: Sequence[Waypoint],
        progress_callback: Optional[ProgressCallback] = None,
    ) -> "Future[RouteResult]":
        pool = self._executor or _default_executor()
        return pool.submit(self.compose, tuple(waypoints), progress_callback)

    def _report(self, result: RouteResult, waypoint_count: int) -> None:
        if result.success and result.path is not None:
            log.info(
                "Route composed waypoints=%d points=%d iterations=%d",
                waypoint_count,
                len(result.path),
                result.iterations,
            )
            log_event(
                self._bus,
                module="npc_core.nav.route",
                event_type=EventType.ROUTE_COMPOSED,
                message="Route composed",
                payload={
                    "waypoints": waypoint_count,
                    "points": len(result.path),
                    "iterations": result.iterations,
                },
            )
            return

        log.warning(
            "Route failed reason=%s kind=%s segment=%s",
            result.reason,
            result.kind.name if result.kind else None,
            result.segment_index,
        )
        log_event(
            self._bus,
            module="npc_core.nav.route",
            event_type=EventType.ROUTE_FAILED,
            message="Route composition failed",
            payload={
                "reason": result.reason,
                "kind": result.kind.name if result.kind else None,
                "segment_index": result.segment_index,
                "iterations": result.iterations,
                "details": result.details,
            },
        )
