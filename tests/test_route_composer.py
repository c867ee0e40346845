# tests/test_route_composer.py
"""
Tests for route composition over several waypoints.

Covers:
- dense path concatenation without seam duplicates
- progress reporting (also for the failing segment)
- atomic failure naming the segment
- deferred composition through a Future
- RouteComposer monitoring events and unwrap()
"""

from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor
from typing import List, Tuple

import pytest

from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent
from npc_core.nav import (
    FailureKind,
    PathfindingError,
    RouteComposer,
    compose,
    compose_deferred,
)
from npc_core.testing.fakes import feet, flat_world
from env.schema import PathfindingSettings


def test_chain_has_no_duplicate_seams():
    world = flat_world(10)
    waypoints = [feet(1, 1), feet(4, 1), feet(4, 5), feet(8, 5)]

    result = compose(world, waypoints)

    assert result.success
    path = result.path
    assert path is not None
    assert len(path) >= len(waypoints)
    for a, b in zip(path.points, path.points[1:]):
        assert a.distance_sq(b) > 1e-6
    assert path.points[0].position == waypoints[0].position
    assert path.points[-1].position == waypoints[-1].position
    assert path.waypoints == tuple(waypoints)
    assert path.terminal == waypoints[-1]
    # 3 + 4 + 4 steps along axes, plus the start point.
    assert len(path) == 12


def test_too_few_waypoints():
    world = flat_world(4)

    for waypoints in ([], [feet(1, 1)]):
        result = compose(world, waypoints)
        assert not result.success
        assert result.kind is FailureKind.INVALID_INPUT
        assert result.reason == "too_few_waypoints"
        assert result.path is None


def test_progress_reported_before_failure():
    world = flat_world(6)
    calls: List[Tuple[int, int]] = []

    # Second segment ends over the void.
    waypoints = [feet(1, 1), feet(3, 1), feet(20, 20), feet(4, 4)]
    result = compose(world, waypoints, progress_callback=lambda i, n: calls.append((i, n)))

    assert not result.success
    assert result.segment_index == 1
    assert result.kind is FailureKind.INVALID_INPUT
    assert result.reason == "invalid_end_floor"
    assert result.path is None
    assert calls == [(1, 3), (2, 3)]


def test_unreachable_segment_fails_atomically():
    world = flat_world(4)
    world.fill("overworld", 8, 63, 8, 10, 63, 10)

    result = compose(world, [feet(1, 1), feet(2, 2), feet(9, 9)])

    assert not result.success
    assert result.segment_index == 1
    assert result.kind is FailureKind.UNREACHABLE
    assert result.path is None

    with pytest.raises(PathfindingError) as excinfo:
        result.unwrap()
    assert excinfo.value.code == "no_path_found"
    assert excinfo.value.details["segment_index"] == 1
    assert excinfo.value.details["kind"] == "UNREACHABLE"


def test_unloaded_world_is_reported_not_raised():
    world = flat_world(6)
    world.unload_world("overworld")
    calls: List[Tuple[int, int]] = []

    result = compose(
        world,
        [feet(1, 1), feet(4, 4)],
        progress_callback=lambda i, n: calls.append((i, n)),
    )

    assert not result.success
    assert result.kind is FailureKind.INVALID_INPUT
    assert result.reason == "world_unavailable"
    assert result.segment_index == 0
    assert result.details["world"] == "overworld"
    assert calls == [(1, 1)]

    future = compose_deferred(world, [feet(1, 1), feet(4, 4)])
    assert future.result(timeout=10).reason == "world_unavailable"


def test_compose_deferred_matches_sync():
    world = flat_world(8)
    waypoints = [feet(0, 0), feet(6, 3), feet(2, 7)]

    with ThreadPoolExecutor(max_workers=1) as pool:
        future = compose_deferred(world, waypoints, executor=pool)
        deferred = future.result(timeout=10)

    sync = compose(world, waypoints)
    assert deferred.success
    assert deferred.path == sync.path


def test_compose_deferred_default_executor():
    world = flat_world(6)

    future = compose_deferred(world, [feet(0, 0), feet(5, 5)])

    assert future.result(timeout=10).unwrap().points[-1].position == feet(5, 5).position


def test_route_composer_publishes_events():
    world = flat_world(6)
    bus = EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)

    composer = RouteComposer(
        world,
        PathfindingSettings(max_iterations=5000, allow_diagonal=False),
        bus=bus,
    )

    ok = composer.compose([feet(0, 0), feet(3, 3)])
    bad = composer.compose([feet(0, 0), feet(30, 30)])

    assert ok.success
    # No diagonals: every step is axis-aligned.
    for a, b in zip(ok.path.points, ok.path.points[1:]):
        assert abs(a.x - b.x) + abs(a.z - b.z) == pytest.approx(1.0)
    assert not bad.success

    assert [e.event_type for e in events] == [EventType.ROUTE_COMPOSED, EventType.ROUTE_FAILED]
    assert events[0].payload["points"] == len(ok.path)
    assert events[1].payload["reason"] == "invalid_end_floor"
    assert events[1].payload["segment_index"] == 0


def test_route_composer_deferred():
    world = flat_world(6)

    with ThreadPoolExecutor(max_workers=1) as pool:
        composer = RouteComposer(world, executor=pool)
        result = composer.compose_deferred([feet(0, 0), feet(2, 0), feet(2, 2)]).result(timeout=10)

    assert result.success
    assert len(result.path) == 5
