# tests/test_mover.py
"""
Tests for PathFollower: per-tick movement, physics, doors and lifecycle.

Synthetic worlds: stone floor at y=63 (feet at y=64).
"""

from __future__ import annotations

from typing import List

from contracts.types import GridCell, WalkingResult, WalkState, Waypoint
from env.schema import MovementSettings
from monitoring.bus import EventBus
from monitoring.events import EventType, MonitoringEvent
from npc_core.blocks import AIR, STONE, door, slab
from npc_core.nav import NavGrid, PathFollower, compose
from npc_core.testing.fakes import DEFAULT_WORLD as W, RecordingWalkListener, feet, flat_world
from npc_core.tracing import MotionTracer


def make_follower(world, waypoints, **kwargs):
    path = compose(world, waypoints).unwrap()
    tracer = MotionTracer()
    ends: List[WalkingResult] = []
    follower = PathFollower(
        "npc-1",
        path,
        world,
        tracer,
        start=waypoints[0],
        on_end=ends.append,
        **kwargs,
    )
    return follower, tracer, ends


def run(follower: PathFollower, max_ticks: int = 500) -> int:
    ticks = 0
    while follower.tick():
        ticks += 1
        assert ticks < max_ticks, "walk did not finish"
    return ticks


def door_world():
    """Wall at x=3 with a single closed door at (3, 64, 4)."""
    world = flat_world(8)
    world.fill(W, 3, 64, 0, 3, 65, 7, STONE)
    world.set_block(W, 3, 64, 4, door())
    world.set_block(W, 3, 65, 4, AIR)
    return world


def test_flat_walk_completes_at_terminal_waypoint():
    world = flat_world(8)
    end = Waypoint(W, 5.5, 64.0, 1.5, yaw=45.0, pitch=10.0)
    follower, tracer, ends = make_follower(world, [feet(1, 1), end])

    run(follower)

    assert ends == [WalkingResult.SUCCESS]
    assert follower.walk_state is WalkState.COMPLETED
    assert follower.position == end.position
    assert tracer.snaps()[-1].waypoint == end
    assert follower.state.prev_yaw == 45.0
    # Horizontal speed never exceeds the configured speed.
    for s in tracer.samples():
        assert s.movement.horizontal().length() <= 0.35 + 1e-9
        assert s.on_ground


def test_half_block_ledge_steps_up_without_vertical_velocity():
    world = flat_world(8)
    world.set_block(W, 4, 64, 1, slab())
    follower, tracer, ends = make_follower(world, [feet(1, 1), feet(4, 1, y=64.5)])

    run(follower)

    samples = tracer.samples()
    assert ends == [WalkingResult.SUCCESS]
    assert all(s.on_ground for s in samples)
    assert any(abs(s.movement.y - 0.5) < 1e-9 for s in samples)
    assert follower.state.vertical_velocity == 0.0
    assert follower.position.y == 64.5


def test_full_block_ledge_jumps():
    world = flat_world(8)
    world.set_block(W, 4, 64, 1, STONE)
    follower, tracer, ends = make_follower(world, [feet(1, 1), feet(4, 1, y=65.0)])

    run(follower)

    samples = tracer.samples()
    airborne = [s for s in samples if not s.on_ground]
    assert airborne, "expected at least one airborne tick"
    # Jump velocity 0.5 plus one tick of gravity.
    assert abs(airborne[0].movement.y - 0.42) < 1e-9
    assert ends == [WalkingResult.SUCCESS]
    assert follower.position == feet(4, 1, y=65.0).position


def test_grounded_flag_never_floats_above_step_height():
    world = flat_world(10)
    # A row of slabs to climb and leave, then a one-block platform.
    world.fill(W, 3, 64, 0, 3, 64, 9, slab())
    world.fill(W, 6, 64, 0, 9, 64, 9, STONE)
    follower, tracer, ends = make_follower(world, [feet(1, 1), feet(8, 3, y=65.0)])

    run(follower)
    assert ends == [WalkingResult.SUCCESS]

    grid = NavGrid(world, W)
    for s in tracer.samples():
        if s.on_ground:
            assert s.position.y - grid.ground_y(s.position) <= 0.55 + 1e-9


def test_yaw_turns_smoothly_and_settles():
    world = flat_world(12)
    follower, tracer, _ = make_follower(world, [feet(0, 0), feet(10, 0)])

    run(follower)

    yaws = [s.yaw for s in tracer.samples()]
    previous = 0.0
    for yaw in yaws:
        assert abs(yaw - previous) <= 15.0 + 1e-9
        assert -180.0 < yaw <= 180.0
        previous = yaw
    # Walking towards +x faces yaw -90.
    assert abs(yaws[-1] + 90.0) < 1e-9
    assert all(abs(s.pitch) < 1e-9 for s in tracer.samples())


def test_door_opened_and_closed_behind():
    world = door_world()
    follower, tracer, ends = make_follower(world, [feet(1, 4), feet(6, 4)])

    run(follower)

    cell = GridCell(3, 64, 4)
    assert [(d.cell, d.opened) for d in tracer.doors()] == [(cell, True), (cell, False)]
    assert not world.block_at(W, 3, 64, 4).is_open
    assert [c.cue for c in world.cues] == ["door_open", "door_close"]
    assert ends == [WalkingResult.SUCCESS]


def test_cancel_after_opening_door_closes_it_once():
    world = door_world()
    listener = RecordingWalkListener()
    follower, tracer, ends = make_follower(world, [feet(1, 4), feet(6, 4)], listener=listener)

    for _ in range(50):
        follower.tick()
        if tracer.doors():
            break
    assert world.block_at(W, 3, 64, 4).is_open

    follower.cancel()

    assert not world.block_at(W, 3, 64, 4).is_open
    assert [d.opened for d in tracer.doors()] == [True, False]
    assert ends == [WalkingResult.CANCELLED]
    assert [e.result for e in listener.stopped] == [WalkingResult.CANCELLED]
    assert follower.walk_state is WalkState.CANCELED

    # Cancelling again is a no-op.
    follower.cancel()
    assert not follower.tick()
    assert ends == [WalkingResult.CANCELLED]
    assert len(listener.stopped) == 1
    assert len(tracer.doors()) == 2


def test_cancel_after_success_is_noop():
    world = flat_world(6)
    listener = RecordingWalkListener()
    follower, tracer, ends = make_follower(world, [feet(1, 1), feet(3, 1)], listener=listener)

    run(follower)
    follower.cancel()

    assert ends == [WalkingResult.SUCCESS]
    assert [e.result for e in listener.stopped] == [WalkingResult.SUCCESS]


def test_commit_policy_and_listener_override():
    world = flat_world(6)
    committed: List[Waypoint] = []
    end = feet(4, 1)

    follower, _, _ = make_follower(
        world,
        [feet(1, 1), end],
        update_real_location=True,
        commit=committed.append,
    )
    run(follower)
    assert committed == [end]

    # A stop listener can veto the commit.
    committed.clear()
    listener = RecordingWalkListener(stop_update_real_location=False)
    follower, _, _ = make_follower(
        world,
        [feet(1, 1), end],
        update_real_location=True,
        commit=committed.append,
        listener=listener,
    )
    run(follower)
    assert committed == []


def test_cancel_commits_current_position():
    world = flat_world(8)
    committed: List[Waypoint] = []
    follower, _, _ = make_follower(
        world,
        [feet(1, 1), feet(6, 1)],
        update_real_location=True,
        commit=committed.append,
    )

    for _ in range(4):
        follower.tick()
    follower.cancel()

    assert len(committed) == 1
    assert committed[0].position == follower.position
    assert committed[0].world == W


def test_terminal_waypoint_is_resampled():
    world = flat_world(8)
    # Off-centre end: the dense path stops at the cell centre 0.57 away.
    end = Waypoint(W, 4.9, 64.0, 1.9, yaw=90.0)
    follower, tracer, ends = make_follower(world, [feet(1, 1), end])

    run(follower)

    assert ends == [WalkingResult.SUCCESS]
    assert follower.state.terminal_resamples == 1
    assert follower.position == end.position
    assert follower.points[-1] == end


def test_terminal_resample_budget():
    world = flat_world(8)
    end = Waypoint(W, 4.9, 64.0, 1.9)
    follower, tracer, ends = make_follower(
        world,
        [feet(1, 1), end],
        settings=MovementSettings(max_terminal_resamples=0),
    )

    run(follower)

    assert ends == [WalkingResult.SUCCESS]
    assert follower.position == feet(4, 1).position
    assert tracer.snaps() == []


def test_world_unload_cancels_walk():
    world = flat_world(8)
    bus = EventBus()
    events: List[MonitoringEvent] = []
    bus.subscribe(events.append)
    follower, _, ends = make_follower(world, [feet(1, 1), feet(6, 1)], bus=bus)

    follower.tick()
    follower.tick()
    world.unload_world(W)

    assert follower.tick() is False
    assert ends == [WalkingResult.CANCELLED]
    assert follower.walk_state is WalkState.CANCELED
    types = [e.event_type for e in events]
    assert EventType.TICK_EXCEPTION in types
    assert types[-1] is EventType.WALK_STOPPED


def test_world_unload_with_open_door():
    world = door_world()
    follower, tracer, ends = make_follower(world, [feet(1, 4), feet(6, 4)])

    for _ in range(50):
        follower.tick()
        if tracer.doors():
            break
    world.unload_world(W)

    assert follower.tick() is False
    assert ends == [WalkingResult.CANCELLED]
    assert follower.state.opened_doors == []


def test_walking_off_a_ledge_falls_instead_of_floating():
    world = flat_world(8, floor_y=62)
    # Upper floor for x < 4, one block above the lower floor.
    world.fill(W, 0, 63, 0, 3, 63, 7, STONE)
    follower, tracer, ends = make_follower(world, [feet(1, 1), feet(6, 1, y=63.0)])

    run(follower)

    assert ends == [WalkingResult.SUCCESS]
    assert follower.position == feet(6, 1, y=63.0).position

    samples = tracer.samples()
    airborne = [s for s in samples if not s.on_ground]
    assert airborne, "expected the step off the ledge to be airborne"
    # Gravity starts from rest at the edge.
    assert abs(airborne[0].movement.y + 0.08) < 1e-9

    grid = NavGrid(world, W)
    for s in samples:
        if s.on_ground:
            assert s.position.y - grid.ground_y(s.position) <= 0.55 + 1e-9


def test_jump_takeoff_is_reported_airborne():
    world = flat_world(8)
    world.set_block(W, 4, 64, 1, STONE)
    follower, tracer, _ = make_follower(world, [feet(1, 1), feet(4, 1, y=65.0)])

    run(follower)

    samples = tracer.samples()
    takeoff = next(i for i, s in enumerate(samples) if s.movement.y > 0.0)
    assert not samples[takeoff].on_ground
    assert samples[takeoff].position.y < 65.0
    # The previous tick was spent on the ground.
    assert samples[takeoff - 1].on_ground


def test_replaced_door_is_forgotten_without_closing():
    world = door_world()
    follower, tracer, ends = make_follower(world, [feet(1, 4), feet(6, 4)])

    for _ in range(50):
        follower.tick()
        if tracer.doors():
            break
    cell = GridCell(3, 64, 4)
    assert follower.state.opened_doors == [cell]

    # The door is broken while the walk is in progress.
    world.set_block(W, 3, 64, 4, AIR)
    follower.tick()

    assert follower.state.opened_doors == []
    assert [d.opened for d in tracer.doors()] == [True]
    assert [c.cue for c in world.cues] == ["door_open"]

    run(follower)
    assert ends == [WalkingResult.SUCCESS]
    assert [c.cue for c in world.cues] == ["door_open"]
    assert len(tracer.doors()) == 1
