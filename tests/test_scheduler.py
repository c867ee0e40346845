# tests/test_scheduler.py

from __future__ import annotations

from typing import List

from contracts.types import WalkingResult
from npc_core.nav import PathFollower, compose
from npc_core.scheduler import TickScheduler
from npc_core.testing.fakes import feet, flat_world
from npc_core.tracing import MotionTracer


def make_follower(world, actor_id, waypoints, tracer, ends):
    return PathFollower(
        actor_id,
        compose(world, waypoints).unwrap(),
        world,
        tracer,
        start=waypoints[0],
        on_end=ends.append,
    )


def test_tick_advances_all_and_drops_finished():
    world = flat_world(10)
    tracer = MotionTracer()
    ends: List[WalkingResult] = []
    short = make_follower(world, "a", [feet(1, 1), feet(2, 1)], tracer, ends)
    long = make_follower(world, "b", [feet(1, 3), feet(8, 3)], tracer, ends)

    scheduler = TickScheduler()
    scheduler.add(short)
    scheduler.add(long)
    scheduler.add(short)  # duplicates ignored
    scheduler.add(None)   # vetoed walk
    assert len(scheduler) == 2

    active = scheduler.tick()
    assert active == 2

    ran = scheduler.run(max_ticks=500)
    assert len(scheduler) == 0
    assert short.finished and long.finished
    assert ends == [WalkingResult.SUCCESS, WalkingResult.SUCCESS]
    assert ran < 500
    assert tracer.samples("a") and tracer.samples("b")


def test_run_respects_budget_and_cancel_all():
    world = flat_world(10)
    ends: List[WalkingResult] = []
    follower = make_follower(world, "a", [feet(0, 0), feet(9, 9)], MotionTracer(), ends)

    scheduler = TickScheduler()
    scheduler.add(follower)

    assert scheduler.run(max_ticks=3) == 3
    assert len(scheduler) == 1
    assert scheduler.ticks == 3

    scheduler.cancel_all()
    assert len(scheduler) == 0
    assert ends == [WalkingResult.CANCELLED]


def test_finished_task_is_not_added():
    world = flat_world(4)
    ends: List[WalkingResult] = []
    follower = make_follower(world, "a", [feet(0, 0), feet(1, 0)], MotionTracer(), ends)
    follower.cancel()

    scheduler = TickScheduler()
    scheduler.add(follower)

    assert len(scheduler) == 0
    assert scheduler.tick() == 0
