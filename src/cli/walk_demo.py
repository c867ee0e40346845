# src/cli/walk_demo.py
"""
Offline walk demo.

Builds a small yard (wall, door, slab), composes a route across it with
the active walker profile, runs the path follower to completion and
prints the motion samples as a table.

    python -m cli.walk_demo --profile strict_grid --events-log logs/walker/demo.log
"""

import argparse
import logging
import sys
from pathlib import Path

from rich.console import Console
from rich.table import Table

from contracts.types import Waypoint
from env.loader import load_walker_profile
from monitoring.bus import EventBus
from monitoring.logger import JsonFileLogger
from monitoring.logging_config import configure_logging
from npc_core.scheduler import TickScheduler
from npc_core.testing.fakes import DEFAULT_WORLD, build_demo_world
from npc_core.tracing import MotionTracer
from npc_core.walker import NpcWalker


log = logging.getLogger(__name__)


def _demo_waypoints():
    return [
        Waypoint(DEFAULT_WORLD, 2.5, 64.0, 2.5, yaw=0.0),
        Waypoint(DEFAULT_WORLD, 13.5, 64.0, 4.5),
        Waypoint(DEFAULT_WORLD, 11.5, 64.5, 10.5, yaw=90.0),
    ]


def _render(console: Console, tracer: MotionTracer, actor_id: str) -> None:
    table = Table(show_header=True, header_style="bold magenta", title=f"Motion: {actor_id}")
    table.add_column("Tick", justify="right")
    table.add_column("X", justify="right")
    table.add_column("Y", justify="right")
    table.add_column("Z", justify="right")
    table.add_column("Yaw", justify="right")
    table.add_column("Pitch", justify="right")
    table.add_column("Ground")

    for s in tracer.samples(actor_id):
        table.add_row(
            str(s.tick),
            f"{s.position.x:.3f}",
            f"{s.position.y:.3f}",
            f"{s.position.z:.3f}",
            f"{s.yaw:.1f}",
            f"{s.pitch:.1f}",
            "[green]yes[/green]" if s.on_ground else "[yellow]no[/yellow]",
        )
    console.print(table)

    doors = tracer.doors()
    if doors:
        door_table = Table(show_header=True, header_style="bold cyan", title="Doors")
        door_table.add_column("Cell")
        door_table.add_column("Action")
        for d in doors:
            door_table.add_row(f"({d.cell.x}, {d.cell.y}, {d.cell.z})", "open" if d.opened else "close")
        console.print(door_table)


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Compose a route across a demo yard and simulate the walk."
    )
    parser.add_argument("--profile", default=None, help="Walker profile name (from walker.yaml)")
    parser.add_argument("--config-root", default=None, help="Directory containing walker.yaml")
    parser.add_argument(
        "--no-diagonal",
        action="store_true",
        help="Disable X/Z diagonal moves regardless of the profile",
    )
    parser.add_argument("--max-ticks", type=int, default=2000, help="Tick budget for the walk")
    parser.add_argument("--events-log", default=None, help="Write monitoring events as JSONL here")
    args = parser.parse_args()

    config_root = Path(args.config_root) if args.config_root else None
    profile = load_walker_profile(args.profile, config_root)
    if args.no_diagonal:
        profile.pathfinding.allow_diagonal = False

    configure_logging(profile.logging)

    bus = EventBus()
    events_log = args.events_log or profile.logging.events_log
    json_logger = JsonFileLogger(Path(events_log), bus) if events_log else None

    console = Console()
    tracer = MotionTracer()
    blocks = build_demo_world()
    waypoints = _demo_waypoints()

    walker = NpcWalker(
        "demo-npc",
        waypoints[0],
        blocks,
        tracer,
        settings=profile,
        bus=bus,
    )

    try:
        result, follower = walker.walk_route(
            waypoints,
            progress_callback=lambda done, total: log.info("Segment %d/%d composed", done, total),
        )
        if not result.success:
            console.print(
                f"[bold red]Route failed:[/bold red] {result.reason} "
                f"(segment {result.segment_index}, kind {result.kind.name if result.kind else '-'})"
            )
            sys.exit(1)

        scheduler = TickScheduler()
        scheduler.add(follower)
        ticks = scheduler.run(args.max_ticks)
        if len(scheduler):
            scheduler.cancel_all()

        _render(console, tracer, walker.actor_id)
        console.print(
            f"[bold]Profile:[/bold] {profile.name}  "
            f"[bold]Points:[/bold] {len(result.path)}  "
            f"[bold]Ticks:[/bold] {ticks}  "
            f"[bold]State:[/bold] {follower.walk_state.name if follower else 'VETOED'}"
        )
    finally:
        if json_logger is not None:
            json_logger.close()


if __name__ == "__main__":
    main()
