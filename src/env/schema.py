# PathfindingSettings, MovementSettings, LoggingSettings, WalkerProfile dataclasses
# src/env/schema.py

from dataclasses import dataclass, field
from typing import Optional


@dataclass
class PathfindingSettings:
    """Budget and neighbourhood rules for the A* search."""
    max_iterations: int = 5000
    allow_diagonal: bool = True


@dataclass
class MovementSettings:
    """
    Per-tick physics and steering constants for the path follower.

    Units are blocks and blocks/tick; angles in degrees.
    """
    speed: float = 0.35                  # horizontal blocks per tick
    step_height: float = 0.55            # max ledge climbed without a jump
    gravity: float = -0.08               # added to vertical velocity each airborne tick
    jump_velocity: float = 0.5           # initial vertical velocity of a jump
    terminal_velocity: float = -0.5      # fall speed clamp
    max_yaw_step: float = 15.0           # max yaw change per tick
    pitch_damping: float = 1.5           # look pitch is divided by this
    update_real_location: bool = False   # commit the end position to the actor
    max_terminal_resamples: int = 3      # extra tries to reach the final waypoint


@dataclass
class LoggingSettings:
    """Root log level and optional JSONL monitoring log path."""
    level: str = "INFO"
    events_log: Optional[str] = None


@dataclass
class WalkerProfile:
    """Resolved walker configuration for one active profile."""
    name: str = "default"
    pathfinding: PathfindingSettings = field(default_factory=PathfindingSettings)
    movement: MovementSettings = field(default_factory=MovementSettings)
    logging: LoggingSettings = field(default_factory=LoggingSettings)
