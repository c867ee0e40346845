# core shared value types: Vec3, Waypoint, GridCell, Path, MotionSample
# src/contracts/types.py

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import Enum, auto
from typing import Tuple


# ---------------------------------------------------------------------------
# Geometry
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Vec3:
    """Immutable 3D vector in world (block) units."""

    x: float
    y: float
    z: float

    def __add__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: "Vec3") -> "Vec3":
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def scale(self, factor: float) -> "Vec3":
        return Vec3(self.x * factor, self.y * factor, self.z * factor)

    def with_y(self, y: float) -> "Vec3":
        return Vec3(self.x, y, self.z)

    def horizontal(self) -> "Vec3":
        """Projection onto the x-z plane."""
        return Vec3(self.x, 0.0, self.z)

    def length_sq(self) -> float:
        return self.x * self.x + self.y * self.y + self.z * self.z

    def length(self) -> float:
        return math.sqrt(self.length_sq())

    def distance_sq(self, other: "Vec3") -> float:
        return (self - other).length_sq()

    def normalized(self) -> "Vec3":
        length = self.length()
        if length == 0.0:
            return Vec3(0.0, 0.0, 0.0)
        return self.scale(1.0 / length)

    def block_coords(self) -> Tuple[int, int, int]:
        """Integer coordinates of the block containing this point."""
        return math.floor(self.x), math.floor(self.y), math.floor(self.z)


ZERO = Vec3(0.0, 0.0, 0.0)


@dataclass(frozen=True)
class Waypoint:
    """
    A feet position in a named world, plus the facing to hold there.

    Used both for caller-supplied route waypoints and for the dense
    points produced by the pathfinder (those carry yaw/pitch 0).
    """

    world: str
    x: float
    y: float
    z: float
    yaw: float = 0.0
    pitch: float = 0.0

    @property
    def position(self) -> Vec3:
        return Vec3(self.x, self.y, self.z)

    def distance_sq(self, other: "Waypoint") -> float:
        return self.position.distance_sq(other.position)

    @classmethod
    def at(cls, world: str, pos: Vec3, yaw: float = 0.0, pitch: float = 0.0) -> "Waypoint":
        return cls(world=world, x=pos.x, y=pos.y, z=pos.z, yaw=yaw, pitch=pitch)


@dataclass(frozen=True)
class GridCell:
    """
    Integer cell an actor stands ON (y is the floor block, not the feet).
    """

    x: int
    y: int
    z: int

    @property
    def packed_id(self) -> int:
        return pack_cell(self.x, self.y, self.z)

    def offset(self, dx: int, dy: int, dz: int) -> "GridCell":
        return GridCell(self.x + dx, self.y + dy, self.z + dz)

    def above(self, n: int = 1) -> "GridCell":
        return GridCell(self.x, self.y + n, self.z)


def pack_cell(x: int, y: int, z: int) -> int:
    """26 bits x, 26 bits z, 12 bits y; masked so negatives pack too."""
    return (x & 0x3FFFFFF) | ((z & 0x3FFFFFF) << 26) | ((y & 0xFFF) << 52)


# ---------------------------------------------------------------------------
# Blocks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoundingBox:
    """Collision box in block-local coordinates, each axis in [0, 1]."""

    min_x: float
    min_y: float
    min_z: float
    max_x: float
    max_y: float
    max_z: float

    def covers(self, local_x: float, local_z: float) -> bool:
        return (
            self.min_x <= local_x <= self.max_x
            and self.min_z <= local_z <= self.max_z
        )


FULL_BOX = BoundingBox(0.0, 0.0, 0.0, 1.0, 1.0, 1.0)


@dataclass(frozen=True)
class BlockState:
    """
    Material flags plus collision geometry of a single block.

    Flags mirror what a game server reports for a block:
      - air: empty cell
      - solid: has a solid material (stone, planks, slab, carpet, door)
      - passable: entities can move through it (plants, open doors)
      - liquid: water / lava
      - carpet: thin floor covering with special stacking rules
      - openable: door / trapdoor / gate; `is_open` is its current state
    """

    material: str
    air: bool = False
    solid: bool = True
    passable: bool = False
    liquid: bool = False
    carpet: bool = False
    openable: bool = False
    is_open: bool = False
    boxes: Tuple[BoundingBox, ...] = (FULL_BOX,)

    @property
    def is_passable(self) -> bool:
        if self.openable:
            return self.is_open
        return self.air or self.passable or self.liquid


# ---------------------------------------------------------------------------
# Routes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Path:
    """
    A composed route.

    points:
        Dense, grid-aligned feet positions the follower steps through.
    waypoints:
        The sparse waypoints the caller asked for, in order.
    """

    points: Tuple[Waypoint, ...]
    waypoints: Tuple[Waypoint, ...] = field(default_factory=tuple)

    def __len__(self) -> int:
        return len(self.points)

    @property
    def world(self) -> str:
        return self.points[0].world

    @property
    def terminal(self) -> Waypoint | None:
        if self.waypoints:
            return self.waypoints[-1]
        return self.points[-1] if self.points else None


# ---------------------------------------------------------------------------
# Walking
# ---------------------------------------------------------------------------


class WalkingResult(Enum):
    """How a walk ended."""

    SUCCESS = auto()
    CANCELLED = auto()


class WalkState(Enum):
    IDLE = auto()
    FOLLOWING = auto()
    COMPLETED = auto()
    CANCELED = auto()


@dataclass(frozen=True)
class MotionSample:
    """One tick of simulated motion, ready for the presentation layer."""

    tick: int
    position: Vec3
    movement: Vec3
    yaw: float
    pitch: float
    on_ground: bool
