# navigation grid abstraction based on world blocks
# src/npc_core/nav/grid.py
"""
NavGrid: terrain queries over a BlockAccess for one world.

This module does not store terrain. It only:
- Classifies blocks for movement (floor, blocking, openable).
- Measures collision geometry (top surface at a local x/z offset).
- Resolves feet positions to floor cells and ground heights.

Everything here is read-only except the door helpers, which delegate
state changes to the block store.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from contracts.types import BlockState, GridCell, Vec3
from contracts.world import BlockAccess


# How many cells below the starting block floor / ground scans look at.
FLOOR_SEARCH_DEPTH = 6


@dataclass
class NavGrid:
    """
    Read-only view of one world for pathfinding and physics.

    Responsibilities:
    - Walkability tests (is_walkable_floor, is_blocking).
    - Collision-height sampling (collision_top_at, feet_y_at, ground_y).
    - Floor resolution from fractional feet positions.

    It does NOT:
    - Search for paths.
    - Own or cache any block.
    """

    blocks: BlockAccess
    world: str
    search_depth: int = FLOOR_SEARCH_DEPTH

    # ------------------------------------------------------------------
    # Block access
    # ------------------------------------------------------------------

    def block(self, cell: GridCell) -> BlockState:
        return self.blocks.block_at(self.world, cell.x, cell.y, cell.z)

    # ------------------------------------------------------------------
    # Classification
    # ------------------------------------------------------------------

    def is_walkable_floor(self, cell: GridCell) -> bool:
        """True if an actor can stand ON the block at `cell`."""
        block = self.block(cell)
        if block.air or block.liquid:
            return False
        if block.is_passable:
            return False
        return True

    def is_blocking(self, cell: GridCell) -> bool:
        """
        True if the block obstructs movement through its cell.

        Carpets only block when stacked under another carpet; passable
        blocks and openables never block.
        """
        block = self.block(cell)
        if block.air:
            return False

        if block.carpet:
            return self.block(cell.above()).carpet

        if block.is_passable:
            return False

        if block.openable:
            return False

        return True

    def is_door_like(self, cell: GridCell) -> bool:
        return self.block(cell).openable

    def is_door_open(self, cell: GridCell) -> bool:
        block = self.block(cell)
        return block.openable and block.is_open

    # ------------------------------------------------------------------
    # Geometry
    # ------------------------------------------------------------------

    def collision_top_at(self, cell: GridCell, local_x: float, local_z: float) -> float:
        """
        Top surface height inside the block, in [0, 1], at a local offset.

        Full block → 1.0, bottom slab → 0.5, stairs depend on the offset.
        """
        return _top_surface(self.block(cell), local_x, local_z)

    def feet_y_at(self, cell: GridCell) -> float:
        """Feet height of an actor standing at the centre of `cell`."""
        return cell.y + self.collision_top_at(cell, 0.5, 0.5)

    def feet_position(self, cell: GridCell) -> Vec3:
        return Vec3(cell.x + 0.5, self.feet_y_at(cell), cell.z + 0.5)

    def resolve_floor_cell(self, position: Vec3) -> GridCell:
        """
        Resolve the floor cell under a feet position.

        Scans down from the position's block, skipping openables and
        liquids, and returns the first solid, non-passable block. Falls
        back to the block directly below the position.
        """
        bx, by, bz = position.block_coords()

        for y in range(by, by - self.search_depth - 1, -1):
            block = self.blocks.block_at(self.world, bx, y, bz)

            if block.openable or block.liquid:
                continue

            if not block.solid or block.is_passable:
                continue

            return GridCell(bx, y, bz)

        return GridCell(bx, by - 1, bz)

    def ground_y(self, position: Vec3) -> float:
        """
        Height of the walkable surface under a position.

        Used by the path follower for gravity and step-ups. Openables are
        ignored so doors never act as ground; carpets count as a full
        block so walking over them is flat.
        """
        bx, by, bz = position.block_coords()
        local_x = position.x - bx
        local_z = position.z - bz

        for y in range(by, by - self.search_depth - 1, -1):
            block = self.blocks.block_at(self.world, bx, y, bz)

            if block.openable:
                continue

            if not block.solid or block.is_passable:
                continue

            if block.carpet:
                return y + 1.0

            if not block.boxes:
                return y + 1.0

            return y + _covering_top(block, local_x, local_z)

        highest = self.blocks.highest_block_y(self.world, bx, bz)
        if highest is None:
            return -math.inf
        return highest + 1.0

    # ------------------------------------------------------------------
    # Doors
    # ------------------------------------------------------------------

    def set_door_open(self, cell: GridCell, is_open: bool) -> None:
        """Toggle a door and play the matching cue."""
        self.blocks.set_open(self.world, cell.x, cell.y, cell.z, is_open)
        cue = "door_open" if is_open else "door_close"
        self.blocks.play_cue(self.world, cell.x, cell.y, cell.z, cue)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _covering_top(block: BlockState, local_x: float, local_z: float) -> float:
    """Max top of boxes covering the offset, else max top of all boxes."""
    tops = [bb.max_y for bb in block.boxes if bb.covers(local_x, local_z)]
    if not tops:
        tops = [bb.max_y for bb in block.boxes]
    return max(tops) if tops else 1.0


def _top_surface(block: BlockState, local_x: float, local_z: float) -> float:
    if not block.boxes:
        return 1.0

    best = _covering_top(block, local_x, local_z)
    if best <= 0.0:
        return 1.0
    return best
