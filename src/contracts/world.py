# block access interface consumed by the nav layer
# src/contracts/world.py

from __future__ import annotations

from typing import Optional, Protocol

from .types import BlockState


class WorldUnavailableError(RuntimeError):
    """Raised by a BlockAccess when the requested world is not loaded."""

    def __init__(self, world: str) -> None:
        super().__init__(f"world not available: {world!r}")
        self.world = world


class BlockAccess(Protocol):
    """
    Backing store for voxel terrain.

    The nav layer only reads blocks, except for door state, which the
    path follower toggles through `set_open` and reverts later. The store
    keeps ownership of every block.
    """

    def block_at(self, world: str, x: int, y: int, z: int) -> BlockState:
        """Return the block at (x, y, z). Unset cells are air."""
        ...

    def highest_block_y(self, world: str, x: int, z: int) -> Optional[int]:
        """Y of the topmost non-air block in the column, None if empty."""
        ...

    def set_open(self, world: str, x: int, y: int, z: int, is_open: bool) -> None:
        """Open or close an openable block. No-op for other blocks."""
        ...

    def play_cue(self, world: str, x: int, y: int, z: int, cue: str) -> None:
        """One-shot audible/visual cue at a block (e.g. "door_open")."""
        ...
