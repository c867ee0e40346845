# in-memory voxel terrain implementing contracts.world.BlockAccess
# src/npc_core/voxel_world.py
"""
In-memory voxel world store.

This is the reference BlockAccess used by tests, the CLI demo and any
embedding that keeps terrain in process. It only stores blocks; it does
not know about pathfinding or movement.

Rules:
- Unset cells read as air.
- Worlds must be loaded (created) before they are read; reading an
  unloaded world raises WorldUnavailableError.
- Door state is mutated only through set_open().
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from contracts.types import BlockState
from contracts.world import WorldUnavailableError
from .blocks import AIR, STONE, with_open


log = logging.getLogger(__name__)

Coord = Tuple[int, int, int]

# cue_hook(world, x, y, z, cue)
CueHook = Callable[[str, int, int, int, str], None]


@dataclass
class CueRecord:
    """One played cue, kept for tests and debugging."""

    world: str
    x: int
    y: int
    z: int
    cue: str


@dataclass
class _WorldData:
    blocks: Dict[Coord, BlockState] = field(default_factory=dict)


class VoxelWorld:
    """
    Dict-backed multi-world block store.

    Thread-safety: reads and writes take a re-entrant lock, so a deferred
    route composition may read while the tick thread toggles doors.
    """

    def __init__(self, cue_hook: Optional[CueHook] = None) -> None:
        self._worlds: Dict[str, _WorldData] = {}
        self._lock = RLock()
        self._cue_hook = cue_hook
        self.cues: List[CueRecord] = []

    # ------------------------------------------------------------------
    # World lifecycle
    # ------------------------------------------------------------------

    def load_world(self, world: str) -> None:
        with self._lock:
            self._worlds.setdefault(world, _WorldData())

    def unload_world(self, world: str) -> None:
        with self._lock:
            self._worlds.pop(world, None)
        log.info("World unloaded: %s", world)

    def has_world(self, world: str) -> bool:
        with self._lock:
            return world in self._worlds

    def _data(self, world: str) -> _WorldData:
        data = self._worlds.get(world)
        if data is None:
            raise WorldUnavailableError(world)
        return data

    # ------------------------------------------------------------------
    # Editing
    # ------------------------------------------------------------------

    def set_block(self, world: str, x: int, y: int, z: int, block: BlockState) -> None:
        with self._lock:
            data = self._worlds.setdefault(world, _WorldData())
            if block.air:
                data.blocks.pop((x, y, z), None)
            else:
                data.blocks[(x, y, z)] = block

    def fill(
        self,
        world: str,
        x1: int,
        y1: int,
        z1: int,
        x2: int,
        y2: int,
        z2: int,
        block: BlockState = STONE,
    ) -> None:
        """Fill the inclusive box between two corners."""
        for x in range(min(x1, x2), max(x1, x2) + 1):
            for y in range(min(y1, y2), max(y1, y2) + 1):
                for z in range(min(z1, z2), max(z1, z2) + 1):
                    self.set_block(world, x, y, z, block)

    def set_blocks(self, world: str, blocks: Iterable[Tuple[Coord, BlockState]]) -> None:
        for (x, y, z), block in blocks:
            self.set_block(world, x, y, z, block)

    # ------------------------------------------------------------------
    # BlockAccess
    # ------------------------------------------------------------------

    def block_at(self, world: str, x: int, y: int, z: int) -> BlockState:
        with self._lock:
            return self._data(world).blocks.get((x, y, z), AIR)

    def highest_block_y(self, world: str, x: int, z: int) -> Optional[int]:
        with self._lock:
            ys = [by for (bx, by, bz) in self._data(world).blocks if bx == x and bz == z]
        return max(ys) if ys else None

    def set_open(self, world: str, x: int, y: int, z: int, is_open: bool) -> None:
        with self._lock:
            data = self._data(world)
            block = data.blocks.get((x, y, z))
            if block is None or not block.openable:
                return
            data.blocks[(x, y, z)] = with_open(block, is_open)

    def play_cue(self, world: str, x: int, y: int, z: int, cue: str) -> None:
        self.cues.append(CueRecord(world=world, x=x, y=y, z=z, cue=cue))
        if self._cue_hook is not None:
            self._cue_hook(world, x, y, z, cue)
