# src/npc_core/blocks.py
"""
Block catalogue for the NPC walking core.

Defines the handful of block kinds the nav layer distinguishes between
and the factory helpers used by worlds and tests to build them:

    - air                  → empty, never blocks, never a floor
    - full blocks          → stone, planks, ... (one unit box)
    - bottom slabs         → half-height box, climbed by a step-up
    - carpets              → thin floor cover with stacking rules
    - doors                → openable; passable only while open
    - liquids              → never a floor, never blocking
    - passable plants      → tall grass, flowers

Block flags are the only thing the nav layer looks at; material names
are informational.
"""

from __future__ import annotations

from typing import Any

from contracts.types import BlockState, BoundingBox, FULL_BOX


AIR = BlockState(material="air", air=True, solid=False, boxes=())

STONE = BlockState(material="stone")

WATER = BlockState(material="water", solid=False, liquid=True, boxes=())

TALL_GRASS = BlockState(material="tall_grass", solid=False, passable=True, boxes=())

_SLAB_BOX = BoundingBox(0.0, 0.0, 0.0, 1.0, 0.5, 1.0)
_CARPET_BOX = BoundingBox(0.0, 0.0, 0.0, 1.0, 0.0625, 1.0)
# Closed doors occupy a thin slab on one face of the cell.
_DOOR_BOX = BoundingBox(0.0, 0.0, 0.0, 1.0, 1.0, 0.1875)


def solid(material: str) -> BlockState:
    """A full, one-unit collision block."""
    return BlockState(material=material, boxes=(FULL_BOX,))


def slab(material: str = "stone_slab", top: float = 0.5) -> BlockState:
    """A bottom slab (or any partial block) whose top is at `top`."""
    if top == 0.5:
        box = _SLAB_BOX
    else:
        box = BoundingBox(0.0, 0.0, 0.0, 1.0, top, 1.0)
    return BlockState(material=material, boxes=(box,))


def stairs(material: str = "oak_stairs") -> BlockState:
    """
    Stairs ascending towards +x: a bottom half plus a back upper quarter.
    """
    return BlockState(
        material=material,
        boxes=(
            BoundingBox(0.0, 0.0, 0.0, 1.0, 0.5, 1.0),
            BoundingBox(0.5, 0.5, 0.0, 1.0, 1.0, 1.0),
        ),
    )


def carpet(material: str = "white_carpet") -> BlockState:
    return BlockState(material=material, carpet=True, boxes=(_CARPET_BOX,))


def door(material: str = "oak_door", is_open: bool = False) -> BlockState:
    return BlockState(
        material=material,
        openable=True,
        is_open=is_open,
        boxes=(_DOOR_BOX,),
    )


def with_open(block: BlockState, is_open: bool) -> BlockState:
    """Copy of an openable block with its open flag replaced."""
    return BlockState(
        material=block.material,
        air=block.air,
        solid=block.solid,
        passable=block.passable,
        liquid=block.liquid,
        carpet=block.carpet,
        openable=block.openable,
        is_open=is_open,
        boxes=block.boxes,
    )


_NAMED = {
    "air": AIR,
    "stone": STONE,
    "water": WATER,
    "tall_grass": TALL_GRASS,
    "slab": slab(),
    "stairs": stairs(),
    "carpet": carpet(),
    "door": door(),
}


def block_from_name(name: Any) -> BlockState:
    """
    Resolve a loose block description into a BlockState.

    Accepts:
        - None / ""            → air
        - a BlockState         → returned unchanged
        - a catalogue key      → "stone", "slab", "door", ...
        - any other string     → full solid block of that material
    """
    if isinstance(name, BlockState):
        return name
    if name is None or name == "":
        return AIR
    if not isinstance(name, str):
        raise TypeError(f"Cannot build a block from {name!r}")

    key = name.lower()
    if key in ("minecraft:air", "air"):
        return AIR
    if key in _NAMED:
        return _NAMED[key]
    return solid(key)
