# npc_core package
# src/npc_core/__init__.py
"""
npc_core package: route planning and route following for NPC actors.

Exports:
    - VoxelWorld: in-memory BlockAccess implementation
    - NpcWalker: per-actor walking façade
    - TickScheduler: drives active walks once per tick
    - MotionTracer: recording PresentationSink
"""

from __future__ import annotations

from .voxel_world import VoxelWorld
from .walker import NpcWalker
from .scheduler import TickScheduler
from .tracing import MotionTracer

__all__ = [
    "VoxelWorld",
    "NpcWalker",
    "TickScheduler",
    "MotionTracer",
]
