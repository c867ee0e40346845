# path: src/monitoring/events.py
"""
Event schemas for monitoring.

This module defines:
- MonitoringEvent (structured system events)
- EventType enum

All events are JSON-serializable via `.to_dict()` and are intended
for use with monitoring.bus.EventBus and monitoring.logger.JsonFileLogger.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import Enum, auto
from typing import Any, Dict, Optional


# ============================================================
# Event Types
# ============================================================

class EventType(Enum):
    """Typed monitoring events emitted by the walking core."""

    # Route composition
    ROUTE_COMPOSED = auto()
    ROUTE_FAILED = auto()

    # Walk lifecycle
    WALK_STARTED = auto()
    WALK_VETOED = auto()
    WALK_STOPPED = auto()

    # Door side effects
    DOOR_OPENED = auto()
    DOOR_CLOSED = auto()

    # A tick raised and the walk was cancelled
    TICK_EXCEPTION = auto()

    # Generic log messages
    LOG = auto()


# ============================================================
# Monitoring Event Structure
# ============================================================

@dataclass
class MonitoringEvent:
    """
    Runtime event emitted by the route composer, walkers or followers.

    All fields must be JSON-safe.
    """

    ts: float                   # UNIX timestamp (seconds)
    module: str                 # Source module string ("npc_core.nav.mover", ...)
    event_type: EventType       # Enum describing the event class
    message: str                # Short human-readable description
    payload: Dict[str, Any]     # Structured data (actor, cells, results)
    correlation_id: Optional[str] = None  # Groups events per walk / actor

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-safe dict for loggers."""
        data = asdict(self)
        data["event_type"] = self.event_type.name  # store name, not enum
        return data
