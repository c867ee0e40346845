# JSON logger subscribing to EventBus
"""
Structured logging for monitoring.

Provides:
- JsonFileLogger: subscribes to an EventBus and writes MonitoringEvents as JSONL.
- log_event: convenience helper for publishing MonitoringEvents via the EventBus.

Usage patterns:

    from pathlib import Path
    from monitoring.bus import EventBus
    from monitoring.logger import JsonFileLogger, log_event
    from monitoring.events import EventType

    bus = EventBus()
    logger = JsonFileLogger(Path("logs/walker/events.log"), bus)

    log_event(
        bus=bus,
        module="npc_core.walker",
        event_type=EventType.WALK_STARTED,
        message="Walk started",
        payload={"actor_id": "guard-1"},
    )
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import Any, Dict, Optional

from .bus import EventBus
from .events import EventType, MonitoringEvent


log = logging.getLogger(__name__)


# ============================================================
# JSONL File Logger
# ============================================================

class JsonFileLogger:
    """
    JSON-lines logger for MonitoringEvent instances.

    - Subscribes to an EventBus and writes one JSON object per line.
    - Ensures UTF-8 encoding.
    - Ensures parent directory exists.
    """

    def __init__(self, path: Path, bus: EventBus) -> None:
        self._path = path
        self._bus = bus
        self._ensure_parent_dir(path)
        self._file = path.open("a", encoding="utf-8")
        bus.subscribe(self._on_event)

    @staticmethod
    def _ensure_parent_dir(path: Path) -> None:
        """Create parent directories for `path` if they don't exist."""
        parent = path.parent
        if not parent.exists():
            parent.mkdir(parents=True, exist_ok=True)

    def _on_event(self, event: MonitoringEvent) -> None:
        """Write the event as a JSON object to the log file."""
        data = event.to_dict()
        line = json.dumps(data, ensure_ascii=False, default=str)
        try:
            self._file.write(line + "\n")
            self._file.flush()
        except (OSError, ValueError):
            # Disk full or handle already closed.
            log.warning("JsonFileLogger could not write to %s", self._path, exc_info=True)

    def close(self) -> None:
        """
        Unsubscribe and close the underlying file handle.

        Should be called at graceful shutdown.
        """
        self._bus.unsubscribe(self._on_event)
        try:
            self._file.close()
        except OSError:
            log.warning("JsonFileLogger failed to close %s", self._path, exc_info=True)


# ============================================================
# Convenience helper for emitting events
# ============================================================

def log_event(
    bus: Optional[EventBus],
    module: str,
    event_type: EventType,
    message: str,
    payload: Optional[Dict[str, Any]] = None,
    correlation_id: Optional[str] = None,
) -> None:
    """
    Create and publish a MonitoringEvent.

    A None bus is accepted so callers with optional monitoring don't need
    to guard every call site.

    Parameters
    ----------
    bus:
        EventBus instance to publish the event to, or None.
    module:
        String identifying the source module.
    event_type:
        EventType enum member describing what kind of event this is.
    message:
        Short human-readable description.
    payload:
        Structured JSON-safe data attached to this event.
    correlation_id:
        Optional ID linking related events (per-walk, per-actor).
    """
    if bus is None:
        return

    event = MonitoringEvent(
        ts=time.time(),
        module=module,
        event_type=event_type,
        message=message,
        payload=payload or {},
        correlation_id=correlation_id,
    )
    bus.publish(event)
