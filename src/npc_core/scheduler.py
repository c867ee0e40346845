# src/npc_core/scheduler.py
"""
Cooperative tick scheduler for walks.

The host calls tick() once per game tick; every active task advances
exactly once, in insertion order. Finished tasks are dropped.
"""

from __future__ import annotations

import logging
from typing import List, Optional, Protocol


log = logging.getLogger(__name__)


class TickTask(Protocol):
    @property
    def finished(self) -> bool:
        ...

    def tick(self) -> bool:
        ...

    def cancel(self) -> None:
        ...


class TickScheduler:
    def __init__(self) -> None:
        self._tasks: List[TickTask] = []
        self.ticks: int = 0

    def __len__(self) -> int:
        return len(self._tasks)

    def add(self, task: Optional[TickTask]) -> None:
        """Schedule a task. None (a vetoed walk) is ignored."""
        if task is None or task.finished:
            return
        if task not in self._tasks:
            self._tasks.append(task)

    def tick(self) -> int:
        """Advance every active task once. Returns how many are still active."""
        self.ticks += 1
        for task in list(self._tasks):
            if not task.finished:
                task.tick()
        self._tasks = [t for t in self._tasks if not t.finished]
        return len(self._tasks)

    def run(self, max_ticks: int) -> int:
        """Tick until idle or `max_ticks` ticks ran. Returns ticks run."""
        ran = 0
        while self._tasks and ran < max_ticks:
            self.tick()
            ran += 1
        if self._tasks:
            log.warning("TickScheduler stopped with %d active task(s) after %d ticks", len(self._tasks), ran)
        return ran

    def cancel_all(self) -> None:
        for task in list(self._tasks):
            task.cancel()
        self._tasks = []
