"""Status log sink for generation runs.

Receives short status strings tagged success/error/info at key
transitions (completion, failure, cancellation) and broadcasts them to
registered listeners. Purely observational: a failing listener is logged
and skipped, never propagated into the run.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import deque
from collections.abc import Callable
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


class LogLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


class ConsoleLogEntry(BaseModel):
    """A single status line."""

    message: str = Field(description="Short human-readable status")
    level: LogLevel = Field(default=LogLevel.INFO)
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp when the entry was logged",
    )


# Type alias for log listener callbacks
LogListener = Callable[[ConsoleLogEntry], Any]


class ConsoleLog:
    """Keeps a bounded history of entries and fans them out to listeners.

    Listeners can be sync or async callables.
    """

    def __init__(self, max_entries: int = 200) -> None:
        self._listeners: list[LogListener] = []
        self._history: deque[ConsoleLogEntry] = deque(maxlen=max_entries)

    @property
    def history(self) -> list[ConsoleLogEntry]:
        """All retained entries, oldest first."""
        return list(self._history)

    def add_listener(self, listener: LogListener) -> None:
        self._listeners.append(listener)

    def remove_listener(self, listener: LogListener) -> None:
        self._listeners = [ln for ln in self._listeners if ln != listener]

    async def log(self, message: str, level: LogLevel = LogLevel.INFO) -> ConsoleLogEntry:
        """Record an entry and dispatch it to every listener."""
        entry = ConsoleLogEntry(message=message, level=level)
        self._history.append(entry)

        for listener in self._listeners:
            try:
                result = listener(entry)
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("Console log listener error for %r", message)
        return entry

    async def success(self, message: str) -> ConsoleLogEntry:
        return await self.log(message, LogLevel.SUCCESS)

    async def error(self, message: str) -> ConsoleLogEntry:
        return await self.log(message, LogLevel.ERROR)

    async def info(self, message: str) -> ConsoleLogEntry:
        return await self.log(message, LogLevel.INFO)
