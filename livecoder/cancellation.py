"""Cooperative cancellation for a single generation run.

A token is created per run and handed down the call chain. Nothing blocks
on it: every suspension point (retry delay, backend call, reveal batch)
polls ``cancelled`` and unwinds on its own once it observes True.
"""

from __future__ import annotations

import logging
import uuid

logger = logging.getLogger(__name__)


class CancellationToken:
    """Mutable cancellation flag. ``cancel()`` is idempotent and irreversible."""

    def __init__(self) -> None:
        self.run_id = uuid.uuid4().hex[:8]
        self._cancelled = False

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def cancel(self) -> None:
        """Mark the run cancelled. Safe to call repeatedly or after the run."""
        if self._cancelled:
            return
        self._cancelled = True
        logger.debug("Run %s cancelled", self.run_id)

    def __repr__(self) -> str:
        return f"CancellationToken(run_id={self.run_id!r}, cancelled={self._cancelled})"
