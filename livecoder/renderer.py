"""Rate-paced reveal of a single artifact.

StreamRenderer simulates live authorship: it discloses an artifact's code
in fixed-size character batches, pausing between batches, and hands a
LiveCodingState snapshot to the caller after each one. The run's token is
checked before every batch; a cancelled reveal stops silently.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from livecoder.cancellation import CancellationToken
from livecoder.schemas.artifacts import CodeArtifact
from livecoder.schemas.streaming import LiveCodingState

logger = logging.getLogger(__name__)

LiveUpdateCallback = Callable[[LiveCodingState], Awaitable[Any] | Any]

# Reference cadence
DEFAULT_CHUNK_SIZE = 15
DEFAULT_CHUNK_DELAY_S = 0.02


def reveal_progress(revealed: int, total: int) -> int:
    """Percentage revealed, rounded half up and capped at 100."""
    if total <= 0:
        return 100
    return min(100, int(revealed * 100 / total + 0.5))


class StreamRenderer:
    """Reveals artifact text in batches of ``chunk_size`` characters."""

    def __init__(
        self,
        chunk_size: int = DEFAULT_CHUNK_SIZE,
        chunk_delay: float = DEFAULT_CHUNK_DELAY_S,
    ) -> None:
        if chunk_size <= 0:
            raise ValueError("chunk_size must be positive")
        self._chunk_size = chunk_size
        self._chunk_delay = chunk_delay

    async def reveal(
        self,
        artifact: CodeArtifact,
        token: CancellationToken,
        on_update: LiveUpdateCallback | None = None,
    ) -> LiveCodingState:
        """Reveal ``artifact`` until complete or cancelled.

        Returns the final state. ``state.completed`` distinguishes a full
        reveal (progress 100) from a cancelled one; either way the
        returned state is inactive.
        """
        chars = list(artifact.raw_code)
        total = len(chars)
        state = LiveCodingState(
            file_name=artifact.file_path,
            language=artifact.language,
            complexity=artifact.complexity,
            patterns=list(artifact.patterns),
            total_chars=total,
            is_active=True,
        )

        for start in range(0, total, self._chunk_size):
            if token.cancelled:
                logger.debug(
                    "Reveal of %s cancelled at %d/%d chars",
                    artifact.file_path, state.revealed_chars, total,
                )
                state.is_active = False
                await _notify(on_update, state)
                return state

            batch = chars[start:start + self._chunk_size]
            state.content += "".join(batch)
            state.revealed_chars += len(batch)
            state.progress = reveal_progress(state.revealed_chars, total)
            await _notify(on_update, state)

            if state.revealed_chars < total:
                await asyncio.sleep(self._chunk_delay)

        if token.cancelled and total == 0:
            state.is_active = False
            await _notify(on_update, state)
            return state

        state.progress = 100
        state.is_active = False
        await _notify(on_update, state)
        return state


async def _notify(callback: LiveUpdateCallback | None, state: LiveCodingState) -> None:
    """Hand the caller a snapshot so later mutations don't leak into it."""
    if callback is None:
        return
    result = callback(state.model_copy(deep=True))
    if asyncio.iscoroutine(result):
        await result
