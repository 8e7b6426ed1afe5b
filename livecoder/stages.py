"""Generation stage catalog and the simulated progress ticker.

The stages are a UX simulation: they advance on a timer while the backend
call is in flight and say nothing about the backend's actual progress.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any

from livecoder.cancellation import CancellationToken
from livecoder.schemas.generation import GenerationStage, StageProgress

logger = logging.getLogger(__name__)

GENERATION_STAGES: tuple[GenerationStage, ...] = (
    GenerationStage(
        id="init", name="Initializing",
        description="Preparing the generation request",
        target_progress=0, estimated_duration_ms=500,
    ),
    GenerationStage(
        id="analyze", name="Analyzing Requirements",
        description="Understanding the project request",
        target_progress=10, estimated_duration_ms=1500,
    ),
    GenerationStage(
        id="architecture", name="Designing Architecture",
        description="Planning layers, modules, and boundaries",
        target_progress=20, estimated_duration_ms=2000,
    ),
    GenerationStage(
        id="patterns", name="Selecting Design Patterns",
        description="Choosing patterns that fit the architecture",
        target_progress=30, estimated_duration_ms=1500,
    ),
    GenerationStage(
        id="models", name="Generating Data Models",
        description="Defining entities, schemas, and types",
        target_progress=45, estimated_duration_ms=2500,
    ),
    GenerationStage(
        id="logic", name="Implementing Business Logic",
        description="Writing services and core behaviour",
        target_progress=60, estimated_duration_ms=3000,
    ),
    GenerationStage(
        id="api", name="Building Interfaces",
        description="Wiring APIs, components, and entry points",
        target_progress=72, estimated_duration_ms=2500,
    ),
    GenerationStage(
        id="tests", name="Writing Tests",
        description="Adding unit and integration tests",
        target_progress=84, estimated_duration_ms=2000,
    ),
    GenerationStage(
        id="security", name="Hardening Security",
        description="Validating input and securing secrets",
        target_progress=93, estimated_duration_ms=1500,
    ),
    GenerationStage(
        id="finalize", name="Finalizing",
        description="Documenting and assembling the project",
        target_progress=100, estimated_duration_ms=1000,
    ),
)

ProgressCallback = Callable[[StageProgress], Awaitable[Any] | Any]


def remaining_ms(index: int, stages: tuple[GenerationStage, ...] = GENERATION_STAGES) -> int:
    """Simulated time left once ``stages[index]`` has been entered."""
    return sum(stage.estimated_duration_ms for stage in stages[index:])


class StageTicker:
    """Walks the stage catalog on a timer and reports progress.

    ``run()`` advances through every stage except the last and returns
    once the penultimate stage's duration has elapsed; the final stage is
    emitted by ``finish()`` when the backend call completes. Reported
    progress never decreases. A failing progress callback is logged and
    skipped, never propagated into the run.
    """

    def __init__(
        self,
        token: CancellationToken,
        on_progress: ProgressCallback | None = None,
        stages: tuple[GenerationStage, ...] = GENERATION_STAGES,
        time_scale: float = 1.0,
    ) -> None:
        self._token = token
        self._on_progress = on_progress
        self._stages = stages
        self._time_scale = time_scale
        self._index = -1
        self._last_progress = 0

    @property
    def index(self) -> int:
        """Index of the current stage, -1 before the first emit."""
        return self._index

    @property
    def last_progress(self) -> int:
        return self._last_progress

    async def run(self) -> None:
        """Advance stages until the penultimate one, checking the token."""
        for index in range(len(self._stages) - 1):
            if self._token.cancelled:
                return
            await self.advance_to(index)
            delay = self._stages[index].estimated_duration_ms / 1000 * self._time_scale
            await asyncio.sleep(delay)

    async def finish(self) -> None:
        """Jump to the final stage (progress 100)."""
        if self._token.cancelled:
            return
        await self.advance_to(len(self._stages) - 1)

    async def advance_to(self, index: int) -> None:
        """Enter stage ``index`` and emit an update.

        Requests to move backwards are ignored.
        """
        if index <= self._index:
            return
        self._index = index
        stage = self._stages[index]
        progress = max(self._last_progress, stage.target_progress)
        self._last_progress = progress
        logger.debug("Stage %d/%d: %s (%d%%)", index + 1, len(self._stages), stage.name, progress)

        if self._on_progress is None:
            return
        update = StageProgress(
            stage_id=stage.id,
            stage_name=stage.name,
            stage_index=index,
            progress=progress,
            estimated_time_remaining_ms=remaining_ms(index + 1, self._stages),
        )
        try:
            result = self._on_progress(update)
            if asyncio.iscoroutine(result):
                await result
        except Exception:
            logger.exception("Progress callback error for stage %s", stage.id)
