"""Request orchestrator for a single generation run.

Sends the user's request (prefixed with the fixed system instruction) to
the backend with linear-backoff retries, runs the simulated stage ticker
alongside the call, and turns a successful response into classified
artifacts plus display metadata.

Cancellation is cooperative: the run's token is checked before every
attempt, right after every backend call, and throughout retry delays.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import re

from livecoder import classifier
from livecoder.cancellation import CancellationToken
from livecoder.config_loader import GenerationConfig
from livecoder.errors import (
    GenerationCancelled,
    MaxRetriesExceeded,
    PromptValidationError,
    TransportError,
)
from livecoder.prompts import render_prompt
from livecoder.providers.base import GenerationBackend
from livecoder.schemas.artifacts import CodeArtifact
from livecoder.schemas.generation import (
    BackendOptions,
    BackendRequest,
    BackendResponse,
    GenerationMetadata,
    GenerationResult,
    GenerationStage,
)
from livecoder.stages import GENERATION_STAGES, ProgressCallback, StageTicker

logger = logging.getLogger(__name__)

# Labels attached to every successful run
ARCHITECTURE_LABELS: tuple[str, ...] = (
    "Clean Architecture",
    "SOLID Principles",
    "Design Patterns",
    "Security Best Practices",
    "Test Coverage",
)

# Products/frameworks recognised in responses, in scan order
TECH_VOCABULARY: tuple[str, ...] = (
    "React", "Next.js", "Vue", "Angular", "Svelte", "TypeScript", "JavaScript",
    "Node.js", "Express", "Python", "Django", "Flask", "FastAPI", "Java",
    "Spring Boot", "Go", "Rust", "PostgreSQL", "MySQL", "MongoDB", "Redis",
    "SQLite", "GraphQL", "Prisma", "Tailwind", "Docker", "Kubernetes", "AWS",
    "Jest", "Pytest",
)

# Line estimate uses its own fence scan, independent of the classifier
_ESTIMATE_FENCE_RE = re.compile(r"```[^\n]*\n(.*?)```", re.DOTALL)

# Granularity of cancellation checks inside a retry delay
_WAIT_SLICE_S = 0.05


def _short_error_reason(error: Exception | None) -> str:
    """Extract a short, user-friendly reason from a transport error."""
    if error is None:
        return "unknown error"
    status = getattr(error, "status", None)
    error_str = str(error).lower()
    if status == 429 or "rate" in error_str or "429" in error_str:
        return "rate limit"
    if "timeout" in error_str or "timed out" in error_str:
        return "timeout"
    if status == 503 or "unavailable" in error_str:
        return "service unavailable"
    if (status and status >= 500) or "internal" in error_str:
        return "server error"
    if "connection" in error_str or "reach" in error_str:
        return "connection error"
    return str(error)[:80]


def build_prompt(user_text: str, stack: str = "") -> str:
    """Prepend the system instruction block to the user's text.

    A non-empty ``stack`` adds a preferred-technology line to the block.
    """
    return f"{render_prompt('system', stack=stack.strip()).rstrip()}\n{user_text}"


def extract_technologies(text: str) -> list[str]:
    """Names from TECH_VOCABULARY found in ``text``, vocabulary order.

    Matching is a case-insensitive substring test, so "Dockerfile" counts
    as Docker and "JavaScript" also counts as Java.
    """
    if not text:
        return []
    haystack = text.lower()
    return [name for name in TECH_VOCABULARY if name.lower() in haystack]


def estimate_line_count(text: str) -> int:
    """Sum of line counts across every fenced block in ``text``."""
    return sum(
        len(match.group(1).splitlines())
        for match in _ESTIMATE_FENCE_RE.finditer(text or "")
    )


async def _wait(seconds: float, token: CancellationToken) -> None:
    """Sleep for ``seconds``, polling the token every slice.

    Raises:
        GenerationCancelled: If the token is cancelled before the delay ends.
    """
    remaining = seconds
    while remaining > 0:
        if token.cancelled:
            raise GenerationCancelled("Cancelled during retry delay")
        step = min(_WAIT_SLICE_S, remaining)
        await asyncio.sleep(step)
        remaining -= step
    if token.cancelled:
        raise GenerationCancelled("Cancelled during retry delay")


class RequestOrchestrator:
    """Drives one generation run from prompt to classified artifacts.

    The orchestrator never touches the transcript; it returns a
    GenerationResult (or raises) and leaves rendering to its caller.
    """

    def __init__(
        self,
        backend: GenerationBackend,
        config: GenerationConfig | None = None,
        options: BackendOptions | None = None,
        *,
        stages: tuple[GenerationStage, ...] = GENERATION_STAGES,
        stage_time_scale: float = 1.0,
    ) -> None:
        self._backend = backend
        self._config = config or GenerationConfig()
        self._options = options or BackendOptions()
        self._stages = stages
        self._stage_time_scale = stage_time_scale

    async def run(
        self,
        user_text: str,
        token: CancellationToken,
        on_progress: ProgressCallback | None = None,
    ) -> GenerationResult:
        """Execute one generation run.

        Args:
            user_text: The user's request, exactly as typed.
            token: Cancellation token for this run.
            on_progress: Optional sync or async callback for stage updates.

        Returns:
            GenerationResult with the raw content, artifacts, and metadata.

        Raises:
            PromptValidationError: ``user_text`` is empty after trimming.
            GenerationCancelled: The token was observed cancelled.
            MaxRetriesExceeded: Every attempt failed with a transport error.
            InvalidResponse: The backend's success body was malformed.
        """
        if not user_text or not user_text.strip():
            raise PromptValidationError("Prompt is empty")
        if token.cancelled:
            raise GenerationCancelled("Cancelled before the request was sent")

        request = BackendRequest(
            prompt=build_prompt(user_text, self._config.stack), options=self._options,
        )
        ticker = StageTicker(
            token, on_progress, self._stages, time_scale=self._stage_time_scale,
        )

        ticker_task: asyncio.Task[None] | None = None
        if self._config.simulate_progress:
            ticker_task = asyncio.create_task(ticker.run())

        try:
            response, attempts = await self._send_with_retry(request, token)
        finally:
            if ticker_task is not None:
                ticker_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await ticker_task

        await ticker.finish()

        artifacts = classifier.parse(response.response)
        metadata = GenerationMetadata(
            architecture=list(ARCHITECTURE_LABELS),
            technologies=extract_technologies(response.response),
            estimated_lines=estimate_line_count(response.response),
            files_generated=len(artifacts),
            patterns=_union_patterns(artifacts),
        )
        logger.info(
            "Generation finished via %s: %d artifact(s), ~%d lines, %d attempt(s)",
            self._backend.name, len(artifacts), metadata.estimated_lines, attempts,
        )
        return GenerationResult(
            content=response.response,
            artifacts=artifacts,
            metadata=metadata,
            attempts=attempts,
        )

    async def _send_with_retry(
        self, request: BackendRequest, token: CancellationToken,
    ) -> tuple[BackendResponse, int]:
        """Call the backend up to ``max_attempts`` times.

        Waits ``attempt x backoff_ms`` between attempts. InvalidResponse is
        not retried.
        """
        max_attempts = self._config.max_attempts
        last_error: TransportError | None = None

        for attempt in range(1, max_attempts + 1):
            if token.cancelled:
                raise GenerationCancelled(f"Cancelled before attempt {attempt}")

            try:
                response = await self._backend.send(request)
            except TransportError as e:
                last_error = e
                if token.cancelled:
                    raise GenerationCancelled("Cancelled after a failed attempt") from e
                if attempt < max_attempts:
                    delay = attempt * self._config.backoff_ms / 1000
                    logger.warning(
                        "Retry %d/%d for %s (%s, backoff: %.1fs)",
                        attempt, max_attempts, self._backend.name,
                        _short_error_reason(e), delay,
                    )
                    await _wait(delay, token)
                continue

            if token.cancelled:
                raise GenerationCancelled("Cancelled while the request was in flight")
            return response, attempt

        raise MaxRetriesExceeded(max_attempts, last_error) from last_error


def _union_patterns(artifacts: list[CodeArtifact]) -> list[str]:
    """Patterns detected in any artifact, in catalog order."""
    seen = {name for artifact in artifacts for name in artifact.patterns}
    return [name for name, _ in classifier.PATTERN_CATALOG if name in seen]
