"""Exception hierarchy for generation runs.

Classification heuristics never raise; everything here belongs to the
request side of a run. ``GenerationCancelled`` is deliberately not an
``OrchestratorError``: callers must never render it as a failure.
"""

from __future__ import annotations


class LiveCoderError(Exception):
    """Base class for all livecoder errors."""


class PromptValidationError(LiveCoderError, ValueError):
    """The submitted prompt is empty or whitespace-only."""


class GenerationCancelled(LiveCoderError):
    """The run's cancellation token was observed as cancelled."""


class TransportError(LiveCoderError):
    """A retryable backend failure: network error, non-2xx status, or a
    backend that reported ``success: false``."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class OrchestratorError(LiveCoderError):
    """A run failed and should be surfaced to the transcript as an error."""


class MaxRetriesExceeded(OrchestratorError):
    """Every attempt failed with a transport error."""

    def __init__(self, attempts: int, last_error: Exception | None) -> None:
        super().__init__(
            f"Generation failed after {attempts} attempt(s): {last_error}"
        )
        self.attempts = attempts
        self.last_error = last_error


class InvalidResponse(OrchestratorError):
    """The backend answered 2xx but the body could not be understood."""
