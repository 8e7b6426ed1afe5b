"""Abstract base class for generative backends.

The orchestrator talks to the backend exclusively through this interface.
A backend performs exactly one request per ``send`` call; retries,
backoff, and cancellation belong to the orchestrator.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from livecoder.schemas.generation import BackendRequest, BackendResponse


class GenerationBackend(ABC):
    """Opaque request/response boundary to a code-generating model."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-friendly backend name for logs."""

    @abstractmethod
    async def send(self, request: BackendRequest) -> BackendResponse:
        """Send one generation request.

        Args:
            request: Prompt (system instruction already prepended) and
                     sampling options.

        Returns:
            The parsed backend response.

        Raises:
            TransportError: Network failure, non-2xx status, or a backend
                            that reported ``success: false``. Retryable.
            InvalidResponse: A 2xx answer whose body cannot be understood.
        """
