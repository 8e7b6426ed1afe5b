"""LiteLLM backend implementing the GenerationBackend interface.

Routes the prompt to any provider supported by litellm.acompletion() and
wraps the first choice's text into a BackendResponse. Transient and
provider errors surface as TransportError so the orchestrator can retry.
"""

from __future__ import annotations

import logging
import os

import litellm

# Suppress LiteLLM's "Give Feedback / Get Help" and "Provider List" banners
litellm.suppress_debug_info = True

from livecoder.config_loader import BackendConfig
from livecoder.errors import InvalidResponse, TransportError
from livecoder.providers.base import GenerationBackend
from livecoder.schemas.generation import BackendRequest, BackendResponse

logger = logging.getLogger(__name__)

# Every litellm failure we treat as a transport-level problem
_TRANSPORT_ERRORS: tuple[type[BaseException], ...] = (
    TimeoutError,
    litellm.Timeout,
    litellm.AuthenticationError,
    litellm.PermissionDeniedError,
    litellm.NotFoundError,
    litellm.BadRequestError,
    litellm.UnprocessableEntityError,
    litellm.RateLimitError,
    litellm.ServiceUnavailableError,
    litellm.InternalServerError,
    litellm.APIConnectionError,
    litellm.APIError,
)


class LiteLLMBackend(GenerationBackend):
    """Backend powered by litellm.acompletion()."""

    def __init__(self, config: BackendConfig) -> None:
        self._config = config
        self._api_key = os.environ.get(config.api_key_env, "")

    @property
    def name(self) -> str:
        return self._config.model

    async def send(self, request: BackendRequest) -> BackendResponse:
        kwargs = self._build_completion_kwargs(request)
        try:
            response = await litellm.acompletion(**kwargs)
        except _TRANSPORT_ERRORS as e:
            status = getattr(e, "status_code", None)
            raise TransportError(
                f"{self._config.model}: {e}", status=status
            ) from e

        if not getattr(response, "choices", None):
            raise InvalidResponse(f"{self._config.model} returned no choices")
        message = response.choices[0].message
        content = getattr(message, "content", None) if message else None
        if not isinstance(content, str):
            raise InvalidResponse(f"{self._config.model} returned no text content")

        return BackendResponse(response=content, success=True)

    def _build_completion_kwargs(self, request: BackendRequest) -> dict:
        """Build the kwargs dict for litellm.acompletion."""
        options = request.options
        kwargs: dict = {
            "model": options.model or self._config.model,
            "messages": [{"role": "user", "content": request.prompt}],
            "temperature": options.temperature,
            "max_tokens": options.max_tokens,
            "timeout": float(self._config.timeout),
        }
        if self._api_key:
            kwargs["api_key"] = self._api_key
        if self._config.api_base:
            kwargs["api_base"] = self._config.api_base
        return kwargs
