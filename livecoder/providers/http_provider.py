"""HTTP JSON backend.

POSTs ``{prompt, options}`` to a generation endpoint and expects
``{response, success?, error?}`` back. Uses only stdlib urllib, run in
the default thread executor so the event loop never blocks.
"""

from __future__ import annotations

import asyncio
import http.client
import json
import logging
import urllib.error
import urllib.request

from pydantic import ValidationError

from livecoder.config_loader import BackendConfig
from livecoder.errors import InvalidResponse, TransportError
from livecoder.providers.base import GenerationBackend
from livecoder.schemas.generation import BackendRequest, BackendResponse

logger = logging.getLogger(__name__)


class HttpBackend(GenerationBackend):
    """Backend that talks to a JSON-over-HTTP generation endpoint."""

    def __init__(self, config: BackendConfig) -> None:
        self._config = config

    @property
    def name(self) -> str:
        return self._config.url

    async def send(self, request: BackendRequest) -> BackendResponse:
        body = request.model_dump_json().encode("utf-8")
        req = urllib.request.Request(
            self._config.url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        loop = asyncio.get_running_loop()
        status, raw = await loop.run_in_executor(None, self._post, req)

        if not 200 <= status < 300:
            raise TransportError(f"HTTP {status} from {self._config.url}", status=status)

        try:
            parsed = BackendResponse.model_validate_json(raw)
        except ValidationError as e:
            raise InvalidResponse(f"Malformed response body: {e.error_count()} error(s)") from e

        if parsed.success is False:
            raise TransportError(parsed.error or "Backend reported failure", status=status)
        return parsed

    def _post(self, req: urllib.request.Request) -> tuple[int, bytes]:
        """Synchronous POST (runs in executor). Returns (status, body)."""
        try:
            with urllib.request.urlopen(req, timeout=self._config.timeout) as resp:
                return resp.status, resp.read()
        except urllib.error.HTTPError as e:
            return e.code, e.read() or b""
        except (urllib.error.URLError, http.client.HTTPException, OSError) as e:
            raise TransportError(f"Could not reach {self._config.url}: {e}") from e
