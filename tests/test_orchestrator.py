"""Tests for livecoder.orchestrator — retries, cancellation, and metadata."""

from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, patch

import pytest

from livecoder.cancellation import CancellationToken
from livecoder.config_loader import GenerationConfig
from livecoder.errors import (
    GenerationCancelled,
    InvalidResponse,
    MaxRetriesExceeded,
    PromptValidationError,
    TransportError,
)
from livecoder.orchestrator import (
    ARCHITECTURE_LABELS,
    RequestOrchestrator,
    _short_error_reason,
    _wait,
    build_prompt,
    estimate_line_count,
    extract_technologies,
)
from livecoder.providers.base import GenerationBackend
from livecoder.schemas.generation import BackendRequest, BackendResponse

# Patch target
_WAIT = "livecoder.orchestrator._wait"

RESPONSE = (
    "Here is a React app written in TypeScript.\n\n"
    "```python\nclass UserModel:\n    pass\n```\n\n"
    "```tsx\nexport function ButtonComponent() {\n  return null;\n}\n```\n"
)


# ── Factories ──────────────────────────────────────────────────────


class ScriptedBackend(GenerationBackend):
    """Backend that replays a list of responses/exceptions in order."""

    def __init__(self, *script, on_send=None):
        self._script = list(script)
        self._on_send = on_send
        self.requests: list[BackendRequest] = []

    @property
    def name(self) -> str:
        return "scripted"

    async def send(self, request: BackendRequest) -> BackendResponse:
        self.requests.append(request)
        if self._on_send is not None:
            self._on_send()
        outcome = self._script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return BackendResponse(response=outcome, success=True)


def _make_config(**overrides) -> GenerationConfig:
    defaults = {"max_attempts": 3, "backoff_ms": 1000, "simulate_progress": False}
    defaults.update(overrides)
    return GenerationConfig(**defaults)


def _make_orchestrator(backend, **overrides) -> RequestOrchestrator:
    return RequestOrchestrator(backend, _make_config(**overrides), stage_time_scale=0)


# ── Helpers ───────────────────────────────────────────────────────


class TestHelpers:
    def test_build_prompt_appends_user_text(self):
        prompt = build_prompt("A todo app")
        assert prompt.endswith("Project request:\nA todo app")
        assert "production-grade" in prompt

    def test_build_prompt_with_stack(self):
        prompt = build_prompt("A todo app", stack="  FastAPI + React ")
        assert "Preferred stack: FastAPI + React\n" in prompt
        assert prompt.endswith("Project request:\nA todo app")

    def test_extract_technologies_vocabulary_order(self):
        text = "Built with Docker, FastAPI and React."
        assert extract_technologies(text) == ["React", "FastAPI", "Docker"]

    def test_substring_matches_count(self):
        text = "Run it with the Dockerfile below; the UI is ReactJS and the API uses Expressjs."
        assert extract_technologies(text) == ["React", "Express", "Docker"]

    def test_javascript_also_names_java(self):
        assert extract_technologies("Plain JavaScript only") == ["JavaScript", "Java"]

    def test_extract_technologies_empty(self):
        assert extract_technologies("") == []

    def test_estimate_line_count(self):
        assert estimate_line_count(RESPONSE) == 5

    def test_estimate_line_count_no_fences(self):
        assert estimate_line_count("no code here") == 0

    def test_short_error_reason(self):
        assert _short_error_reason(TransportError("slow down", status=429)) == "rate limit"
        assert _short_error_reason(TransportError("request timed out")) == "timeout"
        assert _short_error_reason(TransportError("boom", status=502)) == "server error"
        assert _short_error_reason(None) == "unknown error"


class TestWait:
    @pytest.mark.asyncio
    async def test_raises_when_cancelled(self):
        token = CancellationToken()
        token.cancel()
        with pytest.raises(GenerationCancelled):
            await _wait(5.0, token)

    @pytest.mark.asyncio
    async def test_zero_delay_returns(self):
        await _wait(0, CancellationToken())


# ── Runs ──────────────────────────────────────────────────────────


class TestRun:
    @pytest.mark.asyncio
    async def test_success_builds_result(self):
        backend = ScriptedBackend(RESPONSE)
        result = await _make_orchestrator(backend).run("Build a UI", CancellationToken())

        assert result.content == RESPONSE
        assert result.attempts == 1
        assert [a.file_path for a in result.artifacts] == [
            "models/usermodel.py",
            "components/ButtonComponent.tsx",
        ]
        meta = result.metadata
        assert meta.files_generated == 2
        assert meta.estimated_lines == 5
        assert meta.technologies == ["React", "TypeScript", "Python"]
        assert meta.architecture == list(ARCHITECTURE_LABELS)
        assert meta.patterns == []

    @pytest.mark.asyncio
    async def test_request_carries_system_prompt(self):
        backend = ScriptedBackend(RESPONSE)
        await _make_orchestrator(backend).run("A chat app", CancellationToken())
        assert backend.requests[0].prompt == build_prompt("A chat app")

    @pytest.mark.asyncio
    async def test_configured_stack_reaches_request(self):
        backend = ScriptedBackend(RESPONSE)
        orchestrator = _make_orchestrator(backend, stack="Django")
        await orchestrator.run("A chat app", CancellationToken())
        assert "Preferred stack: Django" in backend.requests[0].prompt

    @pytest.mark.asyncio
    async def test_no_fences_still_succeeds(self):
        backend = ScriptedBackend("Just an explanation.")
        result = await _make_orchestrator(backend).run("Explain", CancellationToken())
        assert result.artifacts == []
        assert result.content == "Just an explanation."
        assert result.metadata.files_generated == 0

    @pytest.mark.asyncio
    async def test_empty_prompt_rejected(self):
        backend = ScriptedBackend(RESPONSE)
        with pytest.raises(PromptValidationError):
            await _make_orchestrator(backend).run("   ", CancellationToken())
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_pre_cancelled_token(self):
        backend = ScriptedBackend(RESPONSE)
        token = CancellationToken()
        token.cancel()
        with pytest.raises(GenerationCancelled):
            await _make_orchestrator(backend).run("Build", token)
        assert backend.requests == []

    @pytest.mark.asyncio
    async def test_cancel_while_in_flight_discards_response(self):
        token = CancellationToken()
        backend = ScriptedBackend(RESPONSE, on_send=token.cancel)
        with pytest.raises(GenerationCancelled):
            await _make_orchestrator(backend).run("Build", token)

    @pytest.mark.asyncio
    async def test_progress_is_monotonic_and_completes(self):
        updates = []

        class SlowBackend(ScriptedBackend):
            async def send(self, request):
                await asyncio.sleep(0.01)
                return await super().send(request)

        orchestrator = _make_orchestrator(SlowBackend(RESPONSE), simulate_progress=True)
        await orchestrator.run("Build", CancellationToken(), on_progress=updates.append)

        progress = [u.progress for u in updates]
        assert progress == sorted(progress)
        assert progress[-1] == 100

    @pytest.mark.asyncio
    async def test_failing_progress_callback_keeps_result(self):
        def _boom(update):
            raise RuntimeError("display closed")

        orchestrator = _make_orchestrator(ScriptedBackend(RESPONSE), simulate_progress=True)
        result = await orchestrator.run("Build", CancellationToken(), on_progress=_boom)
        assert result.metadata.files_generated == 2


class TestRetries:
    @pytest.mark.asyncio
    async def test_three_failures_raise_max_retries(self):
        backend = ScriptedBackend(
            TransportError("down"), TransportError("down"), TransportError("down"),
        )
        with patch(_WAIT, new_callable=AsyncMock) as wait:
            with pytest.raises(MaxRetriesExceeded) as exc_info:
                await _make_orchestrator(backend).run("Build", CancellationToken())

        assert exc_info.value.attempts == 3
        assert len(backend.requests) == 3
        assert [c.args[0] for c in wait.await_args_list] == [1.0, 2.0]

    @pytest.mark.asyncio
    async def test_recovers_on_second_attempt(self):
        backend = ScriptedBackend(TransportError("blip"), RESPONSE)
        with patch(_WAIT, new_callable=AsyncMock) as wait:
            result = await _make_orchestrator(backend).run("Build", CancellationToken())

        assert result.attempts == 2
        assert wait.await_count == 1
        assert wait.await_args.args[0] == 1.0

    @pytest.mark.asyncio
    async def test_backoff_scales_with_config(self):
        backend = ScriptedBackend(TransportError("a"), TransportError("b"), RESPONSE)
        with patch(_WAIT, new_callable=AsyncMock) as wait:
            await _make_orchestrator(backend, backoff_ms=250).run("Build", CancellationToken())
        assert [c.args[0] for c in wait.await_args_list] == [0.25, 0.5]

    @pytest.mark.asyncio
    async def test_single_attempt_config(self):
        backend = ScriptedBackend(TransportError("down"))
        with patch(_WAIT, new_callable=AsyncMock) as wait:
            with pytest.raises(MaxRetriesExceeded):
                await _make_orchestrator(backend, max_attempts=1).run("Build", CancellationToken())
        wait.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_invalid_response_not_retried(self):
        backend = ScriptedBackend(InvalidResponse("garbage"), RESPONSE)
        with patch(_WAIT, new_callable=AsyncMock) as wait:
            with pytest.raises(InvalidResponse):
                await _make_orchestrator(backend).run("Build", CancellationToken())
        assert len(backend.requests) == 1
        wait.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cancel_during_backoff_stops_retries(self):
        token = CancellationToken()
        backend = ScriptedBackend(TransportError("down"), RESPONSE)
        asyncio.get_running_loop().call_later(0.02, token.cancel)

        with pytest.raises(GenerationCancelled):
            await _make_orchestrator(backend).run("Build", token)
        assert len(backend.requests) == 1

    @pytest.mark.asyncio
    async def test_cancel_after_failed_attempt(self):
        token = CancellationToken()
        backend = ScriptedBackend(TransportError("down"), RESPONSE, on_send=token.cancel)
        with patch(_WAIT, new_callable=AsyncMock) as wait:
            with pytest.raises(GenerationCancelled):
                await _make_orchestrator(backend).run("Build", token)
        assert len(backend.requests) == 1
        wait.assert_not_awaited()
