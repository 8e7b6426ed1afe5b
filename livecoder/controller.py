"""Conversation controller.

Owns the chat transcript and the current run's cancellation token. Wires
user input to the orchestrator, streams each returned artifact through
the renderer, and commits finished artifacts to the transcript and the
external sinks (project files, status log, persisted transcript).
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from typing import Any, Protocol

import aiosqlite

from livecoder.cancellation import CancellationToken
from livecoder.classifier import strip_code_blocks
from livecoder.console_log import ConsoleLog
from livecoder.errors import (
    GenerationCancelled,
    InvalidResponse,
    MaxRetriesExceeded,
    OrchestratorError,
)
from livecoder.orchestrator import RequestOrchestrator
from livecoder.persistence.transcript import TranscriptStore
from livecoder.renderer import LiveUpdateCallback, StreamRenderer
from livecoder.schemas.artifacts import CodeArtifact
from livecoder.schemas.generation import GenerationResult
from livecoder.schemas.messages import (
    ChatMessage,
    MessageMetadata,
    MessageType,
    Sender,
    greeting_message,
)
from livecoder.stages import ProgressCallback

logger = logging.getLogger(__name__)

MessageCallback = Callable[[ChatMessage], Awaitable[Any] | Any]


class FileSink(Protocol):
    """Receives every committed artifact. Sync or async."""

    def write_file(self, file_path: str, code: str, language: str) -> Any: ...


class ConversationController:
    """One chat session: transcript, current run, and collaborators."""

    def __init__(
        self,
        orchestrator: RequestOrchestrator,
        renderer: StreamRenderer,
        *,
        file_sink: FileSink | None = None,
        console_log: ConsoleLog | None = None,
        store: TranscriptStore | None = None,
        max_messages: int = 100,
        on_progress: ProgressCallback | None = None,
        on_live_update: LiveUpdateCallback | None = None,
        on_message: MessageCallback | None = None,
    ) -> None:
        self._orchestrator = orchestrator
        self._renderer = renderer
        self._file_sink = file_sink
        self._console_log = console_log or ConsoleLog()
        self._store = store
        self._max_messages = max_messages
        self._on_progress = on_progress
        self._on_live_update = on_live_update
        self._on_message = on_message
        self._transcript: list[ChatMessage] = [greeting_message()]
        self._token: CancellationToken | None = None

    # ── State ─────────────────────────────────────────────────────

    @property
    def transcript(self) -> list[ChatMessage]:
        return list(self._transcript)

    @property
    def console_log(self) -> ConsoleLog:
        return self._console_log

    @property
    def current_token(self) -> CancellationToken | None:
        return self._token

    async def load(self) -> list[ChatMessage]:
        """Restore the transcript from the store, if one is attached."""
        if self._store is not None:
            self._transcript = await self._store.load()
        return self.transcript

    async def clear(self) -> None:
        """Reset the transcript to the greeting."""
        self.cancel()
        self._transcript = [greeting_message()]
        await self._persist()

    # ── Runs ──────────────────────────────────────────────────────

    def cancel(self) -> bool:
        """Cancel the current run. Returns False if there was nothing to cancel."""
        token = self._token
        if token is None or token.cancelled:
            return False
        token.cancel()
        return True

    async def auto_start(self, prompt: str) -> list[ChatMessage]:
        """Out-of-band trigger; identical to a manual submission."""
        return await self.submit(prompt)

    async def submit(self, text: str) -> list[ChatMessage]:
        """Run one generation for ``text``.

        Returns the messages this run appended to the transcript. Empty or
        whitespace-only input is ignored without contacting the backend.
        """
        if not text or not text.strip():
            logger.debug("Ignoring empty submission")
            return []

        # A new run supersedes any run still in flight
        if self._token is not None:
            self._token.cancel()
        token = CancellationToken()
        self._token = token

        appended: list[ChatMessage] = []
        await self._append(ChatMessage(sender=Sender.USER, content=text), appended)

        try:
            result = await self._orchestrator.run(
                text, token, on_progress=self._guard(token, self._on_progress),
            )
        except GenerationCancelled:
            await self._console_log.info("Generation cancelled")
            return appended
        except OrchestratorError as e:
            logger.error("Generation failed: %s", e)
            await self._fail(e, appended)
            return appended
        except Exception as e:
            logger.exception("Generation failed with an unexpected error")
            await self._fail(e, appended)
            return appended

        if token.cancelled:
            await self._console_log.info("Generation cancelled")
            return appended

        await self._deliver(result, token, appended)
        return appended

    async def _fail(self, error: Exception, appended: list[ChatMessage]) -> None:
        await self._append(
            ChatMessage(sender=Sender.AI, content=_describe_failure(error), type=MessageType.ERROR),
            appended,
        )
        await self._console_log.error(f"Generation failed: {error}")

    async def _deliver(
        self,
        result: GenerationResult,
        token: CancellationToken,
        appended: list[ChatMessage],
    ) -> None:
        """Reveal and commit each artifact in order.

        The narration is appended just before the first artifact is
        committed, so a run cancelled earlier leaves no trace of it.
        """
        meta = result.metadata
        if not result.artifacts:
            await self._append(
                ChatMessage(sender=Sender.AI, content=result.content, type=MessageType.NORMAL),
                appended,
            )
            await self._console_log.info("Response contained no code blocks")
            return

        narration: ChatMessage | None = ChatMessage(
            sender=Sender.AI,
            content=strip_code_blocks(result.content) or f"Generated {meta.files_generated} file(s).",
            type=MessageType.ANALYSIS,
            metadata=MessageMetadata(
                files_generated=meta.files_generated,
                technologies=meta.technologies,
                estimated_lines=meta.estimated_lines,
                patterns=meta.patterns,
            ),
        )

        on_update = self._guard(token, self._on_live_update)
        for artifact in result.artifacts:
            state = await self._renderer.reveal(artifact, token, on_update)
            if token.cancelled or not state.completed:
                await self._console_log.info(
                    f"Generation cancelled while writing {artifact.file_path}"
                )
                return
            if narration is not None:
                await self._append(narration, appended)
                narration = None
            await self._commit(artifact, appended)

        await self._console_log.success(
            f"Generated {len(result.artifacts)} file(s), ~{meta.estimated_lines} lines"
        )

    async def _commit(self, artifact: CodeArtifact, appended: list[ChatMessage]) -> None:
        """Hand a finished artifact to the file sink and the transcript."""
        if self._file_sink is not None:
            try:
                result = self._file_sink.write_file(
                    artifact.file_path, artifact.raw_code, artifact.language,
                )
                if asyncio.iscoroutine(result):
                    await result
            except Exception:
                logger.exception("File sink failed for %s", artifact.file_path)

        await self._append(
            ChatMessage(
                sender=Sender.AI,
                content=artifact.raw_code,
                type=MessageType.CODE,
                metadata=MessageMetadata(
                    file_path=artifact.file_path,
                    language=artifact.language,
                    complexity=artifact.complexity.value,
                    patterns=list(artifact.patterns),
                ),
            ),
            appended,
        )

    # ── Helpers ───────────────────────────────────────────────────

    def _guard(self, token: CancellationToken, callback: Callable | None) -> Callable | None:
        """Wrap ``callback`` so updates from a superseded run are dropped."""
        if callback is None:
            return None

        def _forward(value: Any) -> Any:
            if token is not self._token:
                return None
            return callback(value)

        return _forward

    async def _append(self, message: ChatMessage, appended: list[ChatMessage]) -> None:
        self._transcript.append(message)
        if len(self._transcript) > self._max_messages:
            self._transcript = self._transcript[-self._max_messages:]
        appended.append(message)

        if self._on_message is not None:
            result = self._on_message(message)
            if asyncio.iscoroutine(result):
                await result
        await self._persist()

    async def _persist(self) -> None:
        if self._store is None:
            return
        try:
            await self._store.save(self._transcript)
        except aiosqlite.Error:
            logger.exception("Could not persist transcript")


def _describe_failure(error: Exception) -> str:
    """Plain-language error text for the transcript."""
    if isinstance(error, MaxRetriesExceeded):
        return (
            f"Sorry, I couldn't reach the code generator after {error.attempts} "
            "attempts. Please check your connection and try again."
        )
    if isinstance(error, InvalidResponse):
        return "Sorry, the code generator sent back a response I couldn't read. Please try again."
    return f"Sorry, something went wrong: {error}"
