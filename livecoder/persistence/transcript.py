"""Transcript store backed by SQLite.

``save`` replaces the stored transcript with the newest ``max_messages``
entries; ``load`` returns them in order, or the default greeting when
nothing is stored or any row fails to parse.
"""

from __future__ import annotations

import logging

import aiosqlite
from pydantic import ValidationError

from livecoder.schemas.messages import ChatMessage, greeting_message

logger = logging.getLogger(__name__)


class TranscriptStore:
    """Persists the chat transcript.

    All methods are async and operate on a connection from init_db().
    """

    def __init__(self, db: aiosqlite.Connection, max_messages: int = 100) -> None:
        self._db = db
        self._max_messages = max_messages

    @property
    def max_messages(self) -> int:
        return self._max_messages

    async def save(self, messages: list[ChatMessage]) -> None:
        """Replace the stored transcript with the capped tail of ``messages``."""
        capped = messages[-self._max_messages:]
        await self._db.execute("DELETE FROM messages")
        await self._db.executemany(
            "INSERT INTO messages (position, message_id, message_json) VALUES (?, ?, ?)",
            [
                (position, message.id, message.model_dump_json())
                for position, message in enumerate(capped)
            ],
        )
        await self._db.commit()

    async def load(self) -> list[ChatMessage]:
        """Return the stored transcript, or ``[greeting]`` if none or unreadable."""
        async with self._db.execute(
            "SELECT message_json FROM messages ORDER BY position"
        ) as cursor:
            rows = await cursor.fetchall()

        if not rows:
            return [greeting_message()]

        try:
            return [ChatMessage.model_validate_json(row[0]) for row in rows]
        except ValidationError:
            logger.warning("Stored transcript is unreadable; starting fresh")
            return [greeting_message()]

    async def clear(self) -> None:
        await self._db.execute("DELETE FROM messages")
        await self._db.commit()
