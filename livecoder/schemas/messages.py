"""Chat transcript schemas."""

from __future__ import annotations

import uuid
from datetime import UTC, datetime
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Sender(StrEnum):
    USER = "user"
    AI = "ai"


class MessageType(StrEnum):
    """How a transcript entry should be presented."""

    ANALYSIS = "analysis"
    CODE = "code"
    NORMAL = "normal"
    ERROR = "error"
    SYSTEM = "system"


class MessageMetadata(BaseModel):
    """Display-only summary attached to a message."""

    files_generated: int | None = None
    technologies: list[str] = Field(default_factory=list)
    estimated_lines: int | None = None
    patterns: list[str] = Field(default_factory=list)
    file_path: str | None = None
    language: str | None = None
    complexity: str | None = None


class ChatMessage(BaseModel):
    """One immutable transcript entry."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    sender: Sender
    content: str
    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    type: MessageType = MessageType.NORMAL
    metadata: MessageMetadata = Field(default_factory=MessageMetadata)


GREETING = (
    "Hi! Describe the project you want to build and I'll generate the code "
    "file by file."
)


def greeting_message() -> ChatMessage:
    """The default transcript when nothing has been persisted."""
    return ChatMessage(sender=Sender.AI, content=GREETING, type=MessageType.SYSTEM)
