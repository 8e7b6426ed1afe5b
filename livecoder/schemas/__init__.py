"""livecoder schema definitions.

All Pydantic v2 models shared by the orchestrator, classifier, renderer,
and controller.
"""

from livecoder.schemas.artifacts import (
    Category,
    CodeArtifact,
    Complexity,
    LanguageProfile,
)
from livecoder.schemas.generation import (
    BackendOptions,
    BackendRequest,
    BackendResponse,
    GenerationMetadata,
    GenerationResult,
    GenerationStage,
    StageProgress,
)
from livecoder.schemas.messages import (
    ChatMessage,
    MessageMetadata,
    MessageType,
    Sender,
    greeting_message,
)
from livecoder.schemas.streaming import LiveCodingState

__all__ = [
    "BackendOptions",
    "BackendRequest",
    "BackendResponse",
    "Category",
    "ChatMessage",
    "CodeArtifact",
    "Complexity",
    "GenerationMetadata",
    "GenerationResult",
    "GenerationStage",
    "LanguageProfile",
    "LiveCodingState",
    "MessageMetadata",
    "MessageType",
    "Sender",
    "StageProgress",
    "greeting_message",
]
