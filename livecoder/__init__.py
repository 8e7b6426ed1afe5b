"""livecoder — prompt-to-code generation with live rendering."""

__version__ = "0.1.0"

from livecoder.cancellation import CancellationToken
from livecoder.classifier import parse
from livecoder.controller import ConversationController
from livecoder.orchestrator import RequestOrchestrator
from livecoder.renderer import StreamRenderer

__all__ = [
    "CancellationToken",
    "ConversationController",
    "RequestOrchestrator",
    "StreamRenderer",
    "parse",
]
