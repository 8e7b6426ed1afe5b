"""Live reveal state.

One LiveCodingState exists per active reveal. The renderer owns it and
hands snapshots to the caller after every batch.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from livecoder.schemas.artifacts import Complexity


class LiveCodingState(BaseModel):
    """Cumulative view of an artifact being revealed."""

    file_name: str = Field(default="", description="Path of the artifact being revealed")
    content: str = Field(default="", description="Revealed prefix of the artifact")
    is_active: bool = Field(default=False, description="True while the reveal loop is running")
    language: str = Field(default="text")
    progress: int = Field(default=0, ge=0, le=100)
    complexity: Complexity = Field(default=Complexity.BASIC)
    patterns: list[str] = Field(default_factory=list)
    revealed_chars: int = Field(default=0, ge=0)
    total_chars: int = Field(default=0, ge=0)

    @property
    def completed(self) -> bool:
        """True once every character has been revealed."""
        return self.revealed_chars >= self.total_chars
