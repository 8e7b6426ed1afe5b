"""Classifier output schemas.

Defines the CodeArtifact record produced for every fenced block in a
response, together with the complexity, category, and language profile
types the classifier assigns.
"""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class Complexity(StrEnum):
    """Escalating complexity levels, lowest first."""

    BASIC = "basic"
    INTERMEDIATE = "intermediate"
    ADVANCED = "advanced"
    ENTERPRISE = "enterprise"

    @property
    def rank(self) -> int:
        """Position in the total order (basic=0 ... enterprise=3)."""
        return list(Complexity).index(self)


class Category(StrEnum):
    """Project role of a file, derived from its language tag."""

    FRONTEND = "frontend"
    BACKEND = "backend"
    STYLING = "styling"
    CONFIG = "config"
    DATABASE = "database"
    DOCS = "docs"
    DEVOPS = "devops"
    TESTING = "testing"
    OTHER = "other"


class LanguageProfile(BaseModel):
    """File extension and category for a language tag."""

    model_config = ConfigDict(frozen=True)

    extension: str = Field(description="File extension without the leading dot")
    category: Category = Field(description="Project category for this language")


class CodeArtifact(BaseModel):
    """One classified code block, destined to become one file.

    Created once per parsed block and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    language: str = Field(description="Language tag from the fence ('text' when untagged)")
    raw_code: str = Field(description="Block body with surrounding whitespace trimmed")
    file_path: str = Field(description="Best-effort relative path for the file")
    category: Category = Field(description="Category derived from the language tag")
    complexity: Complexity = Field(description="Heuristic complexity level")
    patterns: tuple[str, ...] = Field(
        default=(), description="Detected design patterns, in catalog order"
    )
    index: int = Field(default=0, ge=0, description="Zero-based position in the parse")

    @property
    def line_count(self) -> int:
        """Number of source lines in the block."""
        return len(self.raw_code.split("\n")) if self.raw_code else 0

    @property
    def file_name(self) -> str:
        """Last path component of ``file_path``."""
        return self.file_path.rsplit("/", 1)[-1]
