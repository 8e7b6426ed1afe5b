"""Generation run schemas.

Covers the stage catalog entries, progress updates, the backend wire
format, and the aggregated result of a successful run.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from livecoder.schemas.artifacts import CodeArtifact


class GenerationStage(BaseModel):
    """One named phase of the simulated progress sequence."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Stable stage identifier")
    name: str = Field(description="Display name")
    description: str = Field(description="One-line description of the phase")
    target_progress: int = Field(ge=0, le=100, description="Progress reached at this stage")
    estimated_duration_ms: int = Field(ge=0, description="Simulated time spent in this stage")


class StageProgress(BaseModel):
    """Progress update emitted to the caller while a run is in flight."""

    stage_id: str = Field(description="Identifier of the current stage")
    stage_name: str = Field(description="Display name of the current stage")
    stage_index: int = Field(ge=0, description="Index into the stage catalog")
    progress: int = Field(ge=0, le=100, description="Overall progress percentage")
    estimated_time_remaining_ms: int = Field(
        ge=0, description="Sum of the simulated durations still ahead"
    )


class BackendOptions(BaseModel):
    """Sampling options sent alongside the prompt."""

    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=8000, gt=0)
    model: str = Field(default="", description="Backend model identifier")


class BackendRequest(BaseModel):
    """JSON body sent to the generative backend."""

    prompt: str = Field(description="System instruction followed by the user text")
    options: BackendOptions = Field(default_factory=BackendOptions)


class BackendResponse(BaseModel):
    """JSON body returned by the generative backend."""

    response: str = Field(description="Generated artifact: prose plus fenced code")
    success: bool | None = Field(default=None)
    error: str | None = Field(default=None)


class GenerationMetadata(BaseModel):
    """Summary derived from a response, for display only."""

    architecture: list[str] = Field(
        default_factory=list, description="Fixed architecture/pattern labels"
    )
    technologies: list[str] = Field(
        default_factory=list, description="Recognised products/frameworks, vocabulary order"
    )
    estimated_lines: int = Field(
        default=0, ge=0, description="Sum of line counts over every fenced block in the raw text"
    )
    files_generated: int = Field(default=0, ge=0, description="Number of parsed artifacts")
    patterns: list[str] = Field(
        default_factory=list, description="Union of artifact patterns, catalog order"
    )


class GenerationResult(BaseModel):
    """Outcome of a successful run."""

    content: str = Field(description="Raw response text (narration plus code)")
    artifacts: list[CodeArtifact] = Field(default_factory=list)
    metadata: GenerationMetadata = Field(default_factory=GenerationMetadata)
    attempts: int = Field(default=1, ge=1, description="Backend attempts used")
