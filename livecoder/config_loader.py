"""Configuration models and TOML loader.

Loads defaults from livecoder/config/defaults.toml (or a user file) into a
LiveCoderConfig. Sections map one-to-one onto the sub-models below.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

# Default config directory relative to the livecoder package
_CONFIG_DIR = Path(__file__).parent / "config"

# Environment variable that overrides backend.model
MODEL_ENV = "LIVECODER_MODEL"


class BackendConfig(BaseModel):
    """Where and how generation requests are sent."""

    kind: Literal["litellm", "http"] = Field(default="litellm")
    model: str = Field(default="anthropic/claude-sonnet-4-5-20250929")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    max_tokens: int = Field(default=8000, gt=0)
    api_key_env: str = Field(default="ANTHROPIC_API_KEY")
    api_base: str = Field(default="", description="Custom API base (empty = provider default)")
    url: str = Field(default="http://localhost:8000/api/generate")
    timeout: int = Field(default=120, gt=0, description="Transport timeout in seconds")


class GenerationConfig(BaseModel):
    """Retry policy and progress simulation."""

    max_attempts: int = Field(default=3, ge=1, le=10)
    backoff_ms: int = Field(default=1000, ge=0, description="Delay unit: attempt x backoff_ms")
    simulate_progress: bool = Field(default=True)
    stack: str = Field(default="", description="Preferred stack added to the system prompt")


class StreamConfig(BaseModel):
    """Reveal cadence for the live-typing effect."""

    chunk_size: int = Field(default=15, gt=0)
    chunk_delay_ms: int = Field(default=20, ge=0)


class TranscriptConfig(BaseModel):
    max_messages: int = Field(default=100, gt=0)
    db_path: str = Field(default="~/.livecoder/transcript.db")


class OutputConfig(BaseModel):
    project_dir: str = Field(default="generated")


class LiveCoderConfig(BaseModel):
    """Top-level configuration."""

    backend: BackendConfig = Field(default_factory=BackendConfig)
    generation: GenerationConfig = Field(default_factory=GenerationConfig)
    stream: StreamConfig = Field(default_factory=StreamConfig)
    transcript: TranscriptConfig = Field(default_factory=TranscriptConfig)
    output: OutputConfig = Field(default_factory=OutputConfig)


def load_config(config_path: Path | None = None) -> LiveCoderConfig:
    """Load configuration from a TOML file.

    Args:
        config_path: Path to a TOML file. Defaults to livecoder/config/defaults.toml.

    Returns:
        LiveCoderConfig with values from the file. ``LIVECODER_MODEL``, when
        set, overrides ``backend.model``.

    Raises:
        FileNotFoundError: If the config file does not exist.
        pydantic.ValidationError: If a value is out of range.
    """
    path = config_path or _CONFIG_DIR / "defaults.toml"
    if not path.exists():
        raise FileNotFoundError(f"Config not found: {path}")

    with open(path, "rb") as f:
        raw = tomllib.load(f)

    config = LiveCoderConfig(
        backend=BackendConfig(**raw.get("backend", {})),
        generation=GenerationConfig(**raw.get("generation", {})),
        stream=StreamConfig(**raw.get("stream", {})),
        transcript=TranscriptConfig(**raw.get("transcript", {})),
        output=OutputConfig(**raw.get("output", {})),
    )

    model_override = os.environ.get(MODEL_ENV, "").strip()
    if model_override:
        logger.debug("Model overridden by %s: %s", MODEL_ENV, model_override)
        config.backend.model = model_override

    return config
