"""Tests for livecoder.config_loader — TOML config loading."""

from pathlib import Path

import pytest
from pydantic import ValidationError

from livecoder.config_loader import (
    MODEL_ENV,
    BackendConfig,
    GenerationConfig,
    LiveCoderConfig,
    load_config,
)

# Path to the real config file shipped with the package
_DEFAULTS = Path(__file__).parent.parent / "livecoder" / "config" / "defaults.toml"


class TestLoadConfig:
    def test_loads_shipped_defaults(self, monkeypatch):
        monkeypatch.delenv(MODEL_ENV, raising=False)
        config = load_config()
        assert isinstance(config, LiveCoderConfig)
        assert config.backend.kind == "litellm"
        assert config.generation.max_attempts == 3
        assert config.generation.backoff_ms == 1000
        assert config.stream.chunk_size == 15
        assert config.stream.chunk_delay_ms == 20
        assert config.transcript.max_messages == 100

    def test_explicit_path(self, monkeypatch):
        monkeypatch.delenv(MODEL_ENV, raising=False)
        assert load_config(_DEFAULTS) == load_config()

    def test_partial_file_uses_defaults(self, tmp_path, monkeypatch):
        monkeypatch.delenv(MODEL_ENV, raising=False)
        path = tmp_path / "custom.toml"
        path.write_text('[generation]\nmax_attempts = 5\n\n[backend]\nkind = "http"\n')
        config = load_config(path)
        assert config.generation.max_attempts == 5
        assert config.generation.backoff_ms == 1000
        assert config.backend.kind == "http"
        assert config.stream.chunk_size == 15

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nope.toml")

    def test_invalid_value(self, tmp_path):
        path = tmp_path / "bad.toml"
        path.write_text("[stream]\nchunk_size = 0\n")
        with pytest.raises(ValidationError):
            load_config(path)

    def test_model_env_override(self, monkeypatch):
        monkeypatch.setenv(MODEL_ENV, "openai/gpt-4o")
        assert load_config().backend.model == "openai/gpt-4o"

    def test_blank_model_env_ignored(self, monkeypatch):
        monkeypatch.setenv(MODEL_ENV, "   ")
        assert load_config().backend.model == BackendConfig().model


class TestModels:
    def test_unknown_backend_kind_rejected(self):
        with pytest.raises(ValidationError):
            BackendConfig(kind="ftp")

    def test_max_attempts_bounds(self):
        with pytest.raises(ValidationError):
            GenerationConfig(max_attempts=0)
