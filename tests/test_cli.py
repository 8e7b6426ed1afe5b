"""Tests for the CLI interface.

Covers --help/--version, every command, and a full generate run with the
backend replaced by a scripted stub.
"""

from __future__ import annotations

import json
from unittest.mock import patch

from typer.testing import CliRunner

from livecoder import __version__
from livecoder.cli import app
from livecoder.errors import TransportError
from livecoder.providers.base import GenerationBackend
from livecoder.schemas.generation import BackendResponse

# NO_COLOR=1 prevents Rich from injecting ANSI codes inside option names,
# which breaks substring matching in CI (headless, no TTY).
# COLUMNS=200 prevents wrapping that could split a flag across lines.
runner = CliRunner(env={"NO_COLOR": "1", "COLUMNS": "200"})

# Patch target
_BUILD_BACKEND = "livecoder.cli.build_backend"

RESPONSE = (
    "Here is a React app written in TypeScript.\n\n"
    "```python\nclass UserModel:\n    pass\n```\n\n"
    "```tsx\nexport function ButtonComponent() {\n  return null;\n}\n```\n"
)


# ── Factories ──────────────────────────────────────────────────────


class _StubBackend(GenerationBackend):
    def __init__(self, *script):
        self._script = list(script)
        self.requests = []

    @property
    def name(self) -> str:
        return "stub"

    async def send(self, request):
        self.requests.append(request)
        outcome = self._script.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return BackendResponse(response=outcome, success=True)


def _write_config(tmp_path, **sections) -> str:
    """Write a config TOML with the given sections under tmp_path."""
    sections.setdefault("transcript", {"db_path": str(tmp_path / "transcript.db")})
    lines = []
    for name, values in sections.items():
        lines.append(f"[{name}]")
        for key, value in values.items():
            lines.append(f"{key} = {json.dumps(value)}")
        lines.append("")
    path = tmp_path / "livecoder.toml"
    path.write_text("\n".join(lines), encoding="utf-8")
    return str(path)


# ── Help / version ─────────────────────────────────────────────────


class TestHelp:
    def test_help_lists_commands(self):
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        for command in ("generate", "history", "clear", "classify", "config"):
            assert command in result.output

    def test_version(self):
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"livecoder {__version__}" in result.output

    def test_generate_help(self):
        result = runner.invoke(app, ["generate", "--help"])
        assert result.exit_code == 0
        assert "--no-persist" in result.output
        assert "--output" in result.output


# ── classify ───────────────────────────────────────────────────────


class TestClassify:
    def test_classifies_response_file(self, tmp_path):
        path = tmp_path / "response.md"
        path.write_text(RESPONSE, encoding="utf-8")
        result = runner.invoke(app, ["classify", str(path)])

        assert result.exit_code == 0
        assert "models/usermodel.py" in result.output
        assert "components/ButtonComponent.tsx" in result.output
        assert "Technologies: React, TypeScript, Python" in result.output
        assert "Estimated lines: 5" in result.output

    def test_no_fences(self, tmp_path):
        path = tmp_path / "response.md"
        path.write_text("Only prose here.", encoding="utf-8")
        result = runner.invoke(app, ["classify", str(path)])
        assert result.exit_code == 0
        assert "No fenced code blocks found" in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["classify", str(tmp_path / "nope.md")])
        assert result.exit_code == 1
        assert "File not found" in result.output


# ── config ─────────────────────────────────────────────────────────


class TestConfigCommand:
    def test_prints_defaults(self):
        result = runner.invoke(app, ["config"])
        assert result.exit_code == 0
        assert "max_attempts" in result.output
        assert "chunk_size" in result.output

    def test_custom_file(self, tmp_path):
        config_path = _write_config(tmp_path, generation={"max_attempts": 7})
        result = runner.invoke(app, ["config", "--config", config_path])
        assert result.exit_code == 0
        assert '"max_attempts": 7' in result.output

    def test_missing_file(self, tmp_path):
        result = runner.invoke(app, ["config", "--config", str(tmp_path / "nope.toml")])
        assert result.exit_code == 1
        assert "Config not found" in result.output


# ── history / clear ────────────────────────────────────────────────


class TestHistory:
    def test_empty_history_shows_greeting(self, tmp_path):
        config_path = _write_config(tmp_path)
        result = runner.invoke(app, ["history", "--config", config_path])
        assert result.exit_code == 0
        assert "system" in result.output

    def test_clear(self, tmp_path):
        config_path = _write_config(tmp_path)
        result = runner.invoke(app, ["clear", "--config", config_path])
        assert result.exit_code == 0
        assert "Transcript cleared" in result.output


# ── generate ───────────────────────────────────────────────────────


class TestGenerate:
    def test_writes_project_files(self, tmp_path):
        config_path = _write_config(tmp_path)
        out_dir = tmp_path / "project"
        with patch(_BUILD_BACKEND, return_value=_StubBackend(RESPONSE)):
            result = runner.invoke(app, [
                "generate", "Build a UI",
                "--config", config_path,
                "--output", str(out_dir),
                "--no-persist", "--no-live",
            ])

        assert result.exit_code == 0, result.output
        assert (out_dir / "models" / "usermodel.py").exists()
        assert (out_dir / "components" / "ButtonComponent.tsx").exists()
        assert "models/usermodel.py" in result.output

    def test_persists_transcript(self, tmp_path):
        config_path = _write_config(tmp_path)
        with patch(_BUILD_BACKEND, return_value=_StubBackend("No code today.")):
            result = runner.invoke(app, [
                "generate", "Explain MVC",
                "--config", config_path,
                "--output", str(tmp_path / "project"),
                "--no-live",
            ])
        assert result.exit_code == 0, result.output

        history = runner.invoke(app, ["history", "--config", config_path])
        assert "Explain MVC" in history.output
        assert "No code today." in history.output

    def test_failure_exits_non_zero(self, tmp_path):
        config_path = _write_config(tmp_path, generation={"backoff_ms": 0})
        backend = _StubBackend(TransportError("down"), TransportError("down"), TransportError("down"))
        with patch(_BUILD_BACKEND, return_value=backend):
            result = runner.invoke(app, [
                "generate", "Build a UI",
                "--config", config_path,
                "--output", str(tmp_path / "project"),
                "--no-persist", "--no-live",
            ])
        assert result.exit_code == 1
        assert "couldn't reach the code generator" in result.output

    def test_stack_option_reaches_prompt(self, tmp_path):
        config_path = _write_config(tmp_path)
        backend = _StubBackend("No code today.")
        with patch(_BUILD_BACKEND, return_value=backend):
            result = runner.invoke(app, [
                "generate", "Build a UI",
                "--config", config_path,
                "--output", str(tmp_path / "project"),
                "--stack", "FastAPI + React",
                "--no-persist", "--no-live",
            ])
        assert result.exit_code == 0, result.output
        assert "Preferred stack: FastAPI + React" in backend.requests[0].prompt

    def test_unexpected_backend_error_exits_non_zero(self, tmp_path):
        config_path = _write_config(tmp_path)
        with patch(_BUILD_BACKEND, return_value=_StubBackend(RuntimeError("socket closed"))):
            result = runner.invoke(app, [
                "generate", "Build a UI",
                "--config", config_path,
                "--output", str(tmp_path / "project"),
                "--no-persist", "--no-live",
            ])
        assert result.exit_code == 1
        assert "something went wrong" in result.output
