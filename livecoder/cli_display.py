"""Live terminal display for a generation run.

A Rich Live layout with three regions: the simulated stage progress, the
artifact currently being revealed (syntax highlighted), and the status
log. The display only consumes callbacks; it never drives the run.
"""

from __future__ import annotations

import time
from collections import deque

from rich.console import Console, Group
from rich.layout import Layout
from rich.live import Live
from rich.panel import Panel
from rich.progress_bar import ProgressBar
from rich.syntax import Syntax
from rich.text import Text

from livecoder.console_log import ConsoleLogEntry, LogLevel
from livecoder.schemas.artifacts import Complexity
from livecoder.schemas.generation import StageProgress
from livecoder.schemas.streaming import LiveCodingState

_LEVEL_STYLE: dict[LogLevel, str] = {
    LogLevel.SUCCESS: "green",
    LogLevel.ERROR: "red",
    LogLevel.INFO: "cyan",
}

_COMPLEXITY_STYLE: dict[Complexity, str] = {
    Complexity.BASIC: "green",
    Complexity.INTERMEDIATE: "yellow",
    Complexity.ADVANCED: "magenta",
    Complexity.ENTERPRISE: "bold red",
}

# Map classifier language tags to Pygments lexer names where they differ
_LEXER_ALIASES: dict[str, str] = {
    "dockerfile": "docker",
    "shell": "bash",
    "sh": "bash",
    "yml": "yaml",
    "text": "text",
}


def lexer_for(language: str) -> str:
    return _LEXER_ALIASES.get(language, language or "text")


def tail_lines(content: str, max_lines: int) -> str:
    """Keep the last ``max_lines`` lines so the cursor stays visible."""
    lines = content.splitlines()
    if len(lines) <= max_lines:
        return content
    return "\n".join(lines[-max_lines:])


class LiveGenerationDisplay:
    """Rich Live view driven by the controller's callbacks.

    Layout structure:
    - progress (size=4): current stage, progress bar, time remaining
    - code (ratio=3): live-revealed artifact
    - activity (size=8): status log
    """

    def __init__(self, console: Console, max_code_lines: int = 40) -> None:
        self._console = console
        self._max_code_lines = max_code_lines
        self._start_time = time.monotonic()
        self._stage: StageProgress | None = None
        self._live_state: LiveCodingState | None = None
        self._activity: deque[tuple[float, str]] = deque(maxlen=20)
        self._live: Live | None = None

    def __enter__(self) -> LiveGenerationDisplay:
        self._start_time = time.monotonic()
        self._live = Live(
            self._build_layout(),
            console=self._console,
            refresh_per_second=12,
            transient=True,
        )
        self._live.__enter__()
        return self

    def __exit__(self, *args: object) -> None:
        if self._live:
            self._live.__exit__(*args)
            self._live = None

    # ── Callbacks ─────────────────────────────────────────────────

    def on_progress(self, update: StageProgress) -> None:
        self._stage = update
        self._log(f"[cyan]{update.stage_name}[/cyan] ({update.progress}%)")
        self._refresh()

    def on_live_update(self, state: LiveCodingState) -> None:
        self._live_state = state
        self._refresh()

    def on_log(self, entry: ConsoleLogEntry) -> None:
        style = _LEVEL_STYLE.get(entry.level, "white")
        self._log(f"[{style}]{entry.message}[/{style}]")
        self._refresh()

    # ── Rendering ─────────────────────────────────────────────────

    def _log(self, message: str) -> None:
        self._activity.append((time.monotonic() - self._start_time, message))

    def _refresh(self) -> None:
        if self._live:
            self._live.update(self._build_layout())

    def _build_layout(self) -> Layout:
        layout = Layout()
        layout.split_column(
            Layout(self._build_progress_panel(), name="progress", size=4),
            Layout(self._build_code_panel(), name="code", ratio=3),
            Layout(self._build_activity_panel(), name="activity", size=8),
        )
        return layout

    def _build_progress_panel(self) -> Panel:
        if self._stage is None:
            return Panel(Text("Waiting to start...", style="dim"), title="Progress")
        stage = self._stage
        remaining_s = stage.estimated_time_remaining_ms / 1000
        header = Text.assemble(
            (stage.stage_name, "bold cyan"),
            (f"  {stage.progress}%", "bold"),
            (f"  ~{remaining_s:.0f}s left", "dim"),
        )
        bar = ProgressBar(total=100, completed=stage.progress)
        return Panel(Group(header, bar), title="Progress")

    def _build_code_panel(self) -> Panel:
        state = self._live_state
        if state is None or not state.is_active:
            return Panel(Text("No file in progress", style="dim"), title="Live coding")

        style = _COMPLEXITY_STYLE.get(state.complexity, "white")
        title = (
            f"{state.file_name} [{style}]{state.complexity.value}[/{style}] "
            f"{state.progress}%"
        )
        code = tail_lines(state.content, self._max_code_lines)
        body = Syntax(code or " ", lexer_for(state.language), theme="monokai", word_wrap=True)
        subtitle = ", ".join(state.patterns) if state.patterns else None
        return Panel(body, title=title, subtitle=subtitle)

    def _build_activity_panel(self) -> Panel:
        text = Text()
        for elapsed, message in self._activity:
            text.append(f"{elapsed:5.1f}s ", style="dim")
            text.append_text(Text.from_markup(message))
            text.append("\n")
        return Panel(text, title="Activity")
