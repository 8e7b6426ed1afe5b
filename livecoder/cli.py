"""livecoder CLI — Typer + Rich terminal interface.

Commands: generate, history, clear, classify, config.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import signal
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from livecoder import __version__
from livecoder.classifier import parse
from livecoder.config_loader import LiveCoderConfig, load_config
from livecoder.console_log import ConsoleLog
from livecoder.controller import ConversationController
from livecoder.keys import has_key, load_keys_env
from livecoder.orchestrator import RequestOrchestrator, estimate_line_count, extract_technologies
from livecoder.output.writer import ProjectWriter
from livecoder.persistence.database import close_db, init_db
from livecoder.persistence.transcript import TranscriptStore
from livecoder.providers import build_backend
from livecoder.renderer import StreamRenderer
from livecoder.schemas.generation import BackendOptions
from livecoder.schemas.messages import ChatMessage, MessageType, Sender

console = Console()

app = typer.Typer(
    name="livecoder",
    help="Generate a project from a prompt and watch the files being written.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

_TYPE_STYLE: dict[MessageType, str] = {
    MessageType.ANALYSIS: "cyan",
    MessageType.CODE: "green",
    MessageType.NORMAL: "white",
    MessageType.ERROR: "red",
    MessageType.SYSTEM: "dim",
}


# ── Callbacks ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"livecoder {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool = typer.Option(
        False, "--version", "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging."),
) -> None:
    """livecoder — prompt-to-code generation with live rendering."""
    _configure_logging(verbose)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


# ── Helpers ───────────────────────────────────────────────────────


def _load_config(config_path: Path | None) -> LiveCoderConfig:
    """Load configuration, exit on error."""
    try:
        return load_config(config_path)
    except FileNotFoundError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from None


def _build_controller(
    config: LiveCoderConfig,
    output_dir: str,
    store: TranscriptStore | None,
    console_log: ConsoleLog,
    display=None,
) -> ConversationController:
    backend = build_backend(config.backend)
    orchestrator = RequestOrchestrator(
        backend,
        config.generation,
        BackendOptions(
            temperature=config.backend.temperature,
            max_tokens=config.backend.max_tokens,
            model=config.backend.model,
        ),
    )
    renderer = StreamRenderer(
        chunk_size=config.stream.chunk_size,
        chunk_delay=config.stream.chunk_delay_ms / 1000,
    )
    return ConversationController(
        orchestrator,
        renderer,
        file_sink=ProjectWriter(output_dir or config.output.project_dir),
        console_log=console_log,
        store=store,
        max_messages=config.transcript.max_messages,
        on_progress=display.on_progress if display else None,
        on_live_update=display.on_live_update if display else None,
    )


def _print_messages(messages: list[ChatMessage]) -> None:
    for message in messages:
        if message.sender == Sender.USER:
            continue
        if message.type == MessageType.CODE:
            meta = message.metadata
            console.print(
                f"  [green]✓[/green] {meta.file_path} "
                f"[dim]({meta.language}, {meta.complexity})[/dim]"
            )
        elif message.type == MessageType.ERROR:
            console.print(f"[red]{message.content}[/red]")
        else:
            console.print(message.content)


# ── Commands ──────────────────────────────────────────────────────


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="What to build."),
    output_dir: str = typer.Option("", "--output", "-o", help="Project directory for generated files."),
    config_path: Path | None = typer.Option(None, "--config", help="Path to a config TOML file."),
    no_persist: bool = typer.Option(False, "--no-persist", help="Do not save the transcript."),
    no_live: bool = typer.Option(False, "--no-live", help="Disable the live typing display."),
    stack: str = typer.Option(
        "", "--stack", "-s", help="Preferred technology stack, e.g. 'FastAPI + React'.",
    ),
) -> None:
    """Generate a project from PROMPT. Press Ctrl+C to cancel the run."""
    from livecoder.cli_display import LiveGenerationDisplay

    config = _load_config(config_path)
    load_keys_env()
    if config.backend.kind == "litellm" and not has_key(config.backend.api_key_env):
        console.print(
            f"[yellow]Warning:[/yellow] {config.backend.api_key_env} is not set; "
            "the backend call will likely fail."
        )
    if no_live:
        config.stream.chunk_delay_ms = 0
    if stack:
        config.generation.stack = stack

    async def _run() -> list[ChatMessage]:
        db = None if no_persist else await init_db(config.transcript.db_path)
        store = TranscriptStore(db, config.transcript.max_messages) if db else None
        console_log = ConsoleLog()
        try:
            display_cm = (
                contextlib.nullcontext(None) if no_live else LiveGenerationDisplay(console)
            )
            with display_cm as display:
                controller = _build_controller(
                    config, output_dir, store, console_log, display,
                )
                if display is not None:
                    console_log.add_listener(display.on_log)
                await controller.load()

                loop = asyncio.get_running_loop()
                with contextlib.suppress(NotImplementedError):
                    loop.add_signal_handler(signal.SIGINT, controller.cancel)
                try:
                    return await controller.auto_start(prompt)
                finally:
                    with contextlib.suppress(NotImplementedError):
                        loop.remove_signal_handler(signal.SIGINT)
        finally:
            if db is not None:
                await close_db(db)
            for entry in console_log.history:
                console.print(f"[dim]{entry.level.value}:[/dim] {entry.message}")

    appended = asyncio.run(_run())
    _print_messages(appended)
    if any(m.type == MessageType.ERROR for m in appended):
        raise typer.Exit(1)


@app.command()
def history(
    config_path: Path | None = typer.Option(None, "--config", help="Path to a config TOML file."),
    limit: int = typer.Option(20, "--limit", "-n", help="Number of recent messages to show."),
) -> None:
    """Show the persisted chat transcript."""
    config = _load_config(config_path)

    async def _load() -> list[ChatMessage]:
        db = await init_db(config.transcript.db_path)
        try:
            return await TranscriptStore(db, config.transcript.max_messages).load()
        finally:
            await close_db(db)

    messages = asyncio.run(_load())[-limit:]

    table = Table(title="Transcript", show_lines=False)
    table.add_column("Time", style="dim", no_wrap=True)
    table.add_column("From", no_wrap=True)
    table.add_column("Type", no_wrap=True)
    table.add_column("Content")
    for message in messages:
        style = _TYPE_STYLE.get(message.type, "white")
        first_line = message.content.splitlines()[0] if message.content else ""
        preview = message.metadata.file_path or first_line
        table.add_row(
            message.timestamp.strftime("%Y-%m-%d %H:%M"),
            message.sender.value,
            f"[{style}]{message.type.value}[/{style}]",
            preview[:100],
        )
    console.print(table)


@app.command()
def clear(
    config_path: Path | None = typer.Option(None, "--config", help="Path to a config TOML file."),
) -> None:
    """Delete the persisted chat transcript."""
    config = _load_config(config_path)

    async def _clear() -> None:
        db = await init_db(config.transcript.db_path)
        try:
            await TranscriptStore(db).clear()
        finally:
            await close_db(db)

    asyncio.run(_clear())
    console.print("[green]Transcript cleared.[/green]")


@app.command()
def classify(
    response_file: Path = typer.Argument(..., help="File containing a saved model response."),
) -> None:
    """Classify the fenced code blocks in a saved response."""
    if not response_file.is_file():
        console.print(f"[red]File not found:[/red] {response_file}")
        raise typer.Exit(1)

    text = response_file.read_text(encoding="utf-8")
    artifacts = parse(text)
    if not artifacts:
        console.print("[yellow]No fenced code blocks found.[/yellow]")
        return

    table = Table(title=f"{len(artifacts)} artifact(s)")
    table.add_column("#", justify="right")
    table.add_column("Path", style="bold")
    table.add_column("Language")
    table.add_column("Category")
    table.add_column("Complexity")
    table.add_column("Lines", justify="right")
    table.add_column("Patterns")
    for artifact in artifacts:
        table.add_row(
            str(artifact.index + 1),
            artifact.file_path,
            artifact.language,
            artifact.category.value,
            artifact.complexity.value,
            str(artifact.line_count),
            ", ".join(artifact.patterns),
        )
    console.print(table)

    technologies = extract_technologies(text)
    console.print(f"Technologies: {', '.join(technologies) or 'none'}")
    console.print(f"Estimated lines: {estimate_line_count(text)}")


@app.command(name="config")
def show_config(
    config_path: Path | None = typer.Option(None, "--config", help="Path to a config TOML file."),
) -> None:
    """Print the effective configuration."""
    config = _load_config(config_path)
    console.print_json(config.model_dump_json())
