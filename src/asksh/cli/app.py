"""Typer CLI for ask-sh."""

import sys
from pathlib import Path
from typing import Optional

import typer
from loguru import logger

from asksh import __version__
from asksh.app import AskRuntime, build_runtime
from asksh.cli.render import Renderer
from asksh.config import Settings, get_settings
from asksh.core.messages import render_notice
from asksh.core.types import Disposition
from asksh.engine.system_info import UserSystemInfo
from asksh.errors import ConfigurationError
from asksh.ledger import LedgerFile
from asksh.logging_utils import configure_logging

QUIT_COMMANDS = frozenset({"quit", "exit", "q"})
SUCCESS_DISPOSITIONS = frozenset({Disposition.COMPLETED, Disposition.AWAITING_OUTPUT})

# Works in bash and zsh: eval "$(ask-sh init)"
INIT_SCRIPT = """\
# Generated by `ask-sh init`.
ask() {
    if ! command -v ask-sh >/dev/null 2>&1; then
        printf "ask-sh is installed but not on your PATH.\\n" >&2
        return 127
    fi
    if [ "$#" -eq 0 ]; then
        ask-sh chat
    else
        ask-sh ask "$@"
    fi
}
"""

app = typer.Typer(
    name="ask-sh",
    help="Ask your shell in plain language.",
    add_completion=False,
    rich_markup_mode="rich",
)


def _confirm(command: str, reason: str) -> bool:
    return typer.confirm(f"{reason}. Run `{command}`?", default=False)


def _load_settings(workspace: Optional[Path], model: Optional[str]) -> Settings:
    settings = get_settings(workspace)
    if model:
        settings = settings.model_copy(update={"model": model})
    return settings


def _load_runtime(renderer: Renderer, settings: Settings, *, yes: bool) -> AskRuntime:
    try:
        return build_runtime(settings, approver=None if yes else _confirm)
    except ConfigurationError as exc:
        renderer.error(str(exc))
        raise typer.Exit(1) from exc


def _show_debug(renderer: Renderer, text: Optional[str] = None, *, from_stdin: bool = False) -> None:
    info = UserSystemInfo.collect()
    logger.debug("cli.debug os={} arch={} shell={} stdin={}", info.os, info.arch, info.shell, from_stdin)
    values: dict[str, object] = {"OS": info.os, "arch": info.arch, "shell": info.shell}
    if text is not None:
        values["stdin"] = from_stdin
        values["input"] = text
    renderer.debug(values)


@app.command()
def ask(
    request: Optional[list[str]] = typer.Argument(None, help="What you want to know or do, read from stdin if omitted"),
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Directory commands run in"),
    model: Optional[str] = typer.Option(None, "--model", help="Model in provider:model form"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Run state-changing commands without asking"),
    debug: bool = typer.Option(False, "--debug", help="Print host details and the raw request"),
) -> None:
    """Answer one request and exit."""
    renderer = Renderer()
    settings = _load_settings(workspace, model)
    from_stdin = not request and not sys.stdin.isatty()
    text = sys.stdin.read().strip() if from_stdin else " ".join(request or []).strip()
    if debug or settings.debug:
        _show_debug(renderer, text, from_stdin=from_stdin)
    if not text:
        renderer.error("request is empty")
        raise typer.Exit(2)

    with _load_runtime(renderer, settings, yes=yes) as runtime:
        try:
            result = runtime.handle_input(text)
        except KeyboardInterrupt:
            runtime.abort()
            renderer.info(render_notice("aborted", runtime.session.language or settings.default_language))
            raise typer.Exit(130) from None
    renderer.turn_result(result)
    if result.disposition not in SUCCESS_DISPOSITIONS:
        raise typer.Exit(1)


@app.command()
def chat(
    workspace: Optional[Path] = typer.Option(None, "--workspace", "-w", help="Directory commands run in"),
    model: Optional[str] = typer.Option(None, "--model", help="Model in provider:model form"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Run state-changing commands without asking"),
    debug: bool = typer.Option(False, "--debug", help="Print host details and each raw request"),
) -> None:
    """Start an interactive session."""
    renderer = Renderer()
    settings = _load_settings(workspace, model)
    configure_logging(profile="chat", level=settings.log_level)

    with _load_runtime(renderer, settings, yes=yes) as runtime:
        renderer.welcome(str(runtime.workspace), settings.model or "")
        _chat_loop(runtime, renderer, debug=debug or settings.debug)


def _chat_loop(runtime: AskRuntime, renderer: Renderer, *, debug: bool = False) -> None:
    if debug:
        _show_debug(renderer)
    while True:
        try:
            text = renderer.get_user_input().strip()
        except EOFError:
            break
        except KeyboardInterrupt:
            runtime.abort()
            break
        if not text:
            continue
        if text.lower() in QUIT_COMMANDS:
            break
        if debug:
            renderer.debug({"input": text})

        try:
            result = runtime.handle_input(text)
        except KeyboardInterrupt:
            runtime.abort()
            language = runtime.session.language or runtime.settings.default_language
            renderer.info(render_notice("aborted", language))
            break
        renderer.turn_result(result)
        if runtime.session.aborted:
            break
    logger.info("chat.exit session={}", runtime.session.id)


@app.command()
def history(
    path: Optional[Path] = typer.Argument(None, help="Ledger JSONL file, defaults to ASK_SH_LEDGER_PATH"),
    archive: bool = typer.Option(False, "--archive", help="Move the ledger file aside after showing it"),
) -> None:
    """Show the commands recorded in a ledger file."""
    renderer = Renderer()
    ledger_path = path or get_settings().ledger_path
    if ledger_path is None:
        renderer.error("no ledger file given and ASK_SH_LEDGER_PATH is not set")
        raise typer.Exit(1)
    if not ledger_path.exists():
        renderer.error(f"ledger file not found: {ledger_path}")
        raise typer.Exit(1)
    store = LedgerFile(ledger_path)
    renderer.history(store.read())
    if archive:
        archived = store.archive()
        renderer.info(f"Archived to {archived}")


@app.command()
def init() -> None:
    """Print a shell function to source from your shell rc file."""
    typer.echo(INIT_SCRIPT, nl=False)


@app.command()
def version() -> None:
    """Show the ask-sh version."""
    typer.echo(f"ask-sh {__version__}")
