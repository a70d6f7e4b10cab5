"""CLI renderer for ask-sh."""

from collections.abc import Iterable

from prompt_toolkit import PromptSession
from prompt_toolkit.patch_stdout import patch_stdout
from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table

from asksh.core.types import CommandRecord, OutputSegment, TurnResult


class Renderer:
    """CLI renderer using Rich for terminal output."""

    def __init__(self, console: Console | None = None) -> None:
        self.console: Console = console or Console()
        self._prompt_session: PromptSession[str] | None = None

    def info(self, message: str) -> None:
        self.console.print(message)

    def error(self, message: str) -> None:
        """Render an error message."""
        self.console.print(f"[bold red]Error:[/bold red] {message}")

    def debug(self, values: dict[str, object]) -> None:
        for key, value in values.items():
            self.console.print(f"[dim]{key}: {escape(str(value))}[/dim]", highlight=False)

    def welcome(self, workspace: str, model: str) -> None:
        self.console.print("[bold blue]ask-sh[/bold blue] - ask your shell. Type [bold]quit[/bold] to leave.")
        self.console.print(f"[bold]Working directory:[/bold] [cyan]{workspace}[/cyan]")
        self.console.print(f"[bold]Model:[/bold] [magenta]{model}[/magenta]")

    def segment(self, segment: OutputSegment) -> None:
        if segment.kind == "commands":
            self.console.print(Panel(escape(segment.text), title="commands", title_align="left", border_style="green"))
        elif segment.kind == "notice":
            self.console.print(f"[yellow]{escape(segment.text)}[/yellow]", highlight=False)
        elif segment.kind == "summary":
            self.console.print(f"[bold]{escape(segment.text)}[/bold]", highlight=False)
        else:
            self.console.print(segment.text, markup=False, highlight=False)

    def turn_result(self, result: TurnResult) -> None:
        """Render every segment of a finished turn, then its command outputs."""
        for segment in result.segments:
            if segment.kind in {"summary", "notice"}:
                continue
            self.segment(segment)
        for record in result.records:
            self.record_output(record)
        for segment in result.segments:
            if segment.kind in {"summary", "notice"}:
                self.segment(segment)

    def record_output(self, record: CommandRecord) -> None:
        result = record.result
        self.console.print(f"[dim]$ {escape(record.command)}[/dim]", highlight=False)
        if result.ok:
            text = result.stdout.rstrip()
            self.console.print(escape(text) if text else "[dim](no output)[/dim]", highlight=False)
            return
        detail = result.stderr.rstrip() or result.error or f"exit code {result.exit_code}"
        self.console.print(f"[red]{escape(detail)}[/red]", highlight=False)

    def history(self, records: Iterable[CommandRecord]) -> None:
        table = Table(title="Command history")
        table.add_column("#", justify="right")
        table.add_column("turn", justify="right")
        table.add_column("command")
        table.add_column("status")
        table.add_column("exit", justify="right")
        for record in records:
            exit_code = "-" if record.result.exit_code is None else str(record.result.exit_code)
            table.add_row(str(record.index), str(record.turn), escape(record.command), record.result.status, exit_code)
        self.console.print(table)

    def get_user_input(self) -> str:
        """Prompt user for input."""
        if self._prompt_session is None:
            self._prompt_session = PromptSession()
        with patch_stdout(raw=True):
            return self._prompt_session.prompt("? ")
