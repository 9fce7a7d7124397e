"""
User-facing terminal output and progress indicators using rich.
"""

import io
from collections.abc import Iterator
from contextlib import contextmanager

from rich.console import Console
from rich.markdown import Markdown
from rich.markup import escape
from rich.rule import Rule
from rich.status import Status


class ProgressIndicator:
    """
    A spinner shown while a long-running operation is in flight.

    The spinner is refreshed by rich on a background thread. ``success`` and
    ``fail`` stop it synchronously before printing the final line, so the
    spinner never outlives the operation it decorates.
    """

    def __init__(self, output: "Output", message: str):
        self.output = output
        self.message = message
        self._status: Status | None = output.console.status(escape(message), spinner="dots")
        self._status.start()

    @property
    def running(self) -> bool:
        return self._status is not None

    def stop(self):
        if self._status is not None:
            self._status.stop()
            self._status = None

    def success(self, message: str):
        self.stop()
        self.output.success(message)

    def fail(self, message: str):
        self.stop()
        self.output.error(message)


class Output:
    """
    Presentation layer for CLI messages.

    Args:
        console: rich Console to write to (defaults to stdout)
    """

    def __init__(self, console: Console | None = None):
        self.console = console or Console()

    @classmethod
    def silent(cls) -> "Output":
        """Output that discards everything (for tests and library use)."""
        return cls(Console(file=io.StringIO(), force_terminal=False))

    def info(self, message: str):
        self.console.print(escape(message))

    def success(self, message: str):
        self.console.print(f"[green]✓[/green] {escape(message)}")

    def warning(self, message: str):
        self.console.print(f"[yellow]⚠[/yellow] {escape(message)}")

    def error(self, message: str):
        self.console.print(f"[red]✗[/red] {escape(message)}")

    def header(self, text: str):
        self.console.print()
        self.console.print(Rule(f"[bold]{escape(text)}[/bold]", characters="═"))
        self.console.print()

    def section(self, text: str):
        self.console.print()
        self.console.print(f"[bold blue]{escape(text)}[/bold blue]")
        self.console.print("─" * len(text))

    def markdown(self, text: str):
        """Render model output, which is usually markdown."""
        self.console.print(Markdown(text))

    def start_progress(self, message: str) -> ProgressIndicator:
        return ProgressIndicator(self, message)

    @contextmanager
    def progress(self, message: str, done: str, failed: str) -> Iterator[ProgressIndicator]:
        """
        Show a spinner around a block.

        Usage:
            with output.progress("Waiting for AI", "Profile selected", "AI failed"):
                call_llm()
        """
        indicator = self.start_progress(message)
        try:
            yield indicator
        except BaseException:
            indicator.fail(failed)
            raise
        else:
            if indicator.running:
                indicator.success(done)
