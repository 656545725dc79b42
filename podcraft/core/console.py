from typing import Iterator, Optional
from contextlib import contextmanager

from rich.console import Console
from rich.panel import Panel
from rich.theme import Theme

podcraft_theme = Theme({
    "info": "cyan",
    "warning": "yellow",
    "error": "bold red",
    "success": "bold green",
})


class ConsoleManager:
    """
    Terminal output for the CLI.

    One instance per CLI invocation; pass it to setup_logging() so log records
    and command output share the same rich Console.
    """

    def __init__(self, output_mode: str = "standard", console: Optional[Console] = None):
        self.console = console or Console(theme=podcraft_theme)
        self.output_mode = output_mode.lower()

    def configure(self, output_mode: str = "standard", debug: bool = False):
        """output_mode: 'standard', 'verbose', 'silent'"""
        self.output_mode = "verbose" if debug else output_mode.lower()

    @property
    def silent(self) -> bool:
        return self.output_mode == "silent"

    def print(self, *args, **kwargs):
        if not self.silent:
            self.console.print(*args, **kwargs)

    def success(self, message: str):
        if not self.silent:
            self.console.print(f"✅ {message}", style="success")

    def warning(self, message: str):
        if not self.silent:
            self.console.print(f"⚠️ {message}", style="warning")

    def error_panel(self, message: str, title: str = "Error"):
        # Errors are shown even in silent mode
        self.console.print(Panel(message, title=title, border_style="red", expand=False))

    @contextmanager
    def status(self, message: str) -> Iterator[None]:
        """
        Spinner in standard mode, start/finish lines in verbose mode.
        """
        if self.silent:
            yield
            return

        if self.output_mode == "verbose":
            self.console.log(f"Started: {message}")
            try:
                yield
            finally:
                self.console.log(f"Finished: {message}")
            return

        with self.console.status(f"[bold cyan]{message}", spinner="dots"):
            yield
