"""Console output abstraction.

Commands write user-facing text through ``ConsoleProtocol`` so tests can
swap Rich for ``MockConsole`` and assert on what would have been shown.
Diagnostics go to the structlog logger instead.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum, auto
from typing import TYPE_CHECKING, Protocol

if TYPE_CHECKING:
    from collections.abc import Callable

__all__ = [
    "Style",
    "ConsoleProtocol",
    "RichConsole",
    "MockConsole",
    "OutputRecord",
]


class Style(Enum):
    """Text styles for console output."""

    DEFAULT = auto()
    SUCCESS = auto()
    ERROR = auto()
    WARNING = auto()
    INFO = auto()
    DIM = auto()
    HEADER = auto()

    def __str__(self) -> str:
        return self.name.lower()


class ConsoleProtocol(Protocol):
    """What commands need from a console."""

    def print(self, message: str, style: Style = Style.DEFAULT) -> None: ...

    def success(self, message: str) -> None: ...

    def error(self, message: str) -> None: ...

    def warning(self, message: str) -> None: ...

    def info(self, message: str) -> None: ...

    def header(self, message: str) -> None: ...

    def table(self, columns: list[str], rows: list[list[str]]) -> None:
        """Render rows under column headings."""
        ...

    def progress(self, description: str) -> Callable[[int, int], None]:
        """Return a ``(downloaded, total)`` callback that reports transfer progress."""
        ...


_RICH_STYLES: dict[Style, str] = {
    Style.DEFAULT: "",
    Style.SUCCESS: "green",
    Style.ERROR: "red bold",
    Style.WARNING: "yellow",
    Style.INFO: "cyan",
    Style.DIM: "dim",
    Style.HEADER: "blue bold",
}


class RichConsole:
    """Production console backed by Rich."""

    def __init__(self, *, stderr: bool = False) -> None:
        from rich.console import Console

        self._console = Console(stderr=stderr, highlight=False)

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        rich_style = _RICH_STYLES.get(style, "")
        if rich_style:
            self._console.print(message, style=rich_style)
        else:
            self._console.print(message)

    def success(self, message: str) -> None:
        self._console.print(f"[green]{message}[/green]")

    def error(self, message: str) -> None:
        self._console.print(f"[red bold]error:[/red bold] {message}")

    def warning(self, message: str) -> None:
        self._console.print(f"[yellow]warning:[/yellow] {message}")

    def info(self, message: str) -> None:
        self._console.print(f"[cyan]info:[/cyan] {message}")

    def header(self, message: str) -> None:
        self._console.print(f"\n[blue bold]{message}[/blue bold]")

    def table(self, columns: list[str], rows: list[list[str]]) -> None:
        from rich.table import Table

        table = Table(show_header=True, header_style="bold", box=None)
        for column in columns:
            table.add_column(column)
        for row in rows:
            table.add_row(*row)
        self._console.print(table)

    def progress(self, description: str) -> Callable[[int, int], None]:
        from rich.progress import DownloadColumn, Progress, TransferSpeedColumn

        bar = Progress(
            *Progress.get_default_columns(),
            DownloadColumn(),
            TransferSpeedColumn(),
            console=self._console,
            transient=True,
        )
        task = bar.add_task(description, total=None)
        started = False

        def update(downloaded: int, total: int) -> None:
            nonlocal started
            if not started:
                bar.start()
                started = True
            bar.update(task, completed=downloaded, total=total or None)
            if total and downloaded >= total:
                bar.stop()

        return update


@dataclass
class OutputRecord:
    message: str
    style: Style


@dataclass
class MockConsole:
    """Console that records output for assertions in tests."""

    outputs: list[OutputRecord] = field(default_factory=list[OutputRecord])
    progress_events: list[tuple[int, int]] = field(default_factory=list[tuple[int, int]])

    def print(self, message: str, style: Style = Style.DEFAULT) -> None:
        self.outputs.append(OutputRecord(message, style))

    def success(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.SUCCESS))

    def error(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"error: {message}", Style.ERROR))

    def warning(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"warning: {message}", Style.WARNING))

    def info(self, message: str) -> None:
        self.outputs.append(OutputRecord(f"info: {message}", Style.INFO))

    def header(self, message: str) -> None:
        self.outputs.append(OutputRecord(message, Style.HEADER))

    def table(self, columns: list[str], rows: list[list[str]]) -> None:
        self.outputs.append(OutputRecord("  ".join(columns), Style.HEADER))
        for row in rows:
            self.outputs.append(OutputRecord("  ".join(row), Style.DEFAULT))

    def progress(self, description: str) -> Callable[[int, int], None]:
        def update(downloaded: int, total: int) -> None:
            self.progress_events.append((downloaded, total))

        return update

    # Test helpers

    @property
    def messages(self) -> list[str]:
        return [o.message for o in self.outputs]

    @property
    def text(self) -> str:
        return "\n".join(self.messages)

    def has_error(self) -> bool:
        return any(o.style == Style.ERROR for o in self.outputs)

    def find(self, substring: str) -> list[OutputRecord]:
        return [o for o in self.outputs if substring in o.message]
