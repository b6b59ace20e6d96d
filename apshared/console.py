"""
wifiap Console Interface
=========================

One Rich console shared by every wifiap command: banners, section
rules, severity lines, tables, key/value panels, a status spinner and
yes/no or multiple-choice prompts, all drawn with the ``ap.*`` theme.

References:
    - Rich library: https://github.com/Textualize/rich
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Any, Iterator, Sequence

from rich.console import Console, RenderableType
from rich.markup import escape
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.status import Status
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

AP_THEME = Theme(
    {
        "ap.banner": "bold bright_cyan",
        "ap.section": "bold bright_magenta",
        "ap.success": "bold green",
        "ap.warning": "bold yellow",
        "ap.error": "bold red",
        "ap.info": "bold bright_blue",
        "ap.dim": "dim white",
        "ap.highlight": "bold bright_white",
    }
)

# severity -> (theme style, tag)
_SEVERITY: dict[str, tuple[str, str]] = {
    "success": ("ap.success", "[✔] SUCCESS:"),
    "warning": ("ap.warning", "[⚠] WARNING:"),
    "error": ("ap.error", "[✘] ERROR:"),
    "info": ("ap.info", "[ℹ] INFO:"),
}

_BORDER = "bright_cyan"


def _cell(value: Any) -> RenderableType:
    return value if isinstance(value, Text) else Text(str(value))


class ToolConsole:
    """Console used by the engine, the output layer and the prompts.

    Usage::

        con = ToolConsole()
        con.section("Access Point Status")
        con.success("Access point started")
        if con.confirm("Continue with reset?"):
            ...

    Args:
        quiet:   Print nothing (prompts still read input).
        console: Existing Rich console to draw on; tests pass one
                 writing into a buffer.
    """

    def __init__(self, *, quiet: bool = False, console: Console | None = None) -> None:
        if console is None:
            console = Console(theme=AP_THEME, quiet=quiet, highlight=False)
        else:
            console.push_theme(AP_THEME)
        self._console = console

    @property
    def rich(self) -> Console:
        return self._console

    def print(self, *args: Any, **kwargs: Any) -> None:
        """Print without markup parsing; names and SSIDs come from outside."""
        kwargs.setdefault("markup", False)
        self._console.print(*args, **kwargs)

    # ------------------------------------------------------------------ #
    #  Headers and messages
    # ------------------------------------------------------------------ #

    def banner(self, title: str, subtitle: str = "") -> None:
        text = Text(title, style="ap.banner")
        if subtitle:
            text.append("\n" + subtitle, style="ap.dim")
        self._console.print(Panel(text, border_style=_BORDER, expand=False))

    def section(self, title: str) -> None:
        self._console.rule(Text(f" {title} ", style="ap.section"), characters="─")

    def _say(self, severity: str, message: str) -> None:
        style, tag = _SEVERITY[severity]
        line = Text(tag, style=style)
        line.append(" " + message)
        self._console.print(line)

    def success(self, message: str) -> None:
        self._say("success", message)

    def warning(self, message: str) -> None:
        self._say("warning", message)

    def error(self, message: str) -> None:
        self._say("error", message)

    def info(self, message: str) -> None:
        self._say("info", message)

    # ------------------------------------------------------------------ #
    #  Prompts
    # ------------------------------------------------------------------ #

    def confirm(self, question: str, default: bool = False) -> bool:
        """Yes/no question; anything but an explicit yes is a no."""
        return Confirm.ask(
            Text(question, style="ap.highlight"), console=self._console, default=default
        )

    def choose(
        self,
        question: str,
        choices: Sequence[str],
        default: str | None = None,
    ) -> str:
        """Ask until one of *choices* is entered."""
        return Prompt.ask(
            Text(question, style="ap.highlight"),
            console=self._console,
            choices=list(choices),
            default=default,
        )

    # ------------------------------------------------------------------ #
    #  Tables and panels
    # ------------------------------------------------------------------ #

    def table(
        self,
        title: str,
        columns: Sequence[str],
        rows: Sequence[Sequence[Any]],
        *,
        caption: str | None = None,
    ) -> None:
        """Print *rows* under *columns*.

        Strings are shown literally. Pass a :class:`~rich.text.Text` to
        style a cell.
        """
        grid = Table(
            *columns,
            title=escape(title),
            caption=escape(caption) if caption else None,
            border_style=_BORDER,
            header_style="ap.section",
        )
        for row in rows:
            grid.add_row(*map(_cell, row))
        self._console.print(grid)

    def key_values(self, title: str, items: Sequence[tuple[str, Any]]) -> None:
        """``label: value`` pairs in a titled panel."""
        grid = Table.grid(padding=(0, 2))
        grid.add_column(style="ap.dim", justify="right")
        grid.add_column(style="ap.highlight")
        for label, value in items:
            grid.add_row(Text(label), _cell(value))
        self._console.print(
            Panel(grid, title=escape(title), border_style=_BORDER, expand=False)
        )

    @contextmanager
    def status(self, message: str = "Working...") -> Iterator[Status]:
        """Spinner shown while the block runs."""
        with self._console.status(Text(message, style="ap.info"), spinner="dots") as spinner:
            yield spinner
