"""Rich Console factory and theme for tmplctl output.

Consoles render to a StringIO buffer so renderers can return plain
strings. Rich drops color codes when it detects no terminal.
"""

from __future__ import annotations

from io import StringIO

from rich.console import Console
from rich.theme import Theme

TMPL_THEME = Theme(
    {
        "tmpl.ok": "bold green",
        "tmpl.error": "bold red",
        "tmpl.warning": "bold yellow",
        "tmpl.op": "bold cyan",
        "tmpl.key": "dim",
        "tmpl.id": "bold blue",
        "tmpl.ecl": "magenta",
        "tmpl.reason": "yellow",
    }
)


def create_console(*, no_color: bool = False, width: int | None = None) -> Console:
    """Create a Console that renders to a StringIO buffer."""
    return Console(
        file=StringIO(),
        theme=TMPL_THEME,
        no_color=no_color,
        highlight=False,
        width=width or 120,
    )


def get_output(console: Console) -> str:
    """Extract rendered text from a StringIO-backed Console."""
    assert isinstance(console.file, StringIO)
    return console.file.getvalue()
