"""
Terminal presentation: Nord-themed rich console, banner, message helpers,
unit tables and the prompt wrapper that honours the run configuration.
"""

import shutil
from typing import List, Optional, Sequence

import pyfiglet
from rich import box
from rich.console import Console
from rich.panel import Panel
from rich.prompt import Confirm, Prompt
from rich.table import Table
from rich.text import Text
from rich.theme import Theme

from . import APP_NAME, VERSION
from .config import Config


# ----------------------------------------------------------------
# Nord Color Theme & Console Setup
# ----------------------------------------------------------------
class NordColors:
    """Nord color palette for consistent styling."""

    POLAR_NIGHT_4: str = "#4C566A"
    SNOW_STORM_1: str = "#D8DEE9"
    SNOW_STORM_2: str = "#E5E9F0"
    FROST_1: str = "#8FBCBB"
    FROST_2: str = "#88C0D0"
    FROST_3: str = "#81A1C1"
    FROST_4: str = "#5E81AC"
    RED: str = "#BF616A"
    YELLOW: str = "#EBCB8B"
    GREEN: str = "#A3BE8C"

    @classmethod
    def get_frost_gradient(cls, steps: int = 4) -> List[str]:
        frosts = [cls.FROST_1, cls.FROST_2, cls.FROST_3, cls.FROST_4]
        return frosts[:steps]


nord_theme = Theme(
    {
        "info": NordColors.FROST_2,
        "warning": NordColors.YELLOW,
        "error": NordColors.RED,
        "success": NordColors.GREEN,
        "debug": NordColors.POLAR_NIGHT_4,
    }
)

console = Console(theme=nord_theme, highlight=False)


# ----------------------------------------------------------------
# UI Helper Functions
# ----------------------------------------------------------------
def create_header(title: str = APP_NAME) -> Panel:
    """
    Generate an ASCII art banner with a frost gradient.

    The font shrinks on narrow terminals; if pyfiglet cannot render at all the
    plain title is used instead.

    Args:
        title: Text to render

    Returns:
        A Rich Panel containing the styled banner
    """
    term_width, _ = shutil.get_terminal_size((80, 24))
    font = "slant" if term_width >= 60 else "small"
    try:
        fig = pyfiglet.Figlet(font=font, width=min(term_width - 10, 100))
        ascii_art = fig.renderText(title)
    except Exception:
        ascii_art = f"  {title}  "

    ascii_lines = [line for line in ascii_art.splitlines() if line.strip()]
    colors = NordColors.get_frost_gradient(max(len(ascii_lines), 1))
    styled_text = Text()
    for i, line in enumerate(ascii_lines):
        styled_text.append(Text(line, style=f"bold {colors[i % len(colors)]}"))
        if i < len(ascii_lines) - 1:
            styled_text.append("\n")

    return Panel(
        styled_text,
        border_style=NordColors.FROST_1,
        padding=(1, 2),
        title=Text(f"v{VERSION}", style=f"bold {NordColors.SNOW_STORM_2}"),
        title_align="right",
        box=box.ROUNDED,
    )


def print_section(title: str) -> None:
    console.print()
    console.print(f"[bold {NordColors.FROST_3}]{title}[/]")
    console.print(f"[{NordColors.FROST_3}]{'─' * len(title)}[/]")


def print_message(
    text: str, style: str = NordColors.FROST_2, prefix: str = "•"
) -> None:
    """Print a styled message with a prefix."""
    console.print(f"[{style}]{prefix} {text}[/{style}]")


def print_success(message: str) -> None:
    print_message(message, NordColors.GREEN, "✓")


def print_warning(message: str) -> None:
    print_message(message, NordColors.YELLOW, "⚠")


def print_error(message: str) -> None:
    print_message(message, NordColors.RED, "✗")


def display_panel(title: str, message: str, style: str = NordColors.FROST_2) -> None:
    console.print(
        Panel(message, title=title, border_style=style, padding=(1, 2), box=box.ROUNDED)
    )


def display_units_table(
    title: str, units: Sequence[str], extra_rows: Optional[Sequence[tuple]] = None
) -> None:
    """
    Display a numbered table of PHP-FPM units.

    The numbers shown are the 1-based indices the user answers with.

    Args:
        title: Table title
        units: Unit names in display order
        extra_rows: Additional (key, label) rows such as the "all" shortcut
    """
    table = Table(
        show_header=True,
        header_style=f"bold {NordColors.FROST_1}",
        box=box.ROUNDED,
        title=title,
        padding=(0, 1),
    )
    table.add_column("#", style=f"bold {NordColors.FROST_4}", width=3, justify="right")
    table.add_column("Service", style=f"bold {NordColors.SNOW_STORM_1}")
    for idx, unit in enumerate(units, 1):
        table.add_row(str(idx), unit)
    for key, label in extra_rows or ():
        table.add_row(key, f"[{NordColors.YELLOW}]{label}[/]")
    console.print(table)


# ----------------------------------------------------------------
# Prompts
# ----------------------------------------------------------------
class Prompter:
    """
    Yes/no and free-text prompts that respect the run configuration.

    * auto-confirm answers every yes/no question with yes
    * non-interactive mode answers with the default and never reads input
    """

    def __init__(self, config: Config):
        self.config = config

    def confirm(self, message: str, default: bool = False) -> bool:
        if self.config.assume_yes:
            return True
        if self.config.non_interactive:
            return default
        return self._ask_confirm(message, default)

    def text(self, message: str, default: str = "") -> str:
        if self.config.non_interactive:
            return default
        answer = self._ask_text(message, default)
        return answer if answer else default

    def _ask_confirm(self, message: str, default: bool) -> bool:
        return Confirm.ask(
            f"[bold {NordColors.YELLOW}]{message}[/]", default=default, console=console
        )

    def _ask_text(self, message: str, default: str) -> str:
        return Prompt.ask(
            f"[bold {NordColors.FROST_2}]{message}[/]",
            default=default,
            show_default=bool(default),
            console=console,
        )
