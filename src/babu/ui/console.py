"""Console output formatting utilities for babu."""

from __future__ import annotations

import traceback
from typing import Iterable, Optional

import click

INDENT = "  "
SUCCESS_GLYPH = "✓"
FAILURE_GLYPH = "✗"


class Console:
    """
    Nested transcript of a babu run.

    Every dep opens a `name {` section and closes it with `} name ✓` (or
    ✗); anything printed inside is indented one level deeper.
    """

    def __init__(self, debug: bool = False, color: Optional[bool] = None, indent: str = INDENT):
        """
        Initialize console formatter.

        Args:
            debug: If True, show detailed output including stack traces
            color: True/False forces ANSI colours on/off; None lets click
                   decide based on whether the stream is a terminal
            indent: Text added per nesting level
        """
        self.debug = debug
        self.color = color
        self.indent = indent
        self.depth = 0

    # ---- low level ----

    def _prefix(self) -> str:
        return self.indent * self.depth

    def _echo(self, text: str, err: bool = False) -> None:
        click.echo(text, err=err, color=self.color)

    def print_line(self, text: str) -> None:
        """Print a line at the current indent."""
        self._echo(self._prefix() + text)

    # ---- sections ----

    def enter_section(self, label: str) -> None:
        """Print `label {` and nest everything after it."""
        self.print_line(f"{label} {{")
        self.depth += 1

    def exit_section(self, label: str = "", ok: Optional[bool] = None) -> None:
        """Close the innermost section, optionally with a success/failure glyph."""
        self.depth = max(0, self.depth - 1)
        parts = ["}"]
        if label:
            parts.append(label)
        if ok is not None:
            parts.append(self._glyph(ok))
        self.print_line(" ".join(parts))

    def _glyph(self, ok: bool) -> str:
        if ok:
            return click.style(SUCCESS_GLYPH, fg="green")
        return click.style(FAILURE_GLYPH, fg="red")

    # ---- dep specific ----

    def print_output(self, line: str) -> None:
        """Re-emit one line of met/meet output."""
        self.print_line(line)

    def print_cached(self, name: str) -> None:
        self.print_line(f"{name} (cached) {self._glyph(True)}")

    def print_deps(self, names: Iterable[str]) -> None:
        for name in names:
            self.print_line(name)

    # ---- messages ----

    def print_info(self, message: str) -> None:
        """Print informational message."""
        self.print_line(message)

    def print_warning(self, message: str) -> None:
        self.print_line(click.style(f"warning: {message}", fg="yellow"))

    def print_error(
        self,
        title: str,
        message: str = "",
        details: Optional[list[str]] = None,
        suggestion: Optional[str] = None,
    ) -> None:
        """
        Print structured error message.

        Args:
            title: Error title
            message: Main error message
            details: Optional list of detail lines
            suggestion: Optional suggestion for user
        """
        prefix = self._prefix()
        self._echo(prefix + click.style(f"error: {title}", fg="red", bold=True), err=True)
        if message:
            self._echo(f"{prefix}{message}", err=True)
        for detail in details or []:
            self._echo(f"{prefix}  {detail}", err=True)
        if suggestion:
            self._echo(f"{prefix}{suggestion}", err=True)

    def print_exception(self, exc: BaseException) -> None:
        """Print exception, with full traceback only in debug mode."""
        if self.debug:
            self._echo("".join(traceback.format_exception(type(exc), exc, exc.__traceback__)), err=True)
        else:
            self._echo(f"Error: {exc}", err=True)

    def print_debug(self, message: str) -> None:
        """Print debug message (only if debug mode enabled)."""
        if self.debug:
            self._echo(f"{self._prefix()}[DEBUG] {message}", err=True)


# Global console instance (will be initialized by CLI)
_console: Optional[Console] = None


def get_console() -> Console:
    """Get the global console instance."""
    global _console
    if _console is None:
        _console = Console()
    return _console


def set_console(console: Console) -> None:
    """Set the global console instance."""
    global _console
    _console = console
