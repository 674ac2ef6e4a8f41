# cli.py
from __future__ import annotations

import sys
from pathlib import Path
from typing import Optional, Sequence

import click

from babu.config import DEFAULT_DEP, load_settings
from babu.errors import EXIT_INTERRUPTED, EXIT_OK, BabuError
from babu.runner import find_babufile, load_babufile, run_dep
from babu.ui.console import Console, get_console, set_console


@click.command()
@click.argument("dep_name", metavar="[DEP]", required=False, default=DEFAULT_DEP)
@click.option(
    "-f",
    "--file",
    "babufile",
    default=None,
    help="Babufile to load (defaults to $BABU_FILE or ./Babufile)",
)
@click.option("--list", "list_deps", is_flag=True, default=False, help="List declared deps and exit")
@click.option(
    "--debug/--no-debug",
    default=None,
    help="Enable debug mode (show stack traces and detailed output)",
)
@click.option("--color/--no-color", default=None, help="Force coloured output on or off")
def cli(dep_name, babufile, list_deps, debug, color):
    """babu: meet DEP (default: "default") and everything it requires."""
    settings = load_settings()
    console = Console(
        debug=settings.debug if debug is None else debug,
        color=settings.color if color is None else color,
    )
    set_console(console)

    try:
        path = find_babufile(Path.cwd(), babufile or settings.babufile)
        console.print_debug(f"loading {path}")
        declarations = load_babufile(path)

        if list_deps:
            console.print_deps(declarations.registry.names())
            sys.exit(EXIT_OK)

        if not len(declarations.registry):
            console.print_warning(f"no deps declared in {path.name}")

        result = run_dep(declarations, dep_name, console)
        if not result.ok:
            console.print_debug(f"{result.dep} failed in {result.caused_by} (exit={result.exit_code})")
        sys.exit(result.exit_code)

    except BabuError as e:
        details = [f"{k}: {v}" for k, v in e.details.items()] if console.debug else None
        console.print_error(e.message, details=details)
        if console.debug and e.__cause__ is not None:
            console.print_exception(e.__cause__)
        sys.exit(e.exit_code)
    except KeyboardInterrupt:
        console.print_info("\nInterrupted by user")
        sys.exit(EXIT_INTERRUPTED)


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the CLI and return its exit status instead of exiting."""
    try:
        cli.main(args=list(argv) if argv is not None else None, prog_name="babu", standalone_mode=True)
    except SystemExit as e:
        if e.code is None:
            return EXIT_OK
        if isinstance(e.code, int):
            return e.code
        get_console().print_error(str(e.code))
        return 1
    return EXIT_OK


if __name__ == "__main__":
    raise SystemExit(main())
