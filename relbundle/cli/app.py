"""Main Typer application — imports and registers all CLI commands.

Entry point: ``relbundle`` (configured via pyproject.toml console_scripts).

Commands: compile, locate, exists.
"""

from __future__ import annotations

import typer

from relbundle.cli.commands.compile_cmd import compile_cmd
from relbundle.cli.commands.exists_cmd import exists_cmd
from relbundle.cli.commands.locate_cmd import locate_cmd

app = typer.Typer(
    name="relbundle",
    help="Relbundle: compile release tarballs from final and dev builds.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    add_completion=False,
)

# Register subcommands
app.command(name="compile", help="Build the release tarball for a manifest.")(compile_cmd)
app.command(name="locate", help="Resolve one package or job build to a local file.")(locate_cmd)
app.command(name="exists", help="Check whether a release tarball is already built.")(exists_cmd)


def main() -> None:
    """CLI entry point."""
    app()


if __name__ == "__main__":
    main()
