"""``relbundle exists MANIFEST`` — check whether a release is already built."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from relbundle.config import RelbundleConfig
from relbundle.core.blobstore import OfflineBlobstoreClient
from relbundle.core.compiler import ReleaseCompiler
from relbundle.errors import ReleaseCompileError

console = Console()


def exists_cmd(
    manifest: Path = typer.Argument(..., help="Path to the release manifest."),
    release_dir: Path | None = typer.Option(
        None, "--release-dir", "-r", help="Release source directory."
    ),
    tarball: Path | None = typer.Option(
        None, "--tarball", "-o", help="Explicit tarball path to check."
    ),
) -> None:
    """Exit 0 if the tarball for MANIFEST exists, 1 otherwise."""
    config = RelbundleConfig()

    try:
        with ReleaseCompiler(
            manifest,
            OfflineBlobstoreClient(),
            release_source=release_dir or config.release_dir,
            tarball_path=tarball,
            layout=config.layout,
        ) as compiler:
            built = compiler.exists()
            tarball_path = compiler.tarball_path
    except ReleaseCompileError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=2)

    if built:
        console.print(f"[green]Built:[/green] {tarball_path}", highlight=False, soft_wrap=True)
        raise typer.Exit(code=0)

    console.print(f"[yellow]Not built:[/yellow] {tarball_path}", highlight=False, soft_wrap=True)
    raise typer.Exit(code=1)
