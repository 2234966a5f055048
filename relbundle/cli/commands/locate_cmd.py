"""``relbundle locate KIND NAME SHA1`` — resolve one build to a local file."""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console

from relbundle.cli.commands._common import configure_logging, make_blobstore
from relbundle.config import RelbundleConfig
from relbundle.core.locator import ArtifactLocator
from relbundle.errors import ReleaseCompileError
from relbundle.models.manifest import ArtifactKind

console = Console()


def locate_cmd(
    kind: ArtifactKind = typer.Argument(..., help="Artifact kind: package or job."),
    name: str = typer.Argument(..., help="Artifact name."),
    sha1: str = typer.Argument(..., help="Checksum of the wanted build."),
    version: str = typer.Option("?", "--version", "-v", help="Version, for messages only."),
    release_dir: Path | None = typer.Option(
        None, "--release-dir", "-r", help="Release source directory."
    ),
    blobstore_dir: Path | None = typer.Option(
        None, "--blobstore-dir", "-b", help="Directory-backed blobstore."
    ),
) -> None:
    """Print the local path of the build of NAME with checksum SHA1.

    Final builds win over dev builds; the build is downloaded into local
    storage if needed.
    """
    config = RelbundleConfig()
    configure_logging(config.log_level, console)

    locator = ArtifactLocator(
        release_dir or config.release_dir or Path.cwd(),
        make_blobstore(blobstore_dir, config),
        config.layout,
    )
    try:
        path = locator.locate(kind, name, version, sha1)
    except ReleaseCompileError as exc:
        console.print(f"[bold red]MISSING[/bold red] {exc}")
        raise typer.Exit(code=1)

    console.print(str(path), highlight=False, soft_wrap=True)
