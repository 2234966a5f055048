"""``relbundle compile MANIFEST`` — build a release tarball.

Resolves every package and job in the manifest against the release's
final and dev builds, skips packages the destination already has, and
writes ``<name>-<version>.tgz`` next to the manifest.
"""

from __future__ import annotations

from pathlib import Path

import typer
from rich.console import Console
from rich.filesize import decimal

from relbundle.cli.commands._common import configure_logging, load_matches, make_blobstore
from relbundle.config import RelbundleConfig
from relbundle.core.compiler import ReleaseCompiler
from relbundle.errors import ReleaseCompileError
from relbundle.models.manifest import ArtifactKind
from relbundle.models.results import ArtifactAction, ArtifactOutcome

console = Console()

_HEADERS = {
    ArtifactKind.PACKAGE: "Copying packages",
    ArtifactKind.JOB: "Copying jobs",
}


class _ProgressPrinter:
    """Prints one line per artifact as the compiler decides it."""

    def __init__(self) -> None:
        self._kind: ArtifactKind | None = None

    def __call__(self, outcome: ArtifactOutcome) -> None:
        if outcome.kind is not self._kind:
            self._kind = outcome.kind
            console.print(f"\n[bold]{_HEADERS[outcome.kind]}[/bold]")
        label = f"{outcome.name} ({outcome.version})".ljust(30)
        if outcome.action is ArtifactAction.SKIPPED:
            console.print(f"{label} [yellow]SKIP[/yellow]", highlight=False)
        elif outcome.action is ArtifactAction.MISSING:
            console.print(f"{label} [red]MISSING[/red]", highlight=False)
        else:
            console.print(f"{label} copied", highlight=False)


def compile_cmd(
    manifest: Path = typer.Argument(
        ...,
        help="Path to the release manifest (relative to the release directory).",
    ),
    release_dir: Path | None = typer.Option(
        None,
        "--release-dir",
        "-r",
        help="Release source directory holding .final_builds and .dev_builds.",
    ),
    blobstore_dir: Path | None = typer.Option(
        None,
        "--blobstore-dir",
        "-b",
        help="Directory-backed blobstore used for builds missing locally.",
    ),
    match: list[str] | None = typer.Option(
        None,
        "--match",
        "-m",
        help="Checksum or fingerprint of a package the destination already has.",
    ),
    matches_file: Path | None = typer.Option(
        None,
        "--matches-file",
        help="File of known-remote checksums, one per line.",
    ),
    tarball: Path | None = typer.Option(
        None,
        "--tarball",
        "-o",
        help="Output tarball path (default: <manifest dir>/<name>-<version>.tgz).",
    ),
    keep_staging: bool = typer.Option(
        False,
        "--keep-staging",
        help="Leave the staging directory behind for inspection.",
    ),
) -> None:
    """Compile a release tarball from MANIFEST."""
    config = RelbundleConfig()
    configure_logging(config.log_level, console)

    try:
        compiler = ReleaseCompiler(
            manifest,
            make_blobstore(blobstore_dir, config),
            package_matches=load_matches(match or [], matches_file),
            release_source=release_dir or config.release_dir,
            tarball_path=tarball,
            layout=config.layout,
            on_artifact=_ProgressPrinter(),
        )
    except ReleaseCompileError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)

    try:
        result = compiler.compile()
    except ReleaseCompileError as exc:
        console.print(f"[bold red]{exc}[/bold red]")
        raise typer.Exit(code=1)
    finally:
        if keep_staging or config.keep_staging:
            console.print(f"[dim]Staging directory: {compiler.build_dir}[/dim]")
        else:
            compiler.cleanup()

    if result.already_built:
        console.print(
            f"[bold yellow]You already have this version in[/bold yellow] "
            f"[green]{result.tarball_path}[/green]",
            soft_wrap=True,
        )
        return

    console.print("\n[bold]Building tarball[/bold]")
    console.print(f"Generated [green]{result.tarball_path}[/green]", soft_wrap=True)
    console.print(f"Release size: [green]{decimal(result.size_bytes)}[/green]")
