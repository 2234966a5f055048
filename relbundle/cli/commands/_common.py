"""Helpers shared by the CLI commands."""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from relbundle.config import RelbundleConfig
from relbundle.core.blobstore import BlobstoreClient, LocalBlobstoreClient, OfflineBlobstoreClient


def configure_logging(level: str, console: Console | None = None) -> None:
    """Route library logging through Rich at ``level``."""
    logging.basicConfig(
        level=level.upper(),
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


def make_blobstore(blobstore_dir: Path | None, config: RelbundleConfig) -> BlobstoreClient:
    """CLI option first, then configuration, then offline."""
    directory = blobstore_dir or config.blobstore_dir
    if directory is None:
        return OfflineBlobstoreClient()
    return LocalBlobstoreClient(directory)


def load_matches(matches: Iterable[str], matches_file: Path | None) -> set[str]:
    """Collect known-remote checksums from options and an optional file.

    The file holds one checksum per line; blank lines and ``#`` comments
    are ignored.
    """
    result = {m.strip() for m in matches if m.strip()}
    if matches_file is not None:
        try:
            lines = matches_file.read_text(encoding="utf-8").splitlines()
        except OSError as exc:
            raise typer.BadParameter(
                f"cannot read {matches_file}: {exc}", param_hint="--matches-file"
            ) from exc
        for line in lines:
            line = line.split("#", 1)[0].strip()
            if line:
                result.add(line)
    return result
