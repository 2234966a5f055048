"""Shared test fixtures for Relbundle."""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest
import yaml

from relbundle.core.blobstore import FetchErrorKind, FetchResult
from relbundle.core.hasher import sha1_hex
from relbundle.models.config import ReleaseLayout
from relbundle.models.manifest import ArtifactKind


class FakeBlobstore:
    """In-memory blobstore that records every fetch."""

    def __init__(self, objects: dict[str, bytes] | None = None) -> None:
        self.objects: dict[str, bytes] = dict(objects or {})
        self.calls: list[str] = []

    def fetch(self, blobstore_id: str) -> FetchResult:
        self.calls.append(blobstore_id)
        if blobstore_id not in self.objects:
            return FetchResult.failure(
                blobstore_id, FetchErrorKind.NOT_FOUND, f"{blobstore_id} not found"
            )
        return FetchResult.success(blobstore_id, self.objects[blobstore_id])


class RaisingBlobstore:
    """Blobstore whose client blows up on every fetch."""

    def __init__(self, exc: Exception) -> None:
        self.exc = exc

    def fetch(self, blobstore_id: str) -> FetchResult:
        raise self.exc


@pytest.fixture
def tmp_dir(tmp_path: Path) -> Path:
    """Provide a temporary directory for test artifacts."""
    return tmp_path


@pytest.fixture
def release_dir(tmp_dir: Path) -> Path:
    """Provide an empty release source directory."""
    path = tmp_dir / "release"
    path.mkdir()
    return path


@pytest.fixture
def blobstore() -> FakeBlobstore:
    """Provide an empty in-memory blobstore."""
    return FakeBlobstore()


@pytest.fixture
def layout() -> ReleaseLayout:
    return ReleaseLayout()


# ---------------------------------------------------------------------------
# Release tree builders
# ---------------------------------------------------------------------------


@pytest.fixture
def add_build(release_dir: Path, layout: ReleaseLayout) -> Callable[..., dict[str, Any]]:
    """Factory fixture: register a build in a tier's versions index.

    Returns the raw record written.  With ``cached=True`` the bytes are
    also placed in that tier's local storage.
    """

    def _factory(
        tier: str,
        kind: ArtifactKind,
        name: str,
        data: bytes = b"",
        *,
        version: str = "1",
        sha1: str | None = None,
        blobstore_id: str | None = None,
        key: str | None = None,
        cached: bool = False,
        **extra: Any,
    ) -> dict[str, Any]:
        builds_dir = (
            layout.final_dir(release_dir, kind, name)
            if tier == "final"
            else layout.dev_dir(release_dir, kind, name)
        )
        builds_dir.mkdir(parents=True, exist_ok=True)
        index_file = builds_dir / layout.index_filename

        index: dict[str, Any] = {"builds": {}, "format-version": "2"}
        if index_file.exists():
            index = yaml.safe_load(index_file.read_text()) or index

        sha1 = sha1 or sha1_hex(data)
        blobstore_id = blobstore_id or f"{tier}-{name}-{version}"
        record: dict[str, Any] = {
            "version": version,
            "sha1": sha1,
            "blobstore_id": blobstore_id,
            **extra,
        }
        index["builds"][key or f"{sha1}-{len(index['builds'])}"] = record
        index_file.write_text(yaml.safe_dump(index, sort_keys=False))

        if cached:
            (builds_dir / f"{blobstore_id}.{layout.archive_extension}").write_bytes(data)
        return record

    return _factory


@pytest.fixture
def write_manifest(release_dir: Path) -> Callable[..., Path]:
    """Factory fixture: write a release manifest into the release dir."""

    def _factory(
        name: str = "demo",
        version: str = "1",
        packages: list[dict[str, Any]] | None = None,
        jobs: list[dict[str, Any]] | None = None,
        filename: str = "demo-1.yml",
        **extra: Any,
    ) -> Path:
        manifest_dir = release_dir / "dev_releases"
        manifest_dir.mkdir(exist_ok=True)
        path = manifest_dir / filename
        manifest = {
            "name": name,
            "version": version,
            "packages": packages or [],
            "jobs": jobs or [],
            **extra,
        }
        path.write_text(yaml.safe_dump(manifest, sort_keys=False))
        return path

    return _factory


@pytest.fixture
def raising_blobstore() -> Callable[[Exception], RaisingBlobstore]:
    """Factory fixture: a blobstore client that raises ``exc`` on fetch."""

    def _factory(exc: Exception) -> RaisingBlobstore:
        return RaisingBlobstore(exc)

    return _factory
