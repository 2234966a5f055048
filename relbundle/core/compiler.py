"""Release compiler — assembles a release tarball from a manifest.

Flow: guard -> stage manifest -> copy packages -> copy jobs -> tarball.

The staging directory is created when the compiler is constructed and
is owned exclusively by that instance.  Call ``cleanup()`` (or use the
compiler as a context manager) to remove it.

Tarball layout::

    release.MF
    packages/<name>.tgz
    jobs/<name>.tgz
"""

from __future__ import annotations

import logging
import os
import shutil
import tarfile
import tempfile
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from relbundle.core.blobstore import BlobstoreClient
from relbundle.core.locator import ArtifactLocator
from relbundle.errors import ArchiveCreationError, ReleaseCompileError
from relbundle.models.config import ReleaseLayout
from relbundle.models.manifest import ArtifactDescriptor, ArtifactKind, ReleaseManifest
from relbundle.models.results import (
    ArtifactAction,
    ArtifactOutcome,
    CompileResult,
    CompileStatus,
)

logger = logging.getLogger(__name__)


class ReleaseCompiler:
    """Compiles a release tarball based on a manifest.

    Parameters
    ----------
    manifest_file:
        Release manifest path, relative to ``release_source`` if not absolute.
    blobstore:
        Client used for builds missing from local storage.
    package_matches:
        Checksums (sha1 or fingerprint) of packages the destination
        already has.  Matching packages are left out of the tarball.
    release_source:
        Release directory.  Defaults to the current working directory.
    tarball_path:
        Explicit output path.  Defaults to
        ``<manifest dir>/<name>-<version>.tgz``.
    layout:
        Directory conventions.  Defaults to ``ReleaseLayout()``.
    on_artifact:
        Called with each ``ArtifactOutcome`` as soon as it is decided,
        including a ``MISSING`` outcome just before a resolution error
        propagates.
    """

    def __init__(
        self,
        manifest_file: Path | str,
        blobstore: BlobstoreClient,
        package_matches: Iterable[str] = (),
        release_source: Path | str | None = None,
        *,
        tarball_path: Path | str | None = None,
        layout: ReleaseLayout | None = None,
        on_artifact: Callable[[ArtifactOutcome], None] | None = None,
    ) -> None:
        self._layout = layout or ReleaseLayout()
        self._on_artifact = on_artifact
        self._release_source = Path(release_source) if release_source else Path.cwd()
        self._manifest_file = (self._release_source / manifest_file).resolve()
        self._tarball_path = Path(tarball_path) if tarball_path else None

        self._package_matches = frozenset(package_matches)
        self._manifest = ReleaseManifest.from_file(self._manifest_file)
        self._locator = ArtifactLocator(self._release_source, blobstore, self._layout)

        self._build_dir = Path(tempfile.mkdtemp(prefix="relbundle-"))
        self._jobs_dir = self._build_dir / "jobs"
        self._packages_dir = self._build_dir / "packages"
        self._jobs_dir.mkdir()
        self._packages_dir.mkdir()

    @classmethod
    def compile_release(
        cls, manifest_file: Path | str, blobstore: BlobstoreClient, **kwargs: Any
    ) -> CompileResult:
        """Construct, compile and clean up in one call."""
        with cls(manifest_file, blobstore, **kwargs) as compiler:
            return compiler.compile()

    def __enter__(self) -> ReleaseCompiler:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.cleanup()

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------

    @property
    def manifest(self) -> ReleaseManifest:
        return self._manifest

    @property
    def manifest_file(self) -> Path:
        return self._manifest_file

    @property
    def build_dir(self) -> Path:
        return self._build_dir

    @property
    def locator(self) -> ArtifactLocator:
        return self._locator

    @property
    def tarball_path(self) -> Path:
        """Explicit tarball path if set, else next to the manifest."""
        if self._tarball_path is not None:
            return self._tarball_path
        return self._manifest_file.parent / self._layout.tarball_filename(
            self._manifest.name, self._manifest.version
        )

    @tarball_path.setter
    def tarball_path(self, value: Path | str | None) -> None:
        self._tarball_path = Path(value) if value else None

    # ------------------------------------------------------------------
    # Guard and remote checks
    # ------------------------------------------------------------------

    def exists(self) -> bool:
        """Whether a tarball for this name and version is already built."""
        return self.tarball_path.exists()

    def remote_package_exists(self, package: ArtifactDescriptor) -> bool:
        """Whether the destination already has this package.

        The checksum is checked first; the fingerprint, when present, is
        an equally valid key.
        """
        if package.sha1 in self._package_matches:
            return True
        return package.fingerprint is not None and package.fingerprint in self._package_matches

    def remote_job_exists(self, job: ArtifactDescriptor) -> bool:
        """Jobs are never matched remotely; they are always bundled."""
        return False

    # ------------------------------------------------------------------
    # Compile
    # ------------------------------------------------------------------

    def compile(self) -> CompileResult:
        """Build the release tarball.

        Returns a result with status ``ALREADY_BUILT`` and does nothing
        if the tarball already exists.

        Raises
        ------
        ArtifactNotFoundError, ChecksumMismatchError, BlobstoreError
            If a build cannot be resolved.
        ArchiveCreationError
            If the tarball cannot be written.
        """
        tarball_path = self.tarball_path
        if self.exists():
            logger.info("You already have this version in %s", tarball_path)
            return CompileResult(
                status=CompileStatus.ALREADY_BUILT,
                tarball_path=tarball_path,
                size_bytes=tarball_path.stat().st_size,
            )

        shutil.copy2(self._manifest_file, self._build_dir / self._layout.manifest_filename)

        outcomes = self._copy_artifacts(ArtifactKind.PACKAGE, self._packages_dir)
        outcomes += self._copy_artifacts(ArtifactKind.JOB, self._jobs_dir)

        self._build_tarball(tarball_path)
        size = tarball_path.stat().st_size
        logger.info("Generated %s (%d bytes)", tarball_path, size)

        return CompileResult(
            status=CompileStatus.BUILT,
            tarball_path=tarball_path,
            size_bytes=size,
            artifacts=outcomes,
        )

    def _copy_artifacts(self, kind: ArtifactKind, target_dir: Path) -> list[ArtifactOutcome]:
        remote_exists = (
            self.remote_package_exists if kind is ArtifactKind.PACKAGE else self.remote_job_exists
        )
        outcomes: list[ArtifactOutcome] = []

        def report(
            artifact: ArtifactDescriptor, action: ArtifactAction, source: Path | None = None
        ) -> None:
            outcome = ArtifactOutcome(
                kind=kind,
                name=artifact.name,
                version=artifact.version,
                action=action,
                source=source,
            )
            outcomes.append(outcome)
            if self._on_artifact is not None:
                self._on_artifact(outcome)

        for artifact in self._manifest.artifacts(kind):
            if remote_exists(artifact):
                logger.info("SKIP %s %s: already known remotely", kind.value, artifact.describe())
                report(artifact, ArtifactAction.SKIPPED)
                continue

            try:
                source = self._locator.locate_descriptor(kind, artifact)
            except ReleaseCompileError:
                report(artifact, ArtifactAction.MISSING)
                raise
            shutil.copy2(source, target_dir / self._layout.artifact_filename(artifact.name))
            logger.info("Copied %s %s from %s", kind.value, artifact.describe(), source)
            report(artifact, ArtifactAction.COPIED, source)

        return outcomes

    def _build_tarball(self, tarball_path: Path) -> None:
        """Write a gzip tarball of the staging directory's contents.

        The tarball is written beside its destination and renamed into
        place; on failure no file is left at ``tarball_path``.
        """
        partial = tarball_path.with_name(tarball_path.name + ".part")
        try:
            tarball_path.parent.mkdir(parents=True, exist_ok=True)
            with tarfile.open(partial, "w:gz") as tar:
                for entry in sorted(self._build_dir.iterdir()):
                    tar.add(entry, arcname=entry.name)
            os.replace(partial, tarball_path)
        except (tarfile.TarError, OSError) as exc:
            if partial.exists():
                partial.unlink()
            raise ArchiveCreationError(str(tarball_path), str(exc)) from exc

    def cleanup(self) -> None:
        """Remove the staging directory."""
        shutil.rmtree(self._build_dir, ignore_errors=True)
