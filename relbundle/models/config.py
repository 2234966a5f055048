"""Release source layout configuration."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, ConfigDict

from relbundle.models.manifest import ArtifactKind


class ReleaseLayout(BaseModel):
    """Directory and file naming conventions of a release source tree.

    Default layout::

        <release_source>/.final_builds/packages/<name>/index.yml
        <release_source>/.dev_builds/jobs/<name>/index.yml
    """

    model_config = ConfigDict(frozen=True)

    final_builds_dir: str = ".final_builds"
    dev_builds_dir: str = ".dev_builds"
    index_filename: str = "index.yml"
    archive_extension: str = "tgz"
    manifest_filename: str = "release.MF"

    def final_dir(self, release_source: Path, kind: ArtifactKind, name: str) -> Path:
        """Build directory of the final tier for one artifact."""
        return Path(release_source) / self.final_builds_dir / kind.builds_dir / name

    def dev_dir(self, release_source: Path, kind: ArtifactKind, name: str) -> Path:
        """Build directory of the dev tier for one artifact."""
        return Path(release_source) / self.dev_builds_dir / kind.builds_dir / name

    def artifact_filename(self, name: str) -> str:
        return f"{name}.{self.archive_extension}"

    def tarball_filename(self, name: str, version: str) -> str:
        return f"{name}-{version}.{self.archive_extension}"
