"""Release manifest models: the typed form of ``release.MF``."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, ValidationError, field_validator

from relbundle.errors import ManifestError


def check_path_component(value: str) -> str:
    """Reject values that would escape the directory they are joined onto."""
    if value in ("", ".", "..") or "/" in value or "\\" in value:
        raise ValueError(f"{value!r} is not a valid file name")
    return value


class ArtifactKind(str, Enum):
    """The two artifact kinds a release bundles."""

    PACKAGE = "package"
    JOB = "job"

    @property
    def builds_dir(self) -> str:
        """Sub-directory name under ``.final_builds`` / ``.dev_builds``."""
        return f"{self.value}s"


class ArtifactDescriptor(BaseModel):
    """A request for an artifact with a given checksum, not a located file."""

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    sha1: str
    fingerprint: str | None = None

    @field_validator("version", "sha1", "fingerprint", mode="before")
    @classmethod
    def _coerce_scalars(cls, value: object) -> object:
        # YAML reads `version: 1` (or an all-digit checksum) as a number
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            return str(value)
        return value

    @field_validator("name")
    @classmethod
    def _check_name(cls, value: str) -> str:
        return check_path_component(value)

    def describe(self) -> str:
        return f"{self.name} ({self.version})"


class ReleaseManifest(BaseModel):
    """A named, versioned bundle of packages and jobs.

    Loaded once and never mutated.  Keys other than the four below
    (``commit_hash``, ``uncommitted_changes``, ...) are ignored.
    """

    model_config = ConfigDict(frozen=True)

    name: str
    version: str
    packages: list[ArtifactDescriptor]
    jobs: list[ArtifactDescriptor]

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: object) -> object:
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("name", "version")
    @classmethod
    def _check_path_fields(cls, value: str) -> str:
        return check_path_component(value)

    def artifacts(self, kind: ArtifactKind) -> list[ArtifactDescriptor]:
        """Return the descriptors of one kind, in manifest order."""
        return self.packages if kind is ArtifactKind.PACKAGE else self.jobs

    @classmethod
    def from_file(cls, path: Path | str) -> ReleaseManifest:
        """Load and validate a YAML manifest.

        Raises
        ------
        ManifestError
            If the file is unreadable, is not a YAML mapping, or lacks
            required fields.
        """
        path = Path(path)
        try:
            with path.open("r", encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except (OSError, yaml.YAMLError) as exc:
            raise ManifestError(f"Cannot read release manifest {path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ManifestError(f"Release manifest {path} is not a mapping")

        try:
            return cls.model_validate(data)
        except ValidationError as exc:
            fields = ", ".join(
                ".".join(str(part) for part in err["loc"]) for err in exc.errors()
            )
            raise ManifestError(
                f"Invalid release manifest {path}: {fields}"
            ) from exc
