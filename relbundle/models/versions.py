"""Version record model: one build entry inside a versions index."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from relbundle.models.manifest import check_path_component


class VersionRecord(BaseModel):
    """The embedded fields of a build entry.

    The index key the entry was stored under is deliberately absent:
    resolution only ever looks at what the record itself declares.
    """

    model_config = ConfigDict(frozen=True)

    version: str
    sha1: str
    blobstore_id: str

    @field_validator("blobstore_id")
    @classmethod
    def _check_blobstore_id(cls, value: str) -> str:
        # Doubles as the local storage file name
        return check_path_component(value)

    @classmethod
    def from_build(cls, build: dict[str, Any]) -> VersionRecord:
        """Build a record from a raw index entry.

        Raises ``KeyError`` if the entry has no ``blobstore_id`` and
        ``ValidationError`` if the id is not usable as a file name.
        """
        return cls(
            version=str(build.get("version", "")),
            sha1=str(build["sha1"]),
            blobstore_id=str(build["blobstore_id"]),
        )
