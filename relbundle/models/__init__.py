"""Relbundle data models — all Pydantic v2, all frozen (immutable)."""

from relbundle.models.config import ReleaseLayout
from relbundle.models.manifest import ArtifactDescriptor, ArtifactKind, ReleaseManifest
from relbundle.models.results import (
    ArtifactAction,
    ArtifactOutcome,
    CompileResult,
    CompileStatus,
)
from relbundle.models.versions import VersionRecord

__all__ = [
    # manifest
    "ArtifactKind",
    "ArtifactDescriptor",
    "ReleaseManifest",
    # versions
    "VersionRecord",
    # layout
    "ReleaseLayout",
    # results
    "ArtifactAction",
    "ArtifactOutcome",
    "CompileResult",
    "CompileStatus",
]
