"""Compile outcome models."""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import BaseModel, ConfigDict

from relbundle.models.manifest import ArtifactKind


class CompileStatus(str, Enum):
    BUILT = "built"
    ALREADY_BUILT = "already_built"


class ArtifactAction(str, Enum):
    COPIED = "copied"
    SKIPPED = "skipped"
    MISSING = "missing"


class ArtifactOutcome(BaseModel):
    """What happened to one descriptor during a compile."""

    model_config = ConfigDict(frozen=True)

    kind: ArtifactKind
    name: str
    version: str
    action: ArtifactAction
    source: Path | None = None  # resolved local file, None unless copied


class CompileResult(BaseModel):
    """Structured report of one ``ReleaseCompiler.compile`` call."""

    model_config = ConfigDict(frozen=True)

    status: CompileStatus
    tarball_path: Path
    size_bytes: int = 0
    artifacts: list[ArtifactOutcome] = []

    @property
    def already_built(self) -> bool:
        return self.status is CompileStatus.ALREADY_BUILT

    def skipped(self, kind: ArtifactKind | None = None) -> list[str]:
        """Names of skipped artifacts, optionally filtered by kind."""
        return [
            a.name
            for a in self.artifacts
            if a.action is ArtifactAction.SKIPPED and (kind is None or a.kind is kind)
        ]

    def copied(self, kind: ArtifactKind | None = None) -> list[str]:
        """Names of staged artifacts, optionally filtered by kind."""
        return [
            a.name
            for a in self.artifacts
            if a.action is ArtifactAction.COPIED and (kind is None or a.kind is kind)
        ]
