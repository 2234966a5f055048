"""Relbundle: compile release tarballs from final and dev builds.

Resolves every package and job a release manifest names by checksum,
preferring final builds over dev builds and local storage over the
blobstore, and packs them with the manifest into one tarball.
"""

__version__ = "0.1.0"
__description__ = "Release tarball compiler with two-tier build resolution"

from relbundle.core.compiler import ReleaseCompiler
from relbundle.core.locator import ArtifactLocator
from relbundle.models.results import CompileResult, CompileStatus

__all__ = [
    "ArtifactLocator",
    "CompileResult",
    "CompileStatus",
    "ReleaseCompiler",
    "__version__",
]
