"""Error taxonomy for release compilation.

Every error here is terminal for a ``compile`` invocation: nothing is
retried internally.  An already-built archive is *not* an error; it is
reported through ``CompileStatus.ALREADY_BUILT``.
"""

from __future__ import annotations


class ReleaseCompileError(RuntimeError):
    """Base class for all failures raised while compiling a release."""


class ManifestError(ReleaseCompileError):
    """Raised when a release manifest cannot be read or is missing fields."""


class ArtifactNotFoundError(ReleaseCompileError):
    """Raised when neither the final nor the dev index knows a checksum.

    Attributes
    ----------
    kind:
        ``"package"`` or ``"job"``.
    name, version, sha1:
        The descriptor that could not be resolved.
    """

    def __init__(self, kind: str, name: str, version: str, sha1: str) -> None:
        self.kind = kind
        self.name = name
        self.version = version
        self.sha1 = sha1
        super().__init__(
            f"Cannot find {kind} {name} ({version}) with checksum `{sha1}'"
        )


class ChecksumMismatchError(ReleaseCompileError):
    """Raised when fetched bytes do not hash to the expected checksum."""

    def __init__(self, description: str, expected: str, actual: str) -> None:
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"{description} checksum mismatch: expected {expected}, got {actual}"
        )


class BlobstoreError(ReleaseCompileError):
    """Raised when the blobstore could not deliver an object.

    Wraps the transport-level diagnostic; the original exception, if any,
    is chained as ``__cause__``.
    """

    def __init__(self, blobstore_id: str, message: str) -> None:
        self.blobstore_id = blobstore_id
        super().__init__(f"Blobstore error: {message} (blobstore id {blobstore_id})")


class ArchiveCreationError(ReleaseCompileError):
    """Raised when the release tarball could not be written."""

    def __init__(self, tarball_path: str, diagnostic: str) -> None:
        self.tarball_path = tarball_path
        self.diagnostic = diagnostic
        super().__init__(f"Cannot create release tarball {tarball_path}: {diagnostic}")
