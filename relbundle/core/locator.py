"""Artifact locator — turns a (kind, name, sha1) request into a local file.

Search order:

1. the final versions index for the artifact, then
2. the dev versions index,

matching records by embedded ``sha1``.  The winning tier's local storage
is consulted first; on a miss the tarball is fetched from the blobstore,
verified, and cached in that tier's storage.
"""

from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from relbundle.core.blobstore import BlobstoreClient, FetchResult
from relbundle.core.hasher import sha1_hex
from relbundle.core.local_storage import LocalVersionStorage
from relbundle.core.versions_index import VersionsIndex
from relbundle.errors import ArtifactNotFoundError, BlobstoreError, ChecksumMismatchError
from relbundle.models.config import ReleaseLayout
from relbundle.models.manifest import ArtifactDescriptor, ArtifactKind
from relbundle.models.versions import VersionRecord

logger = logging.getLogger(__name__)


class ArtifactLocator:
    """Resolves artifact descriptors against a release source tree.

    Parameters
    ----------
    release_source:
        Release directory holding ``.final_builds`` and ``.dev_builds``.
    blobstore:
        Client used when a build is not cached locally.
    layout:
        Directory conventions.  Defaults to ``ReleaseLayout()``.
    """

    def __init__(
        self,
        release_source: Path | str,
        blobstore: BlobstoreClient,
        layout: ReleaseLayout | None = None,
    ) -> None:
        self._release_source = Path(release_source)
        self._blobstore = blobstore
        self._layout = layout or ReleaseLayout()

    # ------------------------------------------------------------------
    # Indices
    # ------------------------------------------------------------------

    def final_index(self, kind: ArtifactKind, name: str) -> VersionsIndex:
        return VersionsIndex(
            self._layout.final_dir(self._release_source, kind, name),
            self._layout.index_filename,
        )

    def dev_index(self, kind: ArtifactKind, name: str) -> VersionsIndex:
        return VersionsIndex(
            self._layout.dev_dir(self._release_source, kind, name),
            self._layout.index_filename,
        )

    def find_build(
        self, kind: ArtifactKind, name: str, version: str, sha1: str
    ) -> tuple[VersionsIndex, VersionRecord]:
        """Return the winning index and its matching record.

        The final tier always wins over the dev tier.

        Raises
        ------
        ArtifactNotFoundError
            If no record in either tier carries ``sha1``, or the matching
            record has no usable ``blobstore_id``.
        """
        for index in (self.final_index(kind, name), self.dev_index(kind, name)):
            build = index.find_by_sha1(sha1)
            if build is None:
                continue
            try:
                record = VersionRecord.from_build(build)
            except (KeyError, ValidationError):
                logger.warning(
                    "Build %s of %s %s in %s has no usable blobstore_id",
                    sha1, kind.value, name, index.index_file,
                )
                raise ArtifactNotFoundError(kind.value, name, version, sha1) from None
            logger.debug(
                "Found %s %s (%s) in %s", kind.value, name, record.version, index.index_file
            )
            return index, record

        raise ArtifactNotFoundError(kind.value, name, version, sha1)

    # ------------------------------------------------------------------
    # Locate
    # ------------------------------------------------------------------

    def locate(self, kind: ArtifactKind | str, name: str, version: str, sha1: str) -> Path:
        """Return a local path to the build of ``name`` with checksum ``sha1``."""
        kind = ArtifactKind(kind)
        index, record = self.find_build(kind, name, version, sha1)
        storage = LocalVersionStorage(index.storage_dir, self._layout.archive_extension)

        cached = storage.lookup(record.blobstore_id)
        if cached is not None:
            return cached

        description = f"{kind.value} {name} ({record.version})"
        data = self._fetch(record.blobstore_id, description)

        actual = sha1_hex(data)
        if actual != record.sha1:
            raise ChecksumMismatchError(description, record.sha1, actual)

        logger.info("Downloaded %s (blobstore id %s)", description, record.blobstore_id)
        return storage.store(record.blobstore_id, data)

    def locate_descriptor(self, kind: ArtifactKind, descriptor: ArtifactDescriptor) -> Path:
        return self.locate(kind, descriptor.name, descriptor.version, descriptor.sha1)

    def _fetch(self, blobstore_id: str, description: str) -> bytes:
        """Fetch from the blobstore, converting any failure to ``BlobstoreError``."""
        try:
            result: FetchResult = self._blobstore.fetch(blobstore_id)
        except Exception as exc:
            raise BlobstoreError(blobstore_id, f"{description}: {exc}") from exc

        if not result.ok:
            raise BlobstoreError(blobstore_id, f"{description}: {result.error}")
        return result.data
