"""Local version storage — on-disk cache of verified build tarballs.

Layout: {storage_dir}/{blobstore_id}.tgz

Final and dev tiers each have their own storage directory (the same
directory as their versions index).  Content for a given blobstore id
is immutable, so concurrent writers of the same id are harmless: the
last atomic rename wins.
"""

from __future__ import annotations

import logging
import os
import tempfile
from pathlib import Path

logger = logging.getLogger(__name__)


class LocalVersionStorage:
    """Blobstore-id keyed file cache.

    Only bytes that already passed checksum verification are stored, so a
    cache hit is trusted as-is.

    Parameters
    ----------
    storage_dir:
        Root directory of the cache.  Created lazily on first ``store``.
    extension:
        File extension of cached entries.
    """

    def __init__(self, storage_dir: Path | str, extension: str = "tgz") -> None:
        self._base = Path(storage_dir)
        self._extension = extension

    @property
    def storage_dir(self) -> Path:
        return self._base

    def file_path(self, blobstore_id: str) -> Path:
        """Compute the cache path for a blobstore id."""
        return self._base / f"{blobstore_id}.{self._extension}"

    def lookup(self, blobstore_id: str) -> Path | None:
        """Return the cached file for ``blobstore_id``, or None if absent."""
        path = self.file_path(blobstore_id)
        if path.is_file():
            logger.debug("Cache hit for %s at %s", blobstore_id, path)
            return path
        return None

    def store(self, blobstore_id: str, data: bytes) -> Path:
        """Write ``data`` under ``blobstore_id`` and return its path.

        The write goes to a temporary file in the same directory and is
        renamed into place, so readers never observe a partial file.
        """
        path = self.file_path(blobstore_id)
        path.parent.mkdir(parents=True, exist_ok=True)

        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{blobstore_id}.")
        try:
            with os.fdopen(fd, "wb") as f:
                f.write(data)
            os.replace(tmp_name, path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

        logger.debug("Stored %d bytes for %s at %s", len(data), blobstore_id, path)
        return path
