"""Blobstore clients — fetch build tarballs by opaque blobstore id.

Clients never raise for transport problems.  ``fetch`` returns a
``FetchResult`` carrying either the bytes or an error description, and
``ArtifactLocator`` turns a failed result into ``BlobstoreError``.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class FetchErrorKind(str, Enum):
    NOT_FOUND = "not_found"
    TRANSPORT = "transport"


class FetchResult(BaseModel):
    """Outcome of one blobstore fetch: bytes on success, an error otherwise."""

    model_config = ConfigDict(frozen=True)

    blobstore_id: str
    data: bytes | None = None
    error_kind: FetchErrorKind | None = None
    error: str = ""

    @property
    def ok(self) -> bool:
        return self.error_kind is None and self.data is not None

    @classmethod
    def success(cls, blobstore_id: str, data: bytes) -> FetchResult:
        return cls(blobstore_id=blobstore_id, data=data)

    @classmethod
    def failure(
        cls, blobstore_id: str, kind: FetchErrorKind, message: str
    ) -> FetchResult:
        return cls(blobstore_id=blobstore_id, error_kind=kind, error=message)


@runtime_checkable
class BlobstoreClient(Protocol):
    """Anything that can fetch an object by blobstore id."""

    def fetch(self, blobstore_id: str) -> FetchResult: ...


class LocalBlobstoreClient:
    """Directory-backed blobstore.

    Layout: {base_path}/{blobstore_id}

    Useful for offline builds and mirrors of a remote store.

    Parameters
    ----------
    base_path:
        Root directory holding one file per blobstore id.
    """

    def __init__(self, base_path: Path | str) -> None:
        self._base = Path(base_path)

    @property
    def base_path(self) -> Path:
        return self._base

    def _object_path(self, blobstore_id: str) -> Path:
        return self._base / blobstore_id

    def fetch(self, blobstore_id: str) -> FetchResult:
        path = self._object_path(blobstore_id)
        if not path.is_file():
            return FetchResult.failure(
                blobstore_id,
                FetchErrorKind.NOT_FOUND,
                f"object {blobstore_id} not found in {self._base}",
            )
        try:
            data = path.read_bytes()
        except OSError as exc:
            return FetchResult.failure(blobstore_id, FetchErrorKind.TRANSPORT, str(exc))

        logger.debug("Fetched %d bytes for %s from %s", len(data), blobstore_id, path)
        return FetchResult.success(blobstore_id, data)

    def put(self, blobstore_id: str, data: bytes) -> Path:
        """Write an object into the store (used to seed mirrors)."""
        path = self._object_path(blobstore_id)
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_bytes(data)
        return path


class OfflineBlobstoreClient:
    """Blobstore used when none is configured: every fetch fails.

    Builds then succeed only if every build is already in local storage.
    """

    def fetch(self, blobstore_id: str) -> FetchResult:
        return FetchResult.failure(
            blobstore_id, FetchErrorKind.NOT_FOUND, "no blobstore configured"
        )
