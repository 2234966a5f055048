"""SHA-1 helper used to verify fetched build tarballs.

Manifest checksums are supplied by callers; hashing here only ever
checks bytes that came back from the blobstore.
"""

from __future__ import annotations

import hashlib


def sha1_hex(data: bytes) -> str:
    """Return the SHA-1 hex digest of raw bytes."""
    return hashlib.sha1(data).hexdigest()
