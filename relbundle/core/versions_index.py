"""Versions index — the per-artifact record of known builds.

Layout: {storage_dir}/index.yml

    builds:
      <key>:
        version: "3"
        sha1: <hex>
        blobstore_id: <id>
    format-version: "2"

The key is opaque: lookups scan the records in file order and compare
the embedded ``sha1``.  Indexes written before the ``builds`` wrapper
existed keep their records at the top level and are read the same way.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import yaml

from relbundle.errors import ReleaseCompileError

logger = logging.getLogger(__name__)

_META_KEYS = frozenset({"format-version"})


class VersionsIndexError(ReleaseCompileError):
    """Raised when an index file exists but cannot be parsed."""


class VersionsIndex:
    """Read-only, insertion-ordered view over one ``index.yml``.

    A missing index file is an empty index.

    Parameters
    ----------
    storage_dir:
        Build directory for one artifact name in one tier.  Also the
        directory of the matching ``LocalVersionStorage``.
    index_filename:
        Name of the index file inside ``storage_dir``.
    """

    def __init__(self, storage_dir: Path | str, index_filename: str = "index.yml") -> None:
        self._storage_dir = Path(storage_dir)
        self._index_file = self._storage_dir / index_filename
        self._builds = self._load()

    @property
    def storage_dir(self) -> Path:
        return self._storage_dir

    @property
    def index_file(self) -> Path:
        return self._index_file

    def _load(self) -> dict[str, Any]:
        if not self._index_file.exists():
            logger.debug("No versions index at %s", self._index_file)
            return {}

        try:
            data = yaml.safe_load(self._index_file.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as exc:
            raise VersionsIndexError(
                f"Cannot read versions index {self._index_file}: {exc}"
            ) from exc

        if data is None:
            return {}
        if not isinstance(data, dict):
            raise VersionsIndexError(
                f"Versions index {self._index_file} is not a mapping"
            )

        builds = data["builds"] if "builds" in data else {
            k: v for k, v in data.items() if k not in _META_KEYS
        }
        if builds is None:
            return {}
        if not isinstance(builds, dict):
            raise VersionsIndexError(
                f"Versions index {self._index_file} has malformed builds section"
            )

        logger.debug("Loaded %d build(s) from %s", len(builds), self._index_file)
        return builds

    def __len__(self) -> int:
        return len(self._builds)

    def __iter__(self) -> Iterator[tuple[str, Any]]:
        return iter(self._builds.items())

    # ------------------------------------------------------------------
    # Lookup
    # ------------------------------------------------------------------

    def scan(self, predicate: Callable[[dict[str, Any]], bool]) -> list[dict[str, Any]]:
        """Return every record satisfying ``predicate``, in index order.

        Entries that are not mappings are skipped with a warning.
        """
        matches: list[dict[str, Any]] = []
        for key, build in self._builds.items():
            if not isinstance(build, dict):
                logger.warning(
                    "Ignoring malformed entry %r in %s", key, self._index_file
                )
                continue
            if predicate(build):
                matches.append(build)
        return matches

    def find_by_sha1(self, sha1: str) -> dict[str, Any] | None:
        """Return the first record whose ``sha1`` equals ``sha1``, or None.

        A record without a ``sha1`` field never matches.  YAML may read an
        all-digit checksum as a number, so the stored value is compared as
        a string.
        """
        matches = self.scan(lambda build: "sha1" in build and str(build["sha1"]) == sha1)
        return matches[0] if matches else None
