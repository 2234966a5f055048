"""Runtime configuration — env-driven.

Centralized config using pydantic-settings.  Reads from a .env file and
RELBUNDLE_* environment variables; CLI options override both.
"""

from __future__ import annotations

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from relbundle.models.config import ReleaseLayout


class RelbundleConfig(BaseSettings):
    """Settings shared by all ``relbundle`` commands.

    Examples
    --------
    Override via environment::

        export RELBUNDLE_LOG_LEVEL=DEBUG
        export RELBUNDLE_RELEASE_DIR=/src/my-release
        export RELBUNDLE_BLOBSTORE_DIR=/mnt/blobstore-mirror

    Or via .env file::

        RELBUNDLE_KEEP_STAGING=true
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="RELBUNDLE_",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    log_level: str = "WARNING"

    # Release source tree; None means the current working directory
    release_dir: Path | None = None

    # Directory-backed blobstore; None means cache-only builds
    blobstore_dir: Path | None = None

    # Leave the staging directory behind after compile (debugging)
    keep_staging: bool = False

    # Layout of the release source tree
    final_builds_dir: str = ".final_builds"
    dev_builds_dir: str = ".dev_builds"
    index_filename: str = "index.yml"

    @property
    def layout(self) -> ReleaseLayout:
        """Release layout derived from the configured directory names."""
        return ReleaseLayout(
            final_builds_dir=self.final_builds_dir,
            dev_builds_dir=self.dev_builds_dir,
            index_filename=self.index_filename,
        )
