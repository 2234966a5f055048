"""Tests for ReleaseCompiler — guard, skipping, staging, tarball."""

from __future__ import annotations

import tarfile
import tempfile
from pathlib import Path

import pytest

from relbundle.core.compiler import ReleaseCompiler
from relbundle.core.hasher import sha1_hex
from relbundle.errors import ArchiveCreationError, ArtifactNotFoundError, ManifestError
from relbundle.models.manifest import ArtifactKind
from relbundle.models.results import ArtifactAction, CompileStatus

PKG = ArtifactKind.PACKAGE
JOB = ArtifactKind.JOB


def _members(tarball: Path) -> set[str]:
    with tarfile.open(tarball, "r:gz") as tar:
        return set(tar.getnames())


@pytest.fixture
def simple_release(add_build, write_manifest) -> Path:
    """One cached dev package and one cached final job."""
    add_build("dev", PKG, "redis", b"redis-bytes", cached=True)
    add_build("final", JOB, "web", b"web-bytes", cached=True)
    return write_manifest(
        packages=[{"name": "redis", "version": "1", "sha1": sha1_hex(b"redis-bytes")}],
        jobs=[{"name": "web", "version": "1", "sha1": sha1_hex(b"web-bytes")}],
    )


@pytest.fixture
def make_compiler(release_dir, blobstore):
    compilers: list[ReleaseCompiler] = []

    def _factory(manifest: Path, **kwargs) -> ReleaseCompiler:
        kwargs.setdefault("release_source", release_dir)
        compiler = ReleaseCompiler(manifest, blobstore, **kwargs)
        compilers.append(compiler)
        return compiler

    yield _factory
    for compiler in compilers:
        compiler.cleanup()


class TestConstruction:
    def test_staging_dirs_created_eagerly(self, simple_release, make_compiler):
        compiler = make_compiler(simple_release)
        assert (compiler.build_dir / "jobs").is_dir()
        assert (compiler.build_dir / "packages").is_dir()

    def test_cleanup_removes_staging(self, simple_release, make_compiler):
        compiler = make_compiler(simple_release)
        compiler.cleanup()
        assert not compiler.build_dir.exists()

    def test_context_manager_cleans_up(self, simple_release, release_dir, blobstore):
        with ReleaseCompiler(simple_release, blobstore, release_source=release_dir) as compiler:
            build_dir = compiler.build_dir
        assert not build_dir.exists()

    def test_invalid_manifest_rejected_at_load(self, write_manifest, make_compiler):
        manifest = write_manifest(packages=[{"name": "redis", "version": "1"}])
        with pytest.raises(ManifestError):
            make_compiler(manifest)

    def test_relative_manifest_resolved_against_release_source(
        self, simple_release, release_dir, make_compiler
    ):
        compiler = make_compiler(Path("dev_releases") / simple_release.name)
        assert compiler.manifest_file == simple_release.resolve()


class TestTarballPath:
    def test_default_next_to_manifest(self, simple_release, make_compiler):
        compiler = make_compiler(simple_release)
        assert compiler.tarball_path == simple_release.resolve().parent / "demo-1.tgz"

    def test_explicit_override(self, simple_release, make_compiler, tmp_dir):
        compiler = make_compiler(simple_release, tarball_path=tmp_dir / "out.tgz")
        assert compiler.tarball_path == tmp_dir / "out.tgz"

    def test_setter(self, simple_release, make_compiler, tmp_dir):
        compiler = make_compiler(simple_release)
        compiler.tarball_path = tmp_dir / "other.tgz"
        assert compiler.tarball_path == tmp_dir / "other.tgz"
        compiler.tarball_path = None
        assert compiler.tarball_path.name == "demo-1.tgz"


class TestCompile:
    def test_builds_tarball(self, simple_release, make_compiler):
        compiler = make_compiler(simple_release)
        result = compiler.compile()

        assert result.status is CompileStatus.BUILT
        assert result.tarball_path.exists()
        assert result.size_bytes == result.tarball_path.stat().st_size
        assert {"release.MF", "packages/redis.tgz", "jobs/web.tgz"} <= _members(
            result.tarball_path
        )

    def test_manifest_copied_verbatim(self, simple_release, make_compiler, tmp_dir):
        result = make_compiler(simple_release).compile()
        with tarfile.open(result.tarball_path, "r:gz") as tar:
            staged = tar.extractfile("release.MF").read()
        assert staged == simple_release.read_bytes()

    def test_packages_before_jobs_in_outcomes(self, simple_release, make_compiler):
        result = make_compiler(simple_release).compile()
        assert [(a.kind, a.name) for a in result.artifacts] == [(PKG, "redis"), (JOB, "web")]

    def test_exists_after_compile(self, simple_release, make_compiler):
        compiler = make_compiler(simple_release)
        assert compiler.exists() is False
        compiler.compile()
        assert compiler.exists() is True

    def test_second_compile_is_noop(self, simple_release, make_compiler, blobstore):
        make_compiler(simple_release).compile()

        second = make_compiler(simple_release)
        result = second.compile()

        assert result.status is CompileStatus.ALREADY_BUILT
        assert result.already_built
        assert result.artifacts == []
        assert not (second.build_dir / "release.MF").exists()
        assert blobstore.calls == []

    def test_existing_file_at_override_short_circuits(
        self, simple_release, make_compiler, tmp_dir
    ):
        target = tmp_dir / "prebuilt.tgz"
        target.write_bytes(b"not really a tarball")
        result = make_compiler(simple_release, tarball_path=target).compile()
        assert result.already_built
        assert target.read_bytes() == b"not really a tarball"


    def test_numeric_checksum_resolves(self, release_dir, write_manifest, make_compiler):
        index_dir = release_dir / ".dev_builds" / "packages" / "p1"
        index_dir.mkdir(parents=True)
        (index_dir / "index.yml").write_text(
            "builds:\n  k1:\n    version: 1\n    sha1: 123\n    blobstore_id: B1\n"
        )
        (index_dir / "B1.tgz").write_bytes(b"p1-bytes")
        manifest = write_manifest(packages=[{"name": "p1", "version": 1, "sha1": 123}])

        result = make_compiler(manifest).compile()
        assert result.copied(PKG) == ["p1"]
        assert "packages/p1.tgz" in _members(result.tarball_path)

    def test_outcomes_reported_as_decided(self, simple_release, make_compiler):
        seen = []
        compiler = make_compiler(
            simple_release,
            package_matches=[sha1_hex(b"redis-bytes")],
            on_artifact=seen.append,
        )
        result = compiler.compile()
        assert [(o.name, o.action) for o in seen] == [
            ("redis", ArtifactAction.SKIPPED),
            ("web", ArtifactAction.COPIED),
        ]
        assert seen == result.artifacts


class TestRemoteSkip:
    def test_package_skipped_by_sha1(self, simple_release, make_compiler):
        compiler = make_compiler(simple_release, package_matches=[sha1_hex(b"redis-bytes")])
        result = compiler.compile()

        assert result.skipped(PKG) == ["redis"]
        assert "packages/redis.tgz" not in _members(result.tarball_path)
        assert not (compiler.build_dir / "packages" / "redis.tgz").exists()

    def test_package_skipped_by_fingerprint(self, add_build, write_manifest, make_compiler):
        add_build("dev", PKG, "redis", b"redis-bytes", cached=True)
        manifest = write_manifest(
            packages=[{
                "name": "redis", "version": "1",
                "sha1": sha1_hex(b"redis-bytes"), "fingerprint": "fp-redis",
            }],
        )
        result = make_compiler(manifest, package_matches={"fp-redis"}).compile()
        assert result.skipped() == ["redis"]

    def test_skipped_package_never_located(self, write_manifest, make_compiler):
        # No index exists at all: resolution would fail if attempted
        manifest = write_manifest(
            packages=[{"name": "ghost", "version": "1", "sha1": "abc"}],
        )
        result = make_compiler(manifest, package_matches=["abc"]).compile()
        assert result.skipped() == ["ghost"]

    def test_unmatched_package_is_copied(self, simple_release, make_compiler):
        result = make_compiler(simple_release, package_matches=["unrelated"]).compile()
        assert result.copied(PKG) == ["redis"]

    def test_jobs_are_never_skipped(self, simple_release, make_compiler):
        # Known-remote membership only applies to packages
        job_sha1 = sha1_hex(b"web-bytes")
        compiler = make_compiler(simple_release, package_matches=[job_sha1])
        result = compiler.compile()

        assert result.copied(JOB) == ["web"]
        assert "jobs/web.tgz" in _members(result.tarball_path)

    def test_remote_job_exists_always_false(self, simple_release, make_compiler):
        compiler = make_compiler(simple_release, package_matches=[sha1_hex(b"web-bytes")])
        assert compiler.remote_job_exists(compiler.manifest.jobs[0]) is False
        assert compiler.remote_package_exists(compiler.manifest.packages[0]) is False


class TestCompileFailures:
    def test_unresolvable_checksum_produces_no_tarball(
        self, add_build, write_manifest, make_compiler
    ):
        add_build("dev", PKG, "redis", b"redis-bytes", cached=True)
        manifest = write_manifest(
            packages=[{"name": "redis", "version": "1", "sha1": "f" * 40}],
        )
        compiler = make_compiler(manifest)

        with pytest.raises(ArtifactNotFoundError):
            compiler.compile()
        assert not compiler.tarball_path.exists()

    def test_missing_reported_before_error(self, add_build, write_manifest, make_compiler):
        add_build("dev", PKG, "redis", b"redis-bytes", cached=True)
        manifest = write_manifest(
            packages=[
                {"name": "redis", "version": "1", "sha1": sha1_hex(b"redis-bytes")},
                {"name": "nginx", "version": "2", "sha1": "f" * 40},
            ],
        )
        seen = []
        compiler = make_compiler(manifest, on_artifact=seen.append)

        with pytest.raises(ArtifactNotFoundError):
            compiler.compile()
        assert [(o.name, o.action) for o in seen] == [
            ("redis", ArtifactAction.COPIED),
            ("nginx", ArtifactAction.MISSING),
        ]

    def test_archive_failure(self, simple_release, make_compiler, tmp_dir):
        blocker = tmp_dir / "blocker"
        blocker.write_text("a file, not a directory")
        compiler = make_compiler(simple_release, tarball_path=blocker / "demo-1.tgz")

        with pytest.raises(ArchiveCreationError) as excinfo:
            compiler.compile()
        assert excinfo.value.diagnostic
        assert not compiler.exists()


class TestCompileRelease:
    def test_one_shot_cleans_up(
        self, simple_release, release_dir, blobstore, tmp_dir, monkeypatch
    ):
        staging_root = tmp_dir / "staging"
        staging_root.mkdir()
        monkeypatch.setattr(tempfile, "tempdir", str(staging_root))

        result = ReleaseCompiler.compile_release(
            simple_release,
            blobstore,
            release_source=release_dir,
            tarball_path=tmp_dir / "one-shot.tgz",
        )
        assert result.tarball_path.exists()
        assert list(staging_root.iterdir()) == []
