import json
import os

import pytest

from fzm.core.download_manager import ArtifactNotFoundError, ChecksumMismatchError, DownloadError, ExtractionError
from fzm.core.local_manager import VersionNotInstalledError
from fzm.core.remote_fetcher import HttpRequestError, VersionNotFoundError
from fzm.core.version_manager import VersionManager
from fzm.utils.input_validator import InvalidVersionError
from conftest import FakeResponse, build_tarball, install_fake_version

INDEX_URL = "https://ziglang.org/download/index.json"


class RecordingProgress:
    def __init__(self):
        self.statuses = []

    def status(self, message):
        self.statuses.append(message)

    def download(self, downloaded, total):
        pass

    def download_complete(self):
        pass


@pytest.fixture
def version_manager(app_dirs):
    return VersionManager.create(app_dirs, env={})


def read_state(app_dirs):
    return json.loads((app_dirs.data_dir / "state.json").read_text())


class TestInstall:
    """Test the install orchestration"""

    def test_fresh_install(self, app_dirs, version_manager, fake_server):
        fake_server.add_index(INDEX_URL, {"0.13.0": (None, build_tarball())})
        progress = RecordingProgress()

        result = version_manager.install("0.13.0", progress)

        assert not result.already_installed
        assert result.activated
        version_dir = app_dirs.versions_dir / "0.13.0"
        assert (version_dir / ".fzm-version").read_text() == "0.13.0"
        assert os.access(version_dir / "zig", os.X_OK)
        assert read_state(app_dirs)["in_use"] == "0.13.0"
        assert progress.statuses == [
            "Fetching version info...",
            "Downloading zig 0.13.0...",
            "Extracting...",
            "Installed zig 0.13.0",
        ]

    def test_second_install_is_noop(self, app_dirs, version_manager, fake_server):
        fake_server.add_index(INDEX_URL, {"0.13.0": (None, build_tarball())})
        version_manager.install("0.13.0")
        downloads_before = len(fake_server.calls)

        result = version_manager.install("0.13.0")

        assert result.already_installed
        # only the index was requested again
        assert len(fake_server.calls) == downloads_before + 1

    def test_second_install_keeps_existing_in_use(self, app_dirs, version_manager, fake_server):
        fake_server.add_index(INDEX_URL, {
            "0.13.0": (None, build_tarball()),
            "0.14.0": (None, build_tarball(root="zig-x86_64-linux-0.14.0")),
        })
        version_manager.install("0.13.0")
        result = version_manager.install("0.14.0")
        assert not result.activated
        assert read_state(app_dirs)["in_use"] == "0.13.0"

    def test_master_update(self, app_dirs, version_manager, fake_server):
        fake_server.add_index(INDEX_URL, {"master": ("0.16.0-dev.1+aaa", build_tarball())})
        version_manager.install("master")

        fake_server.add_index(INDEX_URL, {"master": ("0.16.0-dev.2+bbb", build_tarball())})
        result = version_manager.install("master")

        assert not result.already_installed
        assert result.previous_version == "0.16.0-dev.1+aaa"
        assert (app_dirs.versions_dir / "master" / ".fzm-version").read_text() == "0.16.0-dev.2+bbb"

    def test_invalid_specifier_no_network(self, version_manager, fake_server):
        with pytest.raises(InvalidVersionError):
            version_manager.install("v1.0")
        assert fake_server.calls == []

    def test_unknown_version(self, version_manager, fake_server):
        fake_server.add_index(INDEX_URL, {"0.13.0": (None, build_tarball())})
        with pytest.raises(VersionNotFoundError):
            version_manager.install("0.1.0")

    def test_no_artifact_for_platform(self, version_manager, fake_server):
        fake_server.add(INDEX_URL, FakeResponse(json_data={
            "0.13.0": {"some-other-os": {"tarball": "https://example.com/x.tar.xz"}},
        }))
        with pytest.raises(ArtifactNotFoundError):
            version_manager.install("0.13.0")

    def test_failed_download_writes_no_marker(self, app_dirs, version_manager, fake_server):
        index = fake_server.add_index(INDEX_URL, {"0.13.0": (None, build_tarball())})
        url = next(v["tarball"] for k, v in index["0.13.0"].items() if isinstance(v, dict))
        fake_server.add(url, FakeResponse(status_code=500))

        with pytest.raises(DownloadError):
            version_manager.install("0.13.0")

        assert version_manager.local_manager.get_installed("0.13.0") is None
        assert not (app_dirs.data_dir / "state.json").exists()

    def test_checksum_mismatch(self, app_dirs, version_manager, fake_server):
        index = fake_server.add_index(INDEX_URL, {"0.13.0": (None, build_tarball())})
        for value in index["0.13.0"].values():
            if isinstance(value, dict):
                value["shasum"] = "f" * 64
        fake_server.add(INDEX_URL, FakeResponse(json_data=index))

        with pytest.raises(ChecksumMismatchError):
            version_manager.install("0.13.0")
        assert version_manager.local_manager.get_installed("0.13.0") is None

    def test_extraction_failure_on_fresh_install(self, app_dirs, version_manager, fake_server):
        fake_server.add_index(INDEX_URL, {"0.13.0": (None, b"not a tarball")})

        with pytest.raises(ExtractionError):
            version_manager.install("0.13.0")

        assert version_manager.local_manager.get_installed("0.13.0") is None
        assert version_manager.state_manager.load().in_use is None

    def test_extraction_failure_on_master_update(self, app_dirs, version_manager, fake_server):
        fake_server.add_index(INDEX_URL, {"master": ("0.16.0-dev.1+aaa", build_tarball())})
        version_manager.install("master")
        state = version_manager.state_manager.load()
        state.set_in_use(None)
        version_manager.state_manager.save(state)

        fake_server.add_index(INDEX_URL, {"master": ("0.16.0-dev.2+bbb", b"\xfd7zXZ\x00 truncated")})
        with pytest.raises(ExtractionError):
            version_manager.install("master")

        assert version_manager.local_manager.get_installed("master") is None
        assert version_manager.state_manager.load().in_use is None

    def test_retry_after_extraction_failure(self, app_dirs, version_manager, fake_server):
        fake_server.add_index(INDEX_URL, {"0.13.0": (None, b"not a tarball")})
        with pytest.raises(ExtractionError):
            version_manager.install("0.13.0")
        assert (app_dirs.versions_dir / "0.13.0").is_dir()

        fake_server.add_index(INDEX_URL, {"0.13.0": (None, build_tarball())})
        result = version_manager.install("0.13.0")

        assert not result.already_installed
        assert result.activated
        version_dir = app_dirs.versions_dir / "0.13.0"
        assert (version_dir / ".fzm-version").read_text() == "0.13.0"
        assert os.access(version_dir / "zig", os.X_OK)
        assert read_state(app_dirs)["in_use"] == "0.13.0"

    def test_index_unreachable(self, version_manager, fake_server):
        fake_server.add(INDEX_URL, FakeResponse(status_code=503))
        with pytest.raises(HttpRequestError):
            version_manager.install("0.13.0")


class TestUse:
    """Test explicit and automatic version switching"""

    def test_explicit(self, app_dirs, version_manager, session_dir):
        install_fake_version(app_dirs.versions_dir, "0.13.0", "0.13.0")

        result = version_manager.use("0.13.0", session_dir=session_dir)

        assert result.switched and result.persisted
        assert result.warnings == []
        assert read_state(app_dirs)["in_use"] == "0.13.0"
        assert (session_dir / "zig").is_symlink()

    def test_explicit_without_session(self, app_dirs, version_manager):
        install_fake_version(app_dirs.versions_dir, "0.13.0", "0.13.0")
        result = version_manager.use("0.13.0")
        assert result.warnings == []
        assert read_state(app_dirs)["in_use"] == "0.13.0"

    def test_explicit_not_installed(self, app_dirs, version_manager):
        with pytest.raises(VersionNotInstalledError) as exc_info:
            version_manager.use("0.9.0")
        assert "is not installed" in str(exc_info.value)
        assert not (app_dirs.data_dir / "state.json").exists()

    def test_link_failure_is_warning(self, app_dirs, version_manager, tmp_path):
        install_fake_version(app_dirs.versions_dir, "0.13.0", "0.13.0")
        result = version_manager.use("0.13.0", session_dir=tmp_path / "gone")
        assert len(result.warnings) == 1
        assert read_state(app_dirs)["in_use"] == "0.13.0"

    def test_autoswitch_links_best_match(self, app_dirs, version_manager, session_dir, tmp_path):
        install_fake_version(app_dirs.versions_dir, "0.14.0", "0.14.0")
        install_fake_version(app_dirs.versions_dir, "0.14.1", "0.14.1")
        project = tmp_path / "project"
        project.mkdir()
        (project / "build.zig.zon").write_text('.{ .minimum_zig_version = "0.14.0" }\n')

        result = version_manager.use(None, session_dir=session_dir, cwd=project)

        assert result.switched and not result.persisted
        assert result.specifier == "0.14.1"
        assert os.readlink(session_dir / "zig") == str(app_dirs.versions_dir / "0.14.1" / "zig")
        assert not (app_dirs.data_dir / "state.json").exists()

    @pytest.mark.parametrize(
        "manifest",
        [None, '.{ .name = .x }\n', '.{ .minimum_zig_version = "0.99.0" }\n'],
    )
    def test_autoswitch_noop(self, app_dirs, version_manager, session_dir, tmp_path, manifest):
        install_fake_version(app_dirs.versions_dir, "0.14.0", "0.14.0")
        project = tmp_path / "project"
        project.mkdir()
        if manifest is not None:
            (project / "build.zig.zon").write_text(manifest)

        result = version_manager.use(None, session_dir=session_dir, cwd=project)

        assert not result.switched
        assert not os.path.lexists(session_dir / "zig")


class TestUninstallAndList:
    """Test uninstall and list orchestration"""

    def test_uninstall_in_use(self, app_dirs, version_manager, session_dir):
        install_fake_version(app_dirs.versions_dir, "0.13.0", "0.13.0")
        version_manager.use("0.13.0", session_dir=session_dir)

        result = version_manager.uninstall("0.13.0", session_dir=session_dir)

        assert result.was_in_use
        assert read_state(app_dirs)["in_use"] is None
        assert not (app_dirs.versions_dir / "0.13.0").exists()
        assert not os.path.lexists(session_dir / "zig")

    def test_uninstall_other_keeps_state(self, app_dirs, version_manager):
        install_fake_version(app_dirs.versions_dir, "0.13.0", "0.13.0")
        install_fake_version(app_dirs.versions_dir, "0.14.0", "0.14.0")
        version_manager.use("0.13.0")

        result = version_manager.uninstall("0.14.0")

        assert not result.was_in_use
        assert read_state(app_dirs)["in_use"] == "0.13.0"

    def test_uninstall_not_installed(self, app_dirs, version_manager):
        with pytest.raises(VersionNotInstalledError):
            version_manager.uninstall("0.13.0")
        assert not app_dirs.data_dir.exists()

    def test_list_versions(self, app_dirs, version_manager):
        install_fake_version(app_dirs.versions_dir, "0.13.0", "0.13.0")
        install_fake_version(app_dirs.versions_dir, "master", "0.16.0-dev.1")
        version_manager.use("master")

        entries = version_manager.list_versions()

        assert [(e.specifier, e.full_version, e.in_use) for e in entries] == [
            ("0.13.0", "0.13.0", False),
            ("master", "0.16.0-dev.1", True),
        ]
