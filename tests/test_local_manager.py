import pytest

from fzm.core.local_manager import LocalManager, VersionNotInstalledError
from fzm.errors import NotFoundError
from conftest import install_fake_version


@pytest.fixture
def versions_dir(tmp_path):
    return tmp_path / "versions"


@pytest.fixture
def local_manager(versions_dir):
    return LocalManager(versions_dir, executable_name="zig")


class TestVersionStore:
    """Test reading and writing installed version directories"""

    def test_get_installed_strips_marker(self, versions_dir, local_manager):
        install_fake_version(versions_dir, "master", "0.16.0-dev.1+abc\n")
        assert local_manager.get_installed("master") == "0.16.0-dev.1+abc"

    def test_get_installed_missing(self, versions_dir, local_manager):
        assert local_manager.get_installed("0.13.0") is None
        install_fake_version(versions_dir, "0.13.0")
        assert local_manager.get_installed("0.13.0") is None

    def test_list_installed_sorted_dirs_only(self, versions_dir, local_manager):
        install_fake_version(versions_dir, "0.14.0", "0.14.0")
        install_fake_version(versions_dir, "0.13.0", "0.13.0")
        install_fake_version(versions_dir, "master", "0.16.0-dev.1")
        (versions_dir / "stray.txt").write_text("not a version")
        assert local_manager.list_installed() == ["0.13.0", "0.14.0", "master"]

    def test_list_installed_missing_root(self, local_manager):
        assert local_manager.list_installed() == []

    def test_paths(self, versions_dir, local_manager):
        assert local_manager.version_path("0.13.0") == versions_dir / "0.13.0"
        assert local_manager.executable_path("0.13.0") == versions_dir / "0.13.0" / "zig"

    def test_write_marker_and_remove(self, versions_dir, local_manager):
        (versions_dir / "0.13.0").mkdir(parents=True)
        local_manager.write_marker("0.13.0", "0.13.0")
        assert local_manager.get_installed("0.13.0") == "0.13.0"

        local_manager.clear_marker("0.13.0")
        assert local_manager.get_installed("0.13.0") is None

        install_fake_version(versions_dir, "0.13.0", "0.13.0")
        local_manager.remove("0.13.0")
        assert not (versions_dir / "0.13.0").exists()

    def test_not_installed_error_message(self):
        error = VersionNotInstalledError("0.9.0")
        assert isinstance(error, NotFoundError)
        assert str(error) == "zig version '0.9.0' is not installed"


class TestFindBestMatch:
    """Test choosing an installed version for a minimum_zig_version"""

    @pytest.mark.parametrize(
        "installed,constraint,expected",
        [
            ({"0.14.0": "0.14.0", "0.14.1": "0.14.1"}, "0.14.0", "0.14.1"),
            ({"0.14.0": "0.14.0", "0.15.0": "0.15.0"}, "0.14.0", "0.14.0"),
            ({"0.13.0": "0.13.0"}, "0.14.0", None),
            ({"1.14.0": "1.14.0"}, "0.14.0", None),
            ({"0.14.0": "0.14.0"}, "0.14.1", None),
            ({"0.14.0": "0.14.0"}, "not-a-version", None),
            ({}, "0.14.0", None),
            ({"master": "0.16.0-dev.5+abc"}, "0.16.0-dev.2", "master"),
            ({"master": "0.16.0-dev.5+abc", "0.16.0": "0.16.0"}, "0.16.0-dev.2", "0.16.0"),
            ({"master": "garbage", "0.14.0": "0.14.0"}, "0.14.0", "0.14.0"),
        ],
    )
    def test_cases(self, versions_dir, local_manager, installed, constraint, expected):
        for name, full in installed.items():
            install_fake_version(versions_dir, name, full)
        assert local_manager.find_best_match(constraint) == expected

    def test_directory_name_used_without_marker(self, versions_dir, local_manager):
        install_fake_version(versions_dir, "0.14.2")
        install_fake_version(versions_dir, "0.14.1", "0.14.1")
        assert local_manager.find_best_match("0.14.0") == "0.14.2"

    def test_release_beats_prerelease(self, versions_dir, local_manager):
        install_fake_version(versions_dir, "master", "0.15.0-dev.99")
        install_fake_version(versions_dir, "0.15.0", "0.15.0")
        assert local_manager.find_best_match("0.15.0-dev.1") == "0.15.0"
