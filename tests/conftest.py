import hashlib
import io
import json
import tarfile
import zipfile
from pathlib import Path

import pytest
import requests

from fzm.core.dirs import AppDirs
from fzm.utils.os_utils import get_platform_key

TARBALL_BASE = "https://ziglang.org/download"


class FakeResponse:
    """Minimal stand-in for requests.Response covering what fzm reads"""

    def __init__(self, status_code=200, body=b"", json_data=None, headers=None, fail_after=None):
        self.status_code = status_code
        if json_data is not None:
            body = json.dumps(json_data).encode("utf-8")
        self.content = body
        self.headers = {"content-length": str(len(body))} if headers is None else headers
        self.fail_after = fail_after
        self.closed = False

    def json(self):
        return json.loads(self.content.decode("utf-8"))

    @property
    def text(self):
        return self.content.decode("utf-8", errors="replace")

    def iter_content(self, chunk_size=1):
        sent = 0
        for start in range(0, len(self.content), chunk_size):
            if self.fail_after is not None and sent >= self.fail_after:
                raise requests.ConnectionError("connection reset")
            chunk = self.content[start:start + chunk_size]
            sent += len(chunk)
            yield chunk

    def close(self):
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()
        return False


def build_tarball(root="zig-x86_64-linux-0.13.0", files=None, compression="xz"):
    """Build an in-memory tarball with a single top-level directory"""
    if files is None:
        files = {"zig": (b"#!/bin/sh\necho zig\n", 0o755), "lib/std/std.zig": (b"pub const x = 1;\n", 0o644)}
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode=f"w:{compression}") as tar:
        root_info = tarfile.TarInfo(root)
        root_info.type = tarfile.DIRTYPE
        root_info.mode = 0o755
        tar.addfile(root_info)
        for name, (data, mode) in files.items():
            info = tarfile.TarInfo(f"{root}/{name}")
            info.size = len(data)
            info.mode = mode
            tar.addfile(info, io.BytesIO(data))
    return buf.getvalue()


def build_zip(root="zig-x86_64-windows-0.13.0", files=None):
    if files is None:
        files = {"zig.exe": b"MZ fake", "lib/std/std.zig": b"pub const x = 1;\n"}
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        zf.writestr(f"{root}/", "")
        for name, data in files.items():
            zf.writestr(f"{root}/{name}", data)
    return buf.getvalue()


def build_index(entries):
    """
    Build an index document. entries maps specifier -> (full_version or None, tarball bytes)
    """
    platform_key = get_platform_key()
    index = {}
    for specifier, (full_version, tarball) in entries.items():
        label = full_version or specifier
        entry = {
            "date": "2024-06-06",
            "docs": f"https://ziglang.org/documentation/{specifier}/",
            platform_key: {
                "tarball": f"{TARBALL_BASE}/{label}/zig-{platform_key}-{label}.tar.xz",
                "shasum": hashlib.sha256(tarball).hexdigest(),
                "size": str(len(tarball)),
            },
        }
        if full_version is not None:
            entry["version"] = full_version
        index[specifier] = entry
    return index


class FakeServer:
    """Routes requests.get calls to canned responses by URL"""

    def __init__(self):
        self.routes = {}
        self.calls = []

    def add(self, url, response):
        self.routes[url] = response

    def add_index(self, url, entries):
        index = build_index(entries)
        self.add(url, FakeResponse(json_data=index))
        for specifier, (_, tarball) in entries.items():
            artifact = index[specifier][get_platform_key()]
            self.add(artifact["tarball"], FakeResponse(body=tarball))
        return index

    def get(self, url, *args, **kwargs):
        self.calls.append(url)
        if url not in self.routes:
            return FakeResponse(status_code=404, body=b"not found")
        response = self.routes[url]
        # each download needs a fresh body iterator
        return FakeResponse(
            status_code=response.status_code,
            body=response.content,
            headers=dict(response.headers),
            fail_after=response.fail_after,
        )


@pytest.fixture(autouse=True)
def isolated_env(tmp_path, monkeypatch):
    """Point every fzm directory at a per-test temporary tree"""
    monkeypatch.setenv("FZM_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("FZM_CACHE_DIR", str(tmp_path / "cache"))
    monkeypatch.setenv("FZM_CONFIG_DIR", str(tmp_path / "config"))
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    for var in ("FZM_TMP_PATH", "FZM_CDN_URL", "FZM_LOG_LEVEL", "XDG_DATA_HOME", "XDG_CACHE_HOME", "XDG_CONFIG_HOME"):
        monkeypatch.delenv(var, raising=False)
    return tmp_path


@pytest.fixture
def app_dirs(isolated_env):
    return AppDirs.from_env()


@pytest.fixture
def fake_server(mocker):
    server = FakeServer()
    mocker.patch("requests.get", side_effect=server.get)
    return server


@pytest.fixture
def session_dir(tmp_path):
    path = tmp_path / "session"
    path.mkdir()
    return path


def install_fake_version(versions_dir: Path, specifier, full_version=None, executable="zig"):
    """Create an installed version directory without going through the pipeline"""
    path = Path(versions_dir) / specifier
    path.mkdir(parents=True, exist_ok=True)
    (path / executable).write_text("#!/bin/sh\n")
    if full_version is not None:
        (path / ".fzm-version").write_text(full_version)
    return path
