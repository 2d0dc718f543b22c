"""
下载管理模块。

提供版本压缩包的平台选择、流式下载、校验和验证以及解压功能。
"""

import copy
import hashlib
import lzma
import os
import re
import stat
import tarfile
import zipfile
from pathlib import Path
from typing import Optional
from urllib.parse import urlparse

import requests

from fzm.errors import FilesystemError, NotFoundError, TransportError
from fzm.utils.logger import get_logger
from fzm.utils.os_utils import get_platform_key
from fzm.utils.progress import NullProgress
from fzm.utils.input_validator import InputValidator, PathTraversalError
from fzm.core.interfaces import IDownloadManager, IProgressSink
from fzm.core.models import Artifact, VersionInfo
from fzm.core.remote_fetcher import HttpRequestError

logger = get_logger()

CHUNK_SIZE = 64 * 1024
_SHA256_PATTERN = re.compile(r'^[0-9a-fA-F]{64}$')


class DownloadManagerError(Exception):
    """下载管理错误异常。"""
    pass


class ArtifactNotFoundError(DownloadManagerError, NotFoundError):
    """索引中没有当前平台的构建。"""

    def __init__(self, platform_key: str, version: str = ""):
        target = f"zig {version} " if version else ""
        super().__init__(f"no {target}build available for platform '{platform_key}'")
        self.platform_key = platform_key


class DownloadError(DownloadManagerError, TransportError):
    """下载响应状态码异常。"""
    pass


class ChecksumMismatchError(DownloadManagerError, FilesystemError):
    """下载文件的 SHA-256 与索引不一致。"""
    pass


class TarballWriteError(DownloadManagerError, FilesystemError):
    """写入缓存文件失败。"""
    pass


class ExtractionError(DownloadManagerError, FilesystemError):
    """压缩包损坏或包含非法路径。"""
    pass


def _tarball_basename(url: str) -> str:
    name = os.path.basename(urlparse(url).path)
    if not name:
        raise DownloadError(f"cannot determine file name from url: {url}")
    return name


def _strip_root(name: str) -> str:
    """去掉归档成员路径的第一级目录，仅有顶层目录时返回空字符串。"""
    parts = [p for p in name.replace("\\", "/").split("/") if p and p != "."]
    return "/".join(parts[1:])


class DownloadManager(IDownloadManager):
    """
    下载管理器类。

    负责选择当前平台的构建、下载到缓存目录并解压到版本目录。
    """

    def __init__(self, platform_key: Optional[str] = None, verify_checksum: bool = True):
        """
        初始化下载管理器。

        参数:
            platform_key: 平台键名，默认为当前平台
            verify_checksum: 是否验证 SHA-256 校验和
        """
        self.platform_key = platform_key or get_platform_key()
        self.verify_checksum = verify_checksum

    def select_artifact(self, version_info: VersionInfo, platform_key: Optional[str] = None) -> Artifact:
        """
        选择指定平台的下载产物。

        参数:
            version_info: 版本信息
            platform_key: 平台键名，默认使用初始化时的平台

        返回:
            Artifact 实例

        抛出:
            ArtifactNotFoundError: 索引中没有该平台的构建
        """
        key = platform_key or self.platform_key
        artifact = version_info.artifact_for(key)
        if artifact is None:
            raise ArtifactNotFoundError(key, version_info.version or "")
        logger.debug(f"选择产物 {key}: {artifact.tarball}")
        return artifact

    def download(
        self,
        artifact: Artifact,
        cache_dir: Path,
        progress: Optional[IProgressSink] = None,
    ) -> Path:
        """
        流式下载产物到缓存目录。

        数据先写入 <文件名>.part，完成后原子重命名为最终文件名；
        任何失败都会删除临时文件。

        参数:
            artifact: 下载产物
            cache_dir: 缓存目录，不存在时自动创建
            progress: 进度回调对象

        返回:
            缓存文件路径

        抛出:
            HttpRequestError: 网络传输失败
            DownloadError: 响应状态码不是 200
            TarballWriteError: 写入缓存文件失败
            ChecksumMismatchError: 校验和不一致
        """
        progress = progress or NullProgress()
        cache_dir = Path(cache_dir)
        final_path = cache_dir / _tarball_basename(artifact.tarball)
        temp_path = final_path.with_name(final_path.name + ".part")

        logger.info(f"正在从 {artifact.tarball} 下载")
        try:
            response = requests.get(artifact.tarball, stream=True)
        except requests.RequestException as e:
            raise HttpRequestError(f"failed to download {artifact.tarball}: {e}") from e

        with response:
            if response.status_code != 200:
                raise DownloadError(
                    f"failed to download {artifact.tarball}: HTTP {response.status_code}"
                )

            total = self._content_length(response, artifact)
            try:
                cache_dir.mkdir(parents=True, exist_ok=True)
            except OSError as e:
                raise TarballWriteError(f"could not create cache directory {cache_dir}: {e}") from e

            digest = hashlib.sha256()
            downloaded = 0
            try:
                with open(temp_path, "wb") as f:
                    for chunk in response.iter_content(chunk_size=CHUNK_SIZE):
                        if not chunk:
                            continue
                        f.write(chunk)
                        digest.update(chunk)
                        downloaded += len(chunk)
                        progress.download(downloaded, total)
                progress.download_complete()
                self._verify(artifact, digest.hexdigest())
                os.replace(temp_path, final_path)
            except requests.RequestException as e:
                self._discard(temp_path)
                raise HttpRequestError(f"download of {artifact.tarball} interrupted: {e}") from e
            except OSError as e:
                self._discard(temp_path)
                raise TarballWriteError(f"could not write {final_path}: {e}") from e
            except ChecksumMismatchError:
                self._discard(temp_path)
                raise

        logger.info(f"下载完成: {final_path} ({downloaded} 字节)")
        return final_path

    @staticmethod
    def _content_length(response, artifact: Artifact) -> Optional[int]:
        length = response.headers.get("content-length")
        try:
            return int(length) if length is not None else artifact.size_bytes
        except ValueError:
            return artifact.size_bytes

    def _verify(self, artifact: Artifact, actual: str) -> None:
        if not self.verify_checksum:
            return
        if not _SHA256_PATTERN.fullmatch(artifact.shasum or ""):
            logger.debug(f"跳过校验和验证，索引中的值不是 SHA-256: {artifact.shasum!r}")
            return
        if actual.lower() != artifact.shasum.lower():
            raise ChecksumMismatchError(
                f"checksum mismatch for {artifact.tarball}: expected {artifact.shasum}, got {actual}"
            )
        logger.debug("校验和验证通过")

    @staticmethod
    def _discard(path: Path) -> None:
        try:
            path.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning(f"无法删除临时文件 {path}: {e}")

    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        """
        解压压缩包到目标目录，去掉每个成员路径的顶层目录。

        已存在的文件会被覆盖，因此重复解压是安全的。

        参数:
            archive_path: .tar.xz、.tar.gz 或 .zip 文件
            dest_dir: 目标目录

        抛出:
            ExtractionError: 压缩包损坏、截断或包含越界路径
        """
        archive_path = Path(archive_path)
        dest_dir = Path(dest_dir)
        dest_dir.mkdir(parents=True, exist_ok=True)
        logger.info(f"正在解压 {archive_path} 到 {dest_dir}")

        try:
            if archive_path.name.endswith(".zip"):
                self._extract_zip(archive_path, dest_dir)
            else:
                self._extract_tar(archive_path, dest_dir)
        except (tarfile.TarError, zipfile.BadZipFile, EOFError, lzma.LZMAError) as e:
            raise ExtractionError(f"failed to extract archive {archive_path}: {e}") from e
        except PathTraversalError as e:
            raise ExtractionError(f"archive {archive_path} contains an unsafe path: {e}") from e
        except OSError as e:
            raise ExtractionError(f"failed to extract archive {archive_path}: {e}") from e

    def _extract_tar(self, archive_path: Path, dest_dir: Path) -> None:
        with tarfile.open(archive_path) as tar:
            for member in tar:
                name = _strip_root(member.name)
                if not name:
                    continue
                InputValidator.safe_join_path(str(dest_dir), name)

                stripped = copy.copy(member)
                stripped.name = name
                if member.islnk():
                    stripped.linkname = _strip_root(member.linkname)
                target = dest_dir / name
                if not member.isdir() and (target.is_symlink() or target.is_file()):
                    target.unlink()
                tar.extract(stripped, path=dest_dir, filter=tarfile.data_filter)

    def _extract_zip(self, archive_path: Path, dest_dir: Path) -> None:
        with zipfile.ZipFile(archive_path, "r") as zf:
            for member in zf.infolist():
                name = _strip_root(member.filename)
                if not name:
                    continue
                member_path = InputValidator.safe_join_path(str(dest_dir), name)
                if member.is_dir():
                    os.makedirs(member_path, exist_ok=True)
                    continue

                os.makedirs(os.path.dirname(member_path), exist_ok=True)
                with zf.open(member) as src, open(member_path, "wb") as f:
                    while True:
                        block = src.read(CHUNK_SIZE)
                        if not block:
                            break
                        f.write(block)
                mode = (member.external_attr >> 16) & 0o777
                if mode & stat.S_IXUSR:
                    os.chmod(member_path, mode)
