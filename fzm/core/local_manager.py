"""
本地版本管理模块。

提供已安装版本的扫描、标记文件读写、删除以及最低版本匹配功能。
"""

import shutil
from pathlib import Path
from typing import List, Optional

from fzm.errors import FilesystemError, NotFoundError
from fzm.utils.logger import get_logger
from fzm.utils.os_utils import get_executable_name
from fzm.utils.input_validator import InputValidator
from fzm.core.interfaces import ILocalManager
from fzm.core.version_utils import SemanticVersion

logger = get_logger()

MARKER_FILE = ".fzm-version"


class LocalManagerError(Exception):
    """本地管理错误异常。"""
    pass


class VersionNotInstalledError(LocalManagerError, NotFoundError):
    """指定版本未安装。"""

    def __init__(self, specifier: str):
        super().__init__(f"zig version '{specifier}' is not installed")
        self.specifier = specifier


class VersionStoreError(LocalManagerError, FilesystemError):
    """版本目录读写失败。"""
    pass


class LocalManager(ILocalManager):
    """
    本地版本管理器类。

    每个已安装版本对应 <versions_dir>/<说明符> 目录，目录中的
    .fzm-version 标记文件保存完整版本号，解压完成后最后写入。
    """

    def __init__(self, versions_dir: Path, executable_name: Optional[str] = None):
        """
        初始化本地版本管理器。

        参数:
            versions_dir: 版本根目录
            executable_name: 可执行文件名，默认按当前平台确定
        """
        self.versions_dir = Path(versions_dir)
        self.executable_name = executable_name or get_executable_name()

    def version_path(self, specifier: str) -> Path:
        return Path(InputValidator.safe_join_path(str(self.versions_dir), specifier))

    def executable_path(self, specifier: str) -> Path:
        return self.version_path(specifier) / self.executable_name

    def get_installed(self, specifier: str) -> Optional[str]:
        """
        读取已安装版本的完整版本号。

        参数:
            specifier: 版本说明符

        返回:
            标记文件内容（去除首尾空白），目录或标记文件不存在返回 None
        """
        marker = self.version_path(specifier) / MARKER_FILE
        try:
            return marker.read_text(encoding="utf-8").strip()
        except FileNotFoundError:
            return None
        except NotADirectoryError:
            return None
        except OSError as e:
            logger.warning(f"读取版本标记失败 {marker}: {e}")
            return None

    def list_installed(self) -> List[str]:
        """
        列出已安装的版本说明符。

        返回:
            版本目录名列表（已排序），忽略普通文件；根目录不存在时返回空列表
        """
        if not self.versions_dir.is_dir():
            return []
        try:
            return sorted(p.name for p in self.versions_dir.iterdir() if p.is_dir())
        except OSError as e:
            raise VersionStoreError(f"could not read {self.versions_dir}: {e}") from e

    def write_marker(self, specifier: str, full_version: str) -> None:
        marker = self.version_path(specifier) / MARKER_FILE
        try:
            marker.write_text(full_version, encoding="utf-8")
        except OSError as e:
            raise VersionStoreError(f"could not write version marker {marker}: {e}") from e
        logger.debug(f"写入版本标记 {marker}: {full_version}")

    def clear_marker(self, specifier: str) -> None:
        marker = self.version_path(specifier) / MARKER_FILE
        try:
            marker.unlink()
        except FileNotFoundError:
            pass
        except OSError as e:
            raise VersionStoreError(f"could not remove version marker {marker}: {e}") from e

    def remove(self, specifier: str) -> None:
        """
        删除版本目录及其全部内容。

        抛出:
            VersionStoreError: 删除失败
        """
        path = self.version_path(specifier)
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            logger.debug(f"版本目录不存在: {path}")
        except OSError as e:
            raise VersionStoreError(f"could not remove {path}: {e}") from e
        logger.info(f"已删除版本目录 {path}")

    def find_best_match(self, min_version: str) -> Optional[str]:
        """
        查找满足最低版本要求的最佳已安装版本。

        只考虑主版本号与次版本号都与约束相同、且不低于约束的版本，
        返回其中按语义化版本规则最大的那个。

        参数:
            min_version: 最低版本约束，例如 "0.14.0"

        返回:
            匹配版本的目录名，约束无法解析或没有匹配时返回 None
        """
        constraint = SemanticVersion.try_parse(min_version)
        if constraint is None:
            logger.debug(f"无法解析最低版本约束: {min_version}")
            return None

        best_name: Optional[str] = None
        best_version: Optional[SemanticVersion] = None
        for name in self.list_installed():
            candidate = SemanticVersion.try_parse(self.get_installed(name) or name)
            if candidate is None:
                continue
            if (candidate.major, candidate.minor) != (constraint.major, constraint.minor):
                continue
            if candidate < constraint:
                continue
            if best_version is None or candidate > best_version:
                best_name, best_version = name, candidate

        logger.debug(f"最低版本 {min_version} 的匹配结果: {best_name}")
        return best_name
