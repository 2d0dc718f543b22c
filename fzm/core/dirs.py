"""
目录解析模块。

按照环境变量、XDG 规范以及平台惯例确定数据、缓存与配置目录。
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from fzm.errors import FilesystemError
from fzm.utils.logger import get_logger
from fzm.utils.os_utils import is_macos

logger = get_logger()

APP_NAME = "fzm"
VERSIONS_DIR_NAME = "versions"


class NoHomeDirectoryError(FilesystemError):
    """无法确定用户主目录。"""

    def __init__(self):
        super().__init__("could not determine home directory (HOME is not set)")


def _env(env: Optional[Mapping[str, str]]) -> Mapping[str, str]:
    return os.environ if env is None else env


def _home(env: Mapping[str, str]) -> Path:
    home = env.get("HOME")
    if not home:
        raise NoHomeDirectoryError()
    return Path(home)


def _resolve(
    env: Optional[Mapping[str, str]],
    override_var: str,
    xdg_var: str,
    macos_parts: tuple,
    default_parts: tuple,
    sys_platform: Optional[str] = None,
) -> Path:
    values = _env(env)
    override = values.get(override_var)
    if override:
        return Path(override)
    xdg = values.get(xdg_var)
    if xdg:
        return Path(xdg) / APP_NAME
    parts = macos_parts if is_macos(sys_platform) else default_parts
    return _home(values).joinpath(*parts, APP_NAME)


def get_data_dir(env: Optional[Mapping[str, str]] = None, sys_platform: Optional[str] = None) -> Path:
    """
    获取数据目录。

    优先级: FZM_DATA_DIR > $XDG_DATA_HOME/fzm > 平台默认目录。

    参数:
        env: 环境变量映射，默认为 os.environ
        sys_platform: 平台字符串，默认为 sys.platform

    返回:
        数据目录路径（不保证存在）

    抛出:
        NoHomeDirectoryError: 需要主目录但 HOME 未设置
    """
    return _resolve(
        env, "FZM_DATA_DIR", "XDG_DATA_HOME",
        ("Library", "Application Support"), (".local", "share"),
        sys_platform,
    )


def get_cache_dir(env: Optional[Mapping[str, str]] = None, sys_platform: Optional[str] = None) -> Path:
    """获取缓存目录，优先级: FZM_CACHE_DIR > $XDG_CACHE_HOME/fzm > 平台默认目录。"""
    return _resolve(
        env, "FZM_CACHE_DIR", "XDG_CACHE_HOME",
        ("Library", "Caches"), (".cache",),
        sys_platform,
    )


def get_config_dir(env: Optional[Mapping[str, str]] = None, sys_platform: Optional[str] = None) -> Path:
    """获取配置目录，优先级: FZM_CONFIG_DIR > $XDG_CONFIG_HOME/fzm > 平台默认目录。"""
    return _resolve(
        env, "FZM_CONFIG_DIR", "XDG_CONFIG_HOME",
        ("Library", "Preferences"), (".config",),
        sys_platform,
    )


def get_versions_dir(data_dir: Path) -> Path:
    return Path(data_dir) / VERSIONS_DIR_NAME


@dataclass(frozen=True)
class AppDirs:
    """
    一次调用中使用的全部目录。

    每次命令执行时构建一次，并显式传递给各个组件。
    """

    data_dir: Path
    cache_dir: Path
    config_dir: Path

    @property
    def versions_dir(self) -> Path:
        return get_versions_dir(self.data_dir)

    @property
    def log_dir(self) -> Path:
        return self.cache_dir / "logs"

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None, sys_platform: Optional[str] = None) -> "AppDirs":
        dirs = cls(
            data_dir=get_data_dir(env, sys_platform),
            cache_dir=get_cache_dir(env, sys_platform),
            config_dir=get_config_dir(env, sys_platform),
        )
        logger.debug(f"数据目录: {dirs.data_dir}, 缓存目录: {dirs.cache_dir}, 配置目录: {dirs.config_dir}")
        return dirs
