"""
输入验证模块。

提供版本说明符的验证以及安全的路径拼接。
"""

import os
import re

from fzm.errors import InputError, FilesystemError

MASTER = "master"


class InputValidationError(InputError):
    """输入验证错误异常。"""
    pass


class InvalidVersionError(InputValidationError):
    """版本说明符格式无效异常。"""

    def __init__(self, version: str):
        super().__init__(
            f'invalid version "{version}" - must be "master" or semver (e.g., 0.15.2)'
        )
        self.version = version


class PathTraversalError(FilesystemError):
    """路径越界异常。"""
    pass


class InputValidator:
    """
    输入验证器类。

    提供用户输入的验证和 sanitization 功能。
    """

    SPECIFIER_PATTERN = re.compile(r'^\d+\.\d+\.\d+$')
    MAX_VERSION_LENGTH = 100

    @classmethod
    def is_valid_specifier(cls, version: str) -> bool:
        """
        判断版本说明符是否有效。

        参数:
            version: 用户输入的版本说明符

        返回:
            为 "master" 或 MAJOR.MINOR.PATCH 时返回 True
        """
        if not isinstance(version, str) or not version:
            return False
        if version == MASTER:
            return True
        if len(version) > cls.MAX_VERSION_LENGTH:
            return False
        # fullmatch 避免 $ 匹配末尾换行
        return cls.SPECIFIER_PATTERN.fullmatch(version) is not None and version.isascii()

    @classmethod
    def validate_specifier(cls, version: str) -> str:
        """
        验证版本说明符。

        参数:
            version: 用户输入的版本说明符

        返回:
            原样返回通过验证的说明符

        抛出:
            InvalidVersionError: 说明符既不是 "master" 也不是 x.y.z
        """
        if not cls.is_valid_specifier(version):
            raise InvalidVersionError(version)
        return version

    @classmethod
    def safe_join_path(cls, base_path: str, *paths: str) -> str:
        """
        安全连接路径，防止路径遍历。

        参数:
            base_path: 基础路径
            *paths: 要连接的路径部分

        返回:
            安全连接后的路径

        抛出:
            PathTraversalError: 如果结果路径位于 base_path 之外
        """
        base = os.path.abspath(base_path)
        joined = os.path.abspath(os.path.join(base, *paths))
        if joined != base and not joined.startswith(base + os.sep):
            raise PathTraversalError(f"path escapes {base}: {os.path.join(*paths)}")
        return joined
