"""
版本工具模块。

提供语义化版本号解析、比较以及已安装版本的排序。
"""

import re
from functools import total_ordering
from typing import List, Optional, Tuple, Union

_SEMVER_PATTERN = re.compile(
    r'^(0|[1-9]\d*)\.(0|[1-9]\d*)\.(0|[1-9]\d*)'
    r'(?:-([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?'
    r'(?:\+([0-9A-Za-z-]+(?:\.[0-9A-Za-z-]+)*))?$'
)


def _identifier_key(identifier: str) -> Tuple[int, Union[int, str]]:
    # 数字标识符按数值比较，且低于字母数字标识符
    if identifier.isdigit():
        return (0, int(identifier))
    return (1, identifier)


@total_ordering
class SemanticVersion:
    """
    语义化版本号。

    按 SemVer 2.0 规则比较：正式版高于同一核心版本的预发布版，
    构建元数据不参与比较。
    """

    def __init__(self, major: int, minor: int, patch: int,
                 pre: Tuple[str, ...] = (), build: Tuple[str, ...] = ()):
        self.major = major
        self.minor = minor
        self.patch = patch
        self.pre = tuple(pre)
        self.build = tuple(build)

    @classmethod
    def parse(cls, version_str: str) -> "SemanticVersion":
        """
        解析版本字符串。

        参数:
            version_str: 形如 "0.15.2"、"0.16.0-dev.1+abc" 的字符串

        返回:
            SemanticVersion 实例

        抛出:
            ValueError: 字符串不是合法的语义化版本
        """
        if not isinstance(version_str, str):
            raise ValueError(f"invalid semantic version: {version_str!r}")
        match = _SEMVER_PATTERN.fullmatch(version_str.strip())
        if match is None:
            raise ValueError(f"invalid semantic version: {version_str!r}")
        major, minor, patch, pre, build = match.groups()
        return cls(
            int(major), int(minor), int(patch),
            tuple(pre.split(".")) if pre else (),
            tuple(build.split(".")) if build else (),
        )

    @classmethod
    def try_parse(cls, version_str: str) -> Optional["SemanticVersion"]:
        try:
            return cls.parse(version_str)
        except ValueError:
            return None

    @property
    def core(self) -> Tuple[int, int, int]:
        return (self.major, self.minor, self.patch)

    def _sort_key(self) -> tuple:
        if not self.pre:
            return (self.core, 1, ())
        return (self.core, 0, tuple(_identifier_key(p) for p in self.pre))

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() == other._sort_key()

    def __lt__(self, other: "SemanticVersion") -> bool:
        if not isinstance(other, SemanticVersion):
            return NotImplemented
        return self._sort_key() < other._sort_key()

    def __hash__(self) -> int:
        return hash(self._sort_key())

    def __str__(self) -> str:
        text = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            text += "-" + ".".join(self.pre)
        if self.build:
            text += "+" + ".".join(self.build)
        return text

    def __repr__(self) -> str:
        return f"SemanticVersion({str(self)!r})"


def sort_specifiers(names: List[str]) -> List[str]:
    """
    排序已安装版本说明符，用于 list 输出。

    非语义化版本（如 master）按字母顺序排在最前，其余按版本号降序排列。

    参数:
        names: 版本说明符列表

    返回:
        排序后的新列表
    """
    named = sorted(n for n in names if SemanticVersion.try_parse(n) is None)
    versioned = sorted(
        (n for n in names if SemanticVersion.try_parse(n) is not None),
        key=SemanticVersion.parse,
        reverse=True,
    )
    return named + versioned
