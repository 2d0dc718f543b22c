"""
数据模型模块。

定义下载产物、版本信息、持久化状态以及各命令的结果类型。
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

# VersionInfo 中除平台产物外的已知字段
_INFO_TEXT_FIELDS = {
    "version": "version",
    "date": "date",
    "docs": "docs",
    "stdDocs": "std_docs",
    "notes": "notes",
}
_INFO_ARTIFACT_FIELDS = ("src", "bootstrap")


class ModelParseError(ValueError):
    """索引条目结构无效。"""
    pass


@dataclass(frozen=True)
class Artifact:
    """
    单个平台的下载产物。

    Attributes:
        tarball: 压缩包 URL
        shasum: SHA-256 校验和
        size: 字节数（索引中为字符串）
    """

    tarball: str
    shasum: str = ""
    size: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Artifact:
        if not isinstance(data, dict):
            raise ModelParseError(f"artifact must be an object, got {type(data).__name__}")
        tarball = data.get("tarball")
        if not isinstance(tarball, str) or not tarball:
            raise ModelParseError("artifact is missing 'tarball'")
        return cls(
            tarball=tarball,
            shasum=str(data.get("shasum", "")),
            size=str(data.get("size", "")),
        )

    @property
    def size_bytes(self) -> Optional[int]:
        try:
            return int(self.size)
        except (TypeError, ValueError):
            return None


@dataclass(frozen=True)
class VersionInfo:
    """
    远程索引中单个版本的元数据。

    平台产物以 "<arch>-<os>" 为键保存在 platforms 中，未知的平台键同样会被接受。
    """

    version: Optional[str] = None
    date: Optional[str] = None
    docs: Optional[str] = None
    std_docs: Optional[str] = None
    notes: Optional[str] = None
    src: Optional[Artifact] = None
    bootstrap: Optional[Artifact] = None
    platforms: Dict[str, Artifact] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> VersionInfo:
        """
        从索引条目构建版本信息，忽略无法识别的字段。

        参数:
            data: 索引中某个版本键对应的 JSON 值

        返回:
            VersionInfo 实例

        抛出:
            ModelParseError: 条目或其中的产物结构无效
        """
        if not isinstance(data, dict):
            raise ModelParseError(f"version entry must be an object, got {type(data).__name__}")

        kwargs: Dict[str, Any] = {}
        for key, attr in _INFO_TEXT_FIELDS.items():
            value = data.get(key)
            kwargs[attr] = value if isinstance(value, str) else None
        for key in _INFO_ARTIFACT_FIELDS:
            if data.get(key) is not None:
                kwargs[key] = Artifact.from_dict(data[key])

        platforms: Dict[str, Artifact] = {}
        for key, value in data.items():
            if key in _INFO_TEXT_FIELDS or key in _INFO_ARTIFACT_FIELDS:
                continue
            if "-" in key and isinstance(value, dict):
                platforms[key] = Artifact.from_dict(value)
        kwargs["platforms"] = platforms
        return cls(**kwargs)

    def artifact_for(self, platform_key: str) -> Optional[Artifact]:
        return self.platforms.get(platform_key)


@dataclass
class State:
    """
    持久化状态。

    Attributes:
        in_use: 当前使用的版本说明符，None 表示未设置
        aliases: 用户定义的版本别名（尚未使用，仅原样保存）
        extra: 文件中无法识别的字段，保存时原样写回
    """

    in_use: Optional[str] = None
    aliases: Dict[str, str] = field(default_factory=dict)
    extra: Dict[str, Any] = field(default_factory=dict)

    def set_in_use(self, specifier: Optional[str]) -> None:
        """设置当前版本，空字符串视为未设置。仅修改内存中的副本。"""
        self.in_use = specifier or None

    def to_dict(self) -> Dict[str, Any]:
        data = dict(self.extra)
        data["in_use"] = self.in_use
        data["aliases"] = dict(self.aliases)
        return data


@dataclass(frozen=True)
class LinkResult:
    """符号链接更新结果，失败时 warning 为非空的提示信息。"""

    ok: bool = True
    warning: Optional[str] = None
    path: Optional[str] = None


@dataclass(frozen=True)
class InstallResult:
    specifier: str
    full_version: str
    already_installed: bool = False
    previous_version: Optional[str] = None
    activated: bool = False


@dataclass(frozen=True)
class UseResult:
    specifier: Optional[str] = None
    switched: bool = False
    persisted: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class UninstallResult:
    specifier: str
    was_in_use: bool = False
    warnings: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class InstalledEntry:
    specifier: str
    full_version: Optional[str]
    in_use: bool = False
