"""
项目清单模块。

从 build.zig.zon 中读取 minimum_zig_version。
"""

import re
from pathlib import Path
from typing import Optional

from fzm.errors import FilesystemError
from fzm.utils.logger import get_logger

logger = get_logger()

MANIFEST_FILE = "build.zig.zon"
_MINIMUM_VERSION_PATTERN = re.compile(
    r'\.minimum_zig_version\s*=\s*"((?:[^"\\\n]|\\.)*)"'
)
_LINE_COMMENT = re.compile(r'//[^\n]*')


class ManifestError(FilesystemError):
    """清单文件无法读取或解码。"""
    pass


def read_minimum_version(directory: Path) -> Optional[str]:
    """
    读取目录中 build.zig.zon 的最低 Zig 版本。

    参数:
        directory: 项目目录

    返回:
        minimum_zig_version 的值，清单或字段不存在时返回 None

    抛出:
        ManifestError: 清单存在但无法读取
    """
    path = Path(directory) / MANIFEST_FILE
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError) as e:
        raise ManifestError(f"could not read {path}: {e}") from e

    match = _MINIMUM_VERSION_PATTERN.search(_LINE_COMMENT.sub("", text))
    if match is None:
        logger.debug(f"{path} 中没有 minimum_zig_version")
        return None
    return match.group(1).strip()
