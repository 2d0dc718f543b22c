"""
激活链接管理模块。

在 shell 会话目录中维护指向当前版本可执行文件的符号链接。
"""

import os
from pathlib import Path
from typing import Optional

from fzm.utils.logger import get_logger
from fzm.core.interfaces import ILinkManager
from fzm.core.local_manager import LocalManager
from fzm.core.models import LinkResult

logger = get_logger()


class LinkManager(ILinkManager):
    """
    符号链接管理器类。

    所有文件系统错误都转换为带警告信息的 LinkResult，从不抛出异常。
    会话目录本身由 env 命令创建，这里不会创建它。
    """

    def __init__(self, local_manager: LocalManager, executable_name: Optional[str] = None):
        self.local_manager = local_manager
        self.executable_name = executable_name or local_manager.executable_name

    def update(self, session_dir: Path, specifier: Optional[str]) -> LinkResult:
        """
        更新会话目录中的符号链接。

        参数:
            session_dir: shell 会话目录
            specifier: 要激活的版本，None 表示移除链接

        返回:
            LinkResult，失败时 ok 为 False 且 warning 为提示信息
        """
        link_path = Path(session_dir) / self.executable_name
        try:
            if os.path.lexists(link_path):
                link_path.unlink()
            if specifier is None:
                logger.debug(f"已移除符号链接 {link_path}")
                return LinkResult(ok=True, path=str(link_path))

            target = self.local_manager.executable_path(specifier)
            os.symlink(target, link_path)
        except OSError as e:
            message = f"could not update symlink {link_path}: {e}"
            logger.debug(message)
            return LinkResult(ok=False, warning=message, path=str(link_path))

        logger.debug(f"符号链接 {link_path} -> {target}")
        return LinkResult(ok=True, path=str(link_path))
