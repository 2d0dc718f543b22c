"""
Shell 环境管理模块。

负责创建 shell 会话目录，并生成供 shell eval 的环境设置脚本。
"""

import os
import shlex
import time
from pathlib import Path
from typing import Mapping, Optional

from fzm.errors import FilesystemError, InputError
from fzm.utils.logger import get_logger

logger = get_logger()

SESSION_ENV_VAR = "FZM_TMP_PATH"
SUPPORTED_SHELLS = ("bash", "zsh")

_BASH_HOOK = """\
__fzm_autoload() {
    if [[ "$PWD" != "$__FZM_LAST_PWD" ]]; then
        __FZM_LAST_PWD="$PWD"
        if [[ -f build.zig.zon ]]; then
            fzm use
        fi
    fi
}

if [[ ";${PROMPT_COMMAND[*]:-};" != *";__fzm_autoload;"* ]]; then
    PROMPT_COMMAND="__fzm_autoload${PROMPT_COMMAND:+;$PROMPT_COMMAND}"
fi
"""

_ZSH_HOOK = """\
__fzm_autoload() {
    if [[ -f build.zig.zon ]]; then
        fzm use
    fi
}

autoload -U add-zsh-hook
add-zsh-hook chpwd __fzm_autoload

__fzm_autoload
"""


class EnvManagerError(Exception):
    """环境管理错误异常。"""
    pass


class ShellNotSetError(EnvManagerError, InputError):
    """SHELL 环境变量未设置。"""

    def __init__(self):
        super().__init__("SHELL environment variable not set")


class UnsupportedShellError(EnvManagerError, InputError):
    """不支持的 shell。"""

    def __init__(self, shell: str):
        super().__init__(f"unsupported shell: {shell} (supported: {', '.join(SUPPORTED_SHELLS)})")
        self.shell = shell


class SessionDirError(EnvManagerError, FilesystemError):
    """会话目录创建失败。"""
    pass


class EnvManager:
    """
    Shell 环境管理器类。

    会话目录位于系统临时目录下，名称为 fzm-<时间戳>-<进程号>，
    并通过 FZM_TMP_PATH 告知后续的 fzm 调用。
    """

    def __init__(self, env: Optional[Mapping[str, str]] = None):
        self._env = os.environ if env is None else env

    def get_session_dir(self) -> Optional[Path]:
        """返回 FZM_TMP_PATH 指定的会话目录，未设置时返回 None。"""
        value = self._env.get(SESSION_ENV_VAR)
        return Path(value) if value else None

    def detect_shell(self) -> str:
        """
        根据 SHELL 环境变量确定 shell 名称。

        抛出:
            ShellNotSetError: SHELL 未设置
            UnsupportedShellError: 不是 bash 或 zsh
        """
        shell_path = self._env.get("SHELL")
        if not shell_path:
            raise ShellNotSetError()
        shell = os.path.basename(shell_path.rstrip("/"))
        if shell not in SUPPORTED_SHELLS:
            raise UnsupportedShellError(shell)
        return shell

    def temp_root(self) -> Path:
        for var in ("TMPDIR", "TMP", "TEMP"):
            value = self._env.get(var)
            if value:
                return Path(value)
        return Path("/tmp")

    def create_session_dir(self) -> Path:
        """
        创建新的会话目录。

        返回:
            会话目录路径

        抛出:
            SessionDirError: 目录创建失败
        """
        path = self.temp_root() / f"fzm-{int(time.time())}-{os.getpid()}"
        try:
            path.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise SessionDirError(f"could not create session directory {path}: {e}") from e
        logger.debug(f"创建会话目录 {path}")
        return path

    @staticmethod
    def render_env(shell: str, session_dir: Path) -> str:
        """
        生成供 shell eval 的环境设置脚本。

        参数:
            shell: "bash" 或 "zsh"
            session_dir: 会话目录

        返回:
            脚本文本

        抛出:
            UnsupportedShellError: 不支持的 shell
        """
        if shell not in SUPPORTED_SHELLS:
            raise UnsupportedShellError(shell)

        quoted = shlex.quote(str(session_dir))
        lines = [
            f"export {SESSION_ENV_VAR}={quoted}",
            f'export PATH={quoted}:"$PATH"',
            "",
        ]
        hook = _ZSH_HOOK if shell == "zsh" else _BASH_HOOK
        return "\n".join(lines) + hook
