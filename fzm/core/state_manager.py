"""
持久化状态模块。

读写 <data_dir>/state.json，记录当前使用的版本。
"""

import json
from pathlib import Path

from fzm.errors import FilesystemError
from fzm.utils.logger import get_logger
from fzm.utils.file_utils import atomic_save_json
from fzm.utils.input_validator import InputValidator
from fzm.core.interfaces import IStateManager
from fzm.core.models import State

logger = get_logger()

STATE_FILE = "state.json"
_KNOWN_FIELDS = ("in_use", "aliases")


class StateManagerError(Exception):
    """状态管理错误异常。"""
    pass


class StateSaveError(StateManagerError, FilesystemError):
    """状态文件写入失败。"""
    pass


class StateManager(IStateManager):
    """
    状态管理器类。

    状态文件损坏时不会报错，而是返回默认状态。
    """

    def __init__(self, data_dir: Path):
        self.data_dir = Path(data_dir)
        self.state_file = self.data_dir / STATE_FILE

    def load(self) -> State:
        """
        加载状态。

        返回:
            State 实例；文件缺失、损坏或不是 JSON 对象时返回默认状态
        """
        try:
            with open(self.state_file, "r", encoding="utf-8") as f:
                data = json.load(f)
        except FileNotFoundError:
            return State()
        except (OSError, ValueError) as e:
            logger.debug(f"状态文件无法读取，使用默认状态: {e}")
            return State()

        if not isinstance(data, dict):
            logger.debug("状态文件顶层不是对象，使用默认状态")
            return State()

        in_use = data.get("in_use")
        if not isinstance(in_use, str) or not InputValidator.is_valid_specifier(in_use):
            if in_use not in (None, ""):
                logger.debug(f"忽略无效的 in_use: {in_use!r}")
            in_use = None
        aliases = data.get("aliases")
        if not isinstance(aliases, dict):
            aliases = {}
        extra = {k: v for k, v in data.items() if k not in _KNOWN_FIELDS}
        return State(in_use=in_use, aliases=aliases, extra=extra)

    def save(self, state: State) -> None:
        """
        原子保存状态。

        抛出:
            StateSaveError: 目录创建或文件写入失败
        """
        try:
            self.data_dir.mkdir(parents=True, exist_ok=True)
            atomic_save_json(self.state_file, state.to_dict(), indent=2)
        except (OSError, TypeError, ValueError) as e:
            raise StateSaveError(f"could not save state to {self.state_file}: {e}") from e
        logger.debug(f"状态已保存: in_use={state.in_use}")
