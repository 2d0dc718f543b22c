"""
fzm 工具模块。

提供日志记录、输入验证、平台识别和终端输出等工具功能。
"""

from .logger import get_logger, setup_logger
from .file_utils import atomic_save_json
from .input_validator import InputValidator, InputValidationError, InvalidVersionError, PathTraversalError
from .os_utils import get_platform_key, get_executable_name
from .progress import ConsoleProgress, NullProgress, format_bytes
from .console import print_error, print_warning, print_hint

__all__ = [
    "get_logger",
    "setup_logger",
    "atomic_save_json",
    "InputValidator",
    "InputValidationError",
    "InvalidVersionError",
    "PathTraversalError",
    "get_platform_key",
    "get_executable_name",
    "ConsoleProgress",
    "NullProgress",
    "format_bytes",
    "print_error",
    "print_warning",
    "print_hint",
]
