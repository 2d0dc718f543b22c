"""
控制台输出模块。

向 stderr 输出带颜色的错误与警告信息，非终端环境下不输出颜色控制码。
"""

import sys
from typing import Optional, TextIO

BOLD = "\x1b[1m"
RED = "\x1b[31m"
YELLOW = "\x1b[33m"
RESET = "\x1b[0m"


def _supports_color(stream: TextIO) -> bool:
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def _write(stream: TextIO, color: str, text: str) -> None:
    if _supports_color(stream):
        stream.write(f"{BOLD}{color}{text}{RESET}\n")
    else:
        stream.write(f"{text}\n")
    stream.flush()


def print_error(message: str, stream: Optional[TextIO] = None) -> None:
    """
    输出红色错误信息。

    参数:
        message: 错误信息（不含 "error: " 前缀）
        stream: 输出流，默认为 stderr
    """
    _write(stream or sys.stderr, RED, f"error: {message}")


def print_warning(message: str, stream: Optional[TextIO] = None) -> None:
    """
    输出黄色警告信息。

    参数:
        message: 警告信息（不含 "warning: " 前缀）
        stream: 输出流，默认为 stderr
    """
    _write(stream or sys.stderr, YELLOW, f"warning: {message}")


def print_hint(message: str, stream: Optional[TextIO] = None) -> None:
    target = stream or sys.stderr
    target.write(f"hint: {message}\n")
    target.flush()
