"""
终端进度显示模块。

提供阶段状态消息与下载进度条，非终端环境下自动降级为节流的单行输出。
"""

import sys
from typing import Optional, TextIO

# 非终端模式下两次输出之间的最小字节数
NON_TTY_UPDATE_THRESHOLD = 5 * 1024 * 1024
BAR_WIDTH = 20


def format_bytes(num_bytes: int) -> str:
    """
    将字节数格式化为易读字符串。

    参数:
        num_bytes: 字节数

    返回:
        形如 "45.3 MB"、"512.0 KB"、"100 B" 的字符串
    """
    if num_bytes >= 1024 * 1024:
        return f"{num_bytes / (1024 * 1024):.1f} MB"
    if num_bytes >= 1024:
        return f"{num_bytes / 1024:.1f} KB"
    return f"{num_bytes} B"


class NullProgress:
    """丢弃所有进度信息的实现。"""

    def status(self, message: str) -> None:
        pass

    def download(self, downloaded: int, total: Optional[int]) -> None:
        pass

    def download_complete(self) -> None:
        pass


class ConsoleProgress:
    """
    控制台进度显示类。

    终端模式下原地刷新进度条；非终端模式下按阈值节流输出，避免日志刷屏。
    """

    def __init__(
        self,
        stream: Optional[TextIO] = None,
        is_tty: Optional[bool] = None,
        threshold: int = NON_TTY_UPDATE_THRESHOLD,
    ):
        """
        初始化进度显示。

        参数:
            stream: 输出流，默认为 stderr
            is_tty: 是否为终端，None 时自动检测
            threshold: 非终端模式下的输出节流阈值（字节）
        """
        self.stream = stream or sys.stderr
        if is_tty is None:
            isatty = getattr(self.stream, "isatty", None)
            is_tty = bool(isatty and isatty())
        self.is_tty = is_tty
        self.threshold = threshold
        self.last_reported = 0

    def status(self, message: str) -> None:
        self.stream.write(f"{message}\n")
        self.stream.flush()

    def download(self, downloaded: int, total: Optional[int]) -> None:
        if self.is_tty:
            self._render_tty(downloaded, total)
            return

        finished = total is not None and downloaded >= total
        if downloaded - self.last_reported >= self.threshold or finished:
            self._render_line(downloaded, total)
            self.last_reported = downloaded

    def download_complete(self) -> None:
        if self.is_tty:
            self.stream.write("\r\x1b[K")
            self.stream.flush()
        self.last_reported = 0

    def _render_tty(self, downloaded: int, total: Optional[int]) -> None:
        if total:
            percent = min(downloaded * 100 // total, 100)
            filled = percent * BAR_WIDTH // 100
            bar = "#" * filled + "." * (BAR_WIDTH - filled)
            line = f"  [{bar}] {percent}%  {format_bytes(downloaded)}/{format_bytes(total)}"
        else:
            # 分块传输时总大小未知
            line = f"  {format_bytes(downloaded)} downloaded"
        self.stream.write(f"\r\x1b[K{line}")
        self.stream.flush()

    def _render_line(self, downloaded: int, total: Optional[int]) -> None:
        if total is not None:
            self.stream.write(f"  {format_bytes(downloaded)}/{format_bytes(total)}\n")
        else:
            self.stream.write(f"  {format_bytes(downloaded)} downloaded\n")
        self.stream.flush()
