"""
日志模块。

提供应用程序日志的配置和管理功能。
"""

import logging
import os
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

_logger: Optional[logging.Logger] = None

LOGGER_NAME = "fzm"
LOG_FILE_NAME = "fzm.log"
LOG_FORMAT = "%(asctime)s - %(levelname)s - %(module)s - %(message)s"
LOG_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
MAX_BYTES = 5 * 1024 * 1024
BACKUP_COUNT = 5
DEFAULT_LEVEL = logging.WARNING

LEVEL_NAMES = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


def parse_level(name: Optional[str]) -> Optional[int]:
    """
    将日志级别名称转换为 logging 常量。

    参数:
        name: 级别名称（debug、info、warning、error），大小写不敏感

    返回:
        logging 级别常量，名称无效返回 None
    """
    if not name:
        return None
    return LEVEL_NAMES.get(name.strip().lower())


def level_from_env() -> Optional[int]:
    """
    从 FZM_LOG_LEVEL 环境变量读取日志级别。

    返回:
        日志级别，未设置或无效返回 None
    """
    raw = os.environ.get("FZM_LOG_LEVEL")
    level = parse_level(raw)
    if raw and level is None:
        get_logger().warning(f"忽略无效的 FZM_LOG_LEVEL: {raw}")
    return level


def setup_logger(
    level: int = DEFAULT_LEVEL,
    log_to_file: bool = False,
    log_to_console: bool = True,
    log_dir: Optional[Path] = None,
    max_bytes: int = MAX_BYTES,
    backup_count: int = BACKUP_COUNT,
) -> logging.Logger:
    """
    配置并初始化日志记录器。

    重复调用会替换已有的处理器，以便命令行参数解析后重新配置。

    参数:
        level: 日志级别，默认为 WARNING
        log_to_file: 是否输出到文件，默认为 False
        log_to_console: 是否输出到控制台（stderr），默认为 True
        log_dir: 日志文件目录，log_to_file 为 True 时必须提供
        max_bytes: 单个日志文件最大字节数，默认为 5MB
        backup_count: 保留的备份文件数量，默认为 5

    返回:
        配置好的 Logger 实例
    """
    global _logger

    logger = logging.getLogger(LOGGER_NAME)
    logger.setLevel(level)
    logger.propagate = False
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=LOG_DATE_FORMAT)

    if log_to_file and log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            file_handler = RotatingFileHandler(
                log_dir / LOG_FILE_NAME,
                maxBytes=max_bytes,
                backupCount=backup_count,
                encoding="utf-8",
            )
        except OSError as e:
            file_handler = None
            logger.warning(f"无法创建日志文件 {log_dir / LOG_FILE_NAME}: {e}")
        if file_handler is not None:
            # 文件中保留完整的调试信息
            file_handler.setLevel(logging.DEBUG)
            file_handler.setFormatter(formatter)
            logger.addHandler(file_handler)
            logger.setLevel(min(level, logging.DEBUG))

    if log_to_console:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(level)
        console_handler.setFormatter(formatter)
        logger.addHandler(console_handler)

    _logger = logger
    return logger


def get_logger() -> logging.Logger:
    """
    获取日志记录器实例。

    如果尚未初始化，则使用默认配置初始化（仅控制台输出）。

    返回:
        Logger 实例
    """
    if _logger is None:
        return setup_logger()
    return _logger
