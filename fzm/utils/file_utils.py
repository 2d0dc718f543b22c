"""
文件工具模块。

提供配置与状态文件共用的原子写入功能。
"""

import json
import os
from pathlib import Path
from typing import Any

from .logger import get_logger

logger = get_logger()


def atomic_save_json(file_path: Path, data: Any, indent: int = 2) -> None:
    """
    原子保存 JSON 数据到文件，防止写入中断导致文件损坏。

    参数:
        file_path: 目标文件路径
        data: 要保存的数据
        indent: JSON 缩进

    抛出:
        OSError: 写入或重命名失败，临时文件会被删除
    """
    file_path = Path(file_path)
    temp_path = file_path.with_suffix(file_path.suffix + ".tmp")

    try:
        with open(temp_path, "w", encoding="utf-8") as f:
            json.dump(data, f, indent=indent, ensure_ascii=False)
            f.write("\n")
        os.replace(temp_path, file_path)
    except OSError:
        if temp_path.exists():
            try:
                temp_path.unlink()
            except OSError as cleanup_error:
                logger.debug(f"删除临时文件失败 {temp_path}: {cleanup_error}")
        raise
