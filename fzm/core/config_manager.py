"""
配置管理器模块。

提供应用程序配置的加载、保存和验证功能。
"""

import json
import os
from pathlib import Path
from typing import Any, Mapping, Optional

from fzm.errors import FilesystemError, InputError
from fzm.utils.logger import get_logger, parse_level
from fzm.utils.file_utils import atomic_save_json
from fzm.core.interfaces import IConfigManager

logger = get_logger()

DEFAULT_INDEX_URL = "https://ziglang.org/download/index.json"
INDEX_PATH = "/download/index.json"
CONFIG_FILE_NAME = "config.json"


class ConfigManagerError(Exception):
    """配置管理器错误基类。"""
    pass


class ConfigValidationError(ConfigManagerError, InputError):
    """配置验证错误异常。"""
    pass


class ConfigSaveError(ConfigManagerError, FilesystemError):
    """配置保存错误异常。"""
    pass


def _parse_raw_value(raw: str) -> Any:
    """将命令行传入的值按 JSON 解析，失败时按原始字符串处理。"""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


class ConfigManager(IConfigManager):
    """
    配置管理器类。

    负责管理 <config_dir>/config.json 的加载、保存、验证和访问。
    配置文件不存在时使用内置默认配置，但不会自动写入磁盘。
    """

    REQUIRED_FIELDS = {
        "settings": dict,
    }

    SETTINGS_FIELDS = {
        "index_url": str,
        "log_level": str,
        "log_to_file": bool,
        "progress_threshold_bytes": int,
        "verify_checksum": bool,
    }

    def __init__(self, config_dir: Path, env: Optional[Mapping[str, str]] = None):
        """
        初始化配置管理器。

        参数:
            config_dir: 配置目录
            env: 环境变量映射，默认为 os.environ
        """
        self.config_dir = Path(config_dir)
        self.config_file = self.config_dir / CONFIG_FILE_NAME
        self._env = os.environ if env is None else env
        self._config: dict[str, Any] = {}

    @staticmethod
    def get_builtin_default_config() -> dict[str, Any]:
        """获取内置默认配置。"""
        return {
            "settings": {
                "index_url": DEFAULT_INDEX_URL,
                "log_level": "warning",
                "log_to_file": False,
                "progress_threshold_bytes": 5 * 1024 * 1024,
                "verify_checksum": True,
            },
        }

    def load_config(self) -> dict[str, Any]:
        """
        加载配置文件。

        文件不存在、损坏或验证失败时返回默认配置，不会抛出异常。

        返回:
            配置字典
        """
        if not self.config_file.exists():
            logger.debug(f"配置文件不存在，使用默认配置: {self.config_file}")
            self._config = self.get_builtin_default_config()
            return self._config

        try:
            logger.debug(f"从文件加载配置: {self.config_file}")
            with open(self.config_file, "r", encoding="utf-8") as f:
                self._config = json.load(f)
            if not isinstance(self._config, dict):
                raise ConfigValidationError("config root must be an object")

            self._ensure_backward_compatibility()
            self.validate_config(self._config)
            logger.debug("配置加载成功")
        except (OSError, ValueError) as e:
            logger.warning(f"加载配置文件失败，使用默认配置: {e}")
            self._config = self.get_builtin_default_config()
        except ConfigValidationError as e:
            logger.warning(f"配置验证失败，使用默认配置: {e}")
            self._config = self.get_builtin_default_config()
        return self._config

    def _ensure_backward_compatibility(self) -> None:
        """为缺少字段的旧配置补全默认值。"""
        default_settings = self.get_builtin_default_config()["settings"]

        if "settings" not in self._config:
            self._config["settings"] = {}

        settings = self._config["settings"]
        if not isinstance(settings, dict):
            return
        for field, value in default_settings.items():
            settings.setdefault(field, value)

    def validate_config(self, config: dict[str, Any]) -> bool:
        """
        验证配置的有效性。

        参数:
            config: 要验证的配置字典

        返回:
            验证通过返回 True

        抛出:
            ConfigValidationError: 配置验证失败时抛出
        """
        for field, expected_type in self.REQUIRED_FIELDS.items():
            if field not in config:
                raise ConfigValidationError(f"missing required field: {field}")
            if not isinstance(config[field], expected_type):
                raise ConfigValidationError(
                    f"field '{field}' must be of type {expected_type.__name__}, "
                    f"got {type(config[field]).__name__}"
                )

        settings = config["settings"]
        for field, expected_type in self.SETTINGS_FIELDS.items():
            if field not in settings:
                raise ConfigValidationError(f"missing required field: settings.{field}")
            value = settings[field]
            # bool 是 int 的子类
            if expected_type is int and isinstance(value, bool):
                value_ok = False
            else:
                value_ok = isinstance(value, expected_type)
            if not value_ok:
                raise ConfigValidationError(
                    f"field 'settings.{field}' must be of type {expected_type.__name__}, "
                    f"got {type(value).__name__}"
                )

        if parse_level(settings["log_level"]) is None:
            raise ConfigValidationError(
                "field 'settings.log_level' must be one of debug, info, warning, error"
            )
        if settings["progress_threshold_bytes"] < 0:
            raise ConfigValidationError("field 'settings.progress_threshold_bytes' must not be negative")
        if not settings["index_url"]:
            raise ConfigValidationError("field 'settings.index_url' must not be empty")

        logger.debug("配置验证通过")
        return True

    def save_config(self, config: dict[str, Any] | None = None) -> None:
        """
        保存配置到文件。

        参数:
            config: 要保存的配置字典，如果为 None 则保存当前配置

        抛出:
            ConfigValidationError: 配置无效
            ConfigSaveError: 写入失败
        """
        if config is None:
            config = self.config
        self.validate_config(config)
        self._config = config

        try:
            self.config_dir.mkdir(parents=True, exist_ok=True)
            logger.debug(f"保存配置到 {self.config_file}")
            atomic_save_json(self.config_file, self._config, indent=2)
            logger.debug("配置保存成功")
        except OSError as e:
            logger.error(f"保存配置失败: {e}")
            raise ConfigSaveError(f"could not save config to {self.config_file}: {e}") from e

    def set_value(self, key: str, raw: str) -> Any:
        """
        设置 settings 中的某个配置项并保存。

        参数:
            key: 形如 "settings.index_url" 的键，"settings." 前缀可省略
            raw: 原始值字符串，能按 JSON 解析时使用解析结果

        返回:
            实际写入的值

        抛出:
            ConfigValidationError: 键未知或值类型不符
            ConfigSaveError: 写入失败
        """
        field = key[len("settings."):] if key.startswith("settings.") else key
        if field not in self.SETTINGS_FIELDS:
            raise ConfigValidationError(f"unknown config key: {key}")

        value = _parse_raw_value(raw)
        if self.SETTINGS_FIELDS[field] is str and not isinstance(value, str):
            value = raw

        updated = json.loads(json.dumps(self.config))
        updated["settings"][field] = value
        self.save_config(updated)
        logger.info(f"配置项 settings.{field} 已更新")
        return value

    @property
    def config(self) -> dict[str, Any]:
        """获取配置字典（延迟加载）。"""
        if not self._config:
            self.load_config()
        return self._config

    def get_config(self) -> dict[str, Any]:
        return self.config

    def get_settings(self) -> dict[str, Any]:
        return self.config.get("settings", {})

    def get_setting(self, field: str) -> Any:
        default = self.get_builtin_default_config()["settings"].get(field)
        return self.get_settings().get(field, default)

    def get_index_url(self) -> str:
        """
        获取版本索引 URL。

        FZM_CDN_URL 设置时优先，结果为 <base>/download/index.json；
        否则使用配置文件中的 settings.index_url。
        """
        cdn = self._env.get("FZM_CDN_URL")
        if cdn:
            return cdn.rstrip("/") + INDEX_PATH
        return self.get_setting("index_url")
