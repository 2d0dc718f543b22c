"""
fzm 命令行接口模块。
"""

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Optional

from fzm import __version__
from fzm.errors import FzmError
from fzm.core.dirs import AppDirs
from fzm.core.config_manager import ConfigManager, ConfigValidationError
from fzm.core.env_manager import EnvManager
from fzm.core.version_manager import VersionManager
from fzm.core.version_utils import sort_specifiers
from fzm.utils.logger import DEFAULT_LEVEL, get_logger, level_from_env, parse_level, setup_logger
from fzm.utils.progress import ConsoleProgress
from fzm.utils.console import print_error, print_hint, print_warning

logger = get_logger()


def create_parser() -> argparse.ArgumentParser:
    """
    创建并配置命令行参数解析器。

    返回:
        配置好的 ArgumentParser 实例
    """
    parser = argparse.ArgumentParser(
        prog="fzm",
        description="fzm - Zig version manager",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
examples:
  fzm install 0.15.2      install zig 0.15.2
  fzm install master      install or update the latest master build
  fzm use 0.15.2          switch to zig 0.15.2
  fzm list                list installed versions
  eval "$(fzm env)"       set up the current shell
        """,
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="enable debug output",
    )

    subparsers = parser.add_subparsers(
        dest="command",
        title="commands",
    )

    install_parser = subparsers.add_parser(
        "install",
        aliases=["i"],
        help="download and install a zig version",
    )
    install_parser.add_argument(
        "version",
        help='version to install ("master" or x.y.z)',
    )

    use_parser = subparsers.add_parser(
        "use",
        help="switch to a version (reads build.zig.zon when omitted)",
    )
    use_parser.add_argument(
        "version",
        nargs="?",
        default=None,
        help="installed version to use",
    )

    uninstall_parser = subparsers.add_parser(
        "uninstall",
        aliases=["rm"],
        help="remove an installed version",
    )
    uninstall_parser.add_argument(
        "version",
        help="version to remove",
    )

    subparsers.add_parser(
        "list",
        aliases=["ls"],
        help="list installed versions",
    )

    subparsers.add_parser(
        "env",
        help="print shell setup script (use with eval)",
    )

    config_parser = subparsers.add_parser(
        "config",
        help="show or edit configuration",
    )
    config_parser.add_argument(
        "--set",
        "-s",
        type=str,
        help="set a value (format: settings.key=value)",
    )

    return parser


COMMAND_ALIASES = {
    "i": "install",
    "rm": "uninstall",
    "ls": "list",
}


def configure_logging(args: argparse.Namespace, dirs: AppDirs, config_manager: ConfigManager) -> None:
    """
    按 FZM_LOG_LEVEL、--verbose、配置文件的优先级设置日志级别。

    参数:
        args: 解析后的命令行参数
        dirs: 本次调用使用的目录
        config_manager: 配置管理器
    """
    level = level_from_env()
    if level is None and args.verbose:
        level = logging.DEBUG
    if level is None:
        level = parse_level(config_manager.get_setting("log_level")) or DEFAULT_LEVEL
    setup_logger(
        level=level,
        log_to_file=bool(config_manager.get_setting("log_to_file")),
        log_dir=dirs.log_dir,
    )


def run_cli(args: argparse.Namespace) -> int:
    """
    运行命令行接口。

    参数:
        args: 解析后的命令行参数

    返回:
        退出码（0 表示成功）
    """
    if args.command is None:
        print_error("no command given, see 'fzm --help'")
        return 1

    command = COMMAND_ALIASES.get(args.command, args.command)
    command_handlers = {
        "install": handle_install,
        "use": handle_use,
        "uninstall": handle_uninstall,
        "list": handle_list,
        "env": handle_env,
        "config": handle_config,
    }

    handler = command_handlers.get(command)
    if handler is None:
        print_error(f"unknown command: {args.command}")
        return 1

    try:
        dirs = AppDirs.from_env()
        config_manager = ConfigManager(dirs.config_dir)
        configure_logging(args, dirs, config_manager)
        logger.debug(f"执行命令 {command}，数据目录 {dirs.data_dir}")
        return handler(args, dirs, config_manager)
    except FzmError as e:
        logger.debug(f"命令 {command} 失败: {e!r}")
        print_error(e.message)
        if e.hint:
            print_hint(e.hint)
        return 1


def _get_version_manager(dirs: AppDirs, config_manager: ConfigManager) -> VersionManager:
    return VersionManager.create(dirs, config_manager)


def _print_warnings(warnings) -> None:
    for warning in warnings:
        print_warning(warning)


def handle_install(args: argparse.Namespace, dirs: AppDirs, config_manager: ConfigManager) -> int:
    """
    处理 install 命令：下载并安装指定版本。

    参数:
        args: 解析后的命令行参数
        dirs: 本次调用使用的目录
        config_manager: 配置管理器

    返回:
        退出码
    """
    version_manager = _get_version_manager(dirs, config_manager)
    progress = ConsoleProgress(threshold=config_manager.get_setting("progress_threshold_bytes"))

    result = version_manager.install(args.version, progress)
    if result.already_installed:
        print(f"zig {result.specifier} ({result.full_version}) is already installed")
    elif result.activated:
        print(f"zig {result.specifier} is now in use")
    return 0


def handle_use(args: argparse.Namespace, dirs: AppDirs, config_manager: ConfigManager) -> int:
    """
    处理 use 命令：切换到指定版本，省略版本时根据 build.zig.zon 自动切换。
    """
    version_manager = _get_version_manager(dirs, config_manager)
    session_dir = EnvManager().get_session_dir()

    result = version_manager.use(args.version, session_dir=session_dir, cwd=Path.cwd())
    _print_warnings(result.warnings)
    if args.version is not None:
        print(f"now using zig {result.specifier}")
    return 0


def handle_uninstall(args: argparse.Namespace, dirs: AppDirs, config_manager: ConfigManager) -> int:
    version_manager = _get_version_manager(dirs, config_manager)
    session_dir = EnvManager().get_session_dir()

    result = version_manager.uninstall(args.version, session_dir=session_dir)
    _print_warnings(result.warnings)
    print(f"uninstalled zig {result.specifier}")
    if result.was_in_use:
        print("no version is in use now, run 'fzm use <version>' to pick one")
    return 0


def handle_list(args: argparse.Namespace, dirs: AppDirs, config_manager: ConfigManager) -> int:
    """
    处理 list 命令：列出已安装版本，当前版本以 * 标记。
    """
    version_manager = _get_version_manager(dirs, config_manager)
    entries = {entry.specifier: entry for entry in version_manager.list_versions()}

    if not entries:
        print("No versions installed.")
        return 0

    for name in sort_specifiers(list(entries)):
        entry = entries[name]
        marker = "*" if entry.in_use else " "
        line = f"{marker} {name}"
        if entry.full_version and entry.full_version != name:
            line += f" ({entry.full_version})"
        print(line)
    return 0


def handle_env(args: argparse.Namespace, dirs: AppDirs, config_manager: ConfigManager) -> int:
    """
    处理 env 命令：创建会话目录并输出 shell 设置脚本。

    标准输出会被 shell eval，因此提示信息只写到标准错误。
    """
    env_manager = EnvManager()
    shell = env_manager.detect_shell()
    session_dir = env_manager.create_session_dir()

    version_manager = _get_version_manager(dirs, config_manager)
    in_use = version_manager.state_manager.load().in_use
    if in_use is not None and version_manager.local_manager.get_installed(in_use) is not None:
        result = version_manager.link_manager.update(session_dir, in_use)
        if not result.ok:
            print_warning(result.warning)

    sys.stdout.write(env_manager.render_env(shell, session_dir))
    sys.stdout.flush()
    return 0


def handle_config(args: argparse.Namespace, dirs: AppDirs, config_manager: ConfigManager) -> int:
    """
    处理 config 命令：显示或编辑配置。
    """
    if args.set:
        key, sep, value = args.set.partition("=")
        if not key or not sep:
            raise ConfigValidationError("invalid format, use: settings.key=value")
        stored = config_manager.set_value(key, value)
        print(f"set {key} = {json.dumps(stored)}")
        return 0

    print(json.dumps(config_manager.get_config(), indent=2, ensure_ascii=False))
    print(f"# config file: {config_manager.config_file}")
    print(f"# index url: {config_manager.get_index_url()}")
    return 0
