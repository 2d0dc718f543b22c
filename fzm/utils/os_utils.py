"""
操作系统工具模块。

提供平台键名与可执行文件名的计算。
"""

import platform
import sys
from typing import Optional

# platform.machine() 的返回值到索引中 CPU 架构名的映射
ARCH_ALIASES = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "aarch64": "aarch64",
    "arm64": "aarch64",
    "armv7l": "arm",
    "armv6l": "arm",
    "arm": "arm",
    "i386": "x86",
    "i686": "x86",
    "x86": "x86",
    "riscv64": "riscv64",
    "ppc64le": "powerpc64le",
    "ppc64": "powerpc64",
    "s390x": "s390x",
    "loongarch64": "loongarch64",
}


def get_os_name(sys_platform: Optional[str] = None) -> str:
    """
    返回下载索引中使用的操作系统名称。

    参数:
        sys_platform: 平台字符串，默认为 sys.platform

    返回:
        linux、macos、windows、freebsd、netbsd 之一，无法识别时返回原始值
    """
    name = (sys_platform or sys.platform).lower()
    if name.startswith("linux"):
        return "linux"
    if name == "darwin":
        return "macos"
    if name in ("win32", "cygwin"):
        return "windows"
    if name.startswith("freebsd"):
        return "freebsd"
    if name.startswith("netbsd"):
        return "netbsd"
    return name


def get_arch_name(machine: Optional[str] = None) -> str:
    raw = (machine if machine is not None else platform.machine()).lower()
    return ARCH_ALIASES.get(raw, raw)


def get_platform_key(machine: Optional[str] = None, sys_platform: Optional[str] = None) -> str:
    """
    获取当前平台在下载索引中的键名，例如 "x86_64-linux"。
    """
    return f"{get_arch_name(machine)}-{get_os_name(sys_platform)}"


def get_executable_name(sys_platform: Optional[str] = None) -> str:
    """获取已安装版本目录中可执行文件的名称。"""
    return "zig.exe" if get_os_name(sys_platform) == "windows" else "zig"


def is_macos(sys_platform: Optional[str] = None) -> bool:
    return get_os_name(sys_platform) == "macos"
