"""
错误分类模块。

定义所有核心模块异常共享的基类。各模块在自己的文件中声明具体异常，
并混入以下分类之一，以便调用方区分"未找到"与"传输失败"等情况。
"""


class FzmError(Exception):
    """所有 fzm 异常的基类，消息为面向用户的单行文本。"""

    hint: str = ""

    @property
    def message(self) -> str:
        return str(self)


class InputError(FzmError):
    """用户输入错误，总是在任何 I/O 之前抛出。"""
    pass


class NotFoundError(FzmError):
    """未找到：远程索引中没有版本、本地未安装、无当前平台构建等。"""
    pass


class TransportError(FzmError):
    """网络传输或响应解析错误。"""

    hint = "please check your network connection and try again"


class FilesystemError(FzmError):
    """文件系统错误：权限、空间不足、压缩包损坏等。"""
    pass
