"""
核心模块抽象接口定义。

定义 RemoteFetcher、DownloadManager、LocalManager、StateManager、LinkManager
等核心模块以及进度回调对象的抽象接口。
"""

from abc import ABC, abstractmethod
from pathlib import Path
from typing import Optional, List, Any

from fzm.core.models import Artifact, VersionInfo, State, LinkResult


class IProgressSink(ABC):
    """进度回调对象抽象接口。"""

    @abstractmethod
    def status(self, message: str) -> None:
        """输出阶段状态消息。"""
        pass

    @abstractmethod
    def download(self, downloaded: int, total: Optional[int]) -> None:
        """更新下载进度，total 为 None 表示总大小未知。"""
        pass

    @abstractmethod
    def download_complete(self) -> None:
        """下载结束。"""
        pass


class IConfigManager(ABC):
    """配置管理器抽象接口。"""

    @abstractmethod
    def get_config(self) -> dict[str, Any]:
        """获取配置字典。"""
        pass

    @abstractmethod
    def save_config(self, config: dict[str, Any] | None = None) -> None:
        """保存配置到文件。"""
        pass

    @abstractmethod
    def get_settings(self) -> dict[str, Any]:
        """获取 settings 配置部分。"""
        pass

    @abstractmethod
    def get_index_url(self) -> str:
        """获取版本索引 URL。"""
        pass


class IRemoteFetcher(ABC):
    """版本索引客户端抽象接口。"""

    @abstractmethod
    def fetch_version_info(self, specifier: str) -> VersionInfo:
        """获取指定版本说明符的版本信息。"""
        pass


class IDownloadManager(ABC):
    """压缩包下载与解压抽象接口。"""

    @abstractmethod
    def select_artifact(self, version_info: VersionInfo, platform_key: Optional[str] = None) -> Artifact:
        """选择当前平台的下载产物。"""
        pass

    @abstractmethod
    def download(self, artifact: Artifact, cache_dir: Path, progress: Optional[IProgressSink] = None) -> Path:
        """下载产物到缓存目录，返回缓存文件路径。"""
        pass

    @abstractmethod
    def extract(self, archive_path: Path, dest_dir: Path) -> None:
        """解压缓存文件到目标目录，去掉顶层目录。"""
        pass


class ILocalManager(ABC):
    """本地版本存储抽象接口。"""

    @abstractmethod
    def get_installed(self, specifier: str) -> Optional[str]:
        """读取已安装版本的完整版本号。"""
        pass

    @abstractmethod
    def list_installed(self) -> List[str]:
        """列出已安装的版本说明符。"""
        pass

    @abstractmethod
    def find_best_match(self, min_version: str) -> Optional[str]:
        """查找满足最低版本要求的最佳已安装版本。"""
        pass


class IStateManager(ABC):
    """持久化状态抽象接口。"""

    @abstractmethod
    def load(self) -> State:
        """加载状态，永不失败。"""
        pass

    @abstractmethod
    def save(self, state: State) -> None:
        """保存状态。"""
        pass


class ILinkManager(ABC):
    """激活符号链接抽象接口。"""

    @abstractmethod
    def update(self, session_dir: Path, specifier: Optional[str]) -> LinkResult:
        """更新会话目录中的符号链接，失败只返回警告。"""
        pass


class IVersionManager(ABC):
    """版本管理器抽象接口。"""

    @abstractmethod
    def install(self, specifier: str, progress: Optional[IProgressSink] = None) -> Any:
        """安装指定版本。"""
        pass

    @abstractmethod
    def use(self, specifier: Optional[str], session_dir: Optional[Path] = None, cwd: Optional[Path] = None) -> Any:
        """切换当前版本，specifier 为 None 时按项目清单自动切换。"""
        pass

    @abstractmethod
    def uninstall(self, specifier: str, session_dir: Optional[Path] = None) -> Any:
        """卸载指定版本。"""
        pass

    @abstractmethod
    def list_versions(self) -> List[Any]:
        """列出已安装的版本。"""
        pass
