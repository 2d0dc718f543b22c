"""
fzm 核心模块。

提供目录解析、配置管理、版本索引获取、下载解压和版本管理功能。
"""

from .interfaces import (
    IProgressSink, IConfigManager, IRemoteFetcher, IDownloadManager,
    ILocalManager, IStateManager, ILinkManager, IVersionManager,
)
from .models import Artifact, VersionInfo, State, LinkResult, InstallResult, UseResult, UninstallResult, InstalledEntry
from .dirs import AppDirs, NoHomeDirectoryError, get_data_dir, get_cache_dir, get_config_dir, get_versions_dir
from .config_manager import ConfigManager, ConfigManagerError, ConfigValidationError, ConfigSaveError
from .remote_fetcher import RemoteFetcher, RemoteFetcherError, HttpRequestError, JsonParseError, VersionNotFoundError
from .download_manager import (
    DownloadManager, DownloadManagerError, ArtifactNotFoundError, DownloadError,
    ChecksumMismatchError, TarballWriteError, ExtractionError,
)
from .local_manager import LocalManager, LocalManagerError, VersionNotInstalledError, VersionStoreError
from .state_manager import StateManager, StateManagerError, StateSaveError
from .link_manager import LinkManager
from .manifest import ManifestError, read_minimum_version
from .env_manager import EnvManager, EnvManagerError, ShellNotSetError, UnsupportedShellError, SessionDirError
from .version_manager import VersionManager, VersionManagerError, InstallDirError
from . import version_utils

__all__ = [
    "IProgressSink", "IConfigManager", "IRemoteFetcher", "IDownloadManager",
    "ILocalManager", "IStateManager", "ILinkManager", "IVersionManager",
    "Artifact", "VersionInfo", "State", "LinkResult", "InstallResult", "UseResult", "UninstallResult", "InstalledEntry",
    "AppDirs", "NoHomeDirectoryError", "get_data_dir", "get_cache_dir", "get_config_dir", "get_versions_dir",
    "ConfigManager", "ConfigManagerError", "ConfigValidationError", "ConfigSaveError",
    "RemoteFetcher", "RemoteFetcherError", "HttpRequestError", "JsonParseError", "VersionNotFoundError",
    "DownloadManager", "DownloadManagerError", "ArtifactNotFoundError", "DownloadError",
    "ChecksumMismatchError", "TarballWriteError", "ExtractionError",
    "LocalManager", "LocalManagerError", "VersionNotInstalledError", "VersionStoreError",
    "StateManager", "StateManagerError", "StateSaveError",
    "LinkManager",
    "ManifestError", "read_minimum_version",
    "EnvManager", "EnvManagerError", "ShellNotSetError", "UnsupportedShellError", "SessionDirError",
    "VersionManager", "VersionManagerError", "InstallDirError",
    "version_utils",
]
