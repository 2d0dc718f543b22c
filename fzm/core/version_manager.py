"""
版本管理器模块。

提供 install、use、uninstall、list 命令的编排逻辑。
"""

from pathlib import Path
from typing import List, Mapping, Optional

from fzm.errors import FilesystemError
from fzm.utils.logger import get_logger
from fzm.utils.progress import NullProgress
from fzm.utils.input_validator import InputValidator, MASTER
from fzm.core.dirs import AppDirs
from fzm.core.config_manager import ConfigManager
from fzm.core.remote_fetcher import RemoteFetcher
from fzm.core.download_manager import DownloadManager
from fzm.core.local_manager import LocalManager, VersionNotInstalledError
from fzm.core.state_manager import StateManager
from fzm.core.link_manager import LinkManager
from fzm.core.manifest import ManifestError, read_minimum_version
from fzm.core.interfaces import IProgressSink, IVersionManager
from fzm.core.models import InstallResult, InstalledEntry, UninstallResult, UseResult

logger = get_logger()


class VersionManagerError(Exception):
    """版本管理错误异常。"""
    pass


class InstallDirError(VersionManagerError, FilesystemError):
    """版本目录创建失败。"""
    pass


class VersionManager(IVersionManager):
    """
    版本管理器类。

    本类作为协调者，将具体工作委托给各个专用模块。
    每次命令调用都构建自己的实例，不使用全局单例。
    """

    def __init__(
        self,
        dirs: AppDirs,
        config_manager: ConfigManager,
        remote_fetcher: RemoteFetcher,
        download_manager: DownloadManager,
        local_manager: LocalManager,
        state_manager: StateManager,
        link_manager: LinkManager,
    ):
        self.dirs = dirs
        self.config_manager = config_manager
        self.remote_fetcher = remote_fetcher
        self.download_manager = download_manager
        self.local_manager = local_manager
        self.state_manager = state_manager
        self.link_manager = link_manager

    @classmethod
    def create(
        cls,
        dirs: AppDirs,
        config_manager: Optional[ConfigManager] = None,
        env: Optional[Mapping[str, str]] = None,
    ) -> "VersionManager":
        """
        使用默认协作者构建版本管理器。

        参数:
            dirs: 本次调用使用的目录
            config_manager: 配置管理器，None 时按 dirs.config_dir 创建
            env: 环境变量映射，默认为 os.environ

        返回:
            VersionManager 实例
        """
        config_manager = config_manager or ConfigManager(dirs.config_dir, env=env)
        local_manager = LocalManager(dirs.versions_dir)
        return cls(
            dirs=dirs,
            config_manager=config_manager,
            remote_fetcher=RemoteFetcher(config_manager.get_index_url()),
            download_manager=DownloadManager(
                verify_checksum=bool(config_manager.get_setting("verify_checksum")),
            ),
            local_manager=local_manager,
            state_manager=StateManager(dirs.data_dir),
            link_manager=LinkManager(local_manager),
        )

    def install(self, specifier: str, progress: Optional[IProgressSink] = None) -> InstallResult:
        """
        安装指定版本。

        已安装且完整版本号相同时直接返回；master 的完整版本号变化时更新。
        首次安装（当前没有使用中的版本）时自动设为当前版本。

        参数:
            specifier: "master" 或 x.y.z
            progress: 进度回调对象

        返回:
            InstallResult

        抛出:
            FzmError 的各个子类，失败时不会写入版本标记
        """
        progress = progress or NullProgress()
        InputValidator.validate_specifier(specifier)

        progress.status("Fetching version info...")
        info = self.remote_fetcher.fetch_version_info(specifier)
        full_version = info.version or specifier

        previous = self.local_manager.get_installed(specifier)
        if previous == full_version:
            logger.info(f"zig {specifier} ({full_version}) 已安装")
            return InstallResult(specifier, full_version, already_installed=True, previous_version=previous)
        if previous is not None:
            if specifier == MASTER:
                logger.info(f"updating master from {previous} to {full_version}")
            else:
                logger.info(f"重新安装 {specifier}: 标记版本 {previous}，索引版本 {full_version}")

        artifact = self.download_manager.select_artifact(info)

        progress.status(f"Downloading zig {full_version}...")
        archive = self.download_manager.download(artifact, self.dirs.cache_dir, progress)

        version_dir = self.local_manager.version_path(specifier)
        try:
            version_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise InstallDirError(f"could not create {version_dir}: {e}") from e
        self.local_manager.clear_marker(specifier)

        progress.status("Extracting...")
        self.download_manager.extract(archive, version_dir)
        self.local_manager.write_marker(specifier, full_version)

        activated = False
        state = self.state_manager.load()
        if state.in_use is None:
            state.set_in_use(specifier)
            self.state_manager.save(state)
            activated = True
            logger.info(f"首次安装，已将 {specifier} 设为当前版本")

        progress.status(f"Installed zig {full_version}")
        return InstallResult(specifier, full_version, previous_version=previous, activated=activated)

    def use(
        self,
        specifier: Optional[str],
        session_dir: Optional[Path] = None,
        cwd: Optional[Path] = None,
    ) -> UseResult:
        """
        切换当前版本。

        显式指定版本时更新状态文件并刷新符号链接；未指定时读取 cwd 中的
        build.zig.zon，按 minimum_zig_version 选择已安装版本并只刷新符号链接。

        参数:
            specifier: 版本说明符，None 表示自动切换
            session_dir: shell 会话目录，None 时不更新符号链接
            cwd: 自动切换时查找清单的目录，默认为当前目录

        返回:
            UseResult，符号链接失败作为 warnings 返回

        抛出:
            InvalidVersionError: 说明符无效
            VersionNotInstalledError: 指定版本未安装
            StateSaveError: 状态保存失败
        """
        if specifier is None:
            return self._autoswitch(session_dir, cwd or Path.cwd())

        InputValidator.validate_specifier(specifier)
        full_version = self.local_manager.get_installed(specifier)
        if full_version is None:
            raise VersionNotInstalledError(specifier)

        state = self.state_manager.load()
        state.set_in_use(specifier)
        self.state_manager.save(state)

        warnings: List[str] = []
        if session_dir is not None:
            result = self.link_manager.update(session_dir, specifier)
            if not result.ok:
                warnings.append(result.warning)

        logger.info(f"using zig {specifier} ({full_version})")
        return UseResult(specifier=specifier, switched=True, persisted=True, warnings=warnings)

    def _autoswitch(self, session_dir: Optional[Path], cwd: Path) -> UseResult:
        try:
            min_version = read_minimum_version(cwd)
        except ManifestError as e:
            logger.debug(f"读取清单失败，跳过自动切换: {e}")
            return UseResult()
        if min_version is None:
            logger.debug(f"{cwd} 中没有可用的 minimum_zig_version，跳过自动切换")
            return UseResult()

        best = self.local_manager.find_best_match(min_version)
        if best is None:
            logger.debug(f"没有满足 {min_version} 的已安装版本")
            return UseResult()

        warnings: List[str] = []
        if session_dir is not None:
            result = self.link_manager.update(session_dir, best)
            if not result.ok:
                warnings.append(result.warning)
        logger.debug(f"minimum_zig_version: {min_version}, best match: {best}")
        return UseResult(specifier=best, switched=True, persisted=False, warnings=warnings)

    def uninstall(self, specifier: str, session_dir: Optional[Path] = None) -> UninstallResult:
        """
        卸载指定版本。

        参数:
            specifier: 版本说明符
            session_dir: shell 会话目录，卸载当前版本时移除其中的符号链接

        返回:
            UninstallResult

        抛出:
            InvalidVersionError: 说明符无效
            VersionNotInstalledError: 版本未安装（不做任何修改）
            StateSaveError: 状态保存失败
            VersionStoreError: 目录删除失败
        """
        InputValidator.validate_specifier(specifier)
        if self.local_manager.get_installed(specifier) is None:
            raise VersionNotInstalledError(specifier)

        warnings: List[str] = []
        state = self.state_manager.load()
        was_in_use = state.in_use == specifier
        if was_in_use:
            state.set_in_use(None)
            self.state_manager.save(state)
            if session_dir is not None:
                result = self.link_manager.update(session_dir, None)
                if not result.ok:
                    warnings.append(result.warning)

        self.local_manager.remove(specifier)
        logger.info(f"已卸载 zig {specifier}")
        return UninstallResult(specifier=specifier, was_in_use=was_in_use, warnings=warnings)

    def list_versions(self) -> List[InstalledEntry]:
        """
        列出已安装版本。

        返回:
            InstalledEntry 列表，按目录名排序
        """
        in_use = self.state_manager.load().in_use
        return [
            InstalledEntry(
                specifier=name,
                full_version=self.local_manager.get_installed(name),
                in_use=name == in_use,
            )
            for name in self.local_manager.list_installed()
        ]
