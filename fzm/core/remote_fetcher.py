"""
远程版本获取模块。

从版本索引（index.json）获取指定版本的元数据。
"""

from typing import Any, Dict

import requests

from fzm.errors import NotFoundError, TransportError
from fzm.utils.logger import get_logger
from fzm.utils.input_validator import InputValidator
from fzm.core.interfaces import IRemoteFetcher
from fzm.core.models import ModelParseError, VersionInfo

logger = get_logger()


class RemoteFetcherError(Exception):
    """远程获取错误异常。"""
    pass


class HttpRequestError(RemoteFetcherError, TransportError):
    """网络请求失败或响应状态码非 2xx。"""
    pass


class JsonParseError(RemoteFetcherError, TransportError):
    """索引内容不是合法的 JSON 对象。"""
    pass


class VersionNotFoundError(RemoteFetcherError, NotFoundError):
    """索引中不存在指定版本。"""

    def __init__(self, specifier: str):
        super().__init__(f"zig version '{specifier}' not found in the version index")
        self.specifier = specifier


class RemoteFetcher(IRemoteFetcher):
    """
    版本索引客户端。

    每次调用都会重新请求索引，不做跨调用缓存。
    """

    def __init__(self, index_url: str):
        """
        初始化远程获取器。

        参数:
            index_url: 版本索引的完整 URL
        """
        self.index_url = index_url

    def fetch_index(self) -> Dict[str, Any]:
        """
        下载并解析版本索引。

        返回:
            以版本说明符为键的索引字典

        抛出:
            HttpRequestError: 网络失败或状态码非 2xx
            JsonParseError: 响应体不是 JSON 对象
        """
        logger.debug(f"请求版本索引: {self.index_url}")
        try:
            response = requests.get(self.index_url)
        except requests.RequestException as e:
            logger.debug(f"请求版本索引失败: {e}")
            raise HttpRequestError(f"failed to fetch version index from {self.index_url}: {e}") from e

        if not 200 <= response.status_code < 300:
            raise HttpRequestError(
                f"failed to fetch version index from {self.index_url}: HTTP {response.status_code}"
            )

        try:
            index = response.json()
        except ValueError as e:
            raise JsonParseError(f"failed to parse version index: {e}") from e

        if not isinstance(index, dict):
            raise JsonParseError("failed to parse version index: top level is not an object")
        logger.debug(f"版本索引包含 {len(index)} 个条目")
        return index

    def fetch_version_info(self, specifier: str) -> VersionInfo:
        """
        获取指定版本说明符的版本信息。

        参数:
            specifier: "master" 或 x.y.z

        返回:
            VersionInfo 实例

        抛出:
            InvalidVersionError: 说明符无效（不发起网络请求）
            HttpRequestError: 网络失败或状态码非 2xx
            JsonParseError: 索引或条目结构无效
            VersionNotFoundError: 索引中没有该版本
        """
        InputValidator.validate_specifier(specifier)
        index = self.fetch_index()

        if specifier not in index:
            raise VersionNotFoundError(specifier)

        try:
            info = VersionInfo.from_dict(index[specifier])
        except ModelParseError as e:
            raise JsonParseError(f"failed to parse entry for '{specifier}': {e}") from e
        logger.info(f"获取到版本信息: {specifier} -> {info.version or specifier}")
        return info
