"""
药智数据 API 客户端
用于调用第三方药品信息接口（条形码查询、药品搜索、药品详情）
"""
import json
import logging
from decimal import Decimal
from typing import Any, Dict, Optional

import httpx

from domain.errors import RemoteUnavailableError

logger = logging.getLogger(__name__)


class DrugApiClient:
    """药智数据 API 客户端"""

    def __init__(
        self,
        http_client: httpx.AsyncClient,
        host: str,
        app_code: Optional[str] = None,
        barcode_path: str = "/barcode/query",
        search_path: str = "/drug/search",
        detail_path: str = "/drug/detail",
        timeout: float = 5.0
    ):
        """
        初始化药品接口客户端

        Args:
            http_client: 共享的 httpx 异步客户端
            host: 接口主机地址
            app_code: 接口 AppCode，用于 Authorization 请求头
            barcode_path: 条形码查询接口路径
            search_path: 药品搜索接口路径
            detail_path: 药品详情接口路径
            timeout: 单次请求超时（秒），超时按远程不可用处理
        """
        self.http_client = http_client
        self.host = host.rstrip("/")
        self.app_code = app_code
        self.barcode_path = barcode_path
        self.search_path = search_path
        self.detail_path = detail_path
        self.timeout = timeout

    @classmethod
    def from_settings(cls, http_client: httpx.AsyncClient, settings) -> "DrugApiClient":
        """
        根据应用配置创建客户端

        Args:
            http_client: 共享的 httpx 异步客户端
            settings: 应用配置

        Returns:
            DrugApiClient 实例
        """
        return cls(
            http_client=http_client,
            host=settings.DRUG_API_HOST,
            app_code=settings.DRUG_API_APP_CODE,
            barcode_path=settings.DRUG_API_BARCODE_PATH,
            search_path=settings.DRUG_API_SEARCH_PATH,
            detail_path=settings.DRUG_API_DETAIL_PATH,
            timeout=settings.DRUG_API_TIMEOUT,
        )

    def _headers(self) -> Dict[str, str]:
        headers = {"Content-Type": "application/json; charset=utf-8"}
        if self.app_code:
            headers["Authorization"] = f"APPCODE {self.app_code}"
        return headers

    async def _get(self, path: str, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        发送 GET 请求并解析 JSON 响应

        Args:
            path: 接口路径
            params: 查询参数

        Returns:
            响应 JSON 对象（价格等小数解析为 Decimal）

        Raises:
            RemoteUnavailableError: 网络错误、超时、HTTP 错误状态或响应不是 JSON 对象
        """
        url = f"{self.host}{path}"
        try:
            response = await self.http_client.get(
                url, params=params, headers=self._headers(), timeout=self.timeout
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"药品接口请求失败: url={url}, params={params}, error={e}")
            raise RemoteUnavailableError(f"药品接口请求失败: {e}") from e

        try:
            payload = response.json(parse_float=Decimal)
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            logger.error(f"药品接口响应不是合法JSON: url={url}, body={response.text[:500]}")
            raise RemoteUnavailableError("药品接口响应不是合法JSON") from e

        if not isinstance(payload, dict):
            logger.error(f"药品接口响应不是JSON对象: url={url}, body={response.text[:500]}")
            raise RemoteUnavailableError("药品接口响应格式错误")

        logger.debug(f"药品接口响应: url={url}, payload={payload}")
        return payload

    async def query_by_barcode(self, code: str) -> Dict[str, Any]:
        """
        根据条形码查询药品

        Args:
            code: 条形码

        Returns:
            原始响应
        """
        return await self._get(self.barcode_path, {"barcode": code})

    async def search(self, keyword: str, page: int = 1, size: int = 10) -> Dict[str, Any]:
        """
        按关键词搜索药品

        Args:
            keyword: 关键词
            page: 页码（从1开始）
            size: 每页数量

        Returns:
            原始响应
        """
        return await self._get(
            self.search_path,
            {"keyword": keyword, "page": page, "size": size}
        )

    async def detail(self, remote_id: str) -> Dict[str, Any]:
        """
        获取药品详情

        Args:
            remote_id: 第三方药品ID

        Returns:
            原始响应
        """
        return await self._get(self.detail_path, {"id": remote_id})
