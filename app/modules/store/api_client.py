"""
店面 HTTP 客户端基类

封装 httpx.AsyncClient，并把 ApiResponse 信封 ({code, message, data})
还原为 data 或对应的业务异常。
"""
import logging
from typing import Any, Optional

import httpx

from app.core.exceptions import (
    BusinessException, ForbiddenException, NotFoundException, UnauthorizedException, UpstreamException,
    ValidationException,
)

logger = logging.getLogger(__name__)


def exception_for(code: int, message: str) -> BusinessException:
    """根据 ApiResponse.code 构造对应的业务异常"""
    if code == 401:
        return UnauthorizedException(message)
    if code == 403:
        return ForbiddenException(message)
    if code == 404:
        exc = NotFoundException()
        exc.message = message
        exc.args = (message,)
        return exc
    if code in (400, 422):
        exc = ValidationException(message)
        exc.code = code
        return exc
    return BusinessException(message, code=code)


class StoreApiClient:
    """
    访问本服务 /api 路由的异步客户端。

    Args:
        base_url: 服务地址，例如 http://localhost:5740
        http_client: 可选的共享 httpx.AsyncClient；未提供时自行创建并负责关闭
    """

    def __init__(self, base_url: str = "", http_client: Optional[httpx.AsyncClient] = None, timeout: float = 30.0):
        self._owns_client = http_client is None
        self._http_client = http_client or httpx.AsyncClient(base_url=base_url, timeout=timeout, follow_redirects=True)
        self.base_url = base_url.rstrip("/")

    def _url(self, path: str) -> str:
        if self._owns_client or not self.base_url:
            return path
        return f"{self.base_url}{path}"

    def _headers(self) -> dict:
        return {}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        headers = {**self._headers(), **kwargs.pop("headers", {})}
        try:
            response = await self._http_client.request(method, self._url(path), headers=headers, **kwargs)
        except httpx.RequestError as e:
            logger.error(f"请求失败: {method} {path} - {e}")
            raise UpstreamException(f"无法连接服务: {path}", code=503) from e

        try:
            body = response.json()
        except ValueError:
            body = None

        if not isinstance(body, dict) or "code" not in body:
            if response.is_success:
                return body
            logger.warning(f"接口返回非标准响应: {method} {path} - Status {response.status_code}")
            raise exception_for(response.status_code, f"请求失败 (HTTP {response.status_code})")

        code = body.get("code", response.status_code)
        if not response.is_success or code >= 400:
            message = body.get("message") or f"请求失败 (HTTP {response.status_code})"
            raise exception_for(code if code >= 400 else response.status_code, message)
        return body.get("data")

    async def aclose(self) -> None:
        if self._owns_client:
            await self._http_client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc, tb):
        await self.aclose()
