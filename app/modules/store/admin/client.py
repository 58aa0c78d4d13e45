"""
管理后台 HTTP 客户端

登录后会话保存在 SessionContext；任何请求返回 401 时清除会话，
调用方通过 SessionContext.subscribe 感知并跳转到登录入口。
"""
import logging
from typing import Any, List, Optional, Sequence, Tuple

import httpx

from app.core.exceptions import UnauthorizedException
from app.modules.store.admin.dtos import LoginResultDto, PresignResultDto, SessionInfoDto
from app.modules.store.admin.session import AdminSession, SessionContext
from app.modules.store.api_client import StoreApiClient
from app.modules.store.catalog.dtos import ProductCreateDto, ProductDto, ProductUpdateDto

logger = logging.getLogger(__name__)

# (文件名, 内容, MIME 类型)
UploadItem = Tuple[str, bytes, str]


class AdminApiClient(StoreApiClient):
    """管理后台客户端"""

    def __init__(
        self,
        base_url: str = "",
        http_client: Optional[httpx.AsyncClient] = None,
        session_context: Optional[SessionContext] = None,
        timeout: float = 30.0,
    ):
        super().__init__(base_url=base_url, http_client=http_client, timeout=timeout)
        self.session_context = session_context or SessionContext()

    def _headers(self) -> dict:
        session = self.session_context.session
        if session is None:
            return {}
        return {"Authorization": f"Bearer {session.token}"}

    async def _request(self, method: str, path: str, **kwargs) -> Any:
        try:
            return await super()._request(method, path, **kwargs)
        except UnauthorizedException:
            if self.session_context.session is not None:
                logger.info("会话已失效，清除本地登录状态。")
                self.session_context.clear()
            raise

    async def login(self, username: str, password: str) -> AdminSession:
        data = await self._request("POST", "/api/admin/login", json={"username": username, "password": password})
        result = LoginResultDto.model_validate(data)
        session = AdminSession(username=result.username, token=result.access_token, expires_at=result.expires_at)
        self.session_context.set_session(session)
        return session

    async def logout(self) -> None:
        try:
            await self._request("POST", "/api/admin/logout")
        finally:
            self.session_context.clear()

    async def get_session(self) -> SessionInfoDto:
        data = await self._request("GET", "/api/admin/session")
        return SessionInfoDto.model_validate(data)

    async def create_product(self, dto: ProductCreateDto) -> ProductDto:
        data = await self._request("POST", "/api/admin/products", json=dto.model_dump(by_alias=True, exclude_none=True))
        return ProductDto.model_validate(data)

    async def update_product(self, product_id: str, dto: ProductUpdateDto) -> ProductDto:
        data = await self._request(
            "PUT", f"/api/admin/products/{product_id}", json=dto.model_dump(by_alias=True, exclude_unset=True)
        )
        return ProductDto.model_validate(data)

    async def delete_product(self, product_id: str) -> None:
        await self._request("DELETE", f"/api/admin/products/{product_id}")

    async def upload_images(self, items: Sequence[UploadItem]) -> List[str]:
        files = [("files", (name, content, content_type)) for name, content, content_type in items]
        data = await self._request("POST", "/api/admin/upload", files=files)
        return list((data or {}).get("urls", []))

    async def create_upload_url(self, file_name: str, content_type: str) -> PresignResultDto:
        data = await self._request(
            "POST", "/api/admin/upload-url", json={"fileName": file_name, "contentType": content_type}
        )
        return PresignResultDto.model_validate(data)
