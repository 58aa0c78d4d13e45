import logging
from typing import Optional
import httpx
from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response

from app.core.config.settings import settings
from app.core.exceptions import UpstreamException, ValidationException
from app.api.dependencies import get_http_client_from_state
from app.modules.store.media.url_utils import is_object_store_url

# 获取 Logger
logger = logging.getLogger(__name__)

# 图片代理 Router (公开)
router = APIRouter(
    prefix="",
    tags=["Media"]
)


async def _fetch(http_client: httpx.AsyncClient, url: str) -> httpx.Response:
    try:
        # 不跟随重定向，跳转目标不在对象存储白名单的校验范围内
        response = await http_client.get(url, follow_redirects=False)
        if response.is_redirect:
            logger.warning(f"拒绝跟随图片源站重定向: {url!r} -> {response.headers.get('location')!r}")
            raise UpstreamException("获取图片失败")
        response.raise_for_status()
        return response
    except httpx.RequestError as e:
        logger.error(f"代理图片时请求错误: {url!r} - {e}")
        raise UpstreamException("获取图片失败") from e
    except httpx.HTTPStatusError as e:
        logger.error(f"代理图片时 HTTP 状态错误: {url!r} - Status {e.response.status_code}")
        raise UpstreamException("获取图片失败", code=e.response.status_code) from e


@router.get("/image-proxy", summary="代理对象存储中的图片", response_class=Response)
async def image_proxy(
    url: Optional[str] = Query(None, description="对象存储中的图片地址"),
    http_client: Optional[httpx.AsyncClient] = Depends(get_http_client_from_state),
):
    if not url:
        raise ValidationException("需要提供图片 URL")
    if not is_object_store_url(url):
        logger.warning(f"拒绝代理非对象存储地址: {url!r}")
        raise ValidationException("只允许代理对象存储中的图片")

    logger.debug(f"代理图片: {url}")
    if http_client is not None:
        response = await _fetch(http_client, url)
    else:
        async with httpx.AsyncClient(timeout=settings.HTTP_CLIENT_TIMEOUT) as client:
            response = await _fetch(client, url)

    return Response(
        content=response.content,
        media_type=response.headers.get("content-type", "image/jpeg"),
        headers={"Cache-Control": f"public, max-age={settings.IMAGE_PROXY_CACHE_SECONDS}"},
    )
