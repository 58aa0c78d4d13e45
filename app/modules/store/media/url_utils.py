"""
图片 URL 工具

对象存储的公开域名可能不带 CORS 头，店面统一改为经由 /api/image-proxy 加载。
"""
from typing import Iterable, List, Optional
from urllib.parse import quote, urlsplit

from app.core.config.settings import settings

IMAGE_PROXY_PATH = "/api/image-proxy"


def object_store_hosts() -> List[str]:
    """允许代理的域名 (后缀)"""
    hosts = [suffix.strip().lower() for suffix in settings.IMAGE_PROXY_HOST_SUFFIXES if suffix.strip()]
    for url in (settings.S3_PUBLIC_BASE_URL, settings.S3_ENDPOINT_URL):
        host = urlsplit(url).hostname if url else None
        if host:
            hosts.append(host.lower())
    return hosts


def is_object_store_url(url: Optional[str], hosts: Optional[Iterable[str]] = None) -> bool:
    """http(s) 地址且域名等于或以某个允许的后缀结尾"""
    if not url:
        return False
    parts = urlsplit(url)
    if parts.scheme not in ("http", "https") or not parts.hostname:
        return False
    host = parts.hostname.lower()
    for allowed in (hosts if hosts is not None else object_store_hosts()):
        if host == allowed or host.endswith(f".{allowed}"):
            return True
    return False


def proxied_image_url(url: Optional[str]) -> Optional[str]:
    """
    将对象存储图片地址改写为代理地址。

    空值、站内相对路径 ("/" 开头) 和 data: URL 原样返回；其他域名的地址也原样返回。
    """
    if not url or url.startswith("/") or url.startswith("data:"):
        return url
    if is_object_store_url(url):
        return f"{IMAGE_PROXY_PATH}?url={quote(url, safe='')}"
    return url
