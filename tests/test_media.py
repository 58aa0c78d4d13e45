from urllib.parse import quote

import pytest

from app.core.config.settings import settings
from app.modules.store.media.url_utils import is_object_store_url, proxied_image_url

R2_IMAGE = "https://pub-abc123.r2.dev/products/ring.png"


@pytest.mark.parametrize("url", [None, "", "/placeholder.png", "data:image/png;base64,AAAA"])
def test_local_and_inline_urls_pass_through(url):
    assert proxied_image_url(url) == url


def test_object_store_urls_are_rewritten():
    assert proxied_image_url(R2_IMAGE) == f"/api/image-proxy?url={quote(R2_IMAGE, safe='')}"
    private = "https://acct.r2.cloudflarestorage.com/jewelry/products/a.jpg"
    assert proxied_image_url(private).startswith("/api/image-proxy?url=https%3A%2F%2Facct.r2")


def test_other_hosts_are_left_alone():
    assert proxied_image_url("https://images.example.com/a.jpg") == "https://images.example.com/a.jpg"


def test_configured_public_base_url_host_is_allowed(monkeypatch):
    monkeypatch.setattr(settings, "S3_PUBLIC_BASE_URL", "https://media.myshop.in")
    assert is_object_store_url("https://media.myshop.in/products/a.jpg")
    assert not is_object_store_url("https://evil-media.myshop.in.attacker.com/a.jpg")
    assert not is_object_store_url("ftp://pub-abc.r2.dev/a.jpg")


async def test_image_proxy_streams_image_with_cache_header(client):
    response = await client.get("/api/image-proxy", params={"url": R2_IMAGE})
    assert response.status_code == 200
    assert response.content == b"\x89PNG-bytes"
    assert response.headers["content-type"] == "image/png"
    assert response.headers["cache-control"] == "public, max-age=86400"


async def test_image_proxy_requires_url(client):
    response = await client.get("/api/image-proxy")
    assert response.status_code == 400
    assert response.json()["code"] == 400


async def test_image_proxy_rejects_foreign_hosts(client):
    response = await client.get("/api/image-proxy", params={"url": "http://169.254.169.254/latest/meta-data"})
    assert response.status_code == 400


async def test_image_proxy_relays_upstream_status(client):
    response = await client.get("/api/image-proxy", params={"url": "https://pub-abc123.r2.dev/missing.jpg"})
    assert response.status_code == 404


async def test_image_proxy_does_not_follow_redirects(client):
    response = await client.get("/api/image-proxy", params={"url": "https://pub-abc123.r2.dev/redirect.jpg"})
    assert response.status_code == 502
    assert b"secret" not in response.content
