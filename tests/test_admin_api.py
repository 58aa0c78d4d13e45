import pytest

from app.core.auth.jwt_service import token_redis_key
from tests.conftest import ADMIN_PASSWORD, png_file

PRODUCT = {"name": "Gold Ring", "price": 1500, "image": "https://cdn/ring.jpg", "category": "rings"}


async def test_login_issues_token_recorded_in_redis(client, fake_redis):
    response = await client.post("/api/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["tokenType"] == "bearer"
    assert data["username"] == "admin"
    assert fake_redis.data[token_redis_key("admin")] == data["accessToken"]


@pytest.mark.parametrize("username,password", [("admin", "wrong"), ("root", ADMIN_PASSWORD)])
async def test_login_rejects_bad_credentials(client, username, password):
    response = await client.post("/api/admin/login", json={"username": username, "password": password})
    assert response.status_code == 401
    assert response.json()["message"] == "用户名或密码错误"


async def test_login_is_rate_limited(client, fake_redis):
    fake_redis.allow = False
    response = await client.post("/api/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert response.status_code == 429


async def test_session_endpoint(client, admin_headers):
    response = await client.get("/api/admin/session", headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["authenticated"] is True
    assert data["username"] == "admin"
    assert data["expiresAt"]


@pytest.mark.parametrize("method,path", [
    ("GET", "/api/admin/session"),
    ("POST", "/api/admin/logout"),
    ("POST", "/api/admin/products"),
    ("PUT", "/api/admin/products/abc"),
    ("DELETE", "/api/admin/products/abc"),
    ("POST", "/api/admin/upload"),
    ("POST", "/api/admin/upload-url"),
])
async def test_admin_routes_require_session(client, method, path):
    response = await client.request(method, path)
    assert response.status_code == 401
    assert "/admin/login" in response.json()["message"]


async def test_invalid_token_is_rejected(client):
    response = await client.get("/api/admin/session", headers={"Authorization": "Bearer not-a-jwt"})
    assert response.status_code == 401


async def test_logout_revokes_token(client, admin_headers, fake_redis):
    response = await client.post("/api/admin/logout", headers=admin_headers)
    assert response.status_code == 200
    assert token_redis_key("admin") not in fake_redis.data

    again = await client.get("/api/admin/session", headers=admin_headers)
    assert again.status_code == 401
    assert "/admin/login" in again.json()["message"]


async def test_relogin_invalidates_previous_token(client, admin_headers):
    await client.post("/api/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    response = await client.get("/api/admin/session", headers=admin_headers)
    # 新令牌的 jti 不同，旧令牌在 Redis 中已被覆盖
    assert response.status_code == 401


async def test_create_update_delete_product(client, admin_headers):
    created = await client.post("/api/admin/products", json={
        **PRODUCT, "images": ["https://cdn/ring-side.jpg"], "description": "22k",
    }, headers=admin_headers)
    assert created.status_code == 201
    product = created.json()["data"]
    assert product["images"] == ["https://cdn/ring.jpg", "https://cdn/ring-side.jpg"]

    updated = await client.put(f"/api/admin/products/{product['id']}", json={"price": 1299.99, "name": "Rose Gold Ring"},
                               headers=admin_headers)
    assert updated.status_code == 200
    assert updated.json()["data"]["price"] == 1299.99
    assert updated.json()["data"]["category"] == "rings"

    deleted = await client.delete(f"/api/admin/products/{product['id']}", headers=admin_headers)
    assert deleted.status_code == 200
    assert deleted.json()["data"] == {"id": product["id"]}
    assert (await client.get(f"/api/products/{product['id']}")).status_code == 404


async def test_create_with_primary_past_gallery_cap(client, admin_headers):
    images = [f"https://cdn/{i}.jpg" for i in range(8)]
    response = await client.post("/api/admin/products", json={**PRODUCT, "image": images[7], "images": images},
                                 headers=admin_headers)
    assert response.status_code == 201
    product = response.json()["data"]
    assert product["image"] == images[7]
    assert product["images"] == [images[7]] + images[:5]


@pytest.mark.parametrize("field", ["name", "price", "image", "category"])
async def test_create_missing_required_field_is_400(client, admin_headers, field):
    body = {k: v for k, v in PRODUCT.items() if k != field}
    response = await client.post("/api/admin/products", json=body, headers=admin_headers)
    assert response.status_code == 400
    assert field in response.json()["message"]


async def test_create_with_unknown_category_is_400(client, admin_headers):
    response = await client.post("/api/admin/products", json={**PRODUCT, "category": "watches"}, headers=admin_headers)
    assert response.status_code == 400


async def test_update_and_delete_missing_product_is_404(client, admin_headers):
    assert (await client.put("/api/admin/products/nope", json={"price": 1}, headers=admin_headers)).status_code == 404
    assert (await client.delete("/api/admin/products/nope", headers=admin_headers)).status_code == 404


async def test_upload_images(client, admin_headers, fake_storage):
    files = [("files", png_file("a.png")), ("files", png_file("b.png"))]
    response = await client.post("/api/admin/upload", files=files, headers=admin_headers)
    assert response.status_code == 200, response.text
    urls = response.json()["data"]["urls"]
    assert len(urls) == 2
    assert all(url.startswith("https://pub-test.r2.dev/products/") for url in urls)
    assert len(fake_storage.objects) == 2


async def test_upload_rejects_too_many_files(client, admin_headers, fake_storage):
    files = [("files", png_file(f"{i}.png")) for i in range(7)]
    response = await client.post("/api/admin/upload", files=files, headers=admin_headers)
    assert response.status_code == 400
    assert fake_storage.objects == {}


async def test_upload_rejects_non_images(client, admin_headers):
    files = [("files", ("notes.txt", b"hello", "text/plain"))]
    response = await client.post("/api/admin/upload", files=files, headers=admin_headers)
    assert response.status_code == 400
    assert "不是图片" in response.json()["message"]


async def test_upload_without_files_is_400(client, admin_headers):
    response = await client.post("/api/admin/upload", data={"other": "x"}, headers=admin_headers)
    assert response.status_code == 400


async def test_upload_url(client, admin_headers):
    response = await client.post("/api/admin/upload-url", json={"fileName": "ring.png", "contentType": "image/png"},
                                 headers=admin_headers)
    assert response.status_code == 200
    data = response.json()["data"]
    assert data["key"].startswith("products/") and data["key"].endswith(".png")
    assert data["expiresIn"] == 3600
    assert data["publicUrl"].endswith(data["key"])


async def test_login_fails_when_token_cannot_be_stored(client, fake_redis):
    fake_redis.writable = False
    response = await client.post("/api/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert response.status_code == 503
    assert response.json()["code"] == 503
    assert token_redis_key("admin") not in fake_redis.data
