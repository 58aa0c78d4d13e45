import os
import tempfile

# 在导入 app 之前准备环境变量 (Settings 在导入时实例化)
_TMP_DIR = tempfile.mkdtemp(prefix="storefront-tests-")
os.environ.setdefault("SECRET_KEY", "test-secret-key-for-jwt-signing-only")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("REDIS_URL", "redis://127.0.0.1:6379/15")
os.environ.setdefault("LOG_DIR", os.path.join(_TMP_DIR, "logs"))
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("STORAGE_PROVIDER", "None")
os.environ.setdefault("STORE_BASE_URL", "https://shop.example.com")
os.environ.setdefault("WHATSAPP_PHONE_NUMBER", "919876543210")

from app.core.auth.password_service import PasswordService  # noqa: E402

ADMIN_PASSWORD = "s3cret-Pass"
os.environ.setdefault("ADMIN_USERNAME", "admin")
os.environ.setdefault("ADMIN_PASSWORD_HASH", PasswordService.hash_password(ADMIN_PASSWORD, iterations=1000))

import io  # noqa: E402
from typing import Any, Dict, Optional  # noqa: E402

import httpx  # noqa: E402
import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.config.settings import settings  # noqa: E402
from app.core.database.session import Base, get_db  # noqa: E402
from app.core.storage.base import PresignedUpload  # noqa: E402


class FakeRedisService:
    """内存版 RedisService，接口与 app.core.redis.service.RedisService 一致"""

    def __init__(self):
        self.data: Dict[str, Any] = {}
        self.allow = True
        self.writable = True

    async def get_async(self, key: str) -> Optional[Any]:
        return self.data.get(key)

    async def set_async(self, key: str, value: Any, expiry_seconds: Optional[int] = None) -> bool:
        if not self.writable:
            return False
        self.data[key] = value
        return True

    async def key_delete_async(self, key: str) -> bool:
        return self.data.pop(key, None) is not None

    async def rate_limit_async(self, key_prefix: str, limit: int, period_seconds: int) -> bool:
        return self.allow


class FakeStorageService:
    """记录上传内容的存储服务"""

    def __init__(self, base_url: str = "https://pub-test.r2.dev"):
        self.base_url = base_url
        self.objects: Dict[str, bytes] = {}
        self.content_types: Dict[str, str] = {}

    async def upload_async(self, file_stream, file_key: str, content_type: str) -> str:
        if isinstance(file_stream, (bytes, bytearray)):
            content = bytes(file_stream)
        else:
            content = file_stream.read()
        self.objects[file_key] = content
        self.content_types[file_key] = content_type
        return self.get_url(file_key)

    def get_url(self, file_key: str) -> str:
        return f"{self.base_url}/{file_key}"

    async def delete_async(self, file_key: str) -> bool:
        return self.objects.pop(file_key, None) is not None

    async def presign_upload_async(self, file_key: str, expires_in: int, content_type: Optional[str] = None) -> PresignedUpload:
        return PresignedUpload(
            upload_url=f"https://upload.example.com/{file_key}?X-Amz-Expires={expires_in}",
            public_url=self.get_url(file_key),
            key=file_key,
        )


@pytest.fixture
def fake_redis() -> FakeRedisService:
    return FakeRedisService()


@pytest.fixture
def fake_storage() -> FakeStorageService:
    return FakeStorageService()


@pytest_asyncio.fixture
async def db_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    from app.modules.store.catalog import entities  # noqa: F401
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(db_engine):
    return async_sessionmaker(bind=db_engine, expire_on_commit=False, autoflush=False)


@pytest_asyncio.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


def _image_handler(request: httpx.Request) -> httpx.Response:
    if request.url.path.endswith("missing.jpg"):
        return httpx.Response(404, text="not found")
    if request.url.path.endswith("redirect.jpg"):
        return httpx.Response(302, headers={"location": "http://169.254.169.254/latest/meta-data"})
    if request.url.host == "169.254.169.254":
        return httpx.Response(200, content=b"secret", headers={"content-type": "text/plain"})
    return httpx.Response(200, content=b"\x89PNG-bytes", headers={"content-type": "image/png"})


@pytest_asyncio.fixture
async def app(fake_redis, fake_storage, session_factory):
    from app.api.dependencies import (
        get_http_client_from_state,
        get_jwt_service_from_state,
        get_redis_service_from_state,
        get_storage_service_from_state,
    )
    from app.api.main import app as fastapi_app
    from app.core.auth.jwt_service import JwtService

    async def override_get_db():
        async with session_factory() as session:
            yield session

    jwt_service = JwtService(settings=settings, redis_service=fake_redis)
    upstream = httpx.AsyncClient(transport=httpx.MockTransport(_image_handler), follow_redirects=True)

    fastapi_app.dependency_overrides[get_db] = override_get_db
    fastapi_app.dependency_overrides[get_redis_service_from_state] = lambda: fake_redis
    fastapi_app.dependency_overrides[get_jwt_service_from_state] = lambda: jwt_service
    fastapi_app.dependency_overrides[get_storage_service_from_state] = lambda: fake_storage
    fastapi_app.dependency_overrides[get_http_client_from_state] = lambda: upstream
    yield fastapi_app
    fastapi_app.dependency_overrides.clear()
    await upstream.aclose()


@pytest_asyncio.fixture
async def client(app):
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://testserver") as http_client:
        yield http_client


@pytest_asyncio.fixture
async def admin_headers(client) -> Dict[str, str]:
    response = await client.post("/api/admin/login", json={"username": "admin", "password": ADMIN_PASSWORD})
    assert response.status_code == 200, response.text
    token = response.json()["data"]["accessToken"]
    return {"Authorization": f"Bearer {token}"}


def png_file(name: str = "ring.png", size: int = 128):
    return (name, io.BytesIO(b"\x89PNG" + b"0" * size), "image/png")
