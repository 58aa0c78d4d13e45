# app/api/main.py
import logging
from pathlib import Path
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles
from contextlib import asynccontextmanager
import httpx
from app.core.config.settings import settings

# --- 配置日志记录 ---
from app.core.logging_config import setup_logging
setup_logging()
logger = logging.getLogger(__name__) # 获取 main 模块的 logger
# ----------------------------------------------------

from app.core.database.session import engine, create_tables
from app.api.middleware.exception_handlers import register_exception_handlers
from app.core.redis.service import RedisService

# --- 导入自动发现函数 ---
from app.api.auto_router import discover_and_include_routers

# --- 导入需要在 lifespan 中实例化的服务 ---
from app.core.storage.factory import get_storage_service # Storage 使用工厂获取
from app.core.auth.jwt_service import JwtService # JWT 服务依赖 Redis


def create_http_client() -> httpx.AsyncClient:
    """创建共享的 httpx 客户端 (图片代理等使用)"""
    timeout = httpx.Timeout(settings.HTTP_CLIENT_TIMEOUT, connect=10.0)
    return httpx.AsyncClient(
        headers={"User-Agent": "JewelryStorefront/1.0 (Python HttpX Client)"},
        timeout=timeout,
        follow_redirects=False,
    )

# --- 应用生命周期事件 (使用 app.state) ---
@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI 应用的生命周期管理"""
    logger.info("--- 应用启动 ---")

    # 1. 数据库表
    try:
        await create_tables()
        logger.info("数据库表已就绪。")
    except Exception as e: logger.error(f"创建数据库表失败: {e}")

    # 2. 初始化核心服务并存入 app.state
    # Redis
    logger.info("初始化并存储 Redis Service...")
    redis_service_instance = RedisService()
    await redis_service_instance.initialize()
    app.state.redis_service = redis_service_instance

    # JWT Service (依赖 Redis)
    app.state.jwt_service = JwtService(settings=settings, redis_service=app.state.redis_service)
    logger.info("JWT Service 已存入 app.state")

    # 共享 HTTP 客户端
    app.state.http_client = create_http_client()
    logger.info("共享 HTTP 客户端已创建并存入 app.state。")

    # Storage Service (使用工厂)，配置缺失时店面仍可浏览，上传接口返回错误
    try:
        logger.info(f"初始化并存储 Storage Service (Provider: {settings.STORAGE_PROVIDER})...")
        app.state.storage_service = get_storage_service()
        if app.state.storage_service: logger.info("Storage Service 已存入 app.state")
        else: logger.info("未配置 Storage Service。")
    except Exception as e:
        app.state.storage_service = None
        logger.error(f"初始化 Storage Service 失败: {e}")

    if not settings.ADMIN_PASSWORD_HASH:
        logger.warning("ADMIN_PASSWORD_HASH 未配置，管理后台将无法登录。")

    yield # 应用运行

    logger.info("--- 应用关闭 ---")
    # 关闭共享 HTTP 客户端
    if getattr(app.state, 'http_client', None):
        logger.info("正在关闭共享 HTTP 客户端...")
        await app.state.http_client.aclose()

    # 关闭 Redis 连接
    logger.info("正在关闭 Redis 连接...")
    if getattr(app.state, 'redis_service', None):
        await app.state.redis_service.close()

    # 关闭数据库引擎
    logger.info("正在关闭数据库引擎...")
    await engine.dispose()

    logger.info("所有服务已关闭。")

# --- 创建 FastAPI 应用实例 ---
app = FastAPI(
    title="Jewelry Storefront API",
    description="珠宝店面后端 API：商品目录、管理后台、图片上传与代理",
    version="1.0.0",
    lifespan=lifespan, # 注册生命周期事件
)

# --- CORS ---
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ALLOW_ORIGINS,
    allow_credentials="*" not in settings.CORS_ALLOW_ORIGINS,
    allow_methods=["*"],
    allow_headers=["*"],
)

# --- 注册全局异常处理器 ---
register_exception_handlers(app)
logger.info("全局异常处理器已注册。")

# --- 自动发现并包含路由器 ---
discover_and_include_routers(app, base_dir="app/modules")

# --- 本地存储时直接提供上传文件 ---
if settings.STORAGE_PROVIDER.strip().lower() == "local":
    local_storage_dir = Path(settings.LOCAL_STORAGE_PATH)
    local_storage_dir.mkdir(parents=True, exist_ok=True)
    mount_path = "/" + settings.LOCAL_STORAGE_PATH.strip("/")
    app.mount(mount_path, StaticFiles(directory=str(local_storage_dir)), name="uploads")
    logger.info(f"本地存储目录 '{local_storage_dir}' 已挂载到 '{mount_path}'")


# --- 根路由 ---
@app.get("/", tags=["Root"], include_in_schema=False) # 不在 Swagger 中显示根路径
async def read_root():
    from fastapi.responses import RedirectResponse
    return RedirectResponse(url="/docs") # 重定向到 Swagger UI

# --- 用于本地运行的入口 (如果直接运行 main.py) ---
if __name__ == "__main__":
    import uvicorn
    logger.info(f"启动 Uvicorn 服务器: http://{settings.API_HOST}:{settings.API_PORT}")
    uvicorn.run("app.api.main:app", host=settings.API_HOST, port=settings.API_PORT, reload=True, log_level=settings.LOG_LEVEL.lower())
