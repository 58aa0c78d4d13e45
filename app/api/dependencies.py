# app/api/dependencies.py
import logging
from datetime import datetime, timezone
import httpx
from fastapi import Depends, HTTPException, status, Request
from fastapi.security import OAuth2PasswordBearer
from typing import Optional, TYPE_CHECKING

from app.core.config.settings import settings
from app.core.auth.jwt_service import token_redis_key
from app.core.exceptions import UnauthorizedException
from app.modules.store.admin.session import AdminSession


# --- 类型检查时导入 (避免运行时循环导入) ---
if TYPE_CHECKING:
    from app.core.redis.service import RedisService
    from app.core.auth.jwt_service import JwtService
    from app.core.storage.base import IStorageService
# -----------------------------------------

# --- 获取 logger ---
logger = logging.getLogger(__name__)

# --- OAuth2 Scheme (auto_error=False，由 get_current_admin 统一返回 401) ---
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/admin/login", auto_error=False)

# --- 从 app.state 获取服务的依赖项 ---

def get_redis_service_from_state(request: Request) -> 'RedisService':
    """依赖项：从 app.state 获取 RedisService 实例"""
    redis_service = getattr(request.app.state, 'redis_service', None)
    if redis_service is None:
        logger.error("依赖项错误：RedisService 未在 app.state 中找到。")
        raise RuntimeError("Redis 服务未初始化。")
    return redis_service

def get_jwt_service_from_state(request: Request) -> 'JwtService':
    """依赖项：从 app.state 获取 JwtService 实例"""
    jwt_service = getattr(request.app.state, 'jwt_service', None)
    if jwt_service is None:
        logger.error("依赖项错误：JwtService 未在 app.state 中找到。")
        raise RuntimeError("JWT 服务未初始化。")
    return jwt_service

# 获取共享 HTTP 客户端的依赖
def get_http_client_from_state(request: Request) -> Optional[httpx.AsyncClient]:
    """依赖项：从 app.state 获取共享的 httpx.AsyncClient 实例 (可能为 None)"""
    return getattr(request.app.state, 'http_client', None)

def get_storage_service_from_state(request: Request) -> Optional['IStorageService']:
    """依赖项：从 app.state 获取配置的 StorageService 实例 (可能为 None)"""
    return getattr(request.app.state, 'storage_service', None)


# --- 认证依赖项 ---
def _login_required_message() -> str:
    return f"请先登录管理后台: {settings.ADMIN_LOGIN_PATH}"

async def get_current_admin(
    token: Optional[str] = Depends(oauth2_scheme),
    redis_service: 'RedisService' = Depends(get_redis_service_from_state),
    jwt_service: 'JwtService' = Depends(get_jwt_service_from_state)
) -> AdminSession:
    """
    依赖项：验证令牌（签名、过期时间、Redis存在性、一致性）并返回管理员会话。
    未登录或令牌失效时抛出 401，消息中包含登录入口。
    """
    if not token:
        raise UnauthorizedException(message=_login_required_message())

    payload = jwt_service.validate_token(token)
    if payload is None or not payload.sub or payload.sub != settings.ADMIN_USERNAME:
        raise UnauthorizedException(message=_login_required_message())

    stored_token = await redis_service.get_async(token_redis_key(payload.sub))
    if stored_token is None or stored_token != token:
        logger.warning(f"管理员 {payload.sub} 的令牌验证失败 (Redis 不存在或不匹配)。")
        raise UnauthorizedException(message=f"登录已失效，{_login_required_message()}")

    logger.debug(f"管理员 {payload.sub} 令牌验证通过。")
    return AdminSession(username=payload.sub, token=token, expires_at=_expires_at(payload.exp))

def _expires_at(exp: Optional[int]) -> Optional[datetime]:
    if exp is None:
        return None
    return datetime.fromtimestamp(exp, tz=timezone.utc)


# --- 限流器依赖项 ---
class RateLimiterV2:
    def __init__(self, limit: int, period_seconds: int, limit_type: str = "ip"):
        self.limit = limit
        self.period_seconds = period_seconds
        self.limit_type = limit_type.lower()

    async def __call__(
        self,
        request: Request,
        redis_service: 'RedisService' = Depends(get_redis_service_from_state),
    ):
        path = request.url.path.lower()
        rate_limit_key_prefix = f"ratelimit:{path}"
        client_host = request.client.host if request.client else "unknown_ip"

        if self.limit_type == "global":
            identifier = "global"
        else: # 默认按 IP
            identifier = f"ip:{client_host}"
        rate_limit_key_prefix += f":{identifier}"

        allowed = await redis_service.rate_limit_async(
            key_prefix=rate_limit_key_prefix,
            limit=self.limit,
            period_seconds=self.period_seconds
        )

        if not allowed:
            logger.warning(f"速率限制触发: Identifier='{identifier}', Limit={self.limit}/{self.period_seconds}s, Path='{path}'")
            raise HTTPException(
                status_code=status.HTTP_429_TOO_MANY_REQUESTS,
                detail="请求过于频繁，请稍后再试。",
                headers={"Retry-After": str(max(1, self.period_seconds // 2))},
            )

# 使用 RateLimiterV2 作为依赖
RateLimiter = RateLimiterV2
