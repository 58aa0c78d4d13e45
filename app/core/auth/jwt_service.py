# app/core/auth/jwt_service.py
import logging
import uuid
from datetime import datetime, timedelta, timezone
from typing import Optional, Tuple
from jose import JWTError, jwt
from pydantic import BaseModel, Field

from app.core.config.settings import Settings
from app.core.exceptions import BusinessException
from app.core.redis.service import RedisService

logger = logging.getLogger(__name__)


class TokenPayload(BaseModel):
    """JWT 令牌载荷模型"""
    sub: str = Field(..., description="令牌主题 (管理员用户名)")
    exp: Optional[int] = Field(None, description="过期时间戳")
    iat: Optional[int] = Field(None, description="签发时间戳")
    jti: Optional[str] = Field(None, description="JWT ID (唯一标识符)")


def token_redis_key(subject: str) -> str:
    """令牌在 Redis 中的存储键"""
    return f"admin:token:{subject}"


class JwtService:
    """
    提供 JWT 生成、验证和撤销功能的服务类。
    令牌同时写入 Redis，撤销即删除 Redis 中的记录。
    """
    def __init__(self, settings: Settings, redis_service: RedisService):
        self.settings = settings
        self.redis_service = redis_service
        self.SECRET_KEY = settings.SECRET_KEY
        self.ALGORITHM = settings.JWT_ALGORITHM
        self.ACCESS_TOKEN_EXPIRE_MINUTES = settings.ACCESS_TOKEN_EXPIRE_MINUTES

    async def generate_token(self, subject: str) -> Tuple[str, datetime]:
        """
        生成访问令牌并将其存储到 Redis。

        Args:
            subject: 管理员用户名。

        Returns:
            一个元组，包含生成的令牌字符串和令牌的过期时间。
        """
        now = datetime.now(timezone.utc)
        expire_delta = timedelta(minutes=self.ACCESS_TOKEN_EXPIRE_MINUTES)
        expire_at = now + expire_delta

        to_encode = TokenPayload(
            sub=subject,
            exp=int(expire_at.timestamp()), # JWT 标准使用 Unix 时间戳 (秒)
            iat=int(now.timestamp()),
            jti=uuid.uuid4().hex,
        ).model_dump(exclude_none=True)

        encoded_jwt = jwt.encode(to_encode, self.SECRET_KEY, algorithm=self.ALGORITHM)

        # Redis 过期时间与 JWT 过期时间一致
        success = await self.redis_service.set_async(
            token_redis_key(subject),
            encoded_jwt,
            expiry_seconds=int(expire_delta.total_seconds())
        )
        if not success:
            # 未写入 Redis 的令牌无法通过会话校验
            logger.error(f"存储管理员 {subject} 的令牌到 Redis 失败。")
            raise BusinessException("登录服务暂不可用，请稍后再试", code=503)

        return encoded_jwt, expire_at

    def validate_token(self, token: str) -> Optional[TokenPayload]:
        """验证 JWT 签名与过期时间，失败返回 None"""
        try:
            payload_dict = jwt.decode(
                token,
                self.SECRET_KEY,
                algorithms=[self.ALGORITHM],
                options={"verify_aud": False}
            )
            return TokenPayload(**payload_dict)
        except jwt.ExpiredSignatureError:
            logger.info("令牌已过期")
            return None
        except JWTError as e:
            logger.info(f"令牌验证失败: {e}")
            return None
        except Exception as e:
            logger.warning(f"令牌解码或验证时发生未知错误: {e}")
            return None

    async def revoke_token(self, subject: str) -> bool:
        """
        通过从 Redis 中删除令牌来撤销管理员的当前令牌。

        Returns:
            如果成功删除返回 True，否则返回 False。
        """
        return await self.redis_service.key_delete_async(token_redis_key(subject))
