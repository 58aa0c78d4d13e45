# app/core/redis/service.py
import logging
import time
from typing import Optional, TypeVar
from redis import asyncio as aioredis # 使用 redis-py 的异步客户端

from app.core.config.settings import settings
from app.core.utils.json_utils import safe_serialize, safe_deserialize

logger = logging.getLogger(__name__)

# 定义泛型类型变量
T = TypeVar('T')

class RedisService:
    """
    提供 Redis 操作的异步服务类。
    """
    _pool: aioredis.Redis = None

    @classmethod
    async def initialize(cls):
        """初始化 Redis 连接池"""
        if cls._pool is None:
            try:
                logger.info("正在初始化 Redis 连接池...")
                cls._pool = aioredis.from_url(
                    settings.REDIS_URL,
                    encoding="utf-8",
                    decode_responses=True # 自动将 bytes 解码为 str
                )
                await cls._pool.ping() # 测试连接
                logger.info("Redis 连接池初始化成功。")
            except Exception as e:
                # 允许应用在无 Redis 的情况下启动（降级模式），登录会失败但店面可用
                logger.error(f"Redis 连接失败: {e}")
                cls._pool = None

    @classmethod
    async def close(cls):
        """关闭 Redis 连接池"""
        if cls._pool:
            await cls._pool.aclose()
            logger.info("Redis 连接池已关闭。")
            cls._pool = None

    def _get_client(self) -> aioredis.Redis:
        """获取 Redis 客户端实例"""
        if self._pool is None:
            raise ConnectionError("Redis 服务未初始化或连接失败。")
        return self._pool

    async def get_async(self, key: str) -> Optional[T]:
        """
        异步从 Redis 获取指定 key 的值，并反序列化。

        Args:
            key: Redis 键。

        Returns:
            反序列化后的对象，如果 key 不存在或反序列化失败则返回 None。
        """
        try:
            client = self._get_client()
            value_str = await client.get(key)
            if value_str:
                return safe_deserialize(value_str)
            return None
        except Exception as e:
            logger.error(f"从 Redis 获取 key '{key}' 时出错: {e}")
            return None

    async def set_async(self, key: str, value: T, expiry_seconds: Optional[int] = None) -> bool:
        """
        异步将对象序列化后存入 Redis。

        Args:
            key: Redis 键。
            value: 要存储的对象。
            expiry_seconds: 过期时间（秒），如果为 None 则永不过期。

        Returns:
            操作是否成功。
        """
        try:
            client = self._get_client()
            value_str = safe_serialize(value)
            if expiry_seconds is not None and expiry_seconds > 0:
                return bool(await client.setex(key, expiry_seconds, value_str))
            return bool(await client.set(key, value_str))
        except Exception as e:
            logger.error(f"向 Redis 设置 key '{key}' 时出错: {e}")
            return False

    async def key_delete_async(self, key: str) -> bool:
        """
        异步删除 Redis 中的指定 key。

        Returns:
            如果成功删除了 key 返回 True，否则返回 False。
        """
        try:
            client = self._get_client()
            # DEL 命令返回成功删除的 key 的数量
            deleted_count = await client.delete(key)
            return deleted_count > 0
        except Exception as e:
            logger.error(f"删除 Redis key '{key}' 时出错: {e}")
            return False

    async def rate_limit_async(self, key_prefix: str, limit: int, period_seconds: int) -> bool:
        """
        使用 Redis Sorted Set 实现简单的滑动窗口速率限制 (异步)。

        Args:
            key_prefix: 用于生成 Redis key 的前缀 (例如 "ratelimit:/api/admin/login:ip:1.2.3.4")。
            limit: 时间窗口内的最大允许请求数。
            period_seconds: 时间窗口的长度（秒）。

        Returns:
            如果请求被允许返回 True，如果超出限制返回 False。
        """
        try:
            client = self._get_client()
            now_ns = time.time_ns()
            cutoff_ns = now_ns - (period_seconds * 1_000_000_000)
            redis_key = f"{key_prefix}:{period_seconds}"

            # 使用 Lua 脚本保证原子性:
            # 移除窗口外记录 -> 统计 -> 未超限则记录本次请求并刷新过期时间
            lua_script = """
            local key = KEYS[1]
            local cutoff = ARGV[1]
            local limit = tonumber(ARGV[2])
            local now = ARGV[3]
            local period = tonumber(ARGV[4])

            redis.call('ZREMRANGEBYSCORE', key, '-inf', cutoff)
            local current_count = redis.call('ZCARD', key)

            if current_count < limit then
                redis.call('ZADD', key, now, now)
                redis.call('EXPIRE', key, period + 5)
                return 1
            else
                return 0
            end
            """
            args = [cutoff_ns, limit, now_ns, period_seconds]
            result = await client.eval(lua_script, 1, redis_key, *args)

            return result == 1

        except Exception as e:
            logger.error(f"执行速率限制检查 key '{key_prefix}' 时出错: {e}")
            # Redis 出错时放行
            return True
