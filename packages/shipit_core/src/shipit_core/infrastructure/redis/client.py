"""Redis 连接管理

连接由各服务在启动时创建并显式持有，关闭顺序由宿主进程的资源作用域决定。
"""

import platform
import socket

import redis.asyncio as redis
from loguru import logger
from redis.asyncio.retry import Retry
from redis.backoff import ExponentialBackoff
from redis.exceptions import ConnectionError, TimeoutError

from shipit_core.common.config import settings
from shipit_core.common.exceptions import RedisConnectionError


def _redact_url(url: str) -> str:
    return url.split("@")[-1] if "@" in url else url


class RedisConnection:
    """Redis 连接池句柄"""

    def __init__(self, url: str | None = None, max_connections: int = 50):
        self.url = url or settings.REDIS_URL
        self.max_connections = max_connections
        self.pool: redis.ConnectionPool | None = None
        self.client: redis.Redis | None = None

    async def connect(self) -> redis.Redis:
        """建立连接并返回客户端"""
        if self.client is not None:
            return self.client

        if not self.url:
            raise RedisConnectionError("REDIS_URL 未配置")

        retry = Retry(ExponentialBackoff(cap=1.0, base=0.1), retries=3)
        pool_kwargs = {
            "max_connections": self.max_connections,
            "retry": retry,
            "retry_on_error": [ConnectionError, TimeoutError],
            "socket_connect_timeout": 10,
            "socket_keepalive": True,
            "health_check_interval": 30,
            "encoding": "utf-8",
            "decode_responses": False,
        }

        # Linux 特定的 keepalive 选项
        if platform.system() == "Linux":
            keepalive_options = {}
            if hasattr(socket, "TCP_KEEPIDLE"):
                keepalive_options[socket.TCP_KEEPIDLE] = 60
            if hasattr(socket, "TCP_KEEPINTVL"):
                keepalive_options[socket.TCP_KEEPINTVL] = 15
            if hasattr(socket, "TCP_KEEPCNT"):
                keepalive_options[socket.TCP_KEEPCNT] = 4
            if keepalive_options:
                pool_kwargs["socket_keepalive_options"] = keepalive_options

        try:
            self.pool = redis.ConnectionPool.from_url(self.url, **pool_kwargs)
            client = redis.Redis(connection_pool=self.pool)
            await client.ping()
        except redis.AuthenticationError as e:
            await self._release()
            raise RedisConnectionError("Redis 认证失败: 密码错误或未配置认证") from e
        except redis.ConnectionError as e:
            await self._release()
            raise RedisConnectionError(
                f"无法连接 Redis ({_redact_url(self.url)}): 请检查 Redis 服务是否启动"
            ) from e

        self.client = client
        logger.info(f"Redis 连接池已初始化 ({_redact_url(self.url)}, 最大连接={self.max_connections})")
        return client

    async def _release(self) -> None:
        if self.pool is not None:
            await self.pool.disconnect()
            self.pool = None

    async def close(self) -> None:
        """关闭连接池"""
        if self.client is not None:
            await self.client.aclose()
            self.client = None
        await self._release()
        logger.info("Redis 连接池已关闭")
