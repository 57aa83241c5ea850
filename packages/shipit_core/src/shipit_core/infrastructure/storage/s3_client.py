"""S3 客户端管理

客户端由构建执行器创建并持有，进程退出前显式关闭。
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from shipit_core.common.config import settings
from shipit_core.infrastructure.aws import client_config, create_session

if TYPE_CHECKING:
    from types_aiobotocore_s3 import S3Client


class S3ClientManager:
    """S3 客户端管理器

    - 连接复用
    - 显式关闭
    """

    def __init__(self, endpoint_url: str | None = None, session=None):
        self.endpoint_url = endpoint_url or settings.S3_ENDPOINT_URL or None
        self._session = session
        self._client_cm = None
        self._client: S3Client | None = None

    async def get_client(self) -> S3Client:
        """获取 S3 客户端（长期复用）"""
        if self._client is not None:
            return self._client

        if self._session is None:
            self._session = create_session()
        self._client_cm = self._session.client(
            "s3",
            endpoint_url=self.endpoint_url,
            config=client_config(),
        )
        self._client = await self._client_cm.__aenter__()

        logger.debug(f"S3 客户端已创建: endpoint={self.endpoint_url or 'aws'}")
        return self._client

    async def close(self) -> None:
        """关闭 S3 客户端连接"""
        if self._client_cm is not None:
            try:
                await self._client_cm.__aexit__(None, None, None)
                logger.debug("S3 客户端已关闭")
            finally:
                self._client = None
                self._client_cm = None
