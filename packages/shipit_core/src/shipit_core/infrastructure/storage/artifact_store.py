"""构建产物存储

对象存储只需要 put 能力：把本地文件写到指定 key。
"""

from abc import ABC, abstractmethod

import aiofiles

from shipit_core.infrastructure.storage.s3_client import S3ClientManager


class ArtifactStore(ABC):
    """产物存储接口"""

    @abstractmethod
    async def put_file(self, key: str, file_path: str, content_type: str) -> None:
        """上传单个文件，失败时抛出异常"""


class S3ArtifactStore(ArtifactStore):
    """S3 产物存储"""

    def __init__(self, manager: S3ClientManager, bucket: str):
        self.manager = manager
        self.bucket = bucket

    async def put_file(self, key: str, file_path: str, content_type: str) -> None:
        async with aiofiles.open(file_path, "rb") as f:
            body = await f.read()
        client = await self.manager.get_client()
        await client.put_object(
            Bucket=self.bucket,
            Key=key,
            Body=body,
            ContentType=content_type,
        )
