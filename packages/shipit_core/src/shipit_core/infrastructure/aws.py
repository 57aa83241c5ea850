"""AWS 会话与客户端配置

S3 与 ECS 客户端共用同一套重试与超时配置。
"""

import aioboto3
from botocore.config import Config

from shipit_core.common.config import settings


def create_session() -> aioboto3.Session:
    """创建 aioboto3 会话，未配置密钥时使用默认凭据链"""
    kwargs = {"region_name": settings.AWS_REGION}
    if settings.AWS_ACCESS_KEY_ID and settings.AWS_SECRET_ACCESS_KEY:
        kwargs["aws_access_key_id"] = settings.AWS_ACCESS_KEY_ID
        kwargs["aws_secret_access_key"] = settings.AWS_SECRET_ACCESS_KEY
    return aioboto3.Session(**kwargs)


def client_config() -> Config:
    """重试与超时配置"""
    return Config(
        retries={"max_attempts": settings.AWS_MAX_ATTEMPTS, "mode": "standard"},
        connect_timeout=settings.AWS_CONNECT_TIMEOUT,
        read_timeout=settings.AWS_READ_TIMEOUT,
    )
