"""
Redis 模块

- client: 连接池句柄
- keys: 键与频道命名
- streams: Redis Streams 封装（日志消息流、状态流）
"""

from shipit_core.infrastructure.redis.client import RedisConnection
from shipit_core.infrastructure.redis.keys import (
    deployment_from_channel,
    ingest_heartbeat_key,
    log_channel,
    log_channel_pattern,
    log_partition_for,
    log_stream_key,
    log_stream_keys,
    redis_namespace,
    status_stream_key,
)
from shipit_core.infrastructure.redis.streams import PendingMessage, StreamClient, StreamMessage

__all__ = [
    "RedisConnection",
    "StreamClient",
    "StreamMessage",
    "PendingMessage",
    "deployment_from_channel",
    "ingest_heartbeat_key",
    "log_channel",
    "log_channel_pattern",
    "log_partition_for",
    "log_stream_key",
    "log_stream_keys",
    "redis_namespace",
    "status_stream_key",
]
