"""Redis 键与频道命名

所有键都带命名空间前缀，默认使用 settings.REDIS_NAMESPACE。
"""

import zlib

from shipit_core.common.config import settings


def redis_namespace(namespace: str | None = None) -> str:
    return (namespace or settings.REDIS_NAMESPACE or "shipit").strip(":")


# ========== 日志消息流（Broker）==========


def log_stream_key(partition: int, namespace: str | None = None) -> str:
    """日志消息流分区键"""
    return f"{redis_namespace(namespace)}:stream:logs:{partition}"


def log_stream_keys(partitions: int, namespace: str | None = None) -> list[str]:
    return [log_stream_key(p, namespace) for p in range(partitions)]


def log_partition_for(deployment_id: str, partitions: int) -> int:
    """按部署 ID 稳定哈希到分区，同一部署的日志保持在同一分区内有序"""
    if partitions <= 1:
        return 0
    return zlib.crc32(deployment_id.encode("utf-8")) % partitions


def ingest_heartbeat_key(consumer_name: str, namespace: str | None = None) -> str:
    """摄取消费者保活键"""
    return f"{redis_namespace(namespace)}:ingest:heartbeat:{consumer_name}"


# ========== 部署状态流 ==========


def status_stream_key(namespace: str | None = None) -> str:
    return f"{redis_namespace(namespace)}:stream:deploy-status"


# ========== 实时广播频道（Relay）==========


def log_channel(deployment_id: str, namespace: str | None = None) -> str:
    """单个部署的实时日志频道"""
    return f"{redis_namespace(namespace)}:logs:{deployment_id}"


def log_channel_pattern(namespace: str | None = None) -> str:
    return f"{redis_namespace(namespace)}:logs:*"


def deployment_from_channel(channel: str | bytes, namespace: str | None = None) -> str | None:
    """从频道名解析部署 ID，频道不属于日志广播时返回 None"""
    if isinstance(channel, bytes):
        channel = channel.decode("utf-8")
    prefix = f"{redis_namespace(namespace)}:logs:"
    if not channel.startswith(prefix):
        return None
    return channel[len(prefix):] or None


__all__ = [
    "redis_namespace",
    "log_stream_key",
    "log_stream_keys",
    "log_partition_for",
    "ingest_heartbeat_key",
    "status_stream_key",
    "log_channel",
    "log_channel_pattern",
    "deployment_from_channel",
]
