"""
存储模块

- log_sink: 日志事件存储（ClickHouse / 本地 JSONL）
- s3_client: S3 客户端管理
- artifact_store: 构建产物存储
"""

from shipit_core.infrastructure.storage.artifact_store import ArtifactStore, S3ArtifactStore
from shipit_core.infrastructure.storage.log_sink import (
    LogEvent,
    LogSink,
    WriteResult,
    create_log_sink,
)
from shipit_core.infrastructure.storage.s3_client import S3ClientManager

__all__ = [
    "ArtifactStore",
    "S3ArtifactStore",
    "S3ClientManager",
    "LogEvent",
    "LogSink",
    "WriteResult",
    "create_log_sink",
]
