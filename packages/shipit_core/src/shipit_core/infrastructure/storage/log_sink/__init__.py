"""
日志存储（Log Sink）模块

- base: 抽象接口与数据结构
- clickhouse: ClickHouse 后端
- local: 本地 JSONL 后端
"""

from shipit_core.common.config import settings
from shipit_core.infrastructure.storage.log_sink.base import LogEvent, LogSink, WriteResult


def create_log_sink(backend: str | None = None) -> LogSink:
    """按配置创建日志存储后端"""
    backend = backend or settings.LOG_SINK_BACKEND
    if backend == "clickhouse":
        from shipit_core.infrastructure.storage.log_sink.clickhouse import ClickHouseLogSink

        return ClickHouseLogSink()
    if backend == "local":
        from shipit_core.infrastructure.storage.log_sink.local import LocalLogSink

        return LocalLogSink()
    raise ValueError(f"不支持的日志存储后端: {backend}")


__all__ = ["LogEvent", "LogSink", "WriteResult", "create_log_sink"]
