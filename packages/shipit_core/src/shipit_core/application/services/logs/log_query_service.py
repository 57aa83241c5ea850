"""
日志查询服务

从日志存储读取某个部署的全部日志事件，按时间戳升序返回。
"""

from loguru import logger

from shipit_core.common.config import settings
from shipit_core.common.exceptions import StorageError
from shipit_core.common.time import to_timezone
from shipit_core.domain.schemas.logs import LogEventListResponse, LogEventRecord
from shipit_core.infrastructure.storage.log_sink.base import LogSink


class LogQueryService:
    """日志查询服务"""

    def __init__(self, sink: LogSink, display_timezone: str | None = None):
        self.sink = sink
        self.display_timezone = display_timezone or settings.LOG_DISPLAY_TIMEZONE

    async def get_deployment_logs(self, deployment_id: str, limit: int | None = None) -> LogEventListResponse:
        """查询部署日志，存储不可用时抛出 StorageError"""
        try:
            events = await self.sink.query_by_deployment(deployment_id, limit=limit)
        except Exception as e:
            logger.error(f"查询部署日志失败: {deployment_id}, 错误: {e}")
            raise StorageError(f"日志存储查询失败: {e}") from e

        # 存储层已排序，这里保证跨后端一致
        events = sorted(events, key=lambda e: e.timestamp)
        items = [
            LogEventRecord(
                event_id=e.event_id,
                deployment_id=e.deployment_id,
                log=e.log,
                timestamp=to_timezone(e.timestamp, self.display_timezone),
            )
            for e in events
        ]
        return LogEventListResponse(deployment_id=deployment_id, total=len(items), items=items)


__all__ = ["LogQueryService"]
