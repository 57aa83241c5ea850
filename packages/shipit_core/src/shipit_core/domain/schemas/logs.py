"""
日志相关的 Pydantic 模式定义

包含消息流上的日志记录、落库的日志事件和构建状态上报。
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator

from shipit_core.domain.models.enums import BuildStatus


class LogWireRecord(BaseModel):
    """构建执行器写入消息流的日志记录，deployment_id 与 log 必填"""

    project_id: str | None = None
    deployment_id: str = Field(..., min_length=1)
    log: str = Field(..., min_length=1)


class LogEventRecord(BaseModel):
    """落库的日志事件"""

    event_id: str
    deployment_id: str
    log: str
    timestamp: datetime


class LogEventListResponse(BaseModel):
    """按部署查询日志的响应"""

    deployment_id: str
    total: int
    items: list[LogEventRecord]


class StatusReport(BaseModel):
    """构建执行器上报的状态（与自由文本日志分离的显式通道）"""

    deployment_id: str = Field(..., min_length=1)
    status: BuildStatus
    reason: str | None = None
    reported_at: datetime

    @field_validator("reason")
    @classmethod
    def empty_reason_to_none(cls, value: str | None) -> str | None:
        return value or None

    def to_stream_fields(self) -> dict[str, str]:
        """转换为 Redis Stream 字段（全部为字符串）"""
        return {
            "deployment_id": self.deployment_id,
            "status": self.status.value,
            "reason": self.reason or "",
            "reported_at": self.reported_at.isoformat(),
        }
