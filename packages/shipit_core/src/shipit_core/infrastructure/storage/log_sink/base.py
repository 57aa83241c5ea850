"""
日志存储（Log Sink）抽象基类

只追加的日志事件存储，提供：
- 批量写入
- 按部署 ID 的时间顺序查询
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime

from shipit_core.common.time import ensure_utc, to_iso


@dataclass
class LogEvent:
    """落库的日志事件，ID 与时间戳在摄取时生成"""
    event_id: str
    deployment_id: str
    log: str
    timestamp: datetime

    def __post_init__(self):
        self.timestamp = ensure_utc(self.timestamp)

    def to_dict(self) -> dict:
        return {
            "event_id": self.event_id,
            "deployment_id": self.deployment_id,
            "log": self.log,
            "timestamp": to_iso(self.timestamp),
        }


@dataclass
class WriteResult:
    """写入结果"""
    success: bool
    written: int = 0
    error: str | None = None


class LogSink(ABC):
    """日志存储后端抽象基类"""

    @abstractmethod
    async def write_batch(self, events: list[LogEvent]) -> WriteResult:
        """一次性批量写入日志事件

        失败时返回 success=False，不抛出异常。
        """

    @abstractmethod
    async def query_by_deployment(self, deployment_id: str, limit: int | None = None) -> list[LogEvent]:
        """查询部署的全部日志事件，按时间戳升序"""

    async def close(self) -> None:
        """释放底层连接"""
