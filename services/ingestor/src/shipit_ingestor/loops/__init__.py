"""
后台循环

- log_ingest_loop: 日志摄取消费者
- status_loop: 部署状态消费循环
"""

from shipit_ingestor.loops.log_ingest_loop import BatchOutcome, LogIngestionConsumer
from shipit_ingestor.loops.status_loop import DeploymentStatusLoop

__all__ = ["BatchOutcome", "DeploymentStatusLoop", "LogIngestionConsumer"]
