"""
枚举定义

所有业务枚举类型的集中定义。
"""

from enum import Enum

# ========== 部署相关枚举 ==========


class DeploymentStatus(str, Enum):
    """部署状态

    状态只能单调前进：
    QUEUED -> DISPATCHED -> RUNNING -> SUCCEEDED | FAILED
    QUEUED -> DISPATCH_FAILED
    """

    QUEUED = "queued"  # 已创建，尚未启动执行器
    DISPATCHED = "dispatched"  # 启动请求已被接受
    RUNNING = "running"  # 执行器已上报开始构建
    SUCCEEDED = "succeeded"
    FAILED = "failed"
    DISPATCH_FAILED = "dispatch_failed"  # 执行器启动失败

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_DEPLOYMENT_STATUSES


TERMINAL_DEPLOYMENT_STATUSES = frozenset(
    {
        DeploymentStatus.SUCCEEDED,
        DeploymentStatus.FAILED,
        DeploymentStatus.DISPATCH_FAILED,
    }
)


# ========== 构建执行器相关枚举 ==========


class BuildStatus(str, Enum):
    """构建执行器上报的状态"""

    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"

    def to_deployment_status(self) -> DeploymentStatus:
        return DeploymentStatus(self.value)


class LogPublishMode(str, Enum):
    """构建日志发布方式"""

    BROKER = "broker"  # 写入消息流，由摄取消费者落库
    RELAY = "relay"  # 直接发布到实时广播频道
    BOTH = "both"


__all__ = [
    "DeploymentStatus",
    "TERMINAL_DEPLOYMENT_STATUSES",
    "BuildStatus",
    "LogPublishMode",
]
