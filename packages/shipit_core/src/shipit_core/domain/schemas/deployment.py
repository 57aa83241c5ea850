"""
部署相关的 Pydantic 模式定义
"""

from datetime import datetime

from pydantic import BaseModel, Field

from shipit_core.domain.models.enums import DeploymentStatus


class DeploymentCreateRequest(BaseModel):
    """创建部署请求"""

    project_id: str = Field(..., min_length=1, max_length=64, description="项目公开ID")


class DeploymentQueuedResponse(BaseModel):
    """部署已排队响应（在执行器启动之前返回）"""

    deployment_id: str
    status: DeploymentStatus = DeploymentStatus.QUEUED


class DeploymentResponse(BaseModel):
    """部署详情响应"""

    id: str = Field(..., description="部署公开ID")
    project_id: str
    status: DeploymentStatus
    status_reason: str | None = None
    created_at: datetime
    dispatched_at: datetime | None = None
    finished_at: datetime | None = None

    @classmethod
    def from_model(cls, deployment) -> "DeploymentResponse":
        """deployment.project 需已预加载"""
        return cls(
            id=deployment.public_id,
            project_id=deployment.project.public_id,
            status=deployment.status,
            status_reason=deployment.status_reason,
            created_at=deployment.created_at,
            dispatched_at=deployment.dispatched_at,
            finished_at=deployment.finished_at,
        )
