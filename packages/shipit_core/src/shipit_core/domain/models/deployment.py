"""
部署模型

一次构建发布尝试的记录，由分发请求创建，不会被本服务删除。
"""

from tortoise import fields

from shipit_core.domain.models.base import BaseModel, TimestampMixin
from shipit_core.domain.models.enums import DeploymentStatus


class Deployment(BaseModel, TimestampMixin):
    """部署记录"""

    project = fields.ForeignKeyField(
        "models.Project", related_name="deployments", on_delete=fields.CASCADE
    )
    status = fields.CharEnumField(DeploymentStatus, default=DeploymentStatus.QUEUED, max_length=32)
    status_reason = fields.TextField(null=True)

    # 状态时间点
    dispatched_at = fields.DatetimeField(null=True)
    finished_at = fields.DatetimeField(null=True)

    class Meta:
        table = "deployments"
        indexes = [
            ("status",),
            ("created_at",),
        ]
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Deployment({self.public_id}, {self.status})"
