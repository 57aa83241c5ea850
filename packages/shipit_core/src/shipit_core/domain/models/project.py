"""
项目模型
"""

from tortoise import fields

from shipit_core.domain.models.base import BaseModel, TimestampMixin


class Project(BaseModel, TimestampMixin):
    """项目：源码仓库与其公开子域名"""

    name = fields.CharField(max_length=255)
    git_url = fields.CharField(max_length=1024)
    subdomain = fields.CharField(max_length=128, unique=True)

    deployments: fields.ReverseRelation["Deployment"]  # noqa: F821

    class Meta:
        table = "projects"
        ordering = ["-created_at"]

    def __str__(self) -> str:
        return f"Project({self.public_id}, {self.name})"
