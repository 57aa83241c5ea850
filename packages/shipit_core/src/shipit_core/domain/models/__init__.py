"""
Domain Models 模块

数据库模型定义：
- base: 基础模型
- enums: 枚举定义
- project: 项目模型
- deployment: 部署模型
"""

from shipit_core.domain.models.base import BaseModel, TimestampMixin, generate_public_id
from shipit_core.domain.models.deployment import Deployment
from shipit_core.domain.models.enums import (
    TERMINAL_DEPLOYMENT_STATUSES,
    BuildStatus,
    DeploymentStatus,
    LogPublishMode,
)
from shipit_core.domain.models.project import Project

__all__ = [
    "BaseModel",
    "TimestampMixin",
    "generate_public_id",
    "Project",
    "Deployment",
    "DeploymentStatus",
    "TERMINAL_DEPLOYMENT_STATUSES",
    "BuildStatus",
    "LogPublishMode",
]
