"""
Domain Schemas 模块

- common: 通用响应
- project: 项目请求/响应
- deployment: 部署请求/响应
- logs: 日志记录、日志事件、状态上报
- build: 构建任务描述
"""

from shipit_core.domain.schemas.build import BuildTaskDescriptor
from shipit_core.domain.schemas.common import (
    BaseResponse,
    ErrorDetail,
    ErrorResponse,
    HealthResponse,
)
from shipit_core.domain.schemas.deployment import (
    DeploymentCreateRequest,
    DeploymentQueuedResponse,
    DeploymentResponse,
)
from shipit_core.domain.schemas.logs import (
    LogEventListResponse,
    LogEventRecord,
    LogWireRecord,
    StatusReport,
)
from shipit_core.domain.schemas.project import ProjectCreateRequest, ProjectResponse

__all__ = [
    "BaseResponse",
    "BuildTaskDescriptor",
    "DeploymentCreateRequest",
    "DeploymentQueuedResponse",
    "DeploymentResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
    "LogEventListResponse",
    "LogEventRecord",
    "LogWireRecord",
    "ProjectCreateRequest",
    "ProjectResponse",
    "StatusReport",
]
