"""项目服务"""

from shipit_core.application.services.projects.project_service import (
    ProjectService,
    project_service,
)

__all__ = ["ProjectService", "project_service"]
