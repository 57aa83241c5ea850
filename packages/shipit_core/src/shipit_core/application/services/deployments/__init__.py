"""部署服务：编排器与状态迁移"""

from shipit_core.application.services.deployments.orchestrator import (
    DeploymentOrchestrator,
    DispatchResult,
)
from shipit_core.application.services.deployments.status_service import (
    ALLOWED_TRANSITIONS,
    DeploymentStatusService,
    can_transition,
    deployment_status_service,
)

__all__ = [
    "ALLOWED_TRANSITIONS",
    "DeploymentOrchestrator",
    "DeploymentStatusService",
    "DispatchResult",
    "can_transition",
    "deployment_status_service",
]
