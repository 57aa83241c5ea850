"""
依赖注入模块

路由需要的服务在应用生命周期内创建并挂在 app.state 上，这里只负责取出。
"""

from typing import Annotated

from fastapi import Depends, Request, WebSocket

from shipit_core.application.services.deployments.orchestrator import DeploymentOrchestrator
from shipit_core.application.services.deployments.status_service import (
    DeploymentStatusService,
    deployment_status_service,
)
from shipit_core.application.services.logs.log_query_service import LogQueryService
from shipit_core.application.services.projects.project_service import (
    ProjectService,
    project_service,
)
from shipit_web_api.websockets.connection_manager import LogConnectionManager


def get_orchestrator(request: Request) -> DeploymentOrchestrator:
    return request.app.state.orchestrator


def get_log_query_service(request: Request) -> LogQueryService:
    return request.app.state.log_query_service


def get_project_service() -> ProjectService:
    return project_service


def get_status_service() -> DeploymentStatusService:
    return deployment_status_service


def get_connection_manager(websocket: WebSocket) -> LogConnectionManager:
    return websocket.app.state.connection_manager


# 类型别名，方便使用
OrchestratorDep = Annotated[DeploymentOrchestrator, Depends(get_orchestrator)]
LogQueryDep = Annotated[LogQueryService, Depends(get_log_query_service)]
ProjectServiceDep = Annotated[ProjectService, Depends(get_project_service)]
StatusServiceDep = Annotated[DeploymentStatusService, Depends(get_status_service)]
ConnectionManagerDep = Annotated[LogConnectionManager, Depends(get_connection_manager)]
