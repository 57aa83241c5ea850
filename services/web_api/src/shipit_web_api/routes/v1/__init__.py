from fastapi import APIRouter

from shipit_web_api.routes.v1.base import router as base_router
from shipit_web_api.routes.v1.deployments import router as deployments_router
from shipit_web_api.routes.v1.logs import router as logs_router
from shipit_web_api.routes.v1.projects import router as projects_router
from shipit_web_api.routes.v1.websocket_logs import router as websocket_logs_router

v1_router = APIRouter()

v1_router.include_router(base_router, tags=["基础"])
v1_router.include_router(projects_router, prefix="/projects", tags=["项目管理"])
v1_router.include_router(deployments_router, prefix="/deployments", tags=["部署"])
v1_router.include_router(logs_router, prefix="/logs", tags=["日志"])
v1_router.include_router(websocket_logs_router, prefix="/ws", tags=["WebSocket"])

__all__ = ["v1_router"]
