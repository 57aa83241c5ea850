"""部署接口

创建部署只落库并返回 202，执行器在响应发出之后才在后台启动。
"""

from fastapi import APIRouter, BackgroundTasks, status

from shipit_core.application.services.deployments.orchestrator import DeploymentOrchestrator
from shipit_core.common.ids import normalize_uuid
from shipit_core.domain.schemas.build import BuildTaskDescriptor
from shipit_core.domain.schemas.common import BaseResponse
from shipit_core.domain.schemas.deployment import (
    DeploymentCreateRequest,
    DeploymentQueuedResponse,
    DeploymentResponse,
)
from shipit_web_api.deps import OrchestratorDep, StatusServiceDep
from shipit_web_api.response import Messages, ResponseCode, success

router = APIRouter()


async def _schedule_launch(orchestrator: DeploymentOrchestrator, descriptor: BuildTaskDescriptor) -> None:
    # 启动任务由编排器持有，这里不等待其完成
    orchestrator.schedule_launch(descriptor)


@router.post(
    "",
    status_code=status.HTTP_202_ACCEPTED,
    response_model=BaseResponse[DeploymentQueuedResponse],
    summary="创建部署",
)
async def create_deployment(
    request: DeploymentCreateRequest,
    background_tasks: BackgroundTasks,
    orchestrator: OrchestratorDep,
):
    project_id = normalize_uuid(request.project_id) or request.project_id
    deployment, descriptor = await orchestrator.create_deployment(project_id)
    background_tasks.add_task(_schedule_launch, orchestrator, descriptor)
    return success(
        DeploymentQueuedResponse(deployment_id=deployment.public_id),
        message=Messages.QUEUED,
        code=ResponseCode.ACCEPTED,
    )


@router.get("/{deployment_id}", response_model=BaseResponse[DeploymentResponse], summary="部署状态")
async def get_deployment(deployment_id: str, status_service: StatusServiceDep):
    deployment = await status_service.get_deployment(normalize_uuid(deployment_id) or deployment_id)
    return success(DeploymentResponse.from_model(deployment), message=Messages.QUERY_SUCCESS)
