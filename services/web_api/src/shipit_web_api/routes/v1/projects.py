"""项目管理接口"""

from fastapi import APIRouter, status

from shipit_core.common.ids import normalize_uuid
from shipit_core.domain.schemas.common import BaseResponse
from shipit_core.domain.schemas.project import ProjectCreateRequest, ProjectResponse
from shipit_web_api.deps import ProjectServiceDep
from shipit_web_api.response import Messages, ResponseCode, success

router = APIRouter()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    response_model=BaseResponse[ProjectResponse],
    summary="创建项目",
)
async def create_project(request: ProjectCreateRequest, projects: ProjectServiceDep):
    project = await projects.create_project(request)
    return success(
        ProjectResponse.from_model(project),
        message=Messages.CREATED_SUCCESS,
        code=ResponseCode.CREATED,
    )


@router.get("/{project_id}", response_model=BaseResponse[ProjectResponse], summary="项目详情")
async def get_project(project_id: str, projects: ProjectServiceDep):
    project = await projects.get_project(normalize_uuid(project_id) or project_id)
    return success(ProjectResponse.from_model(project), message=Messages.QUERY_SUCCESS)
