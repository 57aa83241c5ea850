"""部署日志查询接口"""

from fastapi import APIRouter, Query

from shipit_core.common.ids import normalize_uuid
from shipit_core.domain.schemas.common import BaseResponse
from shipit_core.domain.schemas.logs import LogEventListResponse
from shipit_web_api.deps import LogQueryDep
from shipit_web_api.exceptions import InvalidDeploymentIdException
from shipit_web_api.response import Messages, success

router = APIRouter()


@router.get("/{deployment_id}", response_model=BaseResponse[LogEventListResponse], summary="部署日志")
async def get_deployment_logs(
    deployment_id: str,
    log_query: LogQueryDep,
    limit: int | None = Query(None, ge=1, le=100000, description="最多返回条数"),
):
    """按时间戳升序返回部署的全部日志事件"""
    normalized = normalize_uuid(deployment_id)
    if normalized is None:
        raise InvalidDeploymentIdException(deployment_id)

    result = await log_query.get_deployment_logs(normalized, limit=limit)
    return success(result, message=Messages.QUERY_SUCCESS)
