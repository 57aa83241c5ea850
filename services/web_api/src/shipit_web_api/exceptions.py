"""
Web API 异常模块

包含 HTTP 相关异常与响应处理，仅供 web_api 使用。
核心层抛出的 ShipItException 在这里映射为对应的 HTTP 状态码。
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from fastapi import HTTPException, status
from fastapi.responses import JSONResponse
from loguru import logger

from shipit_core.common.exceptions import (
    ConfigurationError,
    LaunchFailure,
    NotFoundError,
    RedisConnectionError,
    ShipItException,
    StorageError,
    ValidationError,
)
from shipit_core.domain.schemas.common import ErrorDetail, ErrorResponse


class BusinessException(HTTPException):
    """业务异常基类"""

    def __init__(self, status_code: int, detail: str, error_code: str | None = None, errors: list | None = None):
        super().__init__(status_code=status_code, detail=detail)
        self.error_code = error_code
        self.errors = errors or []


class InvalidDeploymentIdException(BusinessException):
    def __init__(self, deployment_id: str):
        super().__init__(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=f"无效的部署ID: {deployment_id}",
            error_code="INVALID_DEPLOYMENT_ID",
            errors=[{"field": "deployment_id", "message": "必须是 32 位十六进制或标准 UUID"}],
        )


_CORE_STATUS_MAP: dict[type[ShipItException], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    LaunchFailure: status.HTTP_502_BAD_GATEWAY,
    RedisConnectionError: status.HTTP_503_SERVICE_UNAVAILABLE,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def create_error_response(
    status_code: int,
    message: str,
    errors: list[dict[str, Any]] | list[ErrorDetail] | None = None,
    error_code: str | None = None,
) -> JSONResponse:
    """创建统一的错误响应"""
    error_details: list[ErrorDetail] = []
    for err in errors or []:
        if isinstance(err, dict):
            error_details.append(
                ErrorDetail(field=err.get("field", ""), message=err.get("message", str(err)))
            )
        elif isinstance(err, ErrorDetail):
            error_details.append(err)

    resp = ErrorResponse(
        success=False,
        code=status_code,
        message=message,
        errors=error_details,
        timestamp=datetime.now(UTC),
    )
    content = resp.model_dump(mode="json")
    if error_code:
        content["error_code"] = error_code
    return JSONResponse(status_code=status_code, content=content)


async def business_exception_handler(request, exc: BusinessException) -> JSONResponse:
    """处理业务异常"""
    return create_error_response(
        status_code=exc.status_code,
        message=exc.detail,
        errors=getattr(exc, "errors", None),
        error_code=getattr(exc, "error_code", None),
    )


async def shipit_exception_handler(request, exc: ShipItException) -> JSONResponse:
    """处理核心层异常"""
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    for exc_type, code in _CORE_STATUS_MAP.items():
        if isinstance(exc, exc_type):
            status_code = code
            break

    errors = None
    field = getattr(exc, "field", None)
    if field:
        errors = [{"field": field, "message": exc.message}]
    if status_code >= 500:
        logger.error(f"请求处理失败: {exc.error_code} {exc.message}")
    return create_error_response(
        status_code=status_code,
        message=exc.message,
        errors=errors,
        error_code=exc.error_code,
    )


async def http_exception_handler(request, exc: HTTPException) -> JSONResponse:
    """处理 HTTP 异常"""
    return create_error_response(status_code=exc.status_code, message=str(exc.detail))


async def validation_exception_handler(request, exc) -> JSONResponse:
    """处理请求验证异常"""
    errors: list[dict[str, Any]] = []
    for error in exc.errors():
        field = ".".join(str(loc) for loc in error.get("loc", []))
        errors.append({"field": field, "message": error.get("msg", "验证失败")})
    return create_error_response(
        status_code=status.HTTP_400_BAD_REQUEST,
        message="请求参数验证失败",
        errors=errors,
    )


async def general_exception_handler(request, exc: Exception) -> JSONResponse:
    """处理未捕获的异常"""
    logger.exception("未处理异常: {}", exc)
    return create_error_response(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        message="服务器内部错误",
    )
