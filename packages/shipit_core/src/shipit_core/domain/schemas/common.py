"""
通用 Schema

通用响应模式。
"""

from datetime import UTC, datetime
from typing import Generic, TypeVar

from pydantic import BaseModel, Field

T = TypeVar("T")


def _now() -> datetime:
    return datetime.now(UTC)


class BaseResponse(BaseModel, Generic[T]):
    """通用响应模型"""
    success: bool = Field(default=True)
    code: int = Field(default=200)
    message: str = Field(default="")
    data: T | None = Field(default=None)
    timestamp: datetime = Field(default_factory=_now)


class ErrorDetail(BaseModel):
    """错误详情"""
    field: str
    message: str


class ErrorResponse(BaseModel):
    """错误响应模型"""
    success: bool = Field(default=False)
    code: int
    message: str
    errors: list[ErrorDetail] = Field(default_factory=list)
    timestamp: datetime = Field(default_factory=_now)


class HealthResponse(BaseModel):
    """健康检查响应"""
    status: str
    version: str
    timestamp: str


__all__ = [
    "BaseResponse",
    "ErrorDetail",
    "ErrorResponse",
    "HealthResponse",
]
