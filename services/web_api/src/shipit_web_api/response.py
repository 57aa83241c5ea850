"""统一响应工具（Web API）"""

from enum import IntEnum

from shipit_core.domain.schemas.common import BaseResponse


class ResponseCode(IntEnum):
    """HTTP 响应状态码"""

    SUCCESS = 200
    CREATED = 201
    ACCEPTED = 202
    BAD_REQUEST = 400
    NOT_FOUND = 404
    UNPROCESSABLE = 422
    SERVER_ERROR = 500
    BAD_GATEWAY = 502
    SERVICE_UNAVAILABLE = 503


class Messages:
    """标准响应消息"""

    OPERATION_SUCCESS = "操作成功"
    CREATED_SUCCESS = "创建成功"
    QUERY_SUCCESS = "查询成功"
    QUEUED = "queued"
    BAD_REQUEST = "请求参数无效"
    NOT_FOUND = "资源不存在"
    SERVER_ERROR = "服务器内部错误"


def success(data=None, message=Messages.OPERATION_SUCCESS, code=ResponseCode.SUCCESS):
    """构建成功响应"""
    return BaseResponse(success=True, code=int(code), message=message, data=data)


def error(message, code, data=None):
    """构建错误响应"""
    return BaseResponse(success=False, code=int(code), message=message, data=data)
