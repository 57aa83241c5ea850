"""
ShipIt 异常模块

仅包含与 HTTP 无关的异常定义。
"""

from __future__ import annotations

# =============================================================================
# 基础异常类
# =============================================================================


class ShipItException(Exception):
    """ShipIt 异常基类"""

    def __init__(self, message: str, error_code: str | None = None):
        self.message = message
        self.error_code = error_code
        super().__init__(message)


class ConfigurationError(ShipItException):
    """配置错误异常"""

    def __init__(self, message: str):
        super().__init__(message, error_code="CONFIGURATION_ERROR")


class ValidationError(ShipItException):
    """验证错误异常（调用方输入不合法，不产生副作用）"""

    def __init__(self, message: str, field: str | None = None):
        self.field = field
        super().__init__(message, error_code="VALIDATION_ERROR")


class NotFoundError(ShipItException):
    """资源不存在异常"""

    def __init__(self, resource: str, identifier: str | int | None = None):
        self.resource = resource
        self.identifier = identifier
        message = f"{resource} 不存在"
        if identifier:
            message = f"{resource} {identifier} 不存在"
        super().__init__(message, error_code="NOT_FOUND")


# =============================================================================
# 基础设施异常
# =============================================================================


class RedisConnectionError(ShipItException):
    """Redis 连接错误"""

    def __init__(self, message: str = "Redis 连接失败"):
        super().__init__(message, error_code="REDIS_CONNECTION_ERROR")


class StorageError(ShipItException):
    """存储错误"""

    def __init__(self, message: str):
        super().__init__(message, error_code="STORAGE_ERROR")


# =============================================================================
# 部署分发异常
# =============================================================================


class LaunchFailure(ShipItException):
    """构建执行器启动失败

    响应已返回给调用方，该异常只记录日志并把部署标记为 DISPATCH_FAILED。
    """

    def __init__(self, message: str, deployment_id: str | None = None):
        self.deployment_id = deployment_id
        super().__init__(message, error_code="LAUNCH_FAILURE")


class InvalidStatusTransition(ShipItException):
    """部署状态迁移不合法（状态只允许单调前进）"""

    def __init__(self, deployment_id: str, current: str, target: str):
        self.deployment_id = deployment_id
        self.current = current
        self.target = target
        super().__init__(
            f"部署 {deployment_id} 状态不允许从 {current} 迁移到 {target}",
            error_code="INVALID_STATUS_TRANSITION",
        )


# =============================================================================
# 日志摄取异常
# =============================================================================


class IngestionParseFailure(ShipItException):
    """消息解析失败：跳过并确认，不会重试"""

    def __init__(self, message: str, msg_id: str | None = None):
        self.msg_id = msg_id
        super().__init__(message, error_code="INGESTION_PARSE_FAILURE")


class IngestionSinkFailure(ShipItException):
    """批量写入日志存储失败：不确认，等待重新投递"""

    def __init__(self, message: str, batch_size: int = 0):
        self.batch_size = batch_size
        super().__init__(message, error_code="INGESTION_SINK_FAILURE")


class ConsumerStartupError(ShipItException):
    """摄取消费者启动失败，宿主进程应当退出"""

    def __init__(self, message: str):
        super().__init__(message, error_code="CONSUMER_STARTUP_ERROR")


# =============================================================================
# 构建执行器异常
# =============================================================================


class BuildError(ShipItException):
    """构建过程中不可恢复的错误"""

    def __init__(self, message: str, stage: str | None = None):
        self.stage = stage
        super().__init__(message, error_code="BUILD_ERROR")


class UploadUnitFailure(ShipItException):
    """单个文件上传失败，只计入失败数，不中断上传池"""

    def __init__(self, relative_path: str, message: str):
        self.relative_path = relative_path
        super().__init__(f"{relative_path}: {message}", error_code="UPLOAD_UNIT_FAILURE")


class PublishFailure(ShipItException):
    """日志发布失败，回退到本地诊断输出"""

    def __init__(self, message: str, channel: str | None = None):
        self.channel = channel
        super().__init__(message, error_code="PUBLISH_FAILURE")
