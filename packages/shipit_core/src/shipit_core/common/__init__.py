"""
Common 模块

通用功能：
- config: 配置管理
- logging: 日志配置
- exceptions: 异常定义
- ids: ID 生成
- time: 时间工具
- command_runner: 子进程命令执行
"""

from shipit_core.common.config import settings
from shipit_core.common.exceptions import (
    BuildError,
    ConfigurationError,
    ConsumerStartupError,
    IngestionParseFailure,
    IngestionSinkFailure,
    InvalidStatusTransition,
    LaunchFailure,
    NotFoundError,
    PublishFailure,
    RedisConnectionError,
    ShipItException,
    StorageError,
    UploadUnitFailure,
    ValidationError,
)
from shipit_core.common.ids import (
    generate_event_id,
    generate_short_id,
    generate_slug,
    generate_uuid,
    normalize_uuid,
)
from shipit_core.common.logging import sanitize_log_message, setup_logging
from shipit_core.common.time import (
    ensure_utc,
    now_utc,
    parse_iso,
    timestamp_ms,
    to_iso,
    to_timezone,
)

__all__ = [
    # config
    "settings",
    # logging
    "setup_logging",
    "sanitize_log_message",
    # exceptions
    "ShipItException",
    "BuildError",
    "ConfigurationError",
    "ConsumerStartupError",
    "IngestionParseFailure",
    "IngestionSinkFailure",
    "InvalidStatusTransition",
    "LaunchFailure",
    "NotFoundError",
    "PublishFailure",
    "RedisConnectionError",
    "StorageError",
    "UploadUnitFailure",
    "ValidationError",
    # ids
    "generate_event_id",
    "generate_short_id",
    "generate_slug",
    "generate_uuid",
    "normalize_uuid",
    # time
    "ensure_utc",
    "now_utc",
    "parse_iso",
    "timestamp_ms",
    "to_iso",
    "to_timezone",
]
