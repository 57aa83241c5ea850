"""时间工具模块

提供时间相关的工具函数：
- UTC 时间获取
- ISO8601 格式化与解析
- 时区转换
"""

from datetime import UTC, datetime

import pytz


def now_utc() -> datetime:
    """获取当前 UTC 时间（带时区信息）"""
    return datetime.now(UTC)


def timestamp_ms() -> int:
    """获取当前时间戳（毫秒）"""
    return int(datetime.now(UTC).timestamp() * 1000)


def ensure_utc(dt: datetime) -> datetime:
    """无时区信息的 datetime 视为 UTC"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def to_iso(dt: datetime) -> str:
    """格式化为毫秒精度的 ISO8601 字符串，例如 2024-01-01T00:00:00.000Z"""
    dt = ensure_utc(dt)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.") + f"{dt.microsecond // 1000:03d}Z"


def parse_iso(value: str) -> datetime:
    """解析 ISO8601 字符串，兼容结尾的 Z"""
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return ensure_utc(datetime.fromisoformat(text))


def to_timezone(dt: datetime, tz: str = "UTC") -> datetime:
    """UTC 时间转换到指定时区

    Args:
        dt: datetime，无时区信息时视为 UTC
        tz: 目标时区名称

    Returns:
        目标时区的 datetime
    """
    return ensure_utc(dt).astimezone(pytz.timezone(tz))


__all__ = [
    "now_utc",
    "timestamp_ms",
    "ensure_utc",
    "to_iso",
    "parse_iso",
    "to_timezone",
]
