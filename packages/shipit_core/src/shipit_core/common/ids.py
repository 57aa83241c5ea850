"""ID 生成模块

提供各种 ID 生成功能：
- UUID 生成
- 短 ID 生成
- 子域名 slug 生成
"""

import secrets
import uuid

_SLUG_ADJECTIVES = (
    "amber", "brave", "calm", "crisp", "dusty", "eager", "fancy", "gentle",
    "happy", "icy", "jolly", "kind", "lively", "misty", "noble", "proud",
    "quiet", "rapid", "shiny", "tidy", "vivid", "witty", "young", "zesty",
)
_SLUG_NOUNS = (
    "anchor", "badger", "canyon", "delta", "ember", "falcon", "glacier", "harbor",
    "island", "jungle", "kettle", "lantern", "meadow", "nebula", "orchard", "pepper",
    "quartz", "river", "summit", "tundra", "valley", "willow", "yarrow", "zephyr",
)


def generate_uuid() -> str:
    """生成 UUID4 字符串（不含连字符）"""
    return uuid.uuid4().hex


def generate_event_id() -> str:
    """生成日志事件 ID（标准带连字符的 UUID4）"""
    return str(uuid.uuid4())


def generate_short_id(length: int = 8) -> str:
    """生成短随机 ID

    Args:
        length: ID 长度（字节数的两倍，因为是十六进制）

    Returns:
        十六进制随机字符串
    """
    return secrets.token_hex(length // 2)


def generate_slug() -> str:
    """生成公开子域名 slug

    Returns:
        格式: {adjective}-{noun}-{random}
    """
    adjective = secrets.choice(_SLUG_ADJECTIVES)
    noun = secrets.choice(_SLUG_NOUNS)
    return f"{adjective}-{noun}-{generate_short_id(4)}"


def normalize_uuid(value: str) -> str | None:
    """把 32 位十六进制或标准 UUID 统一成 32 位十六进制，不合法返回 None"""
    try:
        return uuid.UUID(str(value).strip()).hex
    except (ValueError, AttributeError):
        return None
