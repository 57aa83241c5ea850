"""
日志消息流记录解析
"""

from typing import Any

import ujson
from pydantic import ValidationError as PydanticValidationError

from shipit_core.common.exceptions import IngestionParseFailure
from shipit_core.domain.schemas.logs import LogWireRecord

# 消息流条目中承载 JSON 的字段名
PAYLOAD_FIELD = "payload"


def parse_wire_record(payload: Any, msg_id: str | None = None) -> LogWireRecord:
    """解析并校验一条日志记录，缺少 deployment_id 或 log 时抛出 IngestionParseFailure"""
    if isinstance(payload, bytes):
        payload = payload.decode("utf-8", errors="replace")
    if isinstance(payload, str):
        try:
            payload = ujson.loads(payload)
        except ValueError as e:
            raise IngestionParseFailure(f"JSON 解析失败: {e}", msg_id) from e

    if not isinstance(payload, dict):
        raise IngestionParseFailure(f"记录不是 JSON 对象: {type(payload).__name__}", msg_id)

    try:
        return LogWireRecord.model_validate(payload)
    except PydanticValidationError as e:
        fields = ",".join(str(err["loc"][0]) for err in e.errors() if err.get("loc"))
        raise IngestionParseFailure(f"缺少或非法字段: {fields}", msg_id) from e


__all__ = ["PAYLOAD_FIELD", "parse_wire_record"]
