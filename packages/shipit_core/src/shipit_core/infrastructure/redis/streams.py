"""Redis Streams 封装

提供 Redis Streams 的高级操作封装，支持：
- 消息发布 (XADD)
- 消费者组管理 (XGROUP)
- 消息读取 (XREADGROUP，支持多分区)
- 消息确认 (XACK)
- 超时消息转移 (XPENDING/XCLAIM)
"""

from dataclasses import dataclass, field
from typing import Any

import ujson
from loguru import logger


def _to_json(obj: Any) -> str:
    """序列化为 JSON"""
    return ujson.dumps(obj, ensure_ascii=False)


def _from_json(data: str | bytes) -> Any:
    """从 JSON 反序列化"""
    if isinstance(data, bytes):
        data = data.decode("utf-8")
    return ujson.loads(data)


def _decode(value) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


@dataclass
class StreamMessage:
    """Stream 消息数据类"""

    msg_id: str = ""
    data: dict = field(default_factory=dict)
    stream_key: str = ""


@dataclass
class PendingMessage:
    """待处理消息信息"""

    msg_id: str = ""
    consumer: str = ""
    idle_time_ms: int = 0
    delivery_count: int = 0


class StreamClient:
    """Redis Streams 客户端

    Args:
        redis_client: 已连接的 redis.asyncio.Redis 实例（由调用方持有并关闭）
    """

    def __init__(self, redis_client):
        self._redis = redis_client

    @property
    def redis(self):
        return self._redis

    # =========================================================================
    # 消息发布
    # =========================================================================

    async def xadd(
        self,
        stream_key: str,
        data: dict,
        msg_id: str = "*",
        maxlen: int | None = None,
        approximate: bool = True,
    ) -> str:
        """添加消息到 Stream

        Args:
            stream_key: Stream 键名
            data: 消息数据字典，非字符串值会序列化为 JSON
            msg_id: 消息 ID，默认 "*" 自动生成
            maxlen: 最大长度限制，超过时自动裁剪
            approximate: 是否使用近似裁剪

        Returns:
            消息 ID
        """
        serialized = {
            k: _to_json(v) if not isinstance(v, (str, bytes)) else v
            for k, v in data.items()
        }

        kwargs = {}
        if maxlen is not None:
            kwargs["maxlen"] = maxlen
            kwargs["approximate"] = approximate

        result = await self._redis.xadd(stream_key, serialized, id=msg_id, **kwargs)
        return _decode(result)

    # =========================================================================
    # 消费者组管理
    # =========================================================================

    async def xgroup_create(
        self,
        stream_key: str,
        group_name: str,
        start_id: str = "0",
        mkstream: bool = True,
    ) -> bool:
        """创建消费者组，已存在时视为成功

        Args:
            stream_key: Stream 键名
            group_name: 消费者组名称
            start_id: 起始消息 ID，"0" 从头开始，"$" 从最新开始
            mkstream: 如果 Stream 不存在是否自动创建
        """
        try:
            await self._redis.xgroup_create(stream_key, group_name, id=start_id, mkstream=mkstream)
            logger.debug(f"创建消费者组成功: {stream_key} -> {group_name}")
            return True
        except Exception as e:
            if "BUSYGROUP" in str(e):
                logger.debug(f"消费者组已存在: {stream_key} -> {group_name}")
                return True
            logger.error(f"创建消费者组失败: {stream_key} -> {group_name}, 错误: {e}")
            raise

    async def ensure_group(self, stream_key: str, group_name: str) -> bool:
        """确保消费者组存在"""
        return await self.xgroup_create(stream_key, group_name, mkstream=True)

    # =========================================================================
    # 消息读取
    # =========================================================================

    async def xreadgroup(
        self,
        stream_keys: str | list[str],
        group_name: str,
        consumer_name: str,
        count: int = 10,
        block_ms: int | None = None,
        read_pending: bool = False,
        raw: bool = False,
    ) -> list[StreamMessage]:
        """从消费者组读取消息

        Args:
            stream_keys: 一个或多个 Stream 键名
            group_name: 消费者组名称
            consumer_name: 消费者名称
            count: 每个 Stream 的读取数量
            block_ms: 阻塞等待毫秒数，None 表示不阻塞
            read_pending: 是否读取本消费者已投递未确认的消息
            raw: 为 True 时保留字段原始字符串，不尝试 JSON 解码

        Returns:
            StreamMessage 列表，按 Stream 内到达顺序排列
        """
        keys = [stream_keys] if isinstance(stream_keys, str) else list(stream_keys)
        msg_id = "0" if read_pending else ">"

        kwargs: dict[str, Any] = {"count": count}
        if block_ms is not None and not read_pending:
            kwargs["block"] = block_ms

        try:
            result = await self._redis.xreadgroup(
                group_name, consumer_name, streams={key: msg_id for key in keys}, **kwargs
            )
        except Exception as e:
            if "NOGROUP" in str(e):
                for key in keys:
                    await self.ensure_group(key, group_name)
                return []
            raise
        return self._parse_xread_result(result, raw=raw)

    def _parse_xread_result(self, result, raw: bool = False) -> list[StreamMessage]:
        """解析 XREAD/XREADGROUP 结果"""
        messages = []

        if not result:
            return messages

        # RESP3 下返回 dict，RESP2 下返回 [[stream, entries], ...]
        items = result.items() if isinstance(result, dict) else result
        for stream_data in items:
            if len(stream_data) < 2:
                continue

            stream_name = _decode(stream_data[0])
            entries = stream_data[1]
            if entries and isinstance(entries[0], list) and entries[0] and isinstance(entries[0][0], list):
                entries = entries[0]

            messages.extend(self._parse_entries(entries, stream_name, raw=raw))

        return messages

    def _parse_entries(self, entries, stream_key: str, raw: bool = False) -> list[StreamMessage]:
        messages = []
        for msg_data in entries or []:
            if len(msg_data) < 2:
                continue
            msg_id = _decode(msg_data[0])
            # 已被 XDEL 删除的条目字段为 None
            data = self._decode_message_data(msg_data[1], raw=raw) if msg_data[1] else {}
            messages.append(StreamMessage(msg_id=msg_id, data=data, stream_key=stream_key))
        return messages

    def _decode_message_data(self, raw_data, raw: bool = False) -> dict:
        """解码消息数据"""
        data = {}

        if isinstance(raw_data, dict):
            for k, v in raw_data.items():
                key = _decode(k)
                value = _decode(v)
                if raw:
                    data[key] = value
                    continue
                try:
                    data[key] = _from_json(value)
                except (ValueError, TypeError):
                    data[key] = value

        return data

    # =========================================================================
    # 消息确认
    # =========================================================================

    async def xack(self, stream_key: str, msg_ids: list[str], group_name: str) -> int:
        """确认消息已处理

        Returns:
            确认成功的消息数量
        """
        if not msg_ids:
            return 0
        return await self._redis.xack(stream_key, group_name, *msg_ids)

    # =========================================================================
    # 超时消息转移
    # =========================================================================

    async def xpending_range(
        self,
        stream_key: str,
        group_name: str,
        count: int = 100,
        min_idle_time_ms: int | None = None,
    ) -> list[PendingMessage]:
        """列出 pending 消息详情"""
        try:
            result = await self._redis.xpending_range(
                stream_key, group_name, min="-", max="+", count=count, idle=min_idle_time_ms
            )
        except Exception as e:
            if "NOGROUP" in str(e):
                return []
            raise

        return [
            PendingMessage(
                msg_id=_decode(item["message_id"]),
                consumer=_decode(item["consumer"]),
                idle_time_ms=int(item.get("time_since_delivered", 0)),
                delivery_count=int(item.get("times_delivered", 0)),
            )
            for item in result or []
        ]

    async def xclaim(
        self,
        stream_key: str,
        group_name: str,
        consumer_name: str,
        min_idle_time_ms: int,
        msg_ids: list[str],
    ) -> list[StreamMessage]:
        """把指定 pending 消息转移给 consumer_name

        转移后的消息进入新消费者的 pending 列表，下一次 read_pending 读取时处理。
        """
        if not msg_ids:
            return []
        result = await self._redis.xclaim(
            stream_key, group_name, consumer_name, min_idle_time_ms, msg_ids
        )
        return self._parse_entries(result, stream_key, raw=True)


__all__ = ["StreamClient", "StreamMessage", "PendingMessage"]
