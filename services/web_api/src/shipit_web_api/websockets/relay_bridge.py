"""
实时日志转发

PSUBSCRIBE 所有部署的日志广播频道，把收到的原始日志文本推送给对应部署分组的 WebSocket。
Relay 不保留消息，订阅之前发布的日志不会被转发。
"""

from __future__ import annotations

import asyncio
import contextlib

from loguru import logger

from shipit_core.infrastructure.redis.keys import deployment_from_channel, log_channel_pattern
from shipit_web_api.websockets.connection_manager import LogConnectionManager


def _decode(value) -> str:
    return value.decode("utf-8", errors="replace") if isinstance(value, bytes) else str(value)


class RelayBridge:
    """Redis pub/sub -> WebSocket 分组"""

    def __init__(
        self,
        redis_client,
        manager: LogConnectionManager,
        poll_timeout: float = 1.0,
    ):
        self._redis = redis_client
        self.manager = manager
        self._poll_timeout = poll_timeout
        self._pubsub = None
        self._pattern: str | None = None
        self._task: asyncio.Task | None = None

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def subscribe(self, channel_pattern: str | None = None) -> None:
        """订阅频道模式并启动转发任务"""
        if self._pubsub is not None:
            return
        self._pattern = channel_pattern or log_channel_pattern()
        self._pubsub = self._redis.pubsub()
        await self._pubsub.psubscribe(self._pattern)
        self._task = asyncio.create_task(self._listen(), name="relay-bridge")
        logger.info(f"实时日志转发已订阅: {self._pattern}")

    async def _listen(self) -> None:
        while True:
            try:
                message = await self._pubsub.get_message(
                    ignore_subscribe_messages=True, timeout=self._poll_timeout
                )
            except asyncio.CancelledError:
                raise
            except Exception as e:
                logger.error(f"读取广播消息失败: {e}")
                await asyncio.sleep(self._poll_timeout)
                continue

            if not message or message.get("type") != "pmessage":
                continue
            try:
                await self.on_message(message["channel"], message["data"])
            except Exception as e:
                logger.error(f"转发广播消息失败: {e}")

    async def on_message(self, channel, payload) -> int:
        """把一条广播推送给部署分组，返回送达数量"""
        deployment_id = deployment_from_channel(channel)
        if deployment_id is None:
            return 0
        return await self.manager.broadcast(deployment_id, _decode(payload))

    async def close(self) -> None:
        if self._task is not None:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        if self._pubsub is not None:
            try:
                await self._pubsub.punsubscribe()
                await self._pubsub.aclose()
            except Exception as e:
                logger.warning(f"关闭广播订阅失败: {e}")
            self._pubsub = None
        logger.info("实时日志转发已停止")


__all__ = ["RelayBridge"]
