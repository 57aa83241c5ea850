"""
部署状态消费循环

从状态流消费构建执行器的显式状态上报（running / succeeded / failed）并更新部署。
"""

from __future__ import annotations

import asyncio
import contextlib
import socket
import time
from typing import Any

from loguru import logger
from pydantic import ValidationError as PydanticValidationError

from shipit_core.application.services.deployments.status_service import (
    DeploymentStatusService,
    deployment_status_service,
)
from shipit_core.common.config import settings
from shipit_core.common.exceptions import NotFoundError
from shipit_core.domain.schemas.logs import StatusReport
from shipit_core.infrastructure.redis.keys import status_stream_key
from shipit_core.infrastructure.redis.streams import StreamClient


class DeploymentStatusLoop:
    """部署状态消费循环"""

    def __init__(
        self,
        stream: StreamClient,
        status_service: DeploymentStatusService | None = None,
        stream_key: str | None = None,
        group_name: str | None = None,
        consumer_name: str | None = None,
        poll_interval: float = 1.0,
        block_ms: int = 5000,
        batch_size: int = 50,
        pending_check_interval: int = 30,
    ):
        self._stream = stream
        self._status_service = status_service or deployment_status_service
        self._stream_key = stream_key or status_stream_key()
        self._group = group_name or settings.STATUS_GROUP
        self._consumer = consumer_name or f"{socket.gethostname()}-{id(self)}"
        self._poll_interval = poll_interval
        self._block_ms = block_ms
        self._batch_size = batch_size
        self._pending_check_interval = pending_check_interval
        self._last_pending_check = 0.0
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        """启动状态循环"""
        if self._running:
            return
        await self._stream.ensure_group(self._stream_key, self._group)
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(
            "部署状态循环已启动: stream={}, group={}, consumer={}",
            self._stream_key,
            self._group,
            self._consumer,
        )

    async def stop(self) -> None:
        """停止状态循环"""
        self._running = False
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("部署状态循环已停止")

    async def _run_loop(self) -> None:
        """主循环"""
        while self._running:
            try:
                handled = await self.poll_once()
                if not handled:
                    await asyncio.sleep(self._poll_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"部署状态循环异常: {e}")
                await asyncio.sleep(self._poll_interval)

    async def poll_once(self) -> int:
        """读取并处理一批状态上报，返回确认数量"""
        messages = await self._stream.xreadgroup(
            self._stream_key,
            group_name=self._group,
            consumer_name=self._consumer,
            count=self._batch_size,
            block_ms=self._block_ms,
            raw=True,
        )

        if not messages:
            now = time.time()
            if now - self._last_pending_check >= self._pending_check_interval:
                self._last_pending_check = now
                messages = await self._stream.xreadgroup(
                    self._stream_key,
                    group_name=self._group,
                    consumer_name=self._consumer,
                    count=self._batch_size,
                    read_pending=True,
                    raw=True,
                )
            if not messages:
                return 0

        ack_ids: list[str] = []
        for message in messages:
            try:
                if await self._handle_message(message.data):
                    ack_ids.append(message.msg_id)
            except Exception as exc:
                logger.error(f"处理状态消息失败: {exc}")

        if ack_ids:
            await self._stream.xack(self._stream_key, ack_ids, self._group)
        return len(ack_ids)

    async def _handle_message(self, data: dict[str, Any]) -> bool:
        """处理单条状态消息，返回是否可以确认"""
        try:
            report = StatusReport.model_validate(data)
        except PydanticValidationError as e:
            logger.warning(f"丢弃非法状态消息: {data}, 错误: {e.error_count()} 个字段")
            return True

        try:
            await self._status_service.apply_report(report)
        except NotFoundError:
            logger.warning(f"状态上报对应的部署不存在: {report.deployment_id}")
        return True


__all__ = ["DeploymentStatusLoop"]
