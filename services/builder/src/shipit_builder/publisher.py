"""
日志发布与状态上报

publish_log 按 LOG_PUBLISH_MODE 把一行日志写入分区消息流（Broker）、
部署的实时广播频道（Relay）或两者。发布失败不会中断构建，
只在本地输出一条带 fallback 标记的日志。
"""

from __future__ import annotations

import ujson
from loguru import logger

from shipit_core.common.exceptions import PublishFailure
from shipit_core.common.time import now_utc
from shipit_core.domain.models.enums import BuildStatus, LogPublishMode
from shipit_core.domain.schemas.build import BuildTaskDescriptor
from shipit_core.domain.schemas.logs import StatusReport
from shipit_core.infrastructure.redis.keys import (
    log_channel,
    log_partition_for,
    log_stream_key,
    status_stream_key,
)
from shipit_core.infrastructure.redis.streams import StreamClient

PAYLOAD_FIELD = "payload"


class LogPublisher:
    """构建日志发布器

    Args:
        stream: Redis Streams 客户端，为 None 时所有日志走本地兜底
        descriptor: 当前构建任务
        mode: 发布目标
        partitions: 日志消息流分区数
        maxlen: 单个分区的近似最大长度
    """

    def __init__(
        self,
        stream: StreamClient | None,
        descriptor: BuildTaskDescriptor,
        mode: LogPublishMode = LogPublishMode.BOTH,
        partitions: int = 4,
        maxlen: int | None = None,
    ):
        self._stream = stream
        self.descriptor = descriptor
        self.mode = mode
        self._stream_key = log_stream_key(log_partition_for(descriptor.deployment_id, partitions))
        self._channel = log_channel(descriptor.deployment_id)
        self._maxlen = maxlen
        self.published = 0
        self.fallbacks = 0

    @property
    def stream_key(self) -> str:
        return self._stream_key

    @property
    def channel(self) -> str:
        return self._channel

    def _wire_payload(self, text: str) -> str:
        return ujson.dumps(
            {
                "project_id": self.descriptor.project_id,
                "deployment_id": self.descriptor.deployment_id,
                "log": text,
            },
            ensure_ascii=False,
        )

    async def _to_broker(self, text: str) -> None:
        try:
            await self._stream.xadd(
                self._stream_key,
                {PAYLOAD_FIELD: self._wire_payload(text)},
                maxlen=self._maxlen,
            )
        except Exception as e:
            raise PublishFailure(str(e), channel=self._stream_key) from e

    async def _to_relay(self, text: str) -> None:
        try:
            await self._stream.redis.publish(self._channel, text)
        except Exception as e:
            raise PublishFailure(str(e), channel=self._channel) from e

    async def publish_log(self, text: str) -> bool:
        """发布一行日志，返回是否全部送达；从不抛出异常"""
        if not text:
            return True
        if self._stream is None:
            self._fallback(text, "未连接 Redis")
            return False

        targets = []
        if self.mode in (LogPublishMode.BROKER, LogPublishMode.BOTH):
            targets.append(self._to_broker)
        if self.mode in (LogPublishMode.RELAY, LogPublishMode.BOTH):
            targets.append(self._to_relay)

        delivered = True
        for target in targets:
            try:
                await target(text)
            except PublishFailure as e:
                delivered = False
                self._fallback(text, f"{e.channel}: {e.message}")

        if delivered:
            self.published += 1
        return delivered

    def _fallback(self, text: str, error: str) -> None:
        self.fallbacks += 1
        logger.bind(fallback=True, deployment_id=self.descriptor.deployment_id).warning(
            f"日志发布失败({error})，本地输出: {text}"
        )


class StatusReporter:
    """构建状态上报，通过独立的状态流发送，失败只记录日志"""

    def __init__(self, stream: StreamClient | None, deployment_id: str):
        self._stream = stream
        self.deployment_id = deployment_id
        self._stream_key = status_stream_key()

    async def report(self, status: BuildStatus, reason: str | None = None) -> bool:
        report = StatusReport(
            deployment_id=self.deployment_id,
            status=status,
            reason=reason,
            reported_at=now_utc(),
        )
        if self._stream is None:
            logger.bind(fallback=True).warning(
                f"未连接 Redis，状态未上报: {self.deployment_id} -> {status.value}"
            )
            return False
        try:
            await self._stream.xadd(self._stream_key, report.to_stream_fields())
        except Exception as e:
            logger.bind(fallback=True).error(
                f"状态上报失败: {self.deployment_id} -> {status.value}, 错误: {e}"
            )
            return False
        logger.info(f"状态已上报: {self.deployment_id} -> {status.value}")
        return True


__all__ = ["LogPublisher", "StatusReporter", "PAYLOAD_FIELD"]
