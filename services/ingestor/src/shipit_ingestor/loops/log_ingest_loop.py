"""
日志摄取循环

从分区日志消息流批量消费构建日志，校验后一次性写入日志存储。
只有写入成功才确认（XACK）整批消息并刷新保活键；写入失败时不确认，
本消费者的 pending 消息会在下一次轮询时重新读取（至少一次投递，可能产生重复事件）。
"""

from __future__ import annotations

import asyncio
import contextlib
import socket
import time
from dataclasses import dataclass
from datetime import datetime, timedelta
from itertools import groupby

from loguru import logger

from shipit_core.common.config import settings
from shipit_core.common.exceptions import (
    ConsumerStartupError,
    IngestionParseFailure,
    IngestionSinkFailure,
)
from shipit_core.common.ids import generate_event_id
from shipit_core.common.time import now_utc, to_iso
from shipit_core.infrastructure.redis.keys import ingest_heartbeat_key, log_stream_keys
from shipit_core.infrastructure.redis.streams import StreamClient, StreamMessage
from shipit_core.infrastructure.storage.log_sink.base import LogEvent, LogSink
from shipit_ingestor.loops.wire import PAYLOAD_FIELD, parse_wire_record


@dataclass
class BatchOutcome:
    """单批处理结果"""
    stream_key: str
    received: int = 0
    persisted: int = 0
    skipped: int = 0
    acked: int = 0
    committed: bool = False


class LogIngestionConsumer:
    """日志摄取消费者"""

    def __init__(
        self,
        stream: StreamClient,
        sink: LogSink,
        stream_keys: list[str] | None = None,
        group_name: str | None = None,
        consumer_name: str | None = None,
        batch_size: int | None = None,
        block_ms: int | None = None,
        heartbeat_ttl: int | None = None,
        reclaim_idle_ms: int | None = None,
        poll_interval: float = 1.0,
        reclaim_interval: float = 30.0,
        heartbeat_interval: float | None = None,
    ):
        self._stream = stream
        self._sink = sink
        self._stream_keys = stream_keys or log_stream_keys(settings.LOG_STREAM_PARTITIONS)
        self._group = group_name or settings.INGEST_GROUP
        self._consumer = consumer_name or f"{socket.gethostname()}-{id(self)}"
        self._batch_size = batch_size or settings.INGEST_BATCH_SIZE
        self._block_ms = block_ms if block_ms is not None else settings.INGEST_BLOCK_MS
        self._heartbeat_ttl = heartbeat_ttl or settings.INGEST_HEARTBEAT_TTL
        self._reclaim_idle_ms = reclaim_idle_ms or settings.INGEST_RECLAIM_IDLE_MS
        self._poll_interval = poll_interval
        self._reclaim_interval = reclaim_interval
        # 保活刷新间隔为 TTL 的三分之一，写入阻塞时也不会过期
        self._heartbeat_interval = heartbeat_interval or max(self._heartbeat_ttl / 3, 1.0)
        self._heartbeat_task: asyncio.Task | None = None
        self._last_reclaim = 0.0
        self._last_timestamp: datetime | None = None
        self._running = False
        self._task: asyncio.Task | None = None

    @property
    def consumer_name(self) -> str:
        return self._consumer

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """创建消费者组并启动循环，失败时抛出 ConsumerStartupError"""
        if self._running:
            return
        try:
            for key in self._stream_keys:
                await self._stream.ensure_group(key, self._group)
        except Exception as e:
            raise ConsumerStartupError(f"日志摄取消费者启动失败: {e}") from e

        await self.heartbeat()
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        self._heartbeat_task = asyncio.create_task(self._heartbeat_loop())
        logger.info(
            "日志摄取循环已启动: streams={}, group={}, consumer={}",
            len(self._stream_keys),
            self._group,
            self._consumer,
        )

    async def stop(self) -> None:
        """停止日志摄取循环"""
        self._running = False
        for task in (self._task, self._heartbeat_task):
            if task:
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._task = None
        self._heartbeat_task = None
        logger.info("日志摄取循环已停止")

    async def _run_loop(self) -> None:
        """主循环"""
        while self._running:
            try:
                outcomes = await self.poll_once()
                if not outcomes:
                    continue
                # 写入失败的批次留在 pending 中，稍等后重新读取
                if any(not o.committed for o in outcomes):
                    await asyncio.sleep(self._poll_interval)
            except asyncio.CancelledError:
                break
            except Exception as e:
                logger.error(f"日志摄取循环异常: {e}")
                await asyncio.sleep(self._poll_interval)

    async def poll_once(self) -> list[BatchOutcome]:
        """读取一轮消息并逐个分区处理

        先读取本消费者未确认的消息，再阻塞读取新消息。
        """
        messages = await self._stream.xreadgroup(
            self._stream_keys,
            group_name=self._group,
            consumer_name=self._consumer,
            count=self._batch_size,
            read_pending=True,
            raw=True,
        )
        if not messages:
            messages = await self._stream.xreadgroup(
                self._stream_keys,
                group_name=self._group,
                consumer_name=self._consumer,
                count=self._batch_size,
                block_ms=self._block_ms,
                raw=True,
            )

        if not messages:
            await self.heartbeat()
            await self._maybe_reclaim()
            return []

        outcomes = []
        for stream_key, batch in groupby(messages, key=lambda m: m.stream_key):
            outcomes.append(await self.process_batch(stream_key, list(batch)))
        return outcomes

    async def process_batch(self, stream_key: str, messages: list[StreamMessage]) -> BatchOutcome:
        """处理单个分区的一批消息"""
        outcome = BatchOutcome(stream_key=stream_key, received=len(messages))
        logger.debug(f"收到 {len(messages)} 条日志消息: {stream_key}")

        try:
            resolved_ids: list[str] = []
            events: list[LogEvent] = []

            for message in messages:
                payload = message.data.get(PAYLOAD_FIELD)
                if not payload:
                    outcome.skipped += 1
                    resolved_ids.append(message.msg_id)
                    continue

                try:
                    record = parse_wire_record(payload, message.msg_id)
                except IngestionParseFailure as e:
                    logger.warning(f"跳过非法日志消息 {message.msg_id}: {e.message}")
                    outcome.skipped += 1
                    resolved_ids.append(message.msg_id)
                    continue

                events.append(
                    LogEvent(
                        event_id=generate_event_id(),
                        deployment_id=record.deployment_id,
                        log=record.log,
                        timestamp=self._next_timestamp(),
                    )
                )
                resolved_ids.append(message.msg_id)

            if events:
                result = await self._sink.write_batch(events)
                if not result.success:
                    raise IngestionSinkFailure(result.error or "日志存储写入失败", len(events))
                outcome.persisted = len(events)
                logger.info(f"已写入 {len(events)} 条日志事件: {stream_key}")

            outcome.acked = await self._stream.xack(stream_key, resolved_ids, self._group)
            outcome.committed = True
            await self.heartbeat()

        except IngestionSinkFailure as e:
            logger.error(f"日志批量写入失败，本批 {outcome.received} 条不确认，等待重新投递: {e.message}")

        except Exception as e:
            logger.error(f"处理日志批次异常: {stream_key}, 错误: {e}")
            await self.heartbeat()

        return outcome

    def _next_timestamp(self) -> datetime:
        """毫秒精度、严格递增的事件时间

        日志存储按 (deployment_id, timestamp) 排序且只保留毫秒，
        同一毫秒内的多条日志需要错开才能保持原有顺序。
        """
        now = now_utc()
        now = now.replace(microsecond=now.microsecond // 1000 * 1000)
        if self._last_timestamp is not None and now <= self._last_timestamp:
            now = self._last_timestamp + timedelta(milliseconds=1)
        self._last_timestamp = now
        return now

    async def heartbeat(self) -> bool:
        """刷新保活键，失败只记录日志"""
        try:
            await self._stream.redis.set(
                ingest_heartbeat_key(self._consumer),
                to_iso(now_utc()),
                ex=self._heartbeat_ttl,
            )
            return True
        except Exception as e:
            logger.warning(f"摄取消费者保活失败: {e}")
            return False

    async def _heartbeat_loop(self) -> None:
        """独立于批处理的周期保活"""
        while self._running:
            await asyncio.sleep(self._heartbeat_interval)
            await self.heartbeat()

    async def _maybe_reclaim(self) -> None:
        now = time.monotonic()
        if now - self._last_reclaim < self._reclaim_interval:
            return
        self._last_reclaim = now
        try:
            await self.reclaim_orphans()
        except Exception as e:
            logger.warning(f"回收失联消费者消息失败: {e}")

    async def reclaim_orphans(self) -> int:
        """把保活已过期的消费者名下超时未确认的消息转移到本消费者"""
        claimed = 0
        redis = self._stream.redis
        for key in self._stream_keys:
            pending = await self._stream.xpending_range(
                key,
                self._group,
                count=self._batch_size,
                min_idle_time_ms=self._reclaim_idle_ms,
            )
            by_consumer: dict[str, list[str]] = {}
            for item in pending:
                if item.consumer != self._consumer:
                    by_consumer.setdefault(item.consumer, []).append(item.msg_id)

            for consumer, msg_ids in by_consumer.items():
                if await redis.exists(ingest_heartbeat_key(consumer)):
                    continue
                moved = await self._stream.xclaim(
                    key, self._group, self._consumer, self._reclaim_idle_ms, msg_ids
                )
                claimed += len(moved)
                if moved:
                    logger.info(f"已接管失联消费者 {consumer} 的 {len(moved)} 条消息: {key}")
        return claimed


__all__ = ["BatchOutcome", "LogIngestionConsumer"]
