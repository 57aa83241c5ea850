"""
本地文件日志存储后端

用于开发和测试环境。存储结构：
    {base_dir}/{deployment_id}.jsonl
"""

import os
import re
from pathlib import Path

import aiofiles
import aiofiles.os
import ujson
from loguru import logger

from shipit_core.common.config import settings
from shipit_core.common.time import parse_iso
from shipit_core.infrastructure.storage.log_sink.base import LogEvent, LogSink, WriteResult

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9_.-]")


class LocalLogSink(LogSink):
    """本地 JSONL 日志存储"""

    def __init__(self, base_dir: str | None = None):
        self.base_dir = Path(base_dir or settings.LOCAL_LOG_SINK_DIR)

    def _get_log_path(self, deployment_id: str) -> Path:
        name = _UNSAFE_CHARS.sub("_", deployment_id).strip(".") or "_"
        return self.base_dir / f"{name}.jsonl"

    async def write_batch(self, events: list[LogEvent]) -> WriteResult:
        if not events:
            return WriteResult(success=True)

        groups: dict[str, list[LogEvent]] = {}
        for event in events:
            groups.setdefault(event.deployment_id, []).append(event)

        try:
            await aiofiles.os.makedirs(self.base_dir, exist_ok=True)
            for deployment_id, group in groups.items():
                lines = "".join(ujson.dumps(e.to_dict(), ensure_ascii=False) + "\n" for e in group)
                async with aiofiles.open(self._get_log_path(deployment_id), "a", encoding="utf-8") as f:
                    await f.write(lines)
        except OSError as e:
            logger.error(f"写入本地日志失败: {e}")
            return WriteResult(success=False, error=str(e))

        return WriteResult(success=True, written=len(events))

    async def query_by_deployment(self, deployment_id: str, limit: int | None = None) -> list[LogEvent]:
        log_path = self._get_log_path(deployment_id)
        if not os.path.exists(log_path):
            return []

        events = []
        async with aiofiles.open(log_path, encoding="utf-8") as f:
            async for line in f:
                if not line.strip():
                    continue
                item = ujson.loads(line)
                if item.get("deployment_id") != deployment_id:
                    continue
                events.append(
                    LogEvent(
                        event_id=item["event_id"],
                        deployment_id=item["deployment_id"],
                        log=item["log"],
                        timestamp=parse_iso(item["timestamp"]),
                    )
                )

        events.sort(key=lambda e: e.timestamp)
        return events[:limit] if limit else events
