"""
有界并发上传器

W = min(concurrency, D) 个 asyncio 任务共享一个上传单元数组和一个游标，
每个任务循环领取下一个下标直到数组耗尽。游标领取与结果计数之间没有 await，
因此在事件循环内是原子的；单个文件失败只计数，不影响其他文件。
"""

from __future__ import annotations

import asyncio
import itertools
from collections.abc import Awaitable, Callable, Sequence
from dataclasses import dataclass, field

from loguru import logger

from shipit_core.common.exceptions import UploadUnitFailure
from shipit_core.infrastructure.storage.artifact_store import ArtifactStore
from shipit_builder.discovery import UploadUnit, discover_upload_units

ProgressCallback = Callable[[str], Awaitable[object]]


@dataclass
class UploadSummary:
    """上传结果统计"""
    total: int = 0
    succeeded: int = 0
    failed: int = 0
    failures: list[UploadUnitFailure] = field(default_factory=list)
    # 产物目录本身无法扫描时的错误，此时没有任何文件被尝试上传
    discovery_error: str | None = None

    @property
    def completed(self) -> int:
        return self.succeeded + self.failed


class BoundedUploader:
    """有界并发上传器

    Args:
        store: 产物存储
        project_id: 项目ID，作为目标 key 的一部分
        concurrency: 最大并发数
        key_prefix: 目标 key 前缀
        on_progress: 进度日志回调（通常是 publish_log）
        progress_every: 每完成多少个文件输出一次进度
    """

    def __init__(
        self,
        store: ArtifactStore,
        project_id: str,
        concurrency: int = 100,
        key_prefix: str = "__outputs",
        on_progress: ProgressCallback | None = None,
        progress_every: int = 10,
        discovery_batch_size: int = 50,
    ):
        self.store = store
        self.project_id = project_id
        self.concurrency = max(1, concurrency)
        self.key_prefix = key_prefix.strip("/")
        self.on_progress = on_progress
        self.progress_every = max(1, progress_every)
        self.discovery_batch_size = discovery_batch_size

    def build_key(self, unit: UploadUnit) -> str:
        return f"{self.key_prefix}/{self.project_id}/{unit.relative_path}"

    async def upload(
        self, units: Sequence[UploadUnit] | None = None, root_dir: str | None = None
    ) -> UploadSummary:
        """上传全部文件并返回统计，从不抛出异常

        units 为空且给出 root_dir 时先发现目录下的文件。
        """
        if units is None:
            units = []
            if root_dir:
                try:
                    units = await self._discover(root_dir)
                except OSError as e:
                    logger.error(f"扫描产物目录失败: {root_dir}, 错误: {e}")
                    return UploadSummary(discovery_error=str(e))

        arena = list(units)
        total = len(arena)
        summary = UploadSummary(total=total)
        if total == 0:
            await self._emit("没有需要上传的文件")
            return summary

        workers = min(self.concurrency, total)
        cursor = itertools.count()
        logger.info(f"开始上传 {total} 个文件，并发数 {workers}")

        async def worker() -> None:
            while True:
                index = next(cursor)
                if index >= total:
                    return
                unit = arena[index]
                failure = await self._upload_one(unit)

                if failure is None:
                    summary.succeeded += 1
                else:
                    summary.failed += 1
                    summary.failures.append(failure)
                done = summary.completed
                if done % self.progress_every == 0 or done == total:
                    await self._emit(
                        f"上传进度: {done}/{total} (成功 {summary.succeeded}, 失败 {summary.failed})"
                    )

        await asyncio.gather(*(worker() for _ in range(workers)))

        logger.info(f"上传完成: 成功 {summary.succeeded}, 失败 {summary.failed}")
        return summary

    async def _upload_one(self, unit: UploadUnit) -> UploadUnitFailure | None:
        try:
            await self.store.put_file(self.build_key(unit), unit.absolute_path, unit.content_type)
        except Exception as e:
            logger.warning(f"文件上传失败: {unit.relative_path}, 错误: {e}")
            return UploadUnitFailure(unit.relative_path, str(e))
        return None

    async def _discover(self, root_dir: str) -> list[UploadUnit]:
        return await asyncio.to_thread(discover_upload_units, root_dir, self.discovery_batch_size)

    async def _emit(self, text: str) -> None:
        if self.on_progress is None:
            logger.info(text)
            return
        try:
            await self.on_progress(text)
        except Exception as e:
            logger.warning(f"进度日志输出失败: {e}")


__all__ = ["BoundedUploader", "UploadSummary"]
