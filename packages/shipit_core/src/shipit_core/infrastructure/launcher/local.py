"""
本地进程执行器启动器

开发环境使用：在本机以子进程运行 `python -m shipit_builder`。
"""

import asyncio
import contextlib
import os
import sys

from loguru import logger

from shipit_core.common.exceptions import LaunchFailure
from shipit_core.domain.schemas.build import BuildTaskDescriptor
from shipit_core.infrastructure.launcher.base import ExecutorLauncher, LaunchResult


class LocalProcessLauncher(ExecutorLauncher):
    """以本地子进程启动构建执行器"""

    name = "local"

    def __init__(self, command: list[str] | None = None, cwd: str | None = None):
        self.command = command or [sys.executable, "-m", "shipit_builder"]
        self.cwd = cwd
        self._processes: dict[int, asyncio.subprocess.Process] = {}
        self._reapers: set[asyncio.Task] = set()

    async def launch(self, descriptor: BuildTaskDescriptor) -> LaunchResult:
        env = os.environ.copy()
        env.update(descriptor.to_env())
        try:
            process = await asyncio.create_subprocess_exec(
                *self.command,
                cwd=self.cwd,
                env=env,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
        except OSError as e:
            raise LaunchFailure(f"本地执行器启动失败: {e}", descriptor.deployment_id) from e

        self._processes[process.pid] = process
        reaper = asyncio.create_task(self._reap(process, descriptor.deployment_id))
        self._reapers.add(reaper)
        reaper.add_done_callback(self._reapers.discard)

        logger.info(f"本地执行器已启动: deployment={descriptor.deployment_id}, pid={process.pid}")
        return LaunchResult(task_ref=f"pid:{process.pid}", backend=self.name)

    async def _reap(self, process: asyncio.subprocess.Process, deployment_id: str) -> None:
        try:
            code = await process.wait()
            logger.info(f"本地执行器已退出: deployment={deployment_id}, exit_code={code}")
        finally:
            self._processes.pop(process.pid, None)

    async def close(self) -> None:
        """终止仍在运行的子进程"""
        for process in list(self._processes.values()):
            with contextlib.suppress(ProcessLookupError):
                process.terminate()
        for reaper in list(self._reapers):
            with contextlib.suppress(asyncio.CancelledError):
                await reaper
