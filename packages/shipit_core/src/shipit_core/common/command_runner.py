"""命令执行工具"""
from __future__ import annotations

import asyncio
import codecs
import contextlib
import os
import re
from collections.abc import AsyncIterator, Awaitable, Callable
from dataclasses import dataclass

from loguru import logger

TIMEOUT_EXIT_CODE = 124

# 单条日志的最大字符数
MAX_LINE_LENGTH = 16 * 1024
_READ_CHUNK = 64 * 1024
_LINE_BREAK = re.compile(r"\r\n|\r|\n")


@dataclass
class CommandResult:
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0


def _build_env(env_overrides: dict | None = None) -> dict:
    """构建命令执行环境变量。"""
    base = os.environ.copy()
    if env_overrides:
        base.update(env_overrides)
    return base


async def run_command(
    args: list[str],
    cwd: str | None = None,
    env_overrides: dict | None = None,
    timeout: int = 900,
) -> CommandResult:
    """异步执行命令并返回结果。

    Args:
        args: 命令参数列表
        cwd: 工作目录
        env_overrides: 环境变量覆盖
        timeout: 超时时间（秒）

    Returns:
        CommandResult: 包含 exit_code, stdout, stderr
    """
    env = _build_env(env_overrides)
    cmd_str = " ".join(args)
    logger.debug(f"执行命令: {cmd_str} 目录={cwd or os.getcwd()}")

    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env=env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout_b, stderr_b = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except asyncio.TimeoutError:
        with contextlib.suppress(ProcessLookupError):
            process.kill()
        return CommandResult(exit_code=TIMEOUT_EXIT_CODE, stdout="", stderr=f"命令超时: {cmd_str}")

    stdout = stdout_b.decode(errors="ignore") if stdout_b else ""
    stderr = stderr_b.decode(errors="ignore") if stderr_b else ""
    return CommandResult(exit_code=process.returncode or 0, stdout=stdout, stderr=stderr)
async def iter_output_lines(
    stream: asyncio.StreamReader,
    max_line_length: int = MAX_LINE_LENGTH,
) -> AsyncIterator[str]:
    """按 \\n、\\r\\n 或单独的 \\r 切分输出

    不依赖 StreamReader 的行长度上限；超过 max_line_length 的行按长度切成多段。
    """
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    pending = ""
    while True:
        chunk = await stream.read(_READ_CHUNK)
        pending += decoder.decode(chunk, final=not chunk)
        *lines, pending = _LINE_BREAK.split(pending)
        for line in lines:
            for start in range(0, len(line) or 1, max_line_length):
                yield line[start:start + max_line_length]
        while len(pending) > max_line_length:
            yield pending[:max_line_length]
            pending = pending[max_line_length:]
        if not chunk:
            break
    if pending:
        yield pending


async def stream_command(
    args: list[str],
    on_line: Callable[[str], Awaitable[None]],
    cwd: str | None = None,
    env_overrides: dict | None = None,
    timeout: int | None = None,
    max_line_length: int = MAX_LINE_LENGTH,
) -> int:
    """异步执行命令，逐行回调合并后的 stdout/stderr 输出。

    Args:
        args: 命令参数列表
        on_line: 每行输出的异步回调（已去掉行尾换行）
        cwd: 工作目录
        env_overrides: 环境变量覆盖
        timeout: 超时时间（秒），None 或 0 表示不限制
        max_line_length: 单次回调的最大字符数，更长的行拆成多次回调

    Returns:
        进程退出码，超时返回 124

    回调抛出异常或调用方被取消时，子进程会被杀掉并回收。
    """
    env = _build_env(env_overrides)
    logger.debug(f"执行命令(流式): {' '.join(args)} 目录={cwd or os.getcwd()}")

    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        env=env,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.STDOUT,
    )

    async def _pump() -> int:
        assert process.stdout is not None
        async for line in iter_output_lines(process.stdout, max_line_length):
            if line:
                await on_line(line)
        return await process.wait()

    try:
        return await asyncio.wait_for(_pump(), timeout=timeout or None)
    except asyncio.TimeoutError:
        logger.warning(f"命令超时 ({timeout}s)，终止进程: {args[0]}")
        return TIMEOUT_EXIT_CODE
    finally:
        if process.returncode is None:
            with contextlib.suppress(ProcessLookupError):
                process.kill()
            await process.wait()


__all__ = [
    "CommandResult",
    "MAX_LINE_LENGTH",
    "TIMEOUT_EXIT_CODE",
    "iter_output_lines",
    "run_command",
    "stream_command",
]
