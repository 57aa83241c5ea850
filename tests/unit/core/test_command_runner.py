"""
命令执行工具单元测试
"""

import asyncio
import os
import sys
import time

import pytest

from shipit_core.common.command_runner import (
    MAX_LINE_LENGTH,
    TIMEOUT_EXIT_CODE,
    iter_output_lines,
    run_command,
    stream_command,
)


class Collector:
    def __init__(self):
        self.lines: list[str] = []

    async def __call__(self, line: str) -> None:
        self.lines.append(line)


def python(code: str) -> list[str]:
    return [sys.executable, "-c", code]


async def feed(data: bytes, max_line_length: int = MAX_LINE_LENGTH) -> list[str]:
    reader = asyncio.StreamReader()
    reader.feed_data(data)
    reader.feed_eof()
    return [line async for line in iter_output_lines(reader, max_line_length)]


class TestIterOutputLines:

    @pytest.mark.asyncio
    async def test_splits_on_all_line_breaks(self):
        lines = await feed(b"10%\r50%\r100%\ndone\r\nlast")

        assert lines == ["10%", "50%", "100%", "done", "last"]

    @pytest.mark.asyncio
    async def test_long_lines_are_chunked(self):
        lines = await feed(b"a" * 25 + b"\nb\n", max_line_length=10)

        assert lines == ["a" * 10, "a" * 10, "a" * 5, "b"]

    @pytest.mark.asyncio
    async def test_multibyte_characters_survive_chunk_boundaries(self):
        text = "构建完成" * 30000

        lines = await feed(text.encode("utf-8") + b"\n")

        assert "".join(lines) == text


class TestStreamCommand:

    @pytest.mark.asyncio
    async def test_line_longer_than_reader_limit(self):
        collector = Collector()

        exit_code = await stream_command(
            python("print('x' * 70000); print('after')"), on_line=collector
        )

        assert exit_code == 0
        assert collector.lines[-1] == "after"
        assert "".join(collector.lines[:-1]) == "x" * 70000
        assert all(len(line) <= MAX_LINE_LENGTH for line in collector.lines)

    @pytest.mark.asyncio
    async def test_exit_code_and_stderr_are_merged(self):
        collector = Collector()

        exit_code = await stream_command(
            python("import sys; print('out'); print('err', file=sys.stderr); sys.exit(3)"),
            on_line=collector,
        )

        assert exit_code == 3
        assert sorted(collector.lines) == ["err", "out"]

    @pytest.mark.asyncio
    async def test_timeout_kills_process(self):
        started = time.monotonic()

        exit_code = await stream_command(
            python("import time; print('start', flush=True); time.sleep(30)"),
            on_line=Collector(),
            timeout=1,
        )

        assert exit_code == TIMEOUT_EXIT_CODE
        assert time.monotonic() - started < 10

    @pytest.mark.asyncio
    async def test_callback_error_kills_process(self, tmp_path):
        pid_file = tmp_path / "pid"

        async def broken(_line):
            raise RuntimeError("publisher exploded")

        code = (
            "import os, time, pathlib; "
            f"pathlib.Path({str(pid_file)!r}).write_text(str(os.getpid())); "
            "print('hello', flush=True); time.sleep(30)"
        )
        with pytest.raises(RuntimeError):
            await stream_command(python(code), on_line=broken)

        pid = int(pid_file.read_text())
        # 子进程已被杀掉并回收
        with pytest.raises(ProcessLookupError):
            os.kill(pid, 0)


@pytest.mark.asyncio
async def test_run_command_captures_output():
    result = await run_command(python("print('ok')"))

    assert result.ok
    assert result.stdout.strip() == "ok"
