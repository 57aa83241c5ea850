"""
StreamClient 单元测试

使用 AsyncMock 代替 redis.asyncio.Redis，验证命令参数与结果解析。
"""

from unittest.mock import AsyncMock

import pytest

from shipit_core.infrastructure.redis.streams import StreamClient


@pytest.fixture
def redis():
    return AsyncMock()


@pytest.fixture
def client(redis):
    return StreamClient(redis)


@pytest.mark.asyncio
async def test_xadd_serializes_non_string_values(client, redis):
    redis.xadd.return_value = b"1-0"

    msg_id = await client.xadd("s", {"payload": "raw", "meta": {"a": 1}}, maxlen=10)

    assert msg_id == "1-0"
    args, kwargs = redis.xadd.call_args
    assert args[0] == "s"
    assert args[1]["payload"] == "raw"
    assert args[1]["meta"] == '{"a":1}'
    assert kwargs["maxlen"] == 10
    assert kwargs["approximate"] is True


@pytest.mark.asyncio
async def test_xgroup_create_tolerates_busygroup(client, redis):
    redis.xgroup_create.side_effect = Exception("BUSYGROUP Consumer Group name already exists")

    assert await client.ensure_group("s", "g") is True


@pytest.mark.asyncio
async def test_xgroup_create_propagates_other_errors(client, redis):
    redis.xgroup_create.side_effect = Exception("connection refused")

    with pytest.raises(Exception, match="connection refused"):
        await client.ensure_group("s", "g")


@pytest.mark.asyncio
async def test_xreadgroup_uses_pending_cursor_without_block(client, redis):
    redis.xreadgroup.return_value = []

    await client.xreadgroup(["a", "b"], "g", "c", count=5, block_ms=1000, read_pending=True)

    _, kwargs = redis.xreadgroup.call_args
    assert kwargs["streams"] == {"a": "0", "b": "0"}
    assert "block" not in kwargs


@pytest.mark.asyncio
async def test_xreadgroup_new_entries_blocks(client, redis):
    redis.xreadgroup.return_value = []

    await client.xreadgroup("a", "g", "c", block_ms=1000)

    _, kwargs = redis.xreadgroup.call_args
    assert kwargs["streams"] == {"a": ">"}
    assert kwargs["block"] == 1000


@pytest.mark.asyncio
async def test_xreadgroup_recreates_missing_group(client, redis):
    redis.xreadgroup.side_effect = Exception("NOGROUP No such key")

    assert await client.xreadgroup(["a", "b"], "g", "c") == []
    assert redis.xgroup_create.await_count == 2


@pytest.mark.asyncio
async def test_parse_resp2_result(client, redis):
    redis.xreadgroup.return_value = [
        [b"stream:0", [(b"1-0", {b"payload": b'{"x": 1}'}), (b"2-0", None)]],
    ]

    raw = await client.xreadgroup("stream:0", "g", "c", raw=True)

    assert [m.msg_id for m in raw] == ["1-0", "2-0"]
    assert raw[0].data == {"payload": '{"x": 1}'}
    assert raw[0].stream_key == "stream:0"
    # 已删除的条目字段为空
    assert raw[1].data == {}


@pytest.mark.asyncio
async def test_parse_resp3_result_decodes_json(client, redis):
    redis.xreadgroup.return_value = {
        b"stream:1": [[[b"5-0", {b"payload": b'{"x": 1}', b"text": b"plain"}]]],
    }

    messages = await client.xreadgroup("stream:1", "g", "c")

    assert messages[0].data == {"payload": {"x": 1}, "text": "plain"}


@pytest.mark.asyncio
async def test_xack_skips_empty_list(client, redis):
    assert await client.xack("s", [], "g") == 0
    redis.xack.assert_not_called()


@pytest.mark.asyncio
async def test_xpending_range_parses_entries(client, redis):
    redis.xpending_range.return_value = [
        {"message_id": b"1-0", "consumer": b"c1", "time_since_delivered": 70000, "times_delivered": 2},
    ]

    pending = await client.xpending_range("s", "g", min_idle_time_ms=60000)

    assert pending[0].msg_id == "1-0"
    assert pending[0].consumer == "c1"
    assert pending[0].idle_time_ms == 70000
    assert pending[0].delivery_count == 2
