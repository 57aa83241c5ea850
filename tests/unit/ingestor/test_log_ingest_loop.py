"""
日志摄取消费者单元测试

覆盖：部分非法批次、写入失败不确认并重试、全部非法批次、保活与失联消费者接管。
"""

import asyncio

import ujson
import pytest

from shipit_core.common.exceptions import ConsumerStartupError
from shipit_core.infrastructure.redis.keys import ingest_heartbeat_key
from shipit_ingestor.loops.log_ingest_loop import LogIngestionConsumer
from tests.unit.fakes import FakeLogSink, FakeStreamClient

KEY = "shipit:stream:logs:0"
GROUP = "core-logs-consumer"


def _consumer(stream, sink, name="c1", **kwargs) -> LogIngestionConsumer:
    return LogIngestionConsumer(
        stream,
        sink,
        stream_keys=[KEY],
        group_name=GROUP,
        consumer_name=name,
        batch_size=100,
        block_ms=0,
        heartbeat_ttl=30,
        reclaim_idle_ms=1000,
        reclaim_interval=0,
        **kwargs,
    )


async def _publish(stream, *records):
    for record in records:
        payload = record if isinstance(record, str) else ujson.dumps(record)
        await stream.xadd(KEY, {"payload": payload})


async def _prepared(stream, sink, name="c1"):
    consumer = _consumer(stream, sink, name)
    await stream.ensure_group(KEY, GROUP)
    return consumer


@pytest.mark.asyncio
async def test_partially_malformed_batch(stream, sink):
    consumer = await _prepared(stream, sink)
    await _publish(
        stream,
        {"deployment_id": "D1", "log": "a"},
        {"log": "b"},
        {"deployment_id": "D1", "log": "c"},
    )

    outcomes = await consumer.poll_once()

    assert len(outcomes) == 1
    outcome = outcomes[0]
    assert outcome.received == 3
    assert outcome.persisted == 2
    assert outcome.skipped == 1
    assert outcome.acked == 3
    assert outcome.committed
    assert [e.log for e in sink.events] == ["a", "c"]
    assert len(sink.batches) == 1
    assert stream.pending_ids(KEY, GROUP) == []


@pytest.mark.asyncio
async def test_events_get_fresh_ids_and_utc_timestamps(stream, sink):
    consumer = await _prepared(stream, sink)
    await _publish(stream, {"deployment_id": "D1", "log": "a"}, {"deployment_id": "D1", "log": "a"})

    await consumer.poll_once()

    first, second = sink.events
    assert first.event_id != second.event_id
    assert first.timestamp.utcoffset().total_seconds() == 0


@pytest.mark.asyncio
async def test_empty_payload_is_skipped_and_acked(stream, sink):
    consumer = await _prepared(stream, sink)
    await stream.xadd(KEY, {"payload": ""})
    await stream.xadd(KEY, {"other": "x"})
    await _publish(stream, {"deployment_id": "D1", "log": "ok"})

    outcome, = await consumer.poll_once()

    assert outcome.skipped == 2
    assert outcome.persisted == 1
    assert outcome.acked == 3


@pytest.mark.asyncio
async def test_sink_failure_leaves_batch_pending_then_retries(stream, fake_redis):
    sink = FakeLogSink(fail_writes=1)
    consumer = await _prepared(stream, sink)
    await _publish(
        stream,
        {"deployment_id": "D1", "log": "a"},
        {"log": "b"},
        {"deployment_id": "D1", "log": "c"},
    )

    failed, = await consumer.poll_once()

    assert failed.committed is False
    assert failed.acked == 0
    assert stream.acked == []
    assert len(stream.pending_ids(KEY, GROUP)) == 3
    assert ingest_heartbeat_key("c1") not in fake_redis.kv

    retried, = await consumer.poll_once()

    assert retried.committed
    assert retried.acked == 3
    assert [e.log for e in sink.batches[0]] == [e.log for e in sink.batches[1]] == ["a", "c"]
    assert stream.pending_ids(KEY, GROUP) == []
    assert ingest_heartbeat_key("c1") in fake_redis.kv


@pytest.mark.asyncio
async def test_all_invalid_batch_acked_without_write(stream, sink):
    consumer = await _prepared(stream, sink)
    await _publish(stream, {"log": "x"}, "garbage")

    outcome, = await consumer.poll_once()

    assert outcome.acked == 2
    assert outcome.persisted == 0
    assert sink.batches == []


@pytest.mark.asyncio
async def test_heartbeat_failure_does_not_block_commit(stream, sink, fake_redis):
    consumer = await _prepared(stream, sink)
    fake_redis.fail_set = True
    await _publish(stream, {"deployment_id": "D1", "log": "a"})

    outcome, = await consumer.poll_once()

    assert outcome.committed
    assert await consumer.heartbeat() is False


@pytest.mark.asyncio
async def test_heartbeat_uses_ttl(stream, sink, fake_redis):
    consumer = _consumer(stream, sink)

    assert await consumer.heartbeat() is True
    assert fake_redis.ttl[ingest_heartbeat_key("c1")] == 30


@pytest.mark.asyncio
async def test_start_fails_when_group_cannot_be_created(sink):
    stream = FakeStreamClient()

    async def broken(stream_key, group_name):
        raise ConnectionError("redis down")

    stream.ensure_group = broken
    consumer = _consumer(stream, sink)

    with pytest.raises(ConsumerStartupError):
        await consumer.start()
    assert consumer.is_running is False


@pytest.mark.asyncio
async def test_start_and_stop(stream, sink, fake_redis):
    consumer = _consumer(stream, sink)

    await consumer.start()
    assert consumer.is_running
    assert (KEY, GROUP) in stream.groups
    assert ingest_heartbeat_key("c1") in fake_redis.kv

    await consumer.stop()
    assert consumer.is_running is False


@pytest.mark.asyncio
async def test_orphaned_entries_are_reclaimed(stream, sink, fake_redis):
    dead = await _prepared(stream, FakeLogSink(fail_writes=1), name="dead")
    await _publish(stream, {"deployment_id": "D1", "log": "a"})
    await dead.poll_once()
    assert stream.pending_ids(KEY, GROUP) != []

    alive = _consumer(stream, sink, name="alive")
    assert await alive.reclaim_orphans() == 1

    outcome, = await alive.poll_once()
    assert outcome.persisted == 1
    assert stream.pending_ids(KEY, GROUP) == []


@pytest.mark.asyncio
async def test_live_consumer_entries_are_not_reclaimed(stream, sink, fake_redis):
    busy = await _prepared(stream, FakeLogSink(fail_writes=1), name="busy")
    await _publish(stream, {"deployment_id": "D1", "log": "a"})
    await busy.poll_once()
    await busy.heartbeat()

    other = _consumer(stream, sink, name="other")

    assert await other.reclaim_orphans() == 0


@pytest.mark.asyncio
async def test_idle_poll_triggers_reclaim(stream, sink):
    dead = await _prepared(stream, FakeLogSink(fail_writes=1), name="dead")
    await _publish(stream, {"deployment_id": "D1", "log": "a"})
    await dead.poll_once()

    alive = _consumer(stream, sink, name="alive")
    assert await alive.poll_once() == []

    outcome, = await alive.poll_once()
    assert outcome.persisted == 1


@pytest.mark.asyncio
async def test_idle_poll_refreshes_heartbeat(stream, sink, fake_redis):
    consumer = await _prepared(stream, sink)
    await consumer.heartbeat()
    fake_redis.expire(ingest_heartbeat_key("c1"))

    for _ in range(3):
        assert await consumer.poll_once() == []

    assert ingest_heartbeat_key("c1") in fake_redis.kv
    assert fake_redis.ttl[ingest_heartbeat_key("c1")] == 30


@pytest.mark.asyncio
async def test_heartbeat_refreshed_while_running(stream, sink, fake_redis):
    consumer = _consumer(stream, sink, heartbeat_interval=0.01)
    await consumer.start()
    try:
        fake_redis.expire(ingest_heartbeat_key("c1"))
        await asyncio.sleep(0.1)
        assert ingest_heartbeat_key("c1") in fake_redis.kv
    finally:
        await consumer.stop()


@pytest.mark.asyncio
async def test_timestamps_strictly_increase_at_millisecond_precision(stream, sink):
    consumer = await _prepared(stream, sink)
    await _publish(stream, *({"deployment_id": "D1", "log": f"line {i}"} for i in range(50)))
    await consumer.poll_once()
    await _publish(stream, {"deployment_id": "D1", "log": "next batch"})
    await consumer.poll_once()

    stamps = [event.timestamp for event in sink.events]
    assert len(stamps) == 51
    assert all(stamp.microsecond % 1000 == 0 for stamp in stamps)
    assert all(a < b for a, b in zip(stamps, stamps[1:]))
    assert [event.log for event in sink.events][-1] == "next batch"
