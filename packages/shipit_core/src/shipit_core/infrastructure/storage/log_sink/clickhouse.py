"""
ClickHouse 日志存储后端

表结构：
    CREATE TABLE log_events (
        event_id UUID,
        deployment_id String,
        log String,
        timestamp DateTime64(3, 'UTC')
    ) ENGINE = MergeTree()
    PARTITION BY toYYYYMM(timestamp)
    ORDER BY (deployment_id, timestamp)
"""

import asyncio

import clickhouse_connect
from loguru import logger

from shipit_core.common.config import settings
from shipit_core.common.time import ensure_utc
from shipit_core.infrastructure.storage.log_sink.base import LogEvent, LogSink, WriteResult

CREATE_TABLE_SQL = """
CREATE TABLE IF NOT EXISTS {database}.log_events (
    event_id UUID,
    deployment_id String,
    log String,
    timestamp DateTime64(3, 'UTC'),
    INDEX idx_deployment_id deployment_id TYPE bloom_filter GRANULARITY 1
) ENGINE = MergeTree()
PARTITION BY toYYYYMM(timestamp)
ORDER BY (deployment_id, timestamp)
SETTINGS index_granularity = 8192;
"""

COLUMNS = ["event_id", "deployment_id", "log", "timestamp"]


class ClickHouseLogSink(LogSink):
    """ClickHouse 日志存储

    clickhouse-connect 的客户端是同步的，所有调用放到线程中执行。
    """

    def __init__(
        self,
        host: str | None = None,
        port: int | None = None,
        database: str | None = None,
        user: str | None = None,
        password: str | None = None,
        secure: bool | None = None,
    ):
        self.host = host or settings.CLICKHOUSE_HOST
        self.port = port or settings.CLICKHOUSE_PORT
        self.database = database or settings.CLICKHOUSE_DATABASE
        self.user = user or settings.CLICKHOUSE_USER
        self.password = password if password is not None else settings.CLICKHOUSE_PASSWORD
        self.secure = settings.CLICKHOUSE_SECURE if secure is None else secure

        self._client = None
        self._lock = asyncio.Lock()

    @property
    def table(self) -> str:
        return f"{self.database}.log_events"

    def _connect(self):
        client = clickhouse_connect.get_client(
            host=self.host,
            port=self.port,
            username=self.user,
            password=self.password,
            secure=self.secure,
        )
        client.command(f"CREATE DATABASE IF NOT EXISTS {self.database}")
        client.command(CREATE_TABLE_SQL.format(database=self.database))
        return client

    async def _get_client(self):
        """获取 ClickHouse 客户端，首次调用时建表"""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    self._client = await asyncio.to_thread(self._connect)
                    logger.info(f"ClickHouse 日志表已初始化: {self.table}")
        return self._client

    async def write_batch(self, events: list[LogEvent]) -> WriteResult:
        if not events:
            return WriteResult(success=True)

        rows = [
            [e.event_id, e.deployment_id, e.log, ensure_utc(e.timestamp).replace(tzinfo=None)]
            for e in events
        ]
        try:
            client = await self._get_client()
            await asyncio.to_thread(client.insert, self.table, rows, column_names=COLUMNS)
        except Exception as e:
            logger.error(f"批量写入日志到 ClickHouse 失败: {e}")
            return WriteResult(success=False, error=str(e))

        logger.debug(f"批量写入 {len(rows)} 条日志到 ClickHouse")
        return WriteResult(success=True, written=len(rows))

    async def query_by_deployment(self, deployment_id: str, limit: int | None = None) -> list[LogEvent]:
        client = await self._get_client()
        query = (
            f"SELECT toString(event_id), deployment_id, log, timestamp FROM {self.table} "
            "WHERE deployment_id = %(deployment_id)s ORDER BY timestamp ASC"
        )
        params: dict = {"deployment_id": deployment_id}
        if limit:
            query += " LIMIT %(limit)s"
            params["limit"] = limit

        result = await asyncio.to_thread(client.query, query, parameters=params)
        return [
            LogEvent(event_id=row[0], deployment_id=row[1], log=row[2], timestamp=row[3])
            for row in result.result_rows
        ]

    async def close(self) -> None:
        if self._client is not None:
            client, self._client = self._client, None
            await asyncio.to_thread(client.close)
            logger.info("ClickHouse 客户端已关闭")
