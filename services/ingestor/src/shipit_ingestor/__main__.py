"""
ShipIt Ingestor 主入口

启动顺序：数据库 -> Redis -> 日志存储 -> 日志摄取消费者 -> 部署状态循环
关闭顺序与启动相反，由 AsyncExitStack 保证在任何退出路径上执行。
日志摄取消费者启动失败时进程以非零退出码退出。
"""

import asyncio
import contextlib
import signal
import sys

from loguru import logger

from shipit_core.common.config import settings
from shipit_core.common.exceptions import ConsumerStartupError, RedisConnectionError
from shipit_core.common.logging import setup_logging
from shipit_core.infrastructure.db.tortoise import close_db, init_db
from shipit_core.infrastructure.redis.client import RedisConnection
from shipit_core.infrastructure.redis.streams import StreamClient
from shipit_core.infrastructure.storage.log_sink import create_log_sink
from shipit_ingestor.loops import DeploymentStatusLoop, LogIngestionConsumer


def _install_signal_handlers(stop_event: asyncio.Event) -> None:
    loop = asyncio.get_running_loop()
    stopping = False

    def signal_handler():
        nonlocal stopping
        if stopping:
            return
        stopping = True
        logger.info("收到停止信号")
        stop_event.set()

    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(sig, signal_handler)


async def run(stop_event: asyncio.Event) -> int:
    """运行 Ingestor，直到 stop_event 被设置；返回进程退出码"""
    logger.info(f"启动 Ingestor 日志摄取服务 v{settings.APP_VERSION}")

    async with contextlib.AsyncExitStack() as stack:
        logger.info("[1/5] 初始化数据库")
        await init_db()
        stack.push_async_callback(close_db)

        logger.info("[2/5] 连接 Redis")
        redis_conn = RedisConnection()
        try:
            redis_client = await redis_conn.connect()
        except RedisConnectionError as e:
            logger.critical(f"Redis 不可用，日志摄取消费者无法启动: {e.message}")
            return 1
        stack.push_async_callback(redis_conn.close)
        stream = StreamClient(redis_client)

        logger.info(f"[3/5] 初始化日志存储 ({settings.LOG_SINK_BACKEND})")
        sink = create_log_sink()
        stack.push_async_callback(sink.close)

        logger.info("[4/5] 启动日志摄取消费者")
        consumer = LogIngestionConsumer(stream, sink)
        try:
            await consumer.start()
        except ConsumerStartupError as e:
            logger.critical(e.message)
            return 1
        stack.push_async_callback(consumer.stop)

        logger.info("[5/5] 启动部署状态循环")
        status_loop = DeploymentStatusLoop(stream)
        try:
            await status_loop.start()
            stack.push_async_callback(status_loop.stop)
        except Exception as e:
            logger.error(f"部署状态循环启动失败: {e}")

        logger.info("Ingestor 服务已启动")
        await stop_event.wait()
        logger.info("正在停止 Ingestor 服务...")

    logger.info("Ingestor 服务已停止")
    return 0


async def main() -> int:
    """主函数"""
    setup_logging()
    stop_event = asyncio.Event()
    _install_signal_handlers(stop_event)
    return await run(stop_event)


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
