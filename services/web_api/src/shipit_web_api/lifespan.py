"""应用生命周期管理

启动顺序：数据库 -> Redis -> 日志存储 -> 执行器启动器与编排器 -> 实时日志转发。
所有句柄注册到同一个 AsyncExitStack，关闭时按相反顺序释放。
"""

from collections.abc import AsyncGenerator
from contextlib import AsyncExitStack, asynccontextmanager

from fastapi import FastAPI
from loguru import logger

from shipit_core.application.services.deployments.orchestrator import DeploymentOrchestrator
from shipit_core.application.services.logs.log_query_service import LogQueryService
from shipit_core.common.config import settings
from shipit_core.common.exceptions import RedisConnectionError
from shipit_core.infrastructure.db.tortoise import close_db, init_db
from shipit_core.infrastructure.launcher import create_launcher
from shipit_core.infrastructure.redis.client import RedisConnection
from shipit_core.infrastructure.storage.log_sink import create_log_sink
from shipit_web_api.websockets import LogConnectionManager, RelayBridge


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """应用生命周期上下文管理器"""
    async with AsyncExitStack() as stack:
        try:
            await init_services(app, stack)
        except SystemExit as e:
            logger.error(f"应用启动失败: {e}")
            logger.error("请检查 .env 中的数据库、Redis 与日志存储配置")
            raise
        logger.info("应用程序已启动")
        yield
        logger.info("正在关闭服务")
    logger.info("应用程序已停止")


async def init_services(app: FastAPI, stack: AsyncExitStack) -> None:
    """初始化所有应用服务并登记释放顺序"""
    logger.info("=" * 50)
    logger.info(f"初始化 {settings.APP_NAME} v{settings.APP_VERSION}")
    logger.info("=" * 50)

    logger.info("[1/5] 初始化数据库")
    await init_db()
    stack.push_async_callback(close_db)

    logger.info("[2/5] 连接 Redis")
    redis_conn = RedisConnection()
    try:
        redis_client = await redis_conn.connect()
    except RedisConnectionError as e:
        raise SystemExit(f"Redis 连接失败: {e.message}") from e
    stack.push_async_callback(redis_conn.close)
    app.state.redis = redis_client

    logger.info(f"[3/5] 初始化日志存储 ({settings.LOG_SINK_BACKEND})")
    sink = create_log_sink()
    stack.push_async_callback(sink.close)
    app.state.log_query_service = LogQueryService(sink)

    logger.info(f"[4/5] 初始化执行器启动器 ({settings.EXECUTOR_LAUNCH_BACKEND})")
    launcher = create_launcher()
    stack.push_async_callback(launcher.close)
    orchestrator = DeploymentOrchestrator(launcher)
    stack.push_async_callback(orchestrator.shutdown)
    app.state.orchestrator = orchestrator

    logger.info("[5/5] 启动实时日志转发")
    manager = LogConnectionManager()
    bridge = RelayBridge(redis_client, manager)
    await bridge.subscribe()
    stack.push_async_callback(bridge.close)
    app.state.connection_manager = manager
    app.state.relay_bridge = bridge

    logger.info("=" * 50)
    logger.info(f"{settings.APP_NAME} 初始化完成")
    logger.info("=" * 50)
