"""
ShipIt Builder 主入口

由启动器以独立进程（ECS 任务或本地子进程）运行，一次进程只执行一个部署。
Redis 不可用时构建仍继续，日志与状态只输出到本地。
"""

import asyncio
import contextlib
import sys

from loguru import logger

from shipit_core.common.exceptions import RedisConnectionError, ValidationError
from shipit_core.common.logging import setup_logging
from shipit_core.infrastructure.redis.client import RedisConnection
from shipit_core.infrastructure.redis.streams import StreamClient
from shipit_core.infrastructure.storage.artifact_store import S3ArtifactStore
from shipit_core.infrastructure.storage.s3_client import S3ClientManager
from shipit_builder.config import load_builder_config
from shipit_builder.publisher import LogPublisher, StatusReporter
from shipit_builder.runner import BuildRunner
from shipit_builder.uploader import BoundedUploader

EXIT_CONFIG_ERROR = 2


async def main() -> int:
    """主函数，返回进程退出码"""
    setup_logging(log_to_file=False)

    try:
        config = load_builder_config()
    except ValidationError as e:
        logger.critical(f"构建任务描述不完整: {e.message}")
        return EXIT_CONFIG_ERROR

    descriptor = config.descriptor
    logger.info(f"Builder 启动: project={descriptor.project_id}, deployment={descriptor.deployment_id}")

    async with contextlib.AsyncExitStack() as stack:
        stream = None
        redis_conn = RedisConnection(config.redis_url, max_connections=10)
        try:
            stream = StreamClient(await redis_conn.connect())
            stack.push_async_callback(redis_conn.close)
        except RedisConnectionError as e:
            logger.bind(fallback=True).error(f"Redis 不可用，日志仅本地输出: {e.message}")

        s3_manager = S3ClientManager()
        stack.push_async_callback(s3_manager.close)

        publisher = LogPublisher(
            stream,
            descriptor,
            mode=config.log_publish_mode,
            partitions=config.log_stream_partitions,
            maxlen=config.log_stream_maxlen,
        )
        reporter = StatusReporter(stream, descriptor.deployment_id)
        uploader = BoundedUploader(
            S3ArtifactStore(s3_manager, config.artifact_bucket),
            project_id=descriptor.project_id,
            concurrency=config.upload_concurrency,
            key_prefix=config.artifact_prefix,
            on_progress=publisher.publish_log,
            discovery_batch_size=config.discovery_batch_size,
        )

        exit_code = await BuildRunner(config, publisher, reporter, uploader).run()

    logger.info(f"Builder 退出: deployment={descriptor.deployment_id}, code={exit_code}")
    return exit_code


if __name__ == "__main__":
    sys.exit(asyncio.run(main()))
