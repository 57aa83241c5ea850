"""
ECS Fargate 执行器启动器
"""

import asyncio

from loguru import logger

from shipit_core.common.config import settings
from shipit_core.common.exceptions import ConfigurationError, LaunchFailure
from shipit_core.domain.schemas.build import BuildTaskDescriptor
from shipit_core.infrastructure.aws import client_config, create_session
from shipit_core.infrastructure.launcher.base import ExecutorLauncher, LaunchResult


class EcsExecutorLauncher(ExecutorLauncher):
    """通过 ECS RunTask 启动构建容器"""

    name = "ecs"

    def __init__(
        self,
        cluster: str | None = None,
        task_definition: str | None = None,
        container_name: str | None = None,
        subnets: list[str] | None = None,
        security_groups: list[str] | None = None,
        assign_public_ip: bool | None = None,
        session=None,
    ):
        self.cluster = cluster or settings.ECS_CLUSTER
        self.task_definition = task_definition or settings.ECS_TASK_DEFINITION
        self.container_name = container_name or settings.ECS_CONTAINER_NAME
        self.subnets = subnets if subnets is not None else settings.ecs_subnets
        self.security_groups = (
            security_groups if security_groups is not None else settings.ecs_security_groups
        )
        self.assign_public_ip = (
            settings.ECS_ASSIGN_PUBLIC_IP if assign_public_ip is None else assign_public_ip
        )
        if not self.cluster or not self.task_definition:
            raise ConfigurationError("ECS_CLUSTER 与 ECS_TASK_DEFINITION 必须配置")

        self._session = session
        self._client_cm = None
        self._client = None
        self._lock = asyncio.Lock()

    async def _get_client(self):
        """获取 ECS 客户端，并发启动时只创建一次"""
        if self._client is None:
            async with self._lock:
                if self._client is None:
                    if self._session is None:
                        self._session = create_session()
                    client_cm = self._session.client("ecs", config=client_config())
                    self._client = await client_cm.__aenter__()
                    self._client_cm = client_cm
        return self._client

    def _build_request(self, descriptor: BuildTaskDescriptor) -> dict:
        environment = [{"name": k, "value": v} for k, v in descriptor.to_env().items()]
        return {
            "cluster": self.cluster,
            "taskDefinition": self.task_definition,
            "launchType": "FARGATE",
            "count": 1,
            "networkConfiguration": {
                "awsvpcConfiguration": {
                    "assignPublicIp": "ENABLED" if self.assign_public_ip else "DISABLED",
                    "subnets": self.subnets,
                    "securityGroups": self.security_groups,
                }
            },
            "overrides": {
                "containerOverrides": [
                    {"name": self.container_name, "environment": environment}
                ]
            },
        }

    async def launch(self, descriptor: BuildTaskDescriptor) -> LaunchResult:
        client = await self._get_client()
        try:
            response = await client.run_task(**self._build_request(descriptor))
        except Exception as e:
            raise LaunchFailure(f"ECS RunTask 调用失败: {e}", descriptor.deployment_id) from e

        tasks = response.get("tasks") or []
        if not tasks:
            failures = response.get("failures") or []
            reasons = ", ".join(
                f"{f.get('arn', '-')}: {f.get('reason', 'unknown')}" for f in failures
            ) or "未返回任务"
            raise LaunchFailure(f"ECS 拒绝启动任务: {reasons}", descriptor.deployment_id)

        task_arn = tasks[0].get("taskArn", "")
        logger.info(f"ECS 任务已启动: deployment={descriptor.deployment_id}, task={task_arn}")
        return LaunchResult(task_ref=task_arn, backend=self.name)

    async def close(self) -> None:
        if self._client_cm is not None:
            try:
                await self._client_cm.__aexit__(None, None, None)
            finally:
                self._client = None
                self._client_cm = None
