"""
部署编排器

创建部署记录并异步启动构建执行器：
1. 落库一条 QUEUED 状态的部署
2. 立即把部署 ID 返回给调用方
3. 在后台任务中启动执行器，成功标记 DISPATCHED，失败标记 DISPATCH_FAILED

后台启动任务的句柄由编排器持有，关闭时统一等待或取消。
"""

import asyncio
import contextlib
from dataclasses import dataclass

from loguru import logger

from shipit_core.application.services.deployments.status_service import (
    DeploymentStatusService,
    deployment_status_service,
)
from shipit_core.application.services.projects.project_service import (
    ProjectService,
    project_service,
)
from shipit_core.domain.models import Deployment, DeploymentStatus
from shipit_core.domain.schemas.build import BuildTaskDescriptor
from shipit_core.infrastructure.launcher.base import ExecutorLauncher, LaunchResult


@dataclass
class DispatchResult:
    """分发结果，launch_task 可被调用方忽略"""
    deployment_id: str
    status: DeploymentStatus
    launch_task: asyncio.Task


class DeploymentOrchestrator:
    """部署编排器"""

    def __init__(
        self,
        launcher: ExecutorLauncher,
        status_service: DeploymentStatusService | None = None,
        projects: ProjectService | None = None,
    ):
        self.launcher = launcher
        self.status_service = status_service or deployment_status_service
        self.projects = projects or project_service
        self._inflight: set[asyncio.Task] = set()

    @property
    def inflight_count(self) -> int:
        return len(self._inflight)

    async def create_deployment(self, project_id: str) -> tuple[Deployment, BuildTaskDescriptor]:
        """创建 QUEUED 部署并构造任务描述，项目不存在时抛出 NotFoundError"""
        project = await self.projects.get_project(project_id)
        deployment = await Deployment.create(project=project, status=DeploymentStatus.QUEUED)
        logger.info(f"部署已排队: {deployment.public_id} (project={project.public_id})")

        descriptor = BuildTaskDescriptor(
            project_id=project.public_id,
            deployment_id=deployment.public_id,
            git_url=project.git_url,
        )
        return deployment, descriptor

    def schedule_launch(self, descriptor: BuildTaskDescriptor) -> asyncio.Task:
        """在后台启动执行器，返回任务句柄"""
        task = asyncio.create_task(
            self._launch(descriptor), name=f"launch-{descriptor.deployment_id}"
        )
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)
        return task

    async def dispatch(self, project_id: str) -> DispatchResult:
        """创建部署并调度启动；启动在本协程返回之后才开始执行"""
        deployment, descriptor = await self.create_deployment(project_id)
        task = self.schedule_launch(descriptor)
        return DispatchResult(
            deployment_id=deployment.public_id,
            status=DeploymentStatus.QUEUED,
            launch_task=task,
        )

    async def _launch(self, descriptor: BuildTaskDescriptor) -> LaunchResult | None:
        deployment_id = descriptor.deployment_id
        try:
            result = await self.launcher.launch(descriptor)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"执行器启动失败: deployment={deployment_id}, 错误: {e}")
            await self._mark(deployment_id, DeploymentStatus.DISPATCH_FAILED, str(e))
            return None

        await self._mark(deployment_id, DeploymentStatus.DISPATCHED, None)
        logger.info(
            f"执行器已启动: deployment={deployment_id}, backend={result.backend}, ref={result.task_ref}"
        )
        return result

    async def _mark(self, deployment_id: str, status: DeploymentStatus, reason: str | None) -> None:
        try:
            await self.status_service.transition(deployment_id, status, reason=reason)
        except Exception as e:
            logger.error(f"更新部署状态失败: {deployment_id} -> {status.value}, 错误: {e}")

    async def shutdown(self, timeout: float = 10.0) -> None:
        """等待进行中的启动任务，超时后取消"""
        if not self._inflight:
            return
        pending = list(self._inflight)
        logger.info(f"等待 {len(pending)} 个执行器启动任务完成...")
        _, still_pending = await asyncio.wait(pending, timeout=timeout)
        for task in still_pending:
            task.cancel()
        for task in still_pending:
            with contextlib.suppress(asyncio.CancelledError):
                await task
        if still_pending:
            logger.warning(f"已取消 {len(still_pending)} 个未完成的启动任务")


__all__ = ["DeploymentOrchestrator", "DispatchResult"]
