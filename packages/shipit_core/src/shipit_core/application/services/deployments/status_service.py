"""
部署状态服务

状态只能单调前进，所有迁移通过带前置状态条件的 UPDATE 完成（比较并设置）。
"""

from loguru import logger

from shipit_core.common.exceptions import NotFoundError
from shipit_core.common.time import now_utc
from shipit_core.domain.models import Deployment, DeploymentStatus
from shipit_core.domain.schemas.logs import StatusReport

S = DeploymentStatus

# 目标状态 -> 允许的前置状态
ALLOWED_TRANSITIONS: dict[DeploymentStatus, frozenset[DeploymentStatus]] = {
    S.DISPATCHED: frozenset({S.QUEUED}),
    # 执行器可能在启动确认落库之前就开始上报
    S.RUNNING: frozenset({S.QUEUED, S.DISPATCHED}),
    S.SUCCEEDED: frozenset({S.QUEUED, S.DISPATCHED, S.RUNNING}),
    S.FAILED: frozenset({S.QUEUED, S.DISPATCHED, S.RUNNING}),
    S.DISPATCH_FAILED: frozenset({S.QUEUED}),
}


def can_transition(current: DeploymentStatus, target: DeploymentStatus) -> bool:
    return current in ALLOWED_TRANSITIONS.get(target, frozenset())


class DeploymentStatusService:
    """部署状态服务"""

    async def get_deployment(self, public_id: str) -> Deployment:
        deployment = await Deployment.get_or_none(public_id=public_id).prefetch_related("project")
        if deployment is None:
            raise NotFoundError("部署", public_id)
        return deployment

    async def transition(
        self,
        deployment_id: str,
        target: DeploymentStatus,
        reason: str | None = None,
    ) -> bool:
        """迁移部署状态

        Args:
            deployment_id: 部署公开ID
            target: 目标状态
            reason: 状态原因（失败原因等）

        Returns:
            是否实际发生了迁移；前置状态不满足时返回 False
        """
        now = now_utc()
        updates: dict = {"status": target, "updated_at": now}
        if reason is not None:
            updates["status_reason"] = reason
        if target == S.DISPATCHED:
            updates["dispatched_at"] = now
        if target.is_terminal:
            updates["finished_at"] = now

        updated = await Deployment.filter(
            public_id=deployment_id,
            status__in=list(ALLOWED_TRANSITIONS.get(target, ())),
        ).update(**updates)

        if updated:
            logger.info(f"部署状态已更新: {deployment_id} -> {target.value}")
            return True

        current = await Deployment.filter(public_id=deployment_id).values_list("status", flat=True)
        if not current:
            raise NotFoundError("部署", deployment_id)
        logger.warning(
            f"忽略部署状态迁移: {deployment_id} 当前={S(current[0]).value} 目标={target.value}"
        )
        return False

    async def apply_report(self, report: StatusReport) -> bool:
        """应用构建执行器上报的状态"""
        return await self.transition(
            report.deployment_id,
            report.status.to_deployment_status(),
            reason=report.reason,
        )


deployment_status_service = DeploymentStatusService()

__all__ = [
    "ALLOWED_TRANSITIONS",
    "DeploymentStatusService",
    "can_transition",
    "deployment_status_service",
]
