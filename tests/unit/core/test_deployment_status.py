"""
部署状态迁移单元测试
"""

import pytest

from shipit_core.application.services.deployments.status_service import (
    DeploymentStatusService,
    can_transition,
)
from shipit_core.common.exceptions import NotFoundError
from shipit_core.common.time import now_utc
from shipit_core.domain.models import Deployment, DeploymentStatus, Project
from shipit_core.domain.models.enums import BuildStatus
from shipit_core.domain.schemas.logs import StatusReport

S = DeploymentStatus


async def _deployment(status=S.QUEUED) -> Deployment:
    project = await Project.create(name="site", git_url="https://example.com/site.git", subdomain=f"s-{status.value}")
    return await Deployment.create(project=project, status=status)


class TestTransitionTable:

    def test_forward_path(self):
        assert can_transition(S.QUEUED, S.DISPATCHED)
        assert can_transition(S.DISPATCHED, S.RUNNING)
        assert can_transition(S.RUNNING, S.SUCCEEDED)
        assert can_transition(S.RUNNING, S.FAILED)

    def test_dispatch_failed_only_from_queued(self):
        assert can_transition(S.QUEUED, S.DISPATCH_FAILED)
        assert not can_transition(S.DISPATCHED, S.DISPATCH_FAILED)
        assert not can_transition(S.RUNNING, S.DISPATCH_FAILED)

    def test_terminal_states_are_final(self):
        for terminal in (S.SUCCEEDED, S.FAILED, S.DISPATCH_FAILED):
            assert terminal.is_terminal
            for target in S:
                assert not can_transition(terminal, target)

    def test_no_backwards_moves(self):
        assert not can_transition(S.RUNNING, S.DISPATCHED)
        assert not can_transition(S.DISPATCHED, S.QUEUED)


@pytest.mark.asyncio
async def test_transition_sets_timestamps(db):
    service = DeploymentStatusService()
    deployment = await _deployment()

    assert await service.transition(deployment.public_id, S.DISPATCHED) is True
    assert await service.transition(deployment.public_id, S.SUCCEEDED) is True

    refreshed = await Deployment.get(id=deployment.id)
    assert refreshed.status == S.SUCCEEDED
    assert refreshed.dispatched_at is not None
    assert refreshed.finished_at is not None


@pytest.mark.asyncio
async def test_late_dispatch_ack_does_not_regress(db):
    """执行器先上报 running，启动确认随后到达时不能回退状态"""
    service = DeploymentStatusService()
    deployment = await _deployment()

    assert await service.transition(deployment.public_id, S.RUNNING) is True
    assert await service.transition(deployment.public_id, S.DISPATCHED) is False

    refreshed = await Deployment.get(id=deployment.id)
    assert refreshed.status == S.RUNNING


@pytest.mark.asyncio
async def test_dispatch_failed_records_reason(db):
    service = DeploymentStatusService()
    deployment = await _deployment()

    await service.transition(deployment.public_id, S.DISPATCH_FAILED, reason="no capacity")

    refreshed = await Deployment.get(id=deployment.id)
    assert refreshed.status == S.DISPATCH_FAILED
    assert refreshed.status_reason == "no capacity"


@pytest.mark.asyncio
async def test_transition_unknown_deployment(db):
    with pytest.raises(NotFoundError):
        await DeploymentStatusService().transition("0" * 32, S.RUNNING)


@pytest.mark.asyncio
async def test_apply_failed_report(db):
    service = DeploymentStatusService()
    deployment = await _deployment(S.DISPATCHED)
    report = StatusReport(
        deployment_id=deployment.public_id,
        status=BuildStatus.FAILED,
        reason="构建命令退出码 2",
        reported_at=now_utc(),
    )

    assert await service.apply_report(report) is True

    refreshed = await service.get_deployment(deployment.public_id)
    assert refreshed.status == S.FAILED
    assert refreshed.status_reason == "构建命令退出码 2"
    assert refreshed.project.name == "site"
