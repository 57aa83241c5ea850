"""
部署状态消费循环单元测试
"""

import pytest

from shipit_core.common.time import now_utc
from shipit_core.domain.models import Deployment, DeploymentStatus, Project
from shipit_core.domain.models.enums import BuildStatus
from shipit_core.domain.schemas.logs import StatusReport
from shipit_ingestor.loops.status_loop import DeploymentStatusLoop

KEY = "shipit:stream:deploy-status"
GROUP = "deploy-status"


async def _deployment(status=DeploymentStatus.DISPATCHED) -> Deployment:
    project = await Project.create(name="app", git_url="https://example.com/app.git", subdomain="bold-cedar-1f2e")
    return await Deployment.create(project=project, status=status)


async def _report(stream, deployment_id, status, reason=None):
    report = StatusReport(deployment_id=deployment_id, status=status, reason=reason, reported_at=now_utc())
    await stream.xadd(KEY, report.to_stream_fields())


def _loop(stream) -> DeploymentStatusLoop:
    return DeploymentStatusLoop(
        stream,
        stream_key=KEY,
        group_name=GROUP,
        consumer_name="status-1",
        block_ms=0,
    )


@pytest.mark.asyncio
async def test_reports_drive_deployment_to_terminal(db, stream):
    deployment = await _deployment()
    loop = _loop(stream)
    await stream.ensure_group(KEY, GROUP)
    await _report(stream, deployment.public_id, BuildStatus.RUNNING)
    await _report(stream, deployment.public_id, BuildStatus.SUCCEEDED)

    assert await loop.poll_once() == 2

    refreshed = await Deployment.get(id=deployment.id)
    assert refreshed.status == DeploymentStatus.SUCCEEDED
    assert refreshed.finished_at is not None
    assert stream.pending_ids(KEY, GROUP) == []


@pytest.mark.asyncio
async def test_failed_report_keeps_reason(db, stream):
    deployment = await _deployment(DeploymentStatus.RUNNING)
    loop = _loop(stream)
    await stream.ensure_group(KEY, GROUP)
    await _report(stream, deployment.public_id, BuildStatus.FAILED, reason="源码拉取失败")

    await loop.poll_once()

    refreshed = await Deployment.get(id=deployment.id)
    assert refreshed.status == DeploymentStatus.FAILED
    assert refreshed.status_reason == "源码拉取失败"


@pytest.mark.asyncio
async def test_invalid_and_unknown_reports_are_acked(db, stream):
    loop = _loop(stream)
    await stream.ensure_group(KEY, GROUP)
    await stream.xadd(KEY, {"deployment_id": "x", "status": "exploded", "reported_at": "now"})
    await _report(stream, "f" * 32, BuildStatus.RUNNING)

    assert await loop.poll_once() == 2
    assert stream.pending_ids(KEY, GROUP) == []


@pytest.mark.asyncio
async def test_stale_report_is_acked_without_regression(db, stream):
    deployment = await _deployment(DeploymentStatus.SUCCEEDED)
    loop = _loop(stream)
    await stream.ensure_group(KEY, GROUP)
    await _report(stream, deployment.public_id, BuildStatus.RUNNING)

    assert await loop.poll_once() == 1

    refreshed = await Deployment.get(id=deployment.id)
    assert refreshed.status == DeploymentStatus.SUCCEEDED
