"""
构建流程

running 上报 -> 拉取源码 -> 执行构建命令 -> 上传产物 -> succeeded 上报。
任何不可恢复的错误都会输出最终失败日志、上报 failed 并返回非零退出码，不做重试。
"""

from __future__ import annotations

import os

from loguru import logger

from shipit_core.common.command_runner import TIMEOUT_EXIT_CODE, run_command, stream_command
from shipit_core.common.exceptions import BuildError
from shipit_core.common.logging import sanitize_log_message
from shipit_core.domain.models.enums import BuildStatus
from shipit_builder.config import BuilderConfig, apply_build_manifest
from shipit_builder.publisher import LogPublisher, StatusReporter
from shipit_builder.uploader import BoundedUploader, UploadSummary

CLONE_TIMEOUT = 600


class BuildRunner:
    """单次部署的构建执行"""

    def __init__(
        self,
        config: BuilderConfig,
        publisher: LogPublisher,
        reporter: StatusReporter,
        uploader: BoundedUploader,
    ):
        self.config = config
        self.publisher = publisher
        self.reporter = reporter
        self.uploader = uploader

    async def run(self) -> int:
        """执行构建，返回进程退出码"""
        descriptor = self.config.descriptor
        await self.reporter.report(BuildStatus.RUNNING)
        await self.publisher.publish_log(f"开始构建部署 {descriptor.deployment_id}")

        try:
            repo_dir = await self.prepare_source()
            config = apply_build_manifest(self.config, repo_dir)
            await self.build(config, repo_dir)
            summary = await self.upload(config, repo_dir)
            if summary.failed and config.fail_on_upload_errors:
                raise BuildError(f"{summary.failed} 个文件上传失败", stage="upload")
        except BuildError as e:
            return await self._fail(e.message)
        except Exception as e:
            logger.exception(f"构建异常: {descriptor.deployment_id}")
            return await self._fail(f"未预期的错误: {e}")

        await self.publisher.publish_log("部署完成")
        await self.reporter.report(BuildStatus.SUCCEEDED)
        return 0

    async def prepare_source(self) -> str:
        """拉取源码；已配置 SOURCE_DIR 且目录存在时直接使用"""
        repo_dir = self.config.repo_dir
        if self.config.source_dir and os.path.isdir(repo_dir):
            await self.publisher.publish_log(f"使用已有源码目录: {repo_dir}")
            return repo_dir

        git_url = self.config.descriptor.git_url
        os.makedirs(os.path.dirname(repo_dir) or ".", exist_ok=True)
        await self.publisher.publish_log(f"拉取源码: {sanitize_log_message(git_url)}")

        result = await run_command(
            ["git", "clone", "--depth", "1", git_url, repo_dir],
            timeout=CLONE_TIMEOUT,
        )
        if not result.ok:
            detail = sanitize_log_message((result.stderr or result.stdout).strip())
            raise BuildError(f"源码拉取失败: {detail}", stage="clone")
        return repo_dir

    async def build(self, config: BuilderConfig, repo_dir: str) -> None:
        """执行构建命令，逐行发布输出"""
        await self.publisher.publish_log(f"执行构建命令: {config.build_command}")
        exit_code = await stream_command(
            ["sh", "-c", config.build_command],
            on_line=self.publisher.publish_log,
            cwd=repo_dir,
            timeout=config.build_timeout or None,
        )
        if exit_code == TIMEOUT_EXIT_CODE and config.build_timeout:
            raise BuildError(f"构建超时 ({config.build_timeout}s)", stage="build")
        if exit_code != 0:
            raise BuildError(f"构建命令退出码 {exit_code}", stage="build")
        await self.publisher.publish_log("构建完成")

    async def upload(self, config: BuilderConfig, repo_dir: str) -> UploadSummary:
        output_dir = os.path.join(repo_dir, config.output_dir)
        if not os.path.isdir(output_dir):
            raise BuildError(f"产物目录不存在: {config.output_dir}", stage="upload")

        await self.publisher.publish_log(f"开始上传产物: {config.output_dir}")
        summary = await self.uploader.upload(root_dir=output_dir)
        if summary.discovery_error:
            raise BuildError(f"产物目录无法读取: {summary.discovery_error}", stage="upload")
        await self.publisher.publish_log(
            f"产物上传结束: 成功 {summary.succeeded}, 失败 {summary.failed}"
        )
        return summary

    async def _fail(self, reason: str) -> int:
        await self.publisher.publish_log(f"构建失败: {reason}")
        await self.reporter.report(BuildStatus.FAILED, reason)
        return 1


__all__ = ["BuildRunner", "CLONE_TIMEOUT"]
