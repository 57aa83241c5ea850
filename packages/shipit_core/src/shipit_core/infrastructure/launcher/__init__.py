"""
执行器启动模块

- base: 启动器接口
- ecs: ECS Fargate 启动器
- local: 本地子进程启动器
"""

from shipit_core.common.config import settings
from shipit_core.infrastructure.launcher.base import ExecutorLauncher, LaunchResult


def create_launcher(backend: str | None = None) -> ExecutorLauncher:
    """按配置创建执行器启动器"""
    backend = backend or settings.EXECUTOR_LAUNCH_BACKEND
    if backend == "ecs":
        from shipit_core.infrastructure.launcher.ecs import EcsExecutorLauncher

        return EcsExecutorLauncher()
    if backend == "local":
        from shipit_core.infrastructure.launcher.local import LocalProcessLauncher

        return LocalProcessLauncher()
    raise ValueError(f"不支持的执行器启动后端: {backend}")


__all__ = ["ExecutorLauncher", "LaunchResult", "create_launcher"]
