"""
构建执行器启动能力

把构建任务描述交给隔离的短生命周期运行时（云端任务或本地进程）。
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

from shipit_core.domain.schemas.build import BuildTaskDescriptor


@dataclass
class LaunchResult:
    """启动结果"""
    task_ref: str
    backend: str


class ExecutorLauncher(ABC):
    """执行器启动器接口"""

    name: str = "base"

    @abstractmethod
    async def launch(self, descriptor: BuildTaskDescriptor) -> LaunchResult:
        """启动执行器，启动请求未被接受时抛出 LaunchFailure"""

    async def close(self) -> None:
        """释放底层客户端"""
