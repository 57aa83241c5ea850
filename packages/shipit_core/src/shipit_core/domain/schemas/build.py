"""
构建任务描述

在启动时通过环境变量传给构建执行器，不落库。
"""

from collections.abc import Mapping
from dataclasses import dataclass

from shipit_core.common.exceptions import ValidationError

ENV_PROJECT_ID = "PROJECT_ID"
ENV_DEPLOYMENT_ID = "DEPLOYMENT_ID"
ENV_GIT_URL = "GIT_REPOSITORY__URL"


@dataclass(frozen=True)
class BuildTaskDescriptor:
    """构建任务描述：项目ID、部署ID、源码地址"""

    project_id: str
    deployment_id: str
    git_url: str

    def to_env(self) -> dict[str, str]:
        return {
            ENV_PROJECT_ID: self.project_id,
            ENV_DEPLOYMENT_ID: self.deployment_id,
            ENV_GIT_URL: self.git_url,
        }

    @classmethod
    def from_env(cls, env: Mapping[str, str]) -> "BuildTaskDescriptor":
        """从环境变量读取，缺少任何字段都抛出 ValidationError"""
        values = {}
        for key in (ENV_PROJECT_ID, ENV_DEPLOYMENT_ID, ENV_GIT_URL):
            value = (env.get(key) or "").strip()
            if not value:
                raise ValidationError(f"缺少环境变量 {key}", field=key)
            values[key] = value
        return cls(
            project_id=values[ENV_PROJECT_ID],
            deployment_id=values[ENV_DEPLOYMENT_ID],
            git_url=values[ENV_GIT_URL],
        )
