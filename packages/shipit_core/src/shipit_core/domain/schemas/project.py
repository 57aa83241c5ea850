"""
项目相关的 Pydantic 模式定义
"""

from datetime import datetime

from pydantic import BaseModel, Field, field_validator


class ProjectCreateRequest(BaseModel):
    """创建项目请求"""

    name: str = Field(..., min_length=1, max_length=255, description="项目名称")
    git_url: str = Field(..., min_length=1, max_length=1024, description="源码仓库地址")

    @field_validator("git_url")
    @classmethod
    def validate_git_url(cls, value: str) -> str:
        value = value.strip()
        if not value.startswith(("https://", "http://", "git@", "ssh://", "file://")):
            raise ValueError("git_url 必须是 http(s)、ssh 或 file 协议的仓库地址")
        return value


class ProjectResponse(BaseModel):
    """项目响应"""

    id: str = Field(..., description="项目公开ID")
    name: str
    git_url: str
    subdomain: str
    created_at: datetime

    @classmethod
    def from_model(cls, project) -> "ProjectResponse":
        return cls(
            id=project.public_id,
            name=project.name,
            git_url=project.git_url,
            subdomain=project.subdomain,
            created_at=project.created_at,
        )
