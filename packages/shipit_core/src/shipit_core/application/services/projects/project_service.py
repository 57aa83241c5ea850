"""
项目服务层
处理项目的创建与查询
"""

from loguru import logger
from tortoise.exceptions import IntegrityError

from shipit_core.common.exceptions import NotFoundError, ValidationError
from shipit_core.common.ids import generate_slug
from shipit_core.domain.models import Project
from shipit_core.domain.schemas.project import ProjectCreateRequest


class ProjectService:
    """项目服务类"""

    # 子域名冲突时的重试次数
    MAX_SLUG_ATTEMPTS = 5

    async def create_project(self, request: ProjectCreateRequest) -> Project:
        """创建项目并分配唯一的公开子域名"""
        for _ in range(self.MAX_SLUG_ATTEMPTS):
            subdomain = generate_slug()
            if await Project.filter(subdomain=subdomain).exists():
                continue
            try:
                project = await Project.create(
                    name=request.name,
                    git_url=request.git_url,
                    subdomain=subdomain,
                )
            except IntegrityError:
                logger.debug(f"子域名冲突，重新生成: {subdomain}")
                continue
            logger.info(f"项目已创建: {project.public_id} ({project.name}) -> {subdomain}")
            return project

        raise ValidationError("无法分配唯一的子域名，请稍后重试", field="subdomain")

    async def get_project(self, public_id: str) -> Project:
        project = await Project.get_by_public_id(public_id)
        if project is None:
            raise NotFoundError("项目", public_id)
        return project


project_service = ProjectService()

__all__ = ["ProjectService", "project_service"]
