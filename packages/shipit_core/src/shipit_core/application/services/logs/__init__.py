"""日志查询服务"""

from shipit_core.application.services.logs.log_query_service import LogQueryService

__all__ = ["LogQueryService"]
