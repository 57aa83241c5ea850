"""
数据库模块

- tortoise: Tortoise ORM 配置与连接管理
"""

from shipit_core.infrastructure.db.tortoise import close_db, get_tortoise_config, init_db

__all__ = ["close_db", "get_tortoise_config", "init_db"]
