"""应用配置模块

提供统一的配置管理，支持环境变量和 .env 文件。
"""

import os
from functools import cached_property
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _find_project_root() -> Path:
    """查找项目根目录（包含 .env 文件的目录，或最顶层的 pyproject.toml）"""
    current = Path(__file__).resolve()

    # 首先尝试找包含 .env 的目录
    for parent in current.parents:
        if (parent / ".env").exists():
            return parent

    # 回退：找最顶层的 pyproject.toml
    root = None
    for parent in current.parents:
        if (parent / "pyproject.toml").exists():
            root = parent

    if root:
        return root

    return current.parent.parent.parent.parent.parent.parent


def _split_csv(value: str) -> list[str]:
    return [item.strip() for item in value.split(",") if item.strip()]


class Settings(BaseSettings):
    """应用配置类"""

    # === 服务器配置 ===
    DATABASE_URL: str = Field(default="")
    SERVER_HOST: str = Field(default="0.0.0.0")
    SERVER_PORT: int = Field(default=9000)
    SERVER_RELOAD: bool = Field(default=False)
    ALLOWED_ORIGINS: str = Field(default="*")

    # === 应用信息 ===
    APP_NAME: str = "ShipIt"
    APP_TITLE: str = "ShipIt 构建部署平台"
    APP_DESCRIPTION: str = "基于 FastAPI 的构建分发与日志投递平台"
    APP_VERSION: str = "0.1.0"

    # === 日志配置 ===
    LOG_LEVEL: str = Field(default="INFO")
    LOG_TO_FILE: bool = Field(default=True)

    # === Redis 配置 ===
    REDIS_URL: str = Field(default="redis://localhost:6379/0")
    REDIS_NAMESPACE: str = Field(default="shipit")

    # === 日志消息流（Broker）配置 ===
    LOG_STREAM_PARTITIONS: int = Field(default=4, ge=1)
    LOG_STREAM_MAXLEN: int = Field(default=100000)
    INGEST_GROUP: str = Field(default="core-logs-consumer")
    INGEST_BATCH_SIZE: int = Field(default=100)
    INGEST_BLOCK_MS: int = Field(default=5000)
    INGEST_HEARTBEAT_TTL: int = Field(default=30)
    INGEST_RECLAIM_IDLE_MS: int = Field(default=60000)
    STATUS_GROUP: str = Field(default="deploy-status")

    # === 日志存储（Sink）配置 ===
    LOG_SINK_BACKEND: str = Field(default="clickhouse")  # clickhouse, local
    LOG_DISPLAY_TIMEZONE: str = Field(default="UTC")
    CLICKHOUSE_HOST: str = Field(default="localhost")
    CLICKHOUSE_PORT: int = Field(default=8123)
    CLICKHOUSE_DATABASE: str = Field(default="default")
    CLICKHOUSE_USER: str = Field(default="default")
    CLICKHOUSE_PASSWORD: str = Field(default="")
    CLICKHOUSE_SECURE: bool = Field(default=False)

    # === AWS / 对象存储配置 ===
    AWS_REGION: str = Field(default="us-east-1")
    AWS_ACCESS_KEY_ID: str = Field(default="")
    AWS_SECRET_ACCESS_KEY: str = Field(default="")
    AWS_MAX_ATTEMPTS: int = Field(default=5)
    AWS_CONNECT_TIMEOUT: int = Field(default=10)
    AWS_READ_TIMEOUT: int = Field(default=30)
    S3_ENDPOINT_URL: str = Field(default="")
    ARTIFACT_BUCKET: str = Field(default="shipit-outputs")
    ARTIFACT_PREFIX: str = Field(default="__outputs")

    # === 执行器启动配置 ===
    EXECUTOR_LAUNCH_BACKEND: str = Field(default="ecs")  # ecs, local
    ECS_CLUSTER: str = Field(default="")
    ECS_TASK_DEFINITION: str = Field(default="")
    ECS_SUBNETS: str = Field(default="")
    ECS_SECURITY_GROUPS: str = Field(default="")
    ECS_CONTAINER_NAME: str = Field(default="builder")
    ECS_ASSIGN_PUBLIC_IP: bool = Field(default=True)

    # === 路径配置 ===
    BASE_DIR: str = Field(default_factory=lambda: str(_find_project_root()))

    @cached_property
    def data_dir(self) -> str:
        """数据目录"""
        return os.path.join(self.BASE_DIR, "data")

    @cached_property
    def db_url(self) -> str:
        """数据库连接 URL"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        return f"sqlite:///{os.path.join(self.data_dir, 'db', 'shipit.sqlite3')}"

    @cached_property
    def LOG_FILE_PATH(self) -> str:
        return os.path.join(self.data_dir, "logs", "app.log")

    @cached_property
    def LOCAL_LOG_SINK_DIR(self) -> str:
        return os.path.join(self.data_dir, "log_events")

    @cached_property
    def CORS_ORIGINS(self) -> list[str]:
        return _split_csv(self.ALLOWED_ORIGINS) or ["*"]

    @cached_property
    def ecs_subnets(self) -> list[str]:
        return _split_csv(self.ECS_SUBNETS)

    @cached_property
    def ecs_security_groups(self) -> list[str]:
        return _split_csv(self.ECS_SECURITY_GROUPS)

    model_config = SettingsConfigDict(
        env_file=str(_find_project_root() / ".env"),
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    @model_validator(mode="after")
    def validate_backend_config(self) -> "Settings":
        """验证后端配置取值"""
        if self.LOG_SINK_BACKEND not in ("clickhouse", "local"):
            raise ValueError(
                f"LOG_SINK_BACKEND 仅支持 'clickhouse' 或 'local'，当前为 '{self.LOG_SINK_BACKEND}'"
            )
        if self.EXECUTOR_LAUNCH_BACKEND not in ("ecs", "local"):
            raise ValueError(
                f"EXECUTOR_LAUNCH_BACKEND 仅支持 'ecs' 或 'local'，当前为 '{self.EXECUTOR_LAUNCH_BACKEND}'"
            )
        return self


# 全局配置实例
settings = Settings()
