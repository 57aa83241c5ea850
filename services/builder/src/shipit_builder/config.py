"""
构建执行器配置

任务描述与运行参数都来自环境变量（启动器注入），仓库根目录下的
shipit.yaml 可以覆盖构建命令和产物目录。
"""

import os
from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

import yaml
from dotenv import load_dotenv

from shipit_core.common.config import settings
from shipit_core.common.exceptions import BuildError
from shipit_core.domain.models.enums import LogPublishMode
from shipit_core.domain.schemas.build import BuildTaskDescriptor

MANIFEST_FILE = "shipit.yaml"

_ENV_LOADED = False


def _load_env_file() -> None:
    """加载 .env 环境变量（仅一次）"""
    global _ENV_LOADED
    if _ENV_LOADED:
        return
    _ENV_LOADED = True

    env_path = Path(settings.BASE_DIR) / ".env"
    if env_path.exists():
        load_dotenv(env_path, override=False)


def _get_env_value(env: Mapping[str, str], *keys: str) -> str | None:
    """按优先顺序读取环境变量"""
    for key in keys:
        value = env.get(key)
        if value is not None and value != "":
            return value
    return None


def _get_env_int(env: Mapping[str, str], *keys: str) -> int | None:
    value = _get_env_value(env, *keys)
    if value is None:
        return None
    try:
        return int(value)
    except ValueError:
        return None


def _get_env_bool(env: Mapping[str, str], *keys: str) -> bool | None:
    value = _get_env_value(env, *keys)
    if value is None:
        return None
    return value.lower() in ("1", "true", "yes", "on")


@dataclass
class BuilderConfig:
    """构建执行器配置"""

    descriptor: BuildTaskDescriptor

    # 日志与状态
    redis_url: str = ""
    log_publish_mode: LogPublishMode = LogPublishMode.BOTH
    log_stream_partitions: int = 4
    log_stream_maxlen: int = 100000

    # 源码与构建
    workspace_dir: str = "/tmp/shipit"
    source_dir: str | None = None
    build_command: str = "npm install && npm run build"
    output_dir: str = "dist"
    build_timeout: int = 0

    # 产物上传
    artifact_bucket: str = "shipit-outputs"
    artifact_prefix: str = "__outputs"
    upload_concurrency: int = 100
    discovery_batch_size: int = 50
    fail_on_upload_errors: bool = False

    @property
    def repo_dir(self) -> str:
        return self.source_dir or os.path.join(self.workspace_dir, self.descriptor.deployment_id)


def load_builder_config(env: Mapping[str, str] | None = None) -> BuilderConfig:
    """从环境变量加载配置，任务描述缺失时抛出 ValidationError"""
    if env is None:
        _load_env_file()
        env = os.environ

    descriptor = BuildTaskDescriptor.from_env(env)
    mode = _get_env_value(env, "LOG_PUBLISH_MODE") or LogPublishMode.BOTH.value
    try:
        publish_mode = LogPublishMode(mode.lower())
    except ValueError:
        publish_mode = LogPublishMode.BOTH

    return BuilderConfig(
        descriptor=descriptor,
        redis_url=_get_env_value(env, "REDIS_URL") or settings.REDIS_URL,
        log_publish_mode=publish_mode,
        log_stream_partitions=_get_env_int(env, "LOG_STREAM_PARTITIONS") or settings.LOG_STREAM_PARTITIONS,
        log_stream_maxlen=_get_env_int(env, "LOG_STREAM_MAXLEN") or settings.LOG_STREAM_MAXLEN,
        workspace_dir=_get_env_value(env, "WORKSPACE_DIR") or "/tmp/shipit",
        source_dir=_get_env_value(env, "SOURCE_DIR"),
        build_command=_get_env_value(env, "BUILD_COMMAND") or "npm install && npm run build",
        output_dir=_get_env_value(env, "BUILD_OUTPUT_DIR") or "dist",
        build_timeout=_get_env_int(env, "BUILD_TIMEOUT_SECONDS") or 0,
        artifact_bucket=_get_env_value(env, "ARTIFACT_BUCKET") or settings.ARTIFACT_BUCKET,
        artifact_prefix=_get_env_value(env, "ARTIFACT_PREFIX") or settings.ARTIFACT_PREFIX,
        upload_concurrency=max(1, _get_env_int(env, "UPLOAD_CONCURRENCY") or 100),
        discovery_batch_size=max(1, _get_env_int(env, "DISCOVERY_BATCH_SIZE") or 50),
        fail_on_upload_errors=bool(_get_env_bool(env, "FAIL_ON_UPLOAD_ERRORS")),
    )


def apply_build_manifest(config: BuilderConfig, repo_dir: str) -> BuilderConfig:
    """读取仓库根目录下的 shipit.yaml 覆盖构建命令与产物目录"""
    manifest_path = Path(repo_dir) / MANIFEST_FILE
    if not manifest_path.is_file():
        return config

    try:
        manifest = yaml.safe_load(manifest_path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise BuildError(f"{MANIFEST_FILE} 解析失败: {e}", stage="manifest") from e
    if not isinstance(manifest, dict):
        raise BuildError(f"{MANIFEST_FILE} 顶层必须是映射", stage="manifest")

    overrides = {}
    build_command = manifest.get("build_command")
    if isinstance(build_command, list):
        build_command = " && ".join(str(part) for part in build_command)
    if build_command:
        overrides["build_command"] = str(build_command)

    output_dir = manifest.get("output_dir")
    if output_dir:
        output_dir = str(output_dir)
        resolved = (Path(repo_dir) / output_dir).resolve()
        if not resolved.is_relative_to(Path(repo_dir).resolve()):
            raise BuildError(f"output_dir 不能指向仓库之外: {output_dir}", stage="manifest")
        overrides["output_dir"] = output_dir

    return replace(config, **overrides) if overrides else config


__all__ = ["BuilderConfig", "MANIFEST_FILE", "apply_build_manifest", "load_builder_config"]
