"""
构建执行器配置单元测试
"""

import pytest

from shipit_builder.config import apply_build_manifest, load_builder_config
from shipit_core.common.exceptions import BuildError, ValidationError
from shipit_core.domain.models.enums import LogPublishMode

BASE_ENV = {
    "PROJECT_ID": "p1",
    "DEPLOYMENT_ID": "d1",
    "GIT_REPOSITORY__URL": "https://example.com/site.git",
}


def test_defaults():
    config = load_builder_config(dict(BASE_ENV))

    assert config.descriptor.deployment_id == "d1"
    assert config.build_command == "npm install && npm run build"
    assert config.output_dir == "dist"
    assert config.upload_concurrency == 100
    assert config.discovery_batch_size == 50
    assert config.log_publish_mode == LogPublishMode.BOTH
    assert config.fail_on_upload_errors is False
    assert config.build_timeout == 0
    assert config.artifact_prefix == "__outputs"
    assert config.repo_dir.endswith("d1")


def test_overrides():
    env = dict(
        BASE_ENV,
        BUILD_COMMAND="make site",
        BUILD_OUTPUT_DIR="public",
        UPLOAD_CONCURRENCY="8",
        LOG_PUBLISH_MODE="RELAY",
        FAIL_ON_UPLOAD_ERRORS="yes",
        BUILD_TIMEOUT_SECONDS="300",
        SOURCE_DIR="/src",
    )

    config = load_builder_config(env)

    assert config.build_command == "make site"
    assert config.output_dir == "public"
    assert config.upload_concurrency == 8
    assert config.log_publish_mode == LogPublishMode.RELAY
    assert config.fail_on_upload_errors is True
    assert config.build_timeout == 300
    assert config.repo_dir == "/src"


def test_bad_values_fall_back():
    config = load_builder_config(dict(BASE_ENV, LOG_PUBLISH_MODE="carrier-pigeon", UPLOAD_CONCURRENCY="many"))

    assert config.log_publish_mode == LogPublishMode.BOTH
    assert config.upload_concurrency == 100


def test_missing_descriptor():
    with pytest.raises(ValidationError):
        load_builder_config({"PROJECT_ID": "p1"})


class TestManifest:

    def test_no_manifest_keeps_config(self, tmp_path):
        config = load_builder_config(dict(BASE_ENV))
        assert apply_build_manifest(config, str(tmp_path)) is config

    def test_manifest_overrides(self, tmp_path):
        (tmp_path / "shipit.yaml").write_text(
            "build_command:\n  - pnpm install\n  - pnpm build\noutput_dir: build\n",
            encoding="utf-8",
        )
        config = load_builder_config(dict(BASE_ENV))

        updated = apply_build_manifest(config, str(tmp_path))

        assert updated.build_command == "pnpm install && pnpm build"
        assert updated.output_dir == "build"
        assert config.output_dir == "dist"

    def test_output_dir_cannot_escape_repo(self, tmp_path):
        (tmp_path / "shipit.yaml").write_text("output_dir: ../../etc\n", encoding="utf-8")

        with pytest.raises(BuildError):
            apply_build_manifest(load_builder_config(dict(BASE_ENV)), str(tmp_path))

    def test_invalid_yaml(self, tmp_path):
        (tmp_path / "shipit.yaml").write_text("build_command: [unterminated\n", encoding="utf-8")

        with pytest.raises(BuildError):
            apply_build_manifest(load_builder_config(dict(BASE_ENV)), str(tmp_path))
