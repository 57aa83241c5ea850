from contextlib import asynccontextmanager

import pytest
from fastapi.testclient import TestClient
from tortoise import Tortoise

from shipit_core.application.services.deployments.orchestrator import DeploymentOrchestrator
from shipit_core.application.services.logs.log_query_service import LogQueryService
from shipit_core.infrastructure.db.tortoise import get_tortoise_config
from shipit_web_api.app_factory import create_app
from shipit_web_api.websockets import LogConnectionManager, RelayBridge


def make_test_lifespan(sink, launcher):
    """用内存数据库和假实现替换真实依赖"""

    @asynccontextmanager
    async def lifespan(app):
        await Tortoise.init(config=get_tortoise_config("sqlite://:memory:"))
        await Tortoise.generate_schemas()
        manager = LogConnectionManager()
        orchestrator = DeploymentOrchestrator(launcher)
        app.state.orchestrator = orchestrator
        app.state.log_query_service = LogQueryService(sink, display_timezone="UTC")
        app.state.connection_manager = manager
        app.state.relay_bridge = RelayBridge(None, manager)
        yield
        await orchestrator.shutdown()
        await Tortoise._drop_databases()

    return lifespan


@pytest.fixture
def client(sink, launcher):
    app = create_app(lifespan=make_test_lifespan(sink, launcher))
    with TestClient(app) as test_client:
        yield test_client
