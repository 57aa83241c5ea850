import pytest
import pytest_asyncio
from tortoise import Tortoise

from shipit_core.infrastructure.db.tortoise import get_tortoise_config
from tests.unit.fakes import FakeLauncher, FakeLogSink, FakeRedis, FakeStreamClient


@pytest_asyncio.fixture
async def db():
    """内存 SQLite 数据库"""
    await Tortoise.init(config=get_tortoise_config("sqlite://:memory:"))
    await Tortoise.generate_schemas()
    yield
    await Tortoise._drop_databases()


@pytest.fixture
def fake_redis():
    return FakeRedis()


@pytest.fixture
def stream(fake_redis):
    return FakeStreamClient(fake_redis)


@pytest.fixture
def sink():
    return FakeLogSink()


@pytest.fixture
def launcher():
    return FakeLauncher()
