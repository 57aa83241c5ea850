"""S3 产物存储单元测试

用假的 aioboto3 会话验证客户端复用、上传参数和关闭逻辑。
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

from shipit_core.infrastructure.storage.artifact_store import S3ArtifactStore
from shipit_core.infrastructure.storage.s3_client import S3ClientManager


class FakeClientContext:
    def __init__(self, client):
        self.client = client
        self.exited = False

    async def __aenter__(self):
        return self.client

    async def __aexit__(self, *exc):
        self.exited = True


@pytest.fixture
def s3_client():
    client = MagicMock()
    client.put_object = AsyncMock(return_value={})
    return client


@pytest.fixture
def session(s3_client):
    session = MagicMock()
    session.contexts = []

    def make_client(service, endpoint_url=None, config=None):
        ctx = FakeClientContext(s3_client)
        session.contexts.append((service, endpoint_url, ctx))
        return ctx

    session.client = MagicMock(side_effect=make_client)
    return session


@pytest.mark.asyncio
async def test_put_file_uploads_body_and_content_type(tmp_path, session, s3_client):
    path = tmp_path / "index.html"
    path.write_bytes(b"<html>ok</html>")
    store = S3ArtifactStore(S3ClientManager(endpoint_url="http://minio:9000", session=session), "outputs")

    await store.put_file("__outputs/p1/index.html", str(path), "text/html")

    s3_client.put_object.assert_awaited_once_with(
        Bucket="outputs",
        Key="__outputs/p1/index.html",
        Body=b"<html>ok</html>",
        ContentType="text/html",
    )


@pytest.mark.asyncio
async def test_client_is_reused_and_closed(session):
    manager = S3ClientManager(endpoint_url="http://minio:9000", session=session)

    first = await manager.get_client()
    second = await manager.get_client()

    assert first is second
    assert len(session.contexts) == 1
    service, endpoint, ctx = session.contexts[0]
    assert service == "s3"
    assert endpoint == "http://minio:9000"

    await manager.close()
    assert ctx.exited is True


@pytest.mark.asyncio
async def test_missing_file_raises(tmp_path, session):
    store = S3ArtifactStore(S3ClientManager(session=session), "outputs")

    with pytest.raises(FileNotFoundError):
        await store.put_file("k", str(tmp_path / "missing"), "text/plain")
