"""
接口测试 Fixtures

替换数据库会话与第三方客户端依赖，不运行应用 lifespan，不连接真实数据库与网络。
"""
import httpx
import pytest_asyncio

from app.api.deps import get_drug_api_client, get_wechat_client
from app.main import app
from infrastructure.database.connection import get_async_session


@pytest_asyncio.fixture
async def api_client(test_db_session, mock_drug_api_client, mock_wechat_client):
    """
    创建测试用 HTTP 客户端

    Args:
        test_db_session: 测试数据库会话（所有请求共用）
        mock_drug_api_client: Mock 药品接口客户端
        mock_wechat_client: Mock 微信登录客户端
    """
    async def override_session():
        yield test_db_session

    app.dependency_overrides[get_async_session] = override_session
    app.dependency_overrides[get_drug_api_client] = lambda: mock_drug_api_client
    app.dependency_overrides[get_wechat_client] = lambda: mock_wechat_client

    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
