"""
测试配置和共享 Fixtures

数据库测试使用内存 SQLite（aiosqlite + StaticPool），每个测试独立建表，互不影响。
"""
import sys
from pathlib import Path

# 将项目根目录添加到 Python 路径
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))

import pytest
import pytest_asyncio
from decimal import Decimal
from unittest.mock import AsyncMock
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import StaticPool

from domain.drug.service import DrugService
from domain.user.service import UserService
from infrastructure.database.base import Base
from infrastructure.database.connection import create_session_factory
from infrastructure.database.models import Drug, User
from infrastructure.database.repository.drug_repository import DrugRepository
from infrastructure.database.repository.user_repository import UserRepository
from infrastructure.external.drug_api_client import DrugApiClient
from infrastructure.external.wechat_client import WechatClient

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def test_db_engine():
    """
    创建测试数据库引擎（内存 SQLite）

    pysqlite 默认的事务处理会吞掉 SAVEPOINT，这里关闭驱动自带的事务管理，
    由 SQLAlchemy 显式发出 BEGIN，保证嵌套事务与 PostgreSQL 行为一致。
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture(scope="function")
async def test_db_session(test_db_engine):
    """创建测试数据库会话"""
    session_factory = create_session_factory(test_db_engine)
    async with session_factory() as session:
        yield session


@pytest.fixture
def test_drug_data():
    """测试药品数据"""
    return {
        "name": "阿司匹林肠溶片",
        "barcode": "6900000000017",
        "approval_number": "国药准字H00000001",
        "manufacturer": "测试制药有限公司",
        "specification": "100mg*30片",
        "main_ingredient": "阿司匹林",
        "price": Decimal("15.50"),
        "status": "active",
    }


@pytest_asyncio.fixture
async def test_drug(test_db_session, test_drug_data):
    """创建测试药品"""
    drug = Drug(**test_drug_data)
    test_db_session.add(drug)
    await test_db_session.flush()
    await test_db_session.refresh(drug)
    return drug


@pytest_asyncio.fixture
async def test_user(test_db_session):
    """创建测试用户"""
    user = User(openid="openid_test_0001", nickname="测试用户", phone="13800000001")
    test_db_session.add(user)
    await test_db_session.flush()
    await test_db_session.refresh(user)
    return user


@pytest.fixture
def mock_drug_api_client():
    """
    Mock 药品接口客户端

    默认：条形码查询返回“未找到”，搜索返回空列表，详情返回“未找到”。
    """
    client = AsyncMock(spec=DrugApiClient)
    client.query_by_barcode.return_value = {"code": 404, "msg": "未找到"}
    client.search.return_value = {"code": 200, "data": []}
    client.detail.return_value = {"code": 404, "msg": "未找到"}
    return client


@pytest.fixture
def mock_wechat_client():
    """Mock 微信登录客户端"""
    client = AsyncMock(spec=WechatClient)
    client.code2session.return_value = {
        "openid": "openid_wx_0001",
        "unionid": None,
        "session_key": "session_key_0001",
    }
    return client


@pytest.fixture
def drug_repository(test_db_session):
    """药品仓储"""
    return DrugRepository(test_db_session)


@pytest.fixture
def user_repository(test_db_session):
    """用户仓储"""
    return UserRepository(test_db_session)


@pytest.fixture
def drug_service(drug_repository, mock_drug_api_client):
    """药品服务（远程接口为 Mock）"""
    return DrugService(drug_repository, mock_drug_api_client)


@pytest.fixture
def user_service(user_repository, mock_wechat_client):
    """用户服务（微信接口为 Mock）"""
    return UserService(user_repository, mock_wechat_client)
