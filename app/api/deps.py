"""
接口依赖注入

客户端在应用启动时创建并挂到 app.state 上，服务按请求构造，
依赖全部通过构造参数显式传入。
"""
from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from domain.drug.service import DrugService
from domain.user.service import UserService
from infrastructure.database.connection import get_async_session
from infrastructure.database.repository.drug_repository import DrugRepository
from infrastructure.database.repository.user_repository import UserRepository
from infrastructure.external.drug_api_client import DrugApiClient
from infrastructure.external.wechat_client import WechatClient


def get_drug_api_client(request: Request) -> DrugApiClient:
    """获取应用级药品接口客户端"""
    return request.app.state.drug_api_client


def get_wechat_client(request: Request) -> WechatClient:
    """获取应用级微信登录客户端"""
    return request.app.state.wechat_client


def get_drug_service(
    session: AsyncSession = Depends(get_async_session),
    api_client: DrugApiClient = Depends(get_drug_api_client)
) -> DrugService:
    """
    构造药品服务

    Args:
        session: 请求级数据库会话
        api_client: 药品接口客户端

    Returns:
        DrugService 实例
    """
    return DrugService(DrugRepository(session), api_client, timezone_name=settings.DB_TIMEZONE)


def get_user_service(
    session: AsyncSession = Depends(get_async_session),
    wechat_client: WechatClient = Depends(get_wechat_client)
) -> UserService:
    """
    构造用户服务

    Args:
        session: 请求级数据库会话
        wechat_client: 微信登录客户端

    Returns:
        UserService 实例
    """
    return UserService(UserRepository(session), wechat_client, timezone_name=settings.DB_TIMEZONE)
