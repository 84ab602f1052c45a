"""
用户接口
"""
import logging
from typing import Dict, Any, Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_user_service
from app.schemas.user import (
    LoginRequest,
    UserUpdate,
    UserStatusUpdate,
    UserResponse,
    UserListResponse,
    UserStatisticsResponse,
)
from domain.errors import DomainError, NotFoundError
from domain.user.service import UserService, DEFAULT_PAGE, DEFAULT_PAGE_SIZE, DEFAULT_ACTIVE_DAYS
from infrastructure.database.connection import get_async_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["用户"])


@router.post("/login", response_model=UserResponse)
async def login(
    login_data: LoginRequest,
    session: AsyncSession = Depends(get_async_session),
    service: UserService = Depends(get_user_service)
) -> UserResponse:
    """
    微信小程序登录（首次登录自动注册）

    Args:
        login_data: 登录请求
        session: 数据库会话
        service: 用户服务

    Returns:
        登录用户信息
    """
    try:
        user = await service.login(login_data.code)
        await session.commit()
        return UserResponse.model_validate(user)
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[微信登录错误] error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"登录失败: {str(e)}")


@router.get("/statistics", response_model=UserStatisticsResponse)
async def get_user_statistics(
    days: int = Query(default=DEFAULT_ACTIVE_DAYS, ge=1, description="活跃用户统计天数"),
    service: UserService = Depends(get_user_service)
) -> UserStatisticsResponse:
    """用户统计（总数、今日新增、活跃用户）"""
    stats = await service.statistics(active_days=days)
    return UserStatisticsResponse(**stats, active_days=days)


@router.get("", response_model=UserListResponse)
async def list_users(
    nickname: Optional[str] = Query(default=None, description="昵称"),
    status: Optional[str] = Query(default=None, description="状态"),
    page: Optional[int] = Query(default=DEFAULT_PAGE, description="页码（从1开始）"),
    size: Optional[int] = Query(default=DEFAULT_PAGE_SIZE, description="每页数量"),
    service: UserService = Depends(get_user_service)
) -> UserListResponse:
    """
    分页查询用户列表

    Returns:
        用户列表与总数
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE
    if size is None or size < 1:
        size = DEFAULT_PAGE_SIZE
    users, total = await service.list_users(nickname=nickname, status=status, page=page, size=size)
    return UserListResponse(
        list=[UserResponse.model_validate(user) for user in users],
        total=total,
        page=page,
        size=size
    )


@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: int,
    service: UserService = Depends(get_user_service)
) -> UserResponse:
    """根据ID查询用户"""
    user = await service.get_user(user_id)
    if not user:
        raise NotFoundError(f"用户不存在: {user_id}")
    return UserResponse.model_validate(user)


@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: int,
    user_data: UserUpdate,
    session: AsyncSession = Depends(get_async_session),
    service: UserService = Depends(get_user_service)
) -> UserResponse:
    """
    更新用户资料

    手机号已被其他用户使用时返回 409。

    Args:
        user_id: 用户ID
        user_data: 用户更新数据
        session: 数据库会话
        service: 用户服务

    Returns:
        更新后的用户响应
    """
    try:
        update_data = {k: v for k, v in user_data.model_dump().items() if v is not None}
        user = await service.update_profile(user_id, update_data)
        await session.commit()
        return UserResponse.model_validate(user)
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[更新用户错误] user_id={user_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"更新用户失败: {str(e)}")


@router.put("/{user_id}/status", response_model=UserResponse)
async def update_user_status(
    user_id: int,
    status_data: UserStatusUpdate,
    session: AsyncSession = Depends(get_async_session),
    service: UserService = Depends(get_user_service)
) -> UserResponse:
    """启用/禁用用户"""
    try:
        user = await service.update_status(user_id, status_data.status)
        await session.commit()
        return UserResponse.model_validate(user)
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[更新用户状态错误] user_id={user_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"更新用户状态失败: {str(e)}")


@router.delete("/{user_id}")
async def delete_user(
    user_id: int,
    session: AsyncSession = Depends(get_async_session),
    service: UserService = Depends(get_user_service)
) -> Dict[str, Any]:
    """
    删除用户

    Args:
        user_id: 用户ID
        session: 数据库会话
        service: 用户服务

    Returns:
        删除结果
    """
    try:
        await service.delete_user(user_id)
        await session.commit()
        return {"message": "用户删除成功", "user_id": user_id}
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[删除用户错误] user_id={user_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"删除用户失败: {str(e)}")
