"""
用户仓储实现
"""
from datetime import datetime
from typing import Optional, List

from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func, and_

from infrastructure.database.repository.base import BaseRepository
from infrastructure.database.models.user import User


class UserRepository(BaseRepository[User]):
    """用户仓储类"""

    def __init__(self, session: AsyncSession):
        """
        初始化用户仓储

        Args:
            session: 数据库会话
        """
        super().__init__(session, User)

    async def get_by_openid(self, openid: str) -> Optional[User]:
        """
        根据微信openid查询

        Args:
            openid: 微信openid

        Returns:
            用户实例或None
        """
        result = await self.session.execute(
            select(User).where(User.openid == openid)
        )
        return result.scalar_one_or_none()

    async def get_by_phone(self, phone: str) -> Optional[User]:
        """
        根据手机号查询

        Args:
            phone: 手机号

        Returns:
            用户实例或None
        """
        result = await self.session.execute(
            select(User).where(User.phone == phone)
        )
        return result.scalar_one_or_none()

    @staticmethod
    def _list_conditions(nickname: Optional[str], status: Optional[str]) -> list:
        conditions = []
        if nickname and nickname.strip():
            conditions.append(User.nickname.ilike(f"%{nickname.strip()}%"))
        if status:
            conditions.append(User.status == status)
        return conditions

    async def list_users(
        self,
        nickname: Optional[str] = None,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 10
    ) -> List[User]:
        """
        分页查询用户列表

        Args:
            nickname: 昵称（支持部分匹配）
            status: 状态
            offset: 偏移量
            limit: 限制数量

        Returns:
            用户列表（最新注册在前）
        """
        stmt = select(User)
        conditions = self._list_conditions(nickname, status)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self.session.execute(
            stmt.order_by(User.id.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def count_users(self, nickname: Optional[str] = None, status: Optional[str] = None) -> int:
        """统计满足条件的用户数"""
        stmt = select(func.count()).select_from(User)
        conditions = self._list_conditions(nickname, status)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def update_status(self, id: int, status: str) -> Optional[User]:
        """更新用户状态"""
        return await self.update(id, status=status)

    async def count_created_since(self, since: datetime) -> int:
        """统计某时间点之后注册的用户数"""
        result = await self.session.execute(
            select(func.count()).select_from(User).where(User.created_at >= since)
        )
        return int(result.scalar_one())

    async def count_active_since(self, since: datetime) -> int:
        """统计某时间点之后登录过的用户数"""
        result = await self.session.execute(
            select(func.count()).select_from(User).where(User.last_login_at >= since)
        )
        return int(result.scalar_one())
