"""
药品仓储实现
"""
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, func, or_, and_, exists
from sqlalchemy.ext.asyncio import AsyncSession

from infrastructure.database.repository.base import BaseRepository
from infrastructure.database.models.drug import Drug


class DrugRepository(BaseRepository[Drug]):
    """药品仓储类"""

    def __init__(self, session: AsyncSession):
        """
        初始化药品仓储

        Args:
            session: 数据库会话
        """
        super().__init__(session, Drug)

    async def get_by_barcode(self, barcode: str) -> Optional[Drug]:
        """
        根据条形码精确查询

        Args:
            barcode: 条形码

        Returns:
            药品实例或None
        """
        result = await self.session.execute(
            select(Drug).where(Drug.barcode == barcode)
        )
        return result.scalar_one_or_none()

    async def get_by_approval_number(self, approval_number: str) -> Optional[Drug]:
        """
        根据批准文号精确查询

        Args:
            approval_number: 批准文号

        Returns:
            药品实例或None
        """
        result = await self.session.execute(
            select(Drug).where(Drug.approval_number == approval_number)
        )
        return result.scalar_one_or_none()

    async def exists_by_barcode(self, barcode: Optional[str]) -> bool:
        """检查条形码是否已存在（空条形码视为不存在）"""
        if not barcode:
            return False
        result = await self.session.execute(
            select(exists().where(Drug.barcode == barcode))
        )
        return bool(result.scalar())

    async def exists_by_approval_number(self, approval_number: Optional[str]) -> bool:
        """检查批准文号是否已存在（空批准文号视为不存在）"""
        if not approval_number:
            return False
        result = await self.session.execute(
            select(exists().where(Drug.approval_number == approval_number))
        )
        return bool(result.scalar())

    @staticmethod
    def _search_conditions(
        keyword: Optional[str],
        manufacturer: Optional[str],
        status: Optional[str]
    ) -> list:
        """
        构建搜索条件

        - keyword：名称、主要成分、生产厂家、条形码、批准文号模糊匹配（忽略大小写）
        - manufacturer：生产厂家模糊匹配
        - status：状态精确匹配
        """
        conditions = []
        if keyword and keyword.strip():
            pattern = f"%{keyword.strip()}%"
            conditions.append(
                or_(
                    Drug.name.ilike(pattern),
                    Drug.main_ingredient.ilike(pattern),
                    Drug.manufacturer.ilike(pattern),
                    Drug.barcode.ilike(pattern),
                    Drug.approval_number.ilike(pattern),
                )
            )
        if manufacturer and manufacturer.strip():
            conditions.append(Drug.manufacturer.ilike(f"%{manufacturer.strip()}%"))
        if status:
            conditions.append(Drug.status == status)
        return conditions

    async def search(
        self,
        keyword: Optional[str] = None,
        manufacturer: Optional[str] = None,
        status: Optional[str] = None,
        offset: int = 0,
        limit: int = 10
    ) -> List[Drug]:
        """
        分页搜索药品

        Args:
            keyword: 关键词
            manufacturer: 生产厂家
            status: 状态
            offset: 偏移量
            limit: 限制数量

        Returns:
            药品列表（按ID倒序，即最新录入在前）
        """
        stmt = select(Drug)
        conditions = self._search_conditions(keyword, manufacturer, status)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self.session.execute(
            stmt.order_by(Drug.id.desc()).offset(offset).limit(limit)
        )
        return list(result.scalars().all())

    async def count(
        self,
        keyword: Optional[str] = None,
        manufacturer: Optional[str] = None,
        status: Optional[str] = None
    ) -> int:
        """
        统计满足搜索条件的药品数

        Args:
            keyword: 关键词
            manufacturer: 生产厂家
            status: 状态

        Returns:
            药品数量
        """
        stmt = select(func.count()).select_from(Drug)
        conditions = self._search_conditions(keyword, manufacturer, status)
        if conditions:
            stmt = stmt.where(and_(*conditions))
        result = await self.session.execute(stmt)
        return int(result.scalar_one())

    async def search_by_name(self, name: str, limit: int = 10) -> List[Drug]:
        """
        根据药品名称模糊查询（用于输入联想）

        Args:
            name: 药品名称（支持部分匹配）
            limit: 限制数量

        Returns:
            药品列表
        """
        result = await self.session.execute(
            select(Drug)
            .where(Drug.name.ilike(f"%{name}%"))
            .order_by(Drug.name)
            .limit(limit)
        )
        return list(result.scalars().all())

    async def update_status(self, id: int, status: str) -> Optional[Drug]:
        """更新药品状态"""
        return await self.update(id, status=status)

    async def count_created_since(self, since: datetime) -> int:
        """
        统计某时间点之后新增的药品数

        Args:
            since: 起始时间（UTC）

        Returns:
            药品数量
        """
        result = await self.session.execute(
            select(func.count()).select_from(Drug).where(Drug.created_at >= since)
        )
        return int(result.scalar_one())
