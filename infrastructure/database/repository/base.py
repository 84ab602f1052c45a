"""
基础仓储类
封装通用的数据库操作
"""
from typing import Generic, TypeVar, Type, Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, func

from infrastructure.database.base import Base

ModelType = TypeVar("ModelType", bound=Base)


class BaseRepository(Generic[ModelType]):
    """基础仓储类"""

    def __init__(self, session: AsyncSession, model: Type[ModelType]):
        """
        初始化仓储

        Args:
            session: 数据库会话
            model: ORM 模型类
        """
        self.session = session
        self.model = model

    async def get_by_id(self, id: int) -> Optional[ModelType]:
        """
        根据 ID 查询

        Args:
            id: 记录ID

        Returns:
            模型实例或None
        """
        result = await self.session.execute(
            select(self.model).where(self.model.id == id)
        )
        return result.scalar_one_or_none()

    async def get_all(self, limit: int = 100, offset: int = 0) -> List[ModelType]:
        """
        查询所有记录

        Args:
            limit: 限制数量
            offset: 偏移量

        Returns:
            模型实例列表
        """
        result = await self.session.execute(
            select(self.model).order_by(self.model.id.desc()).limit(limit).offset(offset)
        )
        return list(result.scalars().all())

    async def count_all(self) -> int:
        """统计记录总数"""
        result = await self.session.execute(
            select(func.count()).select_from(self.model)
        )
        return int(result.scalar_one())

    async def add(self, instance: ModelType) -> ModelType:
        """
        插入已构造好的模型实例

        flush 后刷新实例，确保自增ID与时间字段已从数据库加载。

        Args:
            instance: 未持久化的模型实例

        Returns:
            持久化后的模型实例
        """
        self.session.add(instance)
        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def create(self, **kwargs) -> ModelType:
        """
        创建记录

        Args:
            **kwargs: 模型字段键值对

        Returns:
            创建的模型实例
        """
        return await self.add(self.model(**kwargs))

    async def update(self, id: int, **kwargs) -> Optional[ModelType]:
        """
        更新记录

        Args:
            id: 记录ID
            **kwargs: 要更新的字段键值对

        Returns:
            更新后的模型实例或None
        """
        instance = await self.get_by_id(id)
        if not instance:
            return None

        for key, value in kwargs.items():
            if value is not None:  # 只更新非None值
                setattr(instance, key, value)

        await self.session.flush()
        await self.session.refresh(instance)
        return instance

    async def delete(self, id: int) -> bool:
        """
        删除记录

        Args:
            id: 记录ID

        Returns:
            是否删除成功
        """
        instance = await self.get_by_id(id)
        if not instance:
            return False

        await self.session.delete(instance)
        await self.session.flush()
        return True
