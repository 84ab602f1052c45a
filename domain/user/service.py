"""
用户服务

小程序用户通过微信 code2session 登录，按 openid 查找，不存在时自动注册。
"""
import logging
from datetime import timedelta
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.exc import IntegrityError

from domain.errors import ConflictError, InvalidInputError, NotFoundError, UserDisabledError
from infrastructure.database.base import start_of_today, utc_now
from infrastructure.database.models.user import Gender, User, UserStatus
from infrastructure.database.repository.user_repository import UserRepository
from infrastructure.external.wechat_client import WechatClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_ACTIVE_DAYS = 7

# 用户可自行维护的资料字段
PROFILE_FIELDS = (
    "nickname",
    "avatar_url",
    "gender",
    "age",
    "phone",
    "emergency_contact",
    "emergency_phone",
    "medical_history",
    "allergies",
)


class UserService:
    """用户服务"""

    def __init__(
        self,
        repository: UserRepository,
        wechat_client: WechatClient,
        timezone_name: str = "Asia/Shanghai"
    ):
        """
        初始化用户服务

        Args:
            repository: 用户仓储
            wechat_client: 微信登录客户端
            timezone_name: 统计“今日”时使用的业务时区
        """
        self.repository = repository
        self.wechat_client = wechat_client
        self.timezone_name = timezone_name

    async def login(self, code: Optional[str]) -> User:
        """
        微信小程序登录（不存在则自动注册）

        Args:
            code: wx.login 获取的临时凭证

        Returns:
            登录用户

        Raises:
            InvalidInputError: code 为空
            RemoteUnavailableError: 微信接口不可用或返回错误
            UserDisabledError: 用户已被禁用
        """
        if not code or not code.strip():
            raise InvalidInputError("登录凭证不能为空")

        session_info = await self.wechat_client.code2session(code.strip())
        openid = session_info["openid"]
        unionid = session_info.get("unionid")

        user = await self.repository.get_by_openid(openid)
        if user is None:
            user = await self._register(openid, unionid)
        else:
            logger.info(f"用户登录: openid={openid}, user_id={user.id}")

        if user.status == UserStatus.DISABLED.value:
            logger.warning(f"已禁用用户尝试登录: user_id={user.id}")
            raise UserDisabledError()

        updates: Dict[str, Any] = {"last_login_at": utc_now()}
        if unionid and unionid != user.unionid:
            updates["unionid"] = unionid
        return await self.repository.update(user.id, **updates)

    async def _register(self, openid: str, unionid: Optional[str]) -> User:
        """
        注册新用户

        并发登录导致 openid 唯一约束冲突时，改为读取已注册的用户。
        """
        try:
            async with self.repository.session.begin_nested():
                user = await self.repository.create(
                    openid=openid,
                    unionid=unionid,
                    status=UserStatus.ACTIVE.value,
                )
        except IntegrityError as e:
            user = await self.repository.get_by_openid(openid)
            if user is None:
                raise ConflictError("用户注册失败") from e
            return user

        logger.info(f"创建新用户: openid={openid}, user_id={user.id}")
        return user

    async def get_user(self, user_id: int) -> Optional[User]:
        """根据ID查询用户"""
        return await self.repository.get_by_id(user_id)

    async def update_profile(self, user_id: int, fields: Dict[str, Any]) -> User:
        """
        更新用户资料（只更新非空字段）

        Args:
            user_id: 用户ID
            fields: 资料字段

        Returns:
            更新后的用户

        Raises:
            NotFoundError: 用户不存在
            ConflictError: 手机号已被其他用户使用
        """
        values = {key: value for key, value in fields.items() if key in PROFILE_FIELDS}
        if values.get("gender") is not None and values["gender"] not in {g.value for g in Gender}:
            raise InvalidInputError(f"性别取值无效: {values['gender']}")
        if values.get("phone") is not None:
            values["phone"] = values["phone"].strip() or None

        user = await self.repository.get_by_id(user_id)
        if user is None:
            raise NotFoundError("用户不存在")

        if values.get("phone"):
            other = await self.repository.get_by_phone(values["phone"])
            if other is not None and other.id != user_id:
                raise ConflictError("该手机号已被其他用户使用")

        try:
            async with self.repository.session.begin_nested():
                user = await self.repository.update(user_id, **values)
        except IntegrityError as e:
            raise ConflictError("该手机号已被其他用户使用") from e

        logger.info(f"更新用户信息成功: user_id={user_id}")
        return user

    async def list_users(
        self,
        nickname: Optional[str] = None,
        status: Optional[str] = None,
        page: Optional[int] = None,
        size: Optional[int] = None
    ) -> Tuple[List[User], int]:
        """
        分页查询用户

        Returns:
            (用户列表, 满足条件的总数)
        """
        if page is None or page < 1:
            page = DEFAULT_PAGE
        if size is None or size < 1:
            size = DEFAULT_PAGE_SIZE
        users = await self.repository.list_users(
            nickname=nickname,
            status=status,
            offset=(page - 1) * size,
            limit=size
        )
        total = await self.repository.count_users(nickname=nickname, status=status)
        return users, total

    async def update_status(self, user_id: int, status: str) -> User:
        """启用/禁用用户"""
        valid = {item.value for item in UserStatus}
        if status not in valid:
            raise InvalidInputError(f"用户状态无效: {status}，可选值: {sorted(valid)}")
        user = await self.repository.update_status(user_id, status)
        if user is None:
            raise NotFoundError("用户不存在")
        logger.info(f"更新用户状态成功: user_id={user_id}, status={status}")
        return user

    async def delete_user(self, user_id: int) -> None:
        """删除用户，不存在时抛出 NotFoundError"""
        if not await self.repository.delete(user_id):
            raise NotFoundError("用户不存在")
        logger.info(f"删除用户成功: user_id={user_id}")

    async def statistics(self, active_days: Optional[int] = DEFAULT_ACTIVE_DAYS) -> Dict[str, int]:
        """
        用户统计

        Args:
            active_days: 活跃用户统计的天数窗口（默认7天）

        Returns:
            {"total_users": 用户总数, "today_new_users": 今日新增, "active_users": N天内登录过的用户数}
        """
        if active_days is None or active_days < 1:
            active_days = DEFAULT_ACTIVE_DAYS
        return {
            "total_users": await self.repository.count_all(),
            "today_new_users": await self.repository.count_created_since(
                start_of_today(self.timezone_name)
            ),
            "active_users": await self.repository.count_active_since(
                utc_now() - timedelta(days=active_days)
            ),
        }
