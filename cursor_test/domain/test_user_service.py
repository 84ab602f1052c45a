"""
用户服务测试（微信登录、资料维护、统计）

Pytest 命令示例：
================

pytest cursor_test/domain/test_user_service.py -v
"""
import pytest
from datetime import timedelta
from unittest.mock import AsyncMock

from domain.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    RemoteUnavailableError,
    UserDisabledError,
)
from infrastructure.database.base import utc_now
from infrastructure.database.models import User


class TestLogin:
    """微信登录"""

    @pytest.mark.asyncio
    async def test_first_login_registers(self, user_service, user_repository, mock_wechat_client):
        """
        测试用例：首次登录自动注册

        验证：
        - 使用 code 调用 code2session
        - 创建新用户，状态为 active
        - 记录最近登录时间
        """
        # Act（执行）
        user = await user_service.login("wx_code_001")

        # Assert（断言）
        mock_wechat_client.code2session.assert_awaited_once_with("wx_code_001")
        assert user.id is not None
        assert user.openid == "openid_wx_0001"
        assert user.status == "active"
        assert user.last_login_at is not None
        assert await user_repository.count_all() == 1

    @pytest.mark.asyncio
    async def test_second_login_reuses_user(self, user_service, user_repository):
        """测试用例：同一 openid 再次登录不重复注册"""
        first = await user_service.login("wx_code_001")
        second = await user_service.login("wx_code_002")

        assert second.id == first.id
        assert await user_repository.count_all() == 1

    @pytest.mark.asyncio
    async def test_login_updates_unionid(self, user_service, mock_wechat_client, test_user):
        """测试用例：微信返回新的 unionid 时回写"""
        mock_wechat_client.code2session.return_value = {
            "openid": test_user.openid,
            "unionid": "union_0001",
            "session_key": "sk",
        }

        user = await user_service.login("wx_code_003")

        assert user.id == test_user.id
        assert user.unionid == "union_0001"

    @pytest.mark.parametrize("code", ["", "   ", None])
    @pytest.mark.asyncio
    async def test_blank_code(self, user_service, mock_wechat_client, code):
        """测试用例：code 为空时抛出 InvalidInputError，不调用微信接口"""
        with pytest.raises(InvalidInputError):
            await user_service.login(code)
        mock_wechat_client.code2session.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_disabled_user_rejected(self, user_service, user_repository, mock_wechat_client, test_user):
        """
        测试用例：已禁用用户登录

        验证：
        - 抛出 UserDisabledError
        - 不更新最近登录时间
        """
        await user_repository.update_status(test_user.id, "disabled")
        mock_wechat_client.code2session.return_value = {"openid": test_user.openid, "unionid": None}

        with pytest.raises(UserDisabledError):
            await user_service.login("wx_code_004")

        assert (await user_repository.get_by_id(test_user.id)).last_login_at is None

    @pytest.mark.asyncio
    async def test_wechat_error_propagates(self, user_service, user_repository, mock_wechat_client):
        """测试用例：微信接口错误直接抛出，不创建用户"""
        mock_wechat_client.code2session.side_effect = RemoteUnavailableError("invalid code")

        with pytest.raises(RemoteUnavailableError):
            await user_service.login("bad_code")

        assert await user_repository.count_all() == 0

    @pytest.mark.asyncio
    async def test_concurrent_register_reads_existing(self, user_service, user_repository, test_user, mock_wechat_client):
        """
        测试用例：并发注册导致 openid 冲突

        验证：
        - 首次按 openid 查询未命中（模拟并发），插入触发唯一约束
        - 回退为读取已存在的用户
        """
        mock_wechat_client.code2session.return_value = {"openid": test_user.openid, "unionid": None}
        original = user_repository.get_by_openid
        user_repository.get_by_openid = AsyncMock(side_effect=[None, await original(test_user.openid)])

        user = await user_service.login("wx_code_005")

        assert user.id == test_user.id
        assert await user_repository.count_all() == 1


class TestProfile:
    """资料维护"""

    @pytest.mark.asyncio
    async def test_update_profile(self, user_service, test_user):
        """
        测试用例：更新资料

        验证：
        - 只更新资料字段，openid 等字段被忽略
        - None 值不覆盖已有数据
        """
        user = await user_service.update_profile(
            test_user.id,
            {"nickname": "新昵称", "age": 30, "allergies": "青霉素", "openid": "hacked", "phone": None},
        )

        assert user.nickname == "新昵称"
        assert user.age == 30
        assert user.allergies == "青霉素"
        assert user.openid == "openid_test_0001"
        assert user.phone == "13800000001"

    @pytest.mark.asyncio
    async def test_phone_conflict(self, user_service, user_repository, test_user):
        """测试用例：手机号被其他用户使用时抛出 ConflictError"""
        other = await user_repository.create(openid="openid_other")

        with pytest.raises(ConflictError):
            await user_service.update_profile(other.id, {"phone": test_user.phone})

        # 自己的手机号不算冲突
        user = await user_service.update_profile(test_user.id, {"phone": f" {test_user.phone} "})
        assert user.phone == test_user.phone

    @pytest.mark.asyncio
    async def test_invalid_gender_and_missing_user(self, user_service, test_user):
        """测试用例：性别非法抛出 InvalidInputError，用户不存在抛出 NotFoundError"""
        with pytest.raises(InvalidInputError):
            await user_service.update_profile(test_user.id, {"gender": 5})
        with pytest.raises(NotFoundError):
            await user_service.update_profile(99999, {"nickname": "X"})


class TestAdministration:
    """管理端操作"""

    @pytest.mark.asyncio
    async def test_list_users_paging(self, test_db_session, user_service):
        """测试用例：分页查询，非法页码使用默认值"""
        for i in range(12):
            test_db_session.add(User(openid=f"openid_list_{i}", nickname=f"用户{i}"))
        await test_db_session.flush()

        users, total = await user_service.list_users(page=0, size=0)
        second_page, _ = await user_service.list_users(page=2, size=10)

        assert len(users) == 10
        assert total == 12
        assert len(second_page) == 2

    @pytest.mark.asyncio
    async def test_update_status(self, user_service, test_user):
        """测试用例：启用/禁用用户"""
        user = await user_service.update_status(test_user.id, "disabled")
        assert user.status == "disabled"

        with pytest.raises(InvalidInputError):
            await user_service.update_status(test_user.id, "locked")
        with pytest.raises(NotFoundError):
            await user_service.update_status(99999, "active")

    @pytest.mark.asyncio
    async def test_delete_user(self, user_service, user_repository, test_user):
        """测试用例：删除用户，再次删除抛出 NotFoundError"""
        await user_service.delete_user(test_user.id)

        assert await user_repository.count_all() == 0
        with pytest.raises(NotFoundError):
            await user_service.delete_user(test_user.id)

    @pytest.mark.asyncio
    async def test_statistics(self, user_service, user_repository, test_user):
        """
        测试用例：用户统计

        验证：
        - 今日新增包含刚创建的用户
        - 活跃用户只统计窗口内登录过的用户
        """
        stats = await user_service.statistics()
        assert stats == {"total_users": 1, "today_new_users": 1, "active_users": 0}

        await user_repository.update(test_user.id, last_login_at=utc_now() - timedelta(days=3))

        assert (await user_service.statistics(active_days=7))["active_users"] == 1
        assert (await user_service.statistics(active_days=1))["active_users"] == 0
