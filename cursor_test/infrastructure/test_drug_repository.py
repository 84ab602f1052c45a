"""
药品仓储测试

Pytest 命令示例：
================

# 运行整个测试文件
pytest cursor_test/infrastructure/test_drug_repository.py -v

# 运行特定的测试类
pytest cursor_test/infrastructure/test_drug_repository.py::TestDrugRepositorySearch
"""
import pytest
from datetime import timedelta
from decimal import Decimal

from infrastructure.database.base import utc_now
from infrastructure.database.models import Drug


async def _add_drugs(session, *drugs):
    for drug in drugs:
        session.add(drug)
    await session.flush()


class TestDrugRepositoryLookup:
    """精确查询与存在性检查"""

    @pytest.mark.asyncio
    async def test_get_by_barcode(self, drug_repository, test_drug):
        """
        测试用例：get_by_barcode

        验证：
        - 能够根据条形码查询到药品
        - 不存在的条形码返回 None
        """
        # Act（执行）
        found = await drug_repository.get_by_barcode(test_drug.barcode)
        missing = await drug_repository.get_by_barcode("0000000000000")

        # Assert（断言）
        assert found is not None
        assert found.id == test_drug.id
        assert missing is None

    @pytest.mark.asyncio
    async def test_get_by_approval_number(self, drug_repository, test_drug):
        """测试用例：get_by_approval_number"""
        found = await drug_repository.get_by_approval_number(test_drug.approval_number)

        assert found is not None
        assert found.id == test_drug.id

    @pytest.mark.asyncio
    async def test_exists_checks(self, drug_repository, test_drug):
        """
        测试用例：exists_by_barcode / exists_by_approval_number

        验证：
        - 已存在返回 True，不存在返回 False
        - 空值视为不存在
        """
        assert await drug_repository.exists_by_barcode(test_drug.barcode) is True
        assert await drug_repository.exists_by_barcode("1234567890123") is False
        assert await drug_repository.exists_by_barcode(None) is False
        assert await drug_repository.exists_by_barcode("") is False
        assert await drug_repository.exists_by_approval_number(test_drug.approval_number) is True
        assert await drug_repository.exists_by_approval_number(None) is False

    @pytest.mark.asyncio
    async def test_price_is_exact_decimal(self, drug_repository, test_drug):
        """测试用例：价格以精确小数读回"""
        found = await drug_repository.get_by_id(test_drug.id)

        assert found.price == Decimal("15.50")


class TestDrugRepositorySearch:
    """关键词搜索、分页与计数"""

    @pytest.mark.asyncio
    async def test_search_keyword_matches_multiple_columns(self, test_db_session, drug_repository):
        """
        测试用例：关键词匹配名称、主要成分、生产厂家、条形码、批准文号

        验证：
        - 关键词忽略大小写
        - 不匹配的药品不返回
        """
        # Arrange（准备）
        await _add_drugs(
            test_db_session,
            Drug(name="Aspirin Tablets", status="active"),
            Drug(name="止痛片", main_ingredient="aspirin", status="active"),
            Drug(name="维生素C", manufacturer="ASPIRIN Pharma", status="active"),
            Drug(name="感冒灵", barcode="6911111111111", status="active"),
        )

        # Act（执行）
        results = await drug_repository.search(keyword="aspirin", limit=10)
        by_barcode = await drug_repository.search(keyword="691111", limit=10)

        # Assert（断言）
        assert {drug.name for drug in results} == {"Aspirin Tablets", "止痛片", "维生素C"}
        assert [drug.name for drug in by_barcode] == ["感冒灵"]

    @pytest.mark.asyncio
    async def test_search_filters_and_pagination(self, test_db_session, drug_repository):
        """
        测试用例：生产厂家、状态过滤与分页

        验证：
        - 按 ID 倒序返回（最新在前）
        - offset/limit 生效
        - count 与过滤条件一致
        """
        # Arrange（准备）
        drugs = [
            Drug(name=f"布洛芬{i}", manufacturer="甲制药" if i % 2 else "乙制药",
                 status="offline" if i == 4 else "active")
            for i in range(5)
        ]
        await _add_drugs(test_db_session, *drugs)

        # Act（执行）
        first_page = await drug_repository.search(keyword="布洛芬", offset=0, limit=2)
        second_page = await drug_repository.search(keyword="布洛芬", offset=2, limit=2)
        by_manufacturer = await drug_repository.search(manufacturer="甲", limit=10)
        offline = await drug_repository.search(status="offline", limit=10)

        # Assert（断言）
        assert [d.name for d in first_page] == ["布洛芬4", "布洛芬3"]
        assert [d.name for d in second_page] == ["布洛芬2", "布洛芬1"]
        assert {d.name for d in by_manufacturer} == {"布洛芬1", "布洛芬3"}
        assert [d.name for d in offline] == ["布洛芬4"]
        assert await drug_repository.count(keyword="布洛芬") == 5
        assert await drug_repository.count(keyword="布洛芬", status="active") == 4
        assert await drug_repository.count(manufacturer="乙") == 3

    @pytest.mark.asyncio
    async def test_search_without_conditions(self, test_db_session, drug_repository, test_drug):
        """测试用例：无条件时返回全部"""
        results = await drug_repository.search()

        assert len(results) == 1
        assert await drug_repository.count() == 1
        assert await drug_repository.count_all() == 1

    @pytest.mark.asyncio
    async def test_search_by_name(self, test_db_session, drug_repository):
        """测试用例：search_by_name 模糊匹配并限制数量"""
        await _add_drugs(
            test_db_session,
            Drug(name="阿莫西林胶囊", status="active"),
            Drug(name="阿莫西林颗粒", status="active"),
            Drug(name="头孢克肟", status="active"),
        )

        results = await drug_repository.search_by_name("阿莫西林", limit=1)

        assert len(results) == 1
        assert results[0].name.startswith("阿莫西林")


class TestDrugRepositoryWrite:
    """写入、更新、删除与统计"""

    @pytest.mark.asyncio
    async def test_add_assigns_id_and_timestamps(self, drug_repository):
        """
        测试用例：add

        验证：
        - 插入后分配自增ID
        - 创建时间、更新时间已填充
        """
        drug = await drug_repository.add(Drug(name="板蓝根颗粒", status="active"))

        assert drug.id is not None
        assert drug.created_at is not None
        assert drug.updated_at is not None

    @pytest.mark.asyncio
    async def test_update_skips_none_values(self, drug_repository, test_drug):
        """测试用例：update 只更新非 None 字段"""
        updated = await drug_repository.update(test_drug.id, manufacturer="新厂家", specification=None)

        assert updated.manufacturer == "新厂家"
        assert updated.specification == "100mg*30片"

    @pytest.mark.asyncio
    async def test_update_status_and_missing(self, drug_repository, test_drug):
        """测试用例：update_status，不存在的ID返回 None"""
        updated = await drug_repository.update_status(test_drug.id, "offline")
        missing = await drug_repository.update_status(99999, "offline")

        assert updated.status == "offline"
        assert missing is None

    @pytest.mark.asyncio
    async def test_delete(self, drug_repository, test_drug):
        """测试用例：delete"""
        assert await drug_repository.delete(test_drug.id) is True
        assert await drug_repository.delete(test_drug.id) is False
        assert await drug_repository.get_by_id(test_drug.id) is None

    @pytest.mark.asyncio
    async def test_count_created_since(self, drug_repository, test_drug):
        """测试用例：count_created_since"""
        assert await drug_repository.count_created_since(utc_now() - timedelta(hours=1)) == 1
        assert await drug_repository.count_created_since(utc_now() + timedelta(hours=1)) == 0
