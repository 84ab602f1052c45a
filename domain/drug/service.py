"""
药品服务

药品查询采用“本地优先、远程兜底”策略：
- 条形码查询：本地命中直接返回；未命中时调用药智数据接口，标准化后写入本地再返回
- 关键词搜索：本地结果不足一页且有关键词时，调用一次远程搜索补足，按条形码去重后写入本地

远程接口只是补充数据源，兜底路径上的远程失败与唯一性冲突都不会抛给调用方。
"""
import logging
from typing import Any, Dict, List, Optional, Set, Tuple

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from domain.drug.normalizer import build_drug, normalize_list, normalize_single
from domain.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    PersistenceError,
    RemoteUnavailableError,
)
from infrastructure.database.base import start_of_today
from infrastructure.database.models.drug import Drug, DrugStatus
from infrastructure.database.repository.drug_repository import DrugRepository
from infrastructure.external.drug_api_client import DrugApiClient

logger = logging.getLogger(__name__)

DEFAULT_PAGE = 1
DEFAULT_PAGE_SIZE = 10
DEFAULT_SUGGEST_LIMIT = 10

# 管理端可写字段
EDITABLE_FIELDS = (
    "name",
    "barcode",
    "approval_number",
    "manufacturer",
    "specification",
    "dosage_form",
    "main_ingredient",
    "indications",
    "contraindications",
    "adverse_reactions",
    "dosage_usage",
    "precautions",
    "drug_interactions",
    "storage_conditions",
    "validity_period",
    "image_url",
    "price",
    "status",
)


class DrugService:
    """药品服务"""

    def __init__(
        self,
        repository: DrugRepository,
        api_client: DrugApiClient,
        timezone_name: str = "Asia/Shanghai"
    ):
        """
        初始化药品服务

        Args:
            repository: 药品仓储（本地存储）
            api_client: 药智数据接口客户端（远程数据源）
            timezone_name: 统计“今日”时使用的业务时区
        """
        self.repository = repository
        self.api_client = api_client
        self.timezone_name = timezone_name

    async def lookup_by_barcode(self, barcode: Optional[str]) -> Optional[Drug]:
        """
        根据条形码查询药品（本地优先，未命中时调用远程接口并缓存到本地）

        Args:
            barcode: 条形码

        Returns:
            药品实例；本地与远程均未找到时返回 None。
            写入本地失败时返回未持久化的药品（无ID）。
        """
        if not barcode or not barcode.strip():
            return None
        barcode = barcode.strip()

        drug = await self.repository.get_by_barcode(barcode)
        if drug:
            return drug

        try:
            payload = await self.api_client.query_by_barcode(barcode)
        except RemoteUnavailableError as e:
            logger.error(f"远程查询药品失败: barcode={barcode}, error={e.message}")
            return None

        fields = normalize_single(payload, "barcode")
        if fields is None:
            return None
        if not fields.get("barcode"):
            fields["barcode"] = barcode
        elif fields["barcode"] != barcode:
            logger.warning(
                f"远程返回的条形码与查询条形码不一致，将按远程条形码缓存: "
                f"query={barcode}, remote={fields['barcode']}"
            )

        drug = build_drug(fields)
        try:
            return await self.save_drug(drug)
        except (ConflictError, PersistenceError) as e:
            logger.warning(f"远程药品缓存到本地失败，返回未持久化数据: barcode={barcode}, reason={e.message}")
            return drug

    async def search(
        self,
        keyword: Optional[str] = None,
        manufacturer: Optional[str] = None,
        status: Optional[str] = None,
        page: Optional[int] = None,
        size: Optional[int] = None
    ) -> Tuple[List[Drug], int]:
        """
        分页搜索药品（本地结果不足一页时用远程搜索补足）

        Args:
            keyword: 关键词
            manufacturer: 生产厂家
            status: 状态
            page: 页码（从1开始，非法时取1）
            size: 每页数量（非法时取10）

        Returns:
            (药品列表, 本地匹配总数)。总数为补充远程数据之前的本地计数。
        """
        if page is None or page < 1:
            page = DEFAULT_PAGE
        if size is None or size < 1:
            size = DEFAULT_PAGE_SIZE
        offset = (page - 1) * size

        drugs = await self.repository.search(
            keyword=keyword,
            manufacturer=manufacturer,
            status=status,
            offset=offset,
            limit=size
        )
        total = await self.repository.count(keyword=keyword, manufacturer=manufacturer, status=status)

        if len(drugs) < size and keyword and keyword.strip():
            seen_barcodes = {drug.barcode for drug in drugs if drug.barcode}
            drugs.extend(
                await self._fetch_remote_supplement(
                    keyword.strip(), page, size - len(drugs), seen_barcodes
                )
            )

        return drugs, total

    async def _fetch_remote_supplement(
        self,
        keyword: str,
        page: int,
        remaining: int,
        seen_barcodes: Set[str]
    ) -> List[Drug]:
        """
        远程搜索补足本页数据

        Args:
            keyword: 关键词
            page: 页码
            remaining: 最多补充的条数
            seen_barcodes: 本页已包含的条形码，补充过程中同步追加

        Returns:
            新写入（或写入失败但仍返回）的药品列表
        """
        try:
            payload = await self.api_client.search(keyword, page, remaining)
        except RemoteUnavailableError as e:
            logger.error(f"远程搜索药品失败: keyword={keyword}, error={e.message}")
            return []

        supplement: List[Drug] = []
        for fields in normalize_list(payload, "search")[:remaining]:
            barcode = fields.get("barcode")
            if barcode and barcode in seen_barcodes:
                continue
            if await self.repository.exists_by_barcode(barcode):
                continue
            drug = build_drug(fields)
            try:
                drug = await self.save_drug(drug)
            except (ConflictError, PersistenceError) as e:
                logger.warning(f"远程药品缓存到本地失败: keyword={keyword}, name={drug.name}, reason={e.message}")
            if barcode:
                seen_barcodes.add(barcode)
            supplement.append(drug)
        return supplement

    async def save_drug(self, drug: Drug) -> Drug:
        """
        带唯一性校验的药品写入

        先按条形码、批准文号做存在性检查，再在 SAVEPOINT 中插入；
        数据库唯一约束冲突只回滚本次插入，并转换为 ConflictError。

        Args:
            drug: 未持久化的药品实例

        Returns:
            已持久化的药品实例（含ID与时间字段）

        Raises:
            InvalidInputError: 药品为空或缺少名称
            ConflictError: 条形码或批准文号已存在
            PersistenceError: 其他存储错误（字段超长、数值越界等）
        """
        if drug is None:
            raise InvalidInputError("药品信息不能为空")
        if not drug.name or not drug.name.strip():
            raise InvalidInputError("药品名称不能为空")

        if drug.barcode and await self.repository.exists_by_barcode(drug.barcode):
            raise ConflictError("该条形码的药品已存在")
        if drug.approval_number and await self.repository.exists_by_approval_number(drug.approval_number):
            raise ConflictError("该批准文号的药品已存在")

        if not drug.status:
            drug.status = DrugStatus.ACTIVE.value

        try:
            async with self.repository.session.begin_nested():
                await self.repository.add(drug)
        except IntegrityError as e:
            logger.warning(f"药品写入违反唯一约束: name={drug.name}, barcode={drug.barcode}")
            raise ConflictError("药品条形码或批准文号已存在") from e
        except SQLAlchemyError as e:
            logger.error(f"药品写入失败: name={drug.name}, barcode={drug.barcode}, error={e}")
            raise PersistenceError("药品写入本地失败") from e

        logger.info(f"保存药品成功: drug_id={drug.id}, name={drug.name}")
        return drug

    async def get_by_id(self, drug_id: int) -> Optional[Drug]:
        """根据ID查询药品"""
        return await self.repository.get_by_id(drug_id)

    @staticmethod
    def _pick_fields(fields: Dict[str, Any]) -> Dict[str, Any]:
        return {key: value for key, value in fields.items() if key in EDITABLE_FIELDS}

    @staticmethod
    def _validate_status(status: Optional[str]) -> None:
        valid = {item.value for item in DrugStatus}
        if status not in valid:
            raise InvalidInputError(f"药品状态无效: {status}，可选值: {sorted(valid)}")

    async def add_drug(self, fields: Dict[str, Any]) -> Drug:
        """
        管理端新增药品（冲突直接抛出）

        Args:
            fields: 药品字段

        Returns:
            已持久化的药品实例
        """
        values = self._pick_fields(fields)
        if not values.get("name") or not str(values["name"]).strip():
            raise InvalidInputError("药品名称不能为空")
        if values.get("status") is not None:
            self._validate_status(values["status"])
        return await self.save_drug(Drug(**values))

    async def update_drug(self, drug_id: int, fields: Dict[str, Any]) -> Drug:
        """
        更新药品信息（只更新非空字段）

        Args:
            drug_id: 药品ID
            fields: 待更新字段

        Returns:
            更新后的药品实例

        Raises:
            NotFoundError: 药品不存在
            ConflictError: 条形码或批准文号已被其他药品使用
        """
        values = self._pick_fields(fields)
        if "name" in values and values["name"] is not None and not str(values["name"]).strip():
            raise InvalidInputError("药品名称不能为空")
        if values.get("status") is not None:
            self._validate_status(values["status"])

        drug = await self.repository.get_by_id(drug_id)
        if drug is None:
            raise NotFoundError("药品不存在")

        if values.get("barcode"):
            other = await self.repository.get_by_barcode(values["barcode"])
            if other is not None and other.id != drug_id:
                raise ConflictError("该条形码已被其他药品使用")
        if values.get("approval_number"):
            other = await self.repository.get_by_approval_number(values["approval_number"])
            if other is not None and other.id != drug_id:
                raise ConflictError("该批准文号已被其他药品使用")

        try:
            async with self.repository.session.begin_nested():
                drug = await self.repository.update(drug_id, **values)
        except IntegrityError as e:
            raise ConflictError("药品条形码或批准文号已存在") from e

        logger.info(f"更新药品信息成功: drug_id={drug_id}")
        return drug

    async def delete_drug(self, drug_id: int) -> None:
        """删除药品，不存在时抛出 NotFoundError"""
        if not await self.repository.delete(drug_id):
            raise NotFoundError("药品不存在")
        logger.info(f"删除药品成功: drug_id={drug_id}")

    async def update_status(self, drug_id: int, status: str) -> Drug:
        """
        更新药品状态（上架/下架）

        Args:
            drug_id: 药品ID
            status: active 或 offline

        Returns:
            更新后的药品实例
        """
        self._validate_status(status)
        drug = await self.repository.update_status(drug_id, status)
        if drug is None:
            raise NotFoundError("药品不存在")
        logger.info(f"更新药品状态成功: drug_id={drug_id}, status={status}")
        return drug

    async def suggest(self, name: Optional[str], limit: Optional[int] = None) -> List[Drug]:
        """按名称模糊匹配，用于输入联想"""
        if not name or not name.strip():
            return []
        if limit is None or limit < 1:
            limit = DEFAULT_SUGGEST_LIMIT
        return await self.repository.search_by_name(name.strip(), limit)

    async def import_remote_detail(self, remote_id: str) -> Drug:
        """
        从远程详情接口导入药品

        管理端主动操作，远程失败与唯一性冲突都直接抛出。

        Args:
            remote_id: 第三方药品ID

        Returns:
            已持久化的药品实例

        Raises:
            InvalidInputError: remote_id 为空
            RemoteUnavailableError: 远程接口不可用
            NotFoundError: 远程未返回有效药品
            ConflictError: 本地已存在相同条形码或批准文号
        """
        if not remote_id or not str(remote_id).strip():
            raise InvalidInputError("第三方药品ID不能为空")

        payload = await self.api_client.detail(str(remote_id).strip())
        fields = normalize_single(payload, "detail")
        if fields is None:
            raise NotFoundError("远程未找到该药品")
        return await self.save_drug(build_drug(fields))

    async def count(
        self,
        keyword: Optional[str] = None,
        manufacturer: Optional[str] = None,
        status: Optional[str] = None
    ) -> int:
        """统计满足条件的本地药品数"""
        return await self.repository.count(keyword=keyword, manufacturer=manufacturer, status=status)

    async def statistics(self) -> Dict[str, int]:
        """
        药品统计

        Returns:
            {"total_drugs": 药品总数, "today_new_drugs": 今日新增数}
        """
        since = start_of_today(self.timezone_name)
        return {
            "total_drugs": await self.repository.count_all(),
            "today_new_drugs": await self.repository.count_created_since(since),
        }
