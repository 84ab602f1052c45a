"""
药品接口响应标准化

将药智数据 API 各接口的原始 JSON 转换为统一的本地字段结构（RemoteQueryResult），
再由 build_drug 构造未持久化的 Drug 实体。
"""
import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional

from domain.drug.field_mappings import ENDPOINT_FIELD_MAPS
from infrastructure.database.models.drug import Drug, DrugStatus

logger = logging.getLogger(__name__)

# 接口成功状态码
SUCCESS_CODE = 200

# 远程查询结果：本地字段名 -> 值，未持久化，合并后即丢弃
RemoteQueryResult = Dict[str, Any]


def is_success_payload(payload: Any) -> bool:
    """
    判断响应顶层 code 是否为成功状态码

    Args:
        payload: 接口原始响应

    Returns:
        是否成功（code 为 200 或 "200"）
    """
    if not isinstance(payload, dict):
        return False
    code = payload.get("code")
    if isinstance(code, bool):
        return False
    if isinstance(code, int):
        return code == SUCCESS_CODE
    if isinstance(code, str):
        return code.strip() == str(SUCCESS_CODE)
    return False


def parse_price(value: Any) -> Optional[Decimal]:
    """
    将价格解析为精确小数

    Args:
        value: 原始价格（字符串、整数、Decimal 或浮点数）

    Returns:
        Decimal 或 None（为空或无法解析）
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value
    if isinstance(value, float):
        # 先转字符串，避免二进制浮点误差带入 Decimal
        value = str(value)
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return None
    try:
        price = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        logger.warning(f"价格无法解析，已忽略: {value!r}")
        return None
    if not price.is_finite():
        logger.warning(f"价格无法解析，已忽略: {value!r}")
        return None
    return price


def _clean_text(value: Any) -> Optional[str]:
    if value is None or isinstance(value, (dict, list, bool)):
        return None
    text = str(value).strip()
    return text or None


def map_fields(raw: Dict[str, Any], field_map: Dict[str, str]) -> RemoteQueryResult:
    """
    按映射表提取字段

    缺失字段映射为 None，字符串去除首尾空白，空串视为 None。

    Args:
        raw: 接口返回的单条药品数据
        field_map: 本地字段名 -> 接口字段名 映射表

    Returns:
        本地字段名为键的字典
    """
    result: RemoteQueryResult = {}
    for attr, source_key in field_map.items():
        value = raw.get(source_key)
        if attr == "price":
            result[attr] = parse_price(value)
        else:
            result[attr] = _clean_text(value)
    return result


def _get_field_map(endpoint: str) -> Dict[str, str]:
    field_map = ENDPOINT_FIELD_MAPS.get(endpoint)
    if field_map is None:
        raise ValueError(f"未知的接口类型: {endpoint}")
    return field_map


def normalize_single(payload: Any, endpoint: str) -> Optional[RemoteQueryResult]:
    """
    标准化单条药品响应（条形码查询、详情接口，data 为对象）

    Args:
        payload: 接口原始响应
        endpoint: 接口类型（barcode / detail）

    Returns:
        标准化后的字段字典，响应失败或缺少药品名称时返回 None
    """
    field_map = _get_field_map(endpoint)

    if not is_success_payload(payload):
        logger.warning(f"药品接口响应失败: endpoint={endpoint}, payload={payload}")
        return None

    data = payload.get("data")
    if not isinstance(data, dict):
        logger.warning(f"药品接口响应缺少 data 对象: endpoint={endpoint}, payload={payload}")
        return None

    fields = map_fields(data, field_map)
    if not fields.get("name"):
        logger.warning(f"药品接口响应缺少药品名称，已丢弃: endpoint={endpoint}, data={data}")
        return None
    return fields


def normalize_list(payload: Any, endpoint: str = "search") -> List[RemoteQueryResult]:
    """
    标准化药品列表响应（搜索接口，data 为数组或 data.list）

    Args:
        payload: 接口原始响应
        endpoint: 接口类型，默认 search

    Returns:
        标准化后的字段字典列表，缺少药品名称的条目被丢弃
    """
    field_map = _get_field_map(endpoint)

    if not is_success_payload(payload):
        logger.warning(f"药品接口响应失败: endpoint={endpoint}, payload={payload}")
        return []

    data = payload.get("data")
    if isinstance(data, dict):
        data = data.get("list")
    if not isinstance(data, list):
        logger.warning(f"药品接口响应缺少数据列表: endpoint={endpoint}, payload={payload}")
        return []

    results: List[RemoteQueryResult] = []
    for item in data:
        if not isinstance(item, dict):
            continue
        fields = map_fields(item, field_map)
        if not fields.get("name"):
            logger.debug(f"跳过缺少药品名称的条目: {item}")
            continue
        results.append(fields)
    return results


def build_drug(fields: RemoteQueryResult) -> Drug:
    """
    根据标准化字段构造未持久化的 Drug 实体

    Args:
        fields: 标准化后的字段字典

    Returns:
        Drug 实体（无ID，状态缺省为 active）
    """
    columns = Drug.__table__.columns.keys()
    values = {
        key: value for key, value in fields.items()
        if key in columns and key not in ("id", "created_at", "updated_at")
    }
    if not values.get("status"):
        values["status"] = DrugStatus.ACTIVE.value
    return Drug(**values)
