"""
药智数据 API 字段映射表

上游接口存在两代返回格式：条形码查询与详情接口共用一套字段名，搜索接口使用另一套。
映射表方向为：本地 Drug 字段名 -> 接口返回字段名。
新增一种上游格式时只需增加一张映射表并登记到 ENDPOINT_FIELD_MAPS。
"""
from typing import Dict

# 条形码查询 / 药品详情接口
DETAIL_FIELD_MAP: Dict[str, str] = {
    "name": "name",
    "barcode": "code",
    "approval_number": "approvalNumber",
    "manufacturer": "manuName",
    "specification": "spec",
    "dosage_form": "dosageForm",
    "main_ingredient": "ingredients",
    "indications": "indications",
    "contraindications": "contraindications",
    "adverse_reactions": "adverseReactions",
    "dosage_usage": "usage",
    "precautions": "precautions",
    "drug_interactions": "drugInteractions",
    "storage_conditions": "storage",
    "validity_period": "validity",
    "image_url": "img",
    "price": "price",
}

# 药品搜索（列表）接口
SEARCH_FIELD_MAP: Dict[str, str] = {
    "name": "name",
    "barcode": "barcode",
    "approval_number": "approvalNumber",
    "manufacturer": "manufacturer",
    "specification": "specification",
    "dosage_form": "dosageForm",
    "main_ingredient": "basis",
    "indications": "indications",
    "contraindications": "contraindications",
    "adverse_reactions": "adverseReactions",
    "dosage_usage": "dosage",
    "precautions": "precautions",
    "drug_interactions": "drugInteractions",
    "storage_conditions": "storageConditions",
    "validity_period": "validityPeriod",
    "image_url": "imageUrl",
    "price": "price",
}

ENDPOINT_FIELD_MAPS: Dict[str, Dict[str, str]] = {
    "barcode": DETAIL_FIELD_MAP,
    "detail": DETAIL_FIELD_MAP,
    "search": SEARCH_FIELD_MAP,
}
