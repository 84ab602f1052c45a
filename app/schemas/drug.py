"""
药品接口的请求和响应模型
"""
from decimal import Decimal
from typing import List, Optional
from datetime import datetime
from pydantic import BaseModel, Field


class DrugBase(BaseModel):
    """药品基础模型"""
    manufacturer: Optional[str] = Field(default=None, description="生产厂家")
    specification: Optional[str] = Field(default=None, description="规格")
    dosage_form: Optional[str] = Field(default=None, description="剂型")
    main_ingredient: Optional[str] = Field(default=None, description="主要成分")
    indications: Optional[str] = Field(default=None, description="适应症")
    contraindications: Optional[str] = Field(default=None, description="禁忌症")
    adverse_reactions: Optional[str] = Field(default=None, description="不良反应")
    dosage_usage: Optional[str] = Field(default=None, description="用法用量")
    precautions: Optional[str] = Field(default=None, description="注意事项")
    drug_interactions: Optional[str] = Field(default=None, description="药物相互作用")
    storage_conditions: Optional[str] = Field(default=None, description="贮藏条件")
    validity_period: Optional[str] = Field(default=None, description="有效期")
    image_url: Optional[str] = Field(default=None, description="药品图片URL")


class DrugCreate(DrugBase):
    """新增药品请求模型"""
    name: str = Field(..., description="药品名称", min_length=1, max_length=200)
    barcode: Optional[str] = Field(default=None, description="条形码", max_length=64)
    approval_number: Optional[str] = Field(default=None, description="批准文号", max_length=100)
    price: Optional[Decimal] = Field(default=None, description="参考价格", ge=0, max_digits=10, decimal_places=2)
    status: Optional[str] = Field(default=None, description="状态：active-正常，offline-下架")


class DrugUpdate(DrugBase):
    """更新药品请求模型（只更新提供的字段）"""
    name: Optional[str] = Field(default=None, description="药品名称", min_length=1, max_length=200)
    barcode: Optional[str] = Field(default=None, description="条形码", max_length=64)
    approval_number: Optional[str] = Field(default=None, description="批准文号", max_length=100)
    price: Optional[Decimal] = Field(default=None, description="参考价格", ge=0, max_digits=10, decimal_places=2)
    status: Optional[str] = Field(default=None, description="状态：active-正常，offline-下架")


class DrugStatusUpdate(BaseModel):
    """药品状态更新请求模型"""
    status: str = Field(..., description="状态：active-正常，offline-下架")


class DrugResponse(DrugBase):
    """药品响应模型"""
    id: Optional[int] = Field(default=None, description="药品ID（远程数据未能缓存到本地时为空）")
    name: str = Field(..., description="药品名称")
    barcode: Optional[str] = Field(default=None, description="条形码")
    approval_number: Optional[str] = Field(default=None, description="批准文号")
    price: Optional[Decimal] = Field(default=None, description="参考价格")
    status: str = Field(..., description="状态")
    created_at: Optional[datetime] = Field(default=None, description="创建时间")
    updated_at: Optional[datetime] = Field(default=None, description="更新时间")

    class Config:
        from_attributes = True


class DrugSearchResponse(BaseModel):
    """药品搜索响应模型"""
    list: List[DrugResponse] = Field(..., description="药品列表（本地结果在前，远程补充结果在后）")
    total: int = Field(..., description="本地匹配总数（不含远程补充）")
    page: int = Field(..., description="页码")
    size: int = Field(..., description="每页数量")


class DrugStatisticsResponse(BaseModel):
    """药品统计响应模型"""
    total_drugs: int = Field(..., description="药品总数")
    today_new_drugs: int = Field(..., description="今日新增药品数")
