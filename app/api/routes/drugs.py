"""
药品接口
"""
import logging
from typing import Dict, Any, List, Optional
from fastapi import APIRouter, HTTPException, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_drug_service
from app.schemas.drug import (
    DrugCreate,
    DrugUpdate,
    DrugStatusUpdate,
    DrugResponse,
    DrugSearchResponse,
    DrugStatisticsResponse,
)
from domain.drug.service import DrugService, DEFAULT_PAGE, DEFAULT_PAGE_SIZE
from domain.errors import DomainError, NotFoundError
from infrastructure.database.connection import get_async_session

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/drugs", tags=["药品"])


@router.get("/barcode/{barcode}", response_model=DrugResponse)
async def get_drug_by_barcode(
    barcode: str,
    session: AsyncSession = Depends(get_async_session),
    service: DrugService = Depends(get_drug_service)
) -> DrugResponse:
    """
    根据条形码查询药品（本地未命中时查询第三方接口并缓存）

    Args:
        barcode: 条形码
        session: 数据库会话
        service: 药品服务

    Returns:
        药品响应
    """
    try:
        drug = await service.lookup_by_barcode(barcode)
        if drug is None:
            raise NotFoundError(f"未找到条形码对应的药品: {barcode}")
        await session.commit()
        return DrugResponse.model_validate(drug)
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[条形码查询药品错误] barcode={barcode}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"查询药品失败: {str(e)}")


@router.get("/search", response_model=DrugSearchResponse)
async def search_drugs(
    keyword: Optional[str] = Query(default=None, description="关键词"),
    manufacturer: Optional[str] = Query(default=None, description="生产厂家"),
    status: Optional[str] = Query(default=None, description="状态"),
    page: Optional[int] = Query(default=DEFAULT_PAGE, description="页码（从1开始）"),
    size: Optional[int] = Query(default=DEFAULT_PAGE_SIZE, description="每页数量"),
    session: AsyncSession = Depends(get_async_session),
    service: DrugService = Depends(get_drug_service)
) -> DrugSearchResponse:
    """
    搜索药品（本地结果不足一页时由第三方接口补充）

    Returns:
        药品列表与本地匹配总数
    """
    if page is None or page < 1:
        page = DEFAULT_PAGE
    if size is None or size < 1:
        size = DEFAULT_PAGE_SIZE
    try:
        drugs, total = await service.search(
            keyword=keyword,
            manufacturer=manufacturer,
            status=status,
            page=page,
            size=size
        )
        await session.commit()
        return DrugSearchResponse(
            list=[DrugResponse.model_validate(drug) for drug in drugs],
            total=total,
            page=page,
            size=size
        )
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[搜索药品错误] keyword={keyword}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"搜索药品失败: {str(e)}")


@router.get("/suggest", response_model=List[DrugResponse])
async def suggest_drugs(
    name: Optional[str] = Query(default=None, description="药品名称（支持部分匹配）"),
    limit: Optional[int] = Query(default=10, description="返回数量"),
    service: DrugService = Depends(get_drug_service)
) -> List[DrugResponse]:
    """按名称联想药品"""
    drugs = await service.suggest(name, limit)
    return [DrugResponse.model_validate(drug) for drug in drugs]


@router.get("/statistics", response_model=DrugStatisticsResponse)
async def get_drug_statistics(
    service: DrugService = Depends(get_drug_service)
) -> DrugStatisticsResponse:
    """药品统计（总数、今日新增）"""
    return DrugStatisticsResponse(**await service.statistics())


@router.get("/{drug_id}", response_model=DrugResponse)
async def get_drug(
    drug_id: int,
    service: DrugService = Depends(get_drug_service)
) -> DrugResponse:
    """
    根据ID查询药品

    Args:
        drug_id: 药品ID
        service: 药品服务

    Returns:
        药品响应
    """
    drug = await service.get_by_id(drug_id)
    if not drug:
        raise NotFoundError(f"药品不存在: {drug_id}")
    return DrugResponse.model_validate(drug)


@router.post("", response_model=DrugResponse, status_code=201)
async def create_drug(
    drug_data: DrugCreate,
    session: AsyncSession = Depends(get_async_session),
    service: DrugService = Depends(get_drug_service)
) -> DrugResponse:
    """
    新增药品

    条形码或批准文号已存在时返回 409。

    Args:
        drug_data: 药品数据
        session: 数据库会话
        service: 药品服务

    Returns:
        创建的药品响应
    """
    try:
        drug = await service.add_drug(drug_data.model_dump())
        await session.commit()
        return DrugResponse.model_validate(drug)
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[新增药品错误] name={drug_data.name}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"新增药品失败: {str(e)}")


@router.post("/import/{remote_id}", response_model=DrugResponse, status_code=201)
async def import_drug(
    remote_id: str,
    session: AsyncSession = Depends(get_async_session),
    service: DrugService = Depends(get_drug_service)
) -> DrugResponse:
    """从第三方药品详情接口导入药品"""
    try:
        drug = await service.import_remote_detail(remote_id)
        await session.commit()
        return DrugResponse.model_validate(drug)
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[导入药品错误] remote_id={remote_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"导入药品失败: {str(e)}")


@router.put("/{drug_id}", response_model=DrugResponse)
async def update_drug(
    drug_id: int,
    drug_data: DrugUpdate,
    session: AsyncSession = Depends(get_async_session),
    service: DrugService = Depends(get_drug_service)
) -> DrugResponse:
    """
    更新药品（只更新提供的字段）

    Args:
        drug_id: 药品ID
        drug_data: 药品更新数据
        session: 数据库会话
        service: 药品服务

    Returns:
        更新后的药品响应
    """
    try:
        update_data = {k: v for k, v in drug_data.model_dump().items() if v is not None}
        drug = await service.update_drug(drug_id, update_data)
        await session.commit()
        return DrugResponse.model_validate(drug)
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[更新药品错误] drug_id={drug_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"更新药品失败: {str(e)}")


@router.put("/{drug_id}/status", response_model=DrugResponse)
async def update_drug_status(
    drug_id: int,
    status_data: DrugStatusUpdate,
    session: AsyncSession = Depends(get_async_session),
    service: DrugService = Depends(get_drug_service)
) -> DrugResponse:
    """上架/下架药品"""
    try:
        drug = await service.update_status(drug_id, status_data.status)
        await session.commit()
        return DrugResponse.model_validate(drug)
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[更新药品状态错误] drug_id={drug_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"更新药品状态失败: {str(e)}")


@router.delete("/{drug_id}")
async def delete_drug(
    drug_id: int,
    session: AsyncSession = Depends(get_async_session),
    service: DrugService = Depends(get_drug_service)
) -> Dict[str, Any]:
    """
    删除药品

    Args:
        drug_id: 药品ID
        session: 数据库会话
        service: 药品服务

    Returns:
        删除结果
    """
    try:
        await service.delete_drug(drug_id)
        await session.commit()
        return {"message": "药品删除成功", "drug_id": drug_id}
    except DomainError:
        await session.rollback()
        raise
    except Exception as e:
        await session.rollback()
        logger.error(f"[删除药品错误] drug_id={drug_id}, error={str(e)}", exc_info=True)
        raise HTTPException(status_code=500, detail=f"删除药品失败: {str(e)}")
