"""
API 路由定义
"""
from fastapi import APIRouter

from app.api.routes import drugs, users

router = APIRouter()
router.include_router(drugs.router)
router.include_router(users.router)
