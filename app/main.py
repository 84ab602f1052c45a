"""
FastAPI 应用入口
"""
import sys
import logging
from contextlib import asynccontextmanager
from pathlib import Path

# 确保项目根目录在 Python 路径中，支持直接运行此文件
_project_root = Path(__file__).resolve().parent.parent
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))

from app.core.config import settings

# 配置日志系统
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)

# 设置 uvicorn 日志级别
logging.getLogger("uvicorn").setLevel(logging.INFO)
logging.getLogger("uvicorn.access").setLevel(logging.INFO)

import httpx
import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.api.routes import router
from app.middleware.logging import LoggingMiddleware
from app.middleware.exception_handler import (
    domain_error_handler,
    exception_handler,
    validation_exception_handler,
    http_exception_handler
)
from domain.errors import DomainError
from infrastructure.database.connection import (
    create_engine_from_settings,
    create_session_factory,
    init_db,
)
from infrastructure.external.drug_api_client import DrugApiClient
from infrastructure.external.wechat_client import WechatClient

logger = logging.getLogger(__name__)

APP_VERSION = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    应用生命周期管理

    启动时创建数据库引擎、会话工厂、共享 HTTP 客户端与第三方接口客户端并挂到 app.state；
    关闭时释放连接。

    Args:
        app: FastAPI 应用实例
    """
    # Startup
    logger.info("正在启动应用...")

    engine = None
    http_client = None

    try:
        engine = create_engine_from_settings(settings)
        if settings.DB_AUTO_CREATE_TABLES:
            await init_db(engine)
            logger.info("已根据模型创建数据表")

        # 药品接口与微信接口共用一个连接池，各客户端按自身配置设置单次请求超时
        http_client = httpx.AsyncClient(
            timeout=httpx.Timeout(max(settings.DRUG_API_TIMEOUT, settings.WECHAT_TIMEOUT))
        )

        app.state.engine = engine
        app.state.session_factory = create_session_factory(engine)
        app.state.http_client = http_client
        app.state.drug_api_client = DrugApiClient.from_settings(http_client, settings)
        app.state.wechat_client = WechatClient.from_settings(http_client, settings)

        display_host = "localhost" if settings.APP_HOST == "0.0.0.0" else settings.APP_HOST
        logger.info(f"应用启动完成 （http://{display_host}:{settings.APP_PORT}/docs）")

        yield

    finally:
        # Shutdown
        logger.info("正在关闭应用...")
        if http_client:
            try:
                await http_client.aclose()
            except Exception as e:
                logger.error(f"关闭 HTTP 客户端时出错: {e}")

        if engine:
            try:
                await engine.dispose()
            except Exception as e:
                logger.error(f"关闭数据库连接池时出错: {e}")

        logger.info("应用已关闭")


# 创建 FastAPI 应用
app = FastAPI(
    title="Health Management API",
    description="健康管理小程序后端：药品查询（本地优先、第三方接口兜底）、微信登录用户、统计",
    version=APP_VERSION,
    lifespan=lifespan
)

# 配置 CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# 添加日志中间件
app.add_middleware(LoggingMiddleware)

# 注册异常处理器
app.add_exception_handler(DomainError, domain_error_handler)
app.add_exception_handler(Exception, exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(StarletteHTTPException, http_exception_handler)

# 注册路由
app.include_router(router, prefix="/api/v1")


@app.get("/health")
def health_check():
    """
    健康检查接口

    Returns:
        健康状态信息
    """
    return {
        "status": "ok",
        "version": APP_VERSION
    }


def run_server() -> None:
    """
    通过 uvicorn 启动服务，端口与主机从 .env 读取
    """
    uvicorn.run(
        "app.main:app",
        host=settings.APP_HOST,
        port=settings.APP_PORT,
        reload=settings.DEBUG
    )


if __name__ == "__main__":
    run_server()
