"""
异常处理中间件

统一的错误响应格式：{"error": 错误类别, "detail": 详细信息}
"""
import logging
from fastapi import Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from starlette.exceptions import HTTPException as StarletteHTTPException

from domain.errors import DomainError

logger = logging.getLogger(__name__)


async def domain_error_handler(request: Request, exc: DomainError):
    """
    领域异常处理器

    按异常类型映射 HTTP 状态码：
    NotFoundError-404，ConflictError-409，InvalidInputError-400，
    RemoteUnavailableError-502，UserDisabledError-403

    Args:
        request: FastAPI 请求对象
        exc: 领域异常

    Returns:
        JSON 响应
    """
    if exc.status_code >= 500:
        logger.error(f"[业务异常] {request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")
    else:
        logger.info(f"[业务异常] {request.method} {request.url.path} - {type(exc).__name__}: {exc.message}")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": exc.error,
            "detail": exc.message
        }
    )


async def exception_handler(request: Request, exc: Exception):
    """
    全局异常处理器（兜底，未预期的异常统一返回 500）

    Args:
        request: FastAPI 请求对象
        exc: 异常对象

    Returns:
        JSON 响应
    """
    logger.error(f"未处理的异常: {request.method} {request.url.path} - {exc}", exc_info=True)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "内部服务器错误",
            "detail": str(exc) if logger.isEnabledFor(logging.DEBUG) else "请查看服务器日志"
        }
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError):
    """
    请求验证异常处理器

    Args:
        request: FastAPI 请求对象
        exc: 验证异常对象

    Returns:
        JSON 响应
    """
    logger.warning(f"请求验证失败: {request.method} {request.url.path} - {exc.errors()}")

    return JSONResponse(
        status_code=422,
        content={
            "error": "请求验证失败",
            "detail": jsonable_encoder(exc.errors())
        }
    )


async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    """HTTP 异常处理器"""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error": "请求处理失败" if exc.status_code >= 500 else "请求错误",
            "detail": exc.detail
        }
    )
