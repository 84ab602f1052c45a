"""
日志中间件
"""
import logging
import time
import json
from typing import Any
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

logger = logging.getLogger(__name__)

# 请求体中需要脱敏的字段
SENSITIVE_FIELDS = {"code", "phone", "emergency_phone", "secret"}


def mask_sensitive(data: Any) -> Any:
    """
    脱敏请求体中的敏感字段（登录凭证、手机号等）

    Args:
        data: 解析后的请求体

    Returns:
        脱敏后的副本
    """
    if isinstance(data, dict):
        return {
            key: ("***" if key in SENSITIVE_FIELDS and value else mask_sensitive(value))
            for key, value in data.items()
        }
    if isinstance(data, list):
        return [mask_sensitive(item) for item in data]
    return data


class LoggingMiddleware(BaseHTTPMiddleware):
    """请求日志中间件，记录请求开始、请求体（DEBUG）、完成状态与耗时"""

    async def dispatch(self, request: Request, call_next):
        start_time = time.time()

        client_host = request.client.host if request.client else 'unknown'
        query_params = dict(request.query_params) if request.query_params else {}

        logger.info(
            f"[HTTP请求开始] {request.method} {request.url.path} - "
            f"客户端: {client_host} - "
            f"查询参数: {query_params if query_params else '无'}"
        )

        if request.method in ("POST", "PUT", "PATCH") and logger.isEnabledFor(logging.DEBUG):
            # Starlette 会缓存已读取的请求体，路由中仍可再次读取
            body = await request.body()
            if body:
                try:
                    body_json = mask_sensitive(json.loads(body.decode('utf-8')))
                    logger.debug(f"[HTTP请求体] {request.method} {request.url.path} - body={body_json}")
                except (json.JSONDecodeError, UnicodeDecodeError):
                    body_preview = body[:200].decode('utf-8', errors='ignore')
                    logger.debug(f"[HTTP请求体] {request.method} {request.url.path} - body_preview={body_preview}")

        try:
            response = await call_next(request)
        except Exception as e:
            process_time = time.time() - start_time
            logger.error(
                f"[HTTP请求异常] {request.method} {request.url.path} - "
                f"异常: {str(e)} - "
                f"处理时间: {process_time:.3f}s",
                exc_info=True
            )
            raise

        process_time = time.time() - start_time
        response.headers["X-Process-Time"] = f"{process_time:.3f}"
        logger.info(
            f"[HTTP请求完成] {request.method} {request.url.path} - "
            f"状态码: {response.status_code} - "
            f"处理时间: {process_time:.3f}s"
        )

        return response
