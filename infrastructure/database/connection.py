"""
数据库连接和会话管理

引擎与会话工厂在应用启动时创建并挂到 app.state 上，
请求级会话通过 get_async_session 依赖获取。
"""
import time
import logging
from typing import Any, AsyncGenerator, Optional

from fastapi import Request
from sqlalchemy import event
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import (
    create_async_engine,
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
)

from infrastructure.database.base import Base

# SQL日志记录器
sql_logger = logging.getLogger("infrastructure.database.connection")

# 单次日志最多记录的参数个数
_MAX_LOG_PARAMS = 10


def _format_params(parameters: Any) -> Any:
    """
    将SQL参数转换为可记录的格式（限制数量与长度，避免日志过大）

    Args:
        parameters: 原始参数

    Returns:
        可记录的参数
    """
    if not parameters:
        return None
    if isinstance(parameters, (list, tuple)):
        log_params = list(parameters[:_MAX_LOG_PARAMS])
        if len(parameters) > _MAX_LOG_PARAMS:
            log_params.append(f"... (还有 {len(parameters) - _MAX_LOG_PARAMS} 个参数)")
        return log_params
    return str(parameters)[:500]


def setup_db_logging(
    engine: AsyncEngine,
    log_level: str = "INFO",
    include_params: bool = False,
    slow_query_threshold: float = 1.0,
) -> None:
    """
    设置数据库SQL日志监听器

    通过SQLAlchemy事件系统监听SQL执行，记录SQL语句、参数、执行时间等信息

    Args:
        engine: SQLAlchemy异步引擎实例
        log_level: SQL日志级别
        include_params: 是否记录SQL参数
        slow_query_threshold: 慢查询阈值（秒）
    """
    sql_logger.setLevel(getattr(logging, log_level.upper(), logging.INFO))

    @event.listens_for(engine.sync_engine, "before_cursor_execute")
    def receive_before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        # 使用栈结构支持嵌套查询
        conn.info.setdefault('query_start_time', []).append(time.time())

        if sql_logger.isEnabledFor(logging.DEBUG):
            sql_logger.debug(
                "Executing SQL",
                extra={
                    "event": "before_cursor_execute",
                    "sql": statement.strip(),
                    "parameters": _format_params(parameters) if include_params else None,
                    "executemany": executemany
                }
            )

    @event.listens_for(engine.sync_engine, "after_cursor_execute")
    def receive_after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
        if not conn.info.get('query_start_time'):
            return
        duration_ms = (time.time() - conn.info['query_start_time'].pop(-1)) * 1000
        is_slow_query = duration_ms > slow_query_threshold * 1000

        # 注意：不进行参数替换，保持SQL和参数分离
        extra = {
            "event": "after_cursor_execute",
            "sql": statement.strip(),
            "parameters": _format_params(parameters) if include_params else None,
            "duration_ms": round(duration_ms, 2),
            "is_slow_query": is_slow_query,
            "executemany": executemany
        }
        if is_slow_query:
            extra["threshold_ms"] = slow_query_threshold * 1000
            sql_logger.warning("Slow SQL query detected", extra=extra)
        else:
            sql_logger.info("SQL executed successfully", extra=extra)

    @event.listens_for(engine.sync_engine, "handle_error")
    def receive_handle_error(exception_context):
        sql = exception_context.statement.strip() if exception_context.statement else ""
        original = exception_context.original_exception
        sql_logger.error(
            "SQL execution error",
            extra={
                "event": "handle_error",
                "sql": sql,
                "parameters": _format_params(exception_context.parameters) if include_params else None,
                "error": str(original),
                "error_type": type(original).__name__
            },
            exc_info=original
        )


def create_engine_from_settings(settings) -> AsyncEngine:
    """
    根据配置创建异步数据库引擎

    Args:
        settings: 应用配置

    Returns:
        AsyncEngine: SQLAlchemy 异步引擎
    """
    url = make_url(settings.ASYNC_DB_URI)
    engine_kwargs = {
        "echo": settings.DEBUG,
        "pool_pre_ping": True,
    }
    if url.get_backend_name() == "postgresql":
        engine_kwargs.update(
            pool_size=10,
            max_overflow=20,
            connect_args={"options": f"-c timezone={settings.DB_TIMEZONE}"},
        )

    engine = create_async_engine(url, **engine_kwargs)
    if settings.DB_SQL_LOG_ENABLED:
        setup_db_logging(
            engine,
            log_level=settings.DB_SQL_LOG_LEVEL,
            include_params=settings.DB_SQL_LOG_INCLUDE_PARAMS,
            slow_query_threshold=settings.DB_SQL_LOG_SLOW_QUERY_THRESHOLD,
        )
    return engine


def create_session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """
    创建异步会话工厂

    Args:
        engine: 异步引擎

    Returns:
        async_sessionmaker: 异步会话工厂
    """
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_async_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """
    获取异步数据库会话（依赖注入）

    Args:
        request: 当前请求（从 app.state 读取会话工厂）

    Yields:
        AsyncSession: 异步数据库会话
    """
    session_factory: Optional[async_sessionmaker[AsyncSession]] = getattr(
        request.app.state, "session_factory", None
    )
    if session_factory is None:
        raise RuntimeError("数据库会话工厂未初始化")
    async with session_factory() as session:
        yield session


async def init_db(engine: AsyncEngine) -> None:
    """
    初始化数据库（创建表）

    Args:
        engine: 异步引擎
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
