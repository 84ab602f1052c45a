"""
数据库SQL日志功能测试

测试SQLAlchemy事件监听器的SQL日志记录功能（执行成功、慢查询、执行错误）

Pytest 命令示例：
================

pytest cursor_test/infrastructure/test_db_sql_logging.py -v
"""
import logging

import pytest
from sqlalchemy import text
from sqlalchemy.exc import OperationalError
from sqlalchemy.ext.asyncio import create_async_engine

from infrastructure.database.connection import setup_db_logging

SQL_LOGGER = "infrastructure.database.connection"


@pytest.fixture
def sqlite_engine():
    return create_async_engine("sqlite+aiosqlite:///:memory:")


def _sql_records(caplog):
    return [record for record in caplog.records if record.name == SQL_LOGGER]


@pytest.mark.asyncio
async def test_sql_logging(sqlite_engine, caplog):
    """
    测试用例：SQL执行成功

    验证：
    - DEBUG 级别记录执行前的 SQL
    - INFO 级别记录执行结果与耗时
    - 未开启参数记录时不输出参数
    """
    setup_db_logging(sqlite_engine, log_level="DEBUG", include_params=False)

    with caplog.at_level(logging.DEBUG, logger=SQL_LOGGER):
        async with sqlite_engine.connect() as conn:
            await conn.execute(text("SELECT :value"), {"value": 1})

    records = _sql_records(caplog)
    events = [record.event for record in records]
    assert "before_cursor_execute" in events
    assert "after_cursor_execute" in events
    finished = next(record for record in records if record.event == "after_cursor_execute")
    assert finished.levelno == logging.INFO
    assert finished.parameters is None
    assert finished.duration_ms >= 0

    await sqlite_engine.dispose()


@pytest.mark.asyncio
async def test_slow_query_warning(sqlite_engine, caplog):
    """测试用例：阈值小于 0 时每条 SQL 都视为慢查询，记录 WARNING 与参数"""
    setup_db_logging(sqlite_engine, log_level="INFO", include_params=True, slow_query_threshold=-1)

    with caplog.at_level(logging.INFO, logger=SQL_LOGGER):
        async with sqlite_engine.connect() as conn:
            await conn.execute(text("SELECT :value"), {"value": 42})

    slow = [record for record in _sql_records(caplog) if record.levelno == logging.WARNING]
    assert slow
    assert slow[0].is_slow_query is True
    assert slow[0].threshold_ms == -1000
    assert slow[0].parameters is not None

    await sqlite_engine.dispose()


@pytest.mark.asyncio
async def test_sql_error_logged(sqlite_engine, caplog):
    """测试用例：SQL执行错误时记录 ERROR 日志，异常照常抛出"""
    setup_db_logging(sqlite_engine)

    with caplog.at_level(logging.INFO, logger=SQL_LOGGER):
        async with sqlite_engine.connect() as conn:
            with pytest.raises(OperationalError):
                await conn.execute(text("SELECT * FROM table_not_exists"))

    errors = [record for record in _sql_records(caplog) if record.levelno == logging.ERROR]
    assert len(errors) == 1
    assert errors[0].event == "handle_error"
    assert "table_not_exists" in errors[0].sql

    await sqlite_engine.dispose()
