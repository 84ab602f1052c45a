"""
SQLAlchemy Base 定义
"""
from datetime import datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

from sqlalchemy.orm import declarative_base

Base = declarative_base()

# 业务表统一前缀
TABLE_PREFIX = "health_"


def utc_now() -> datetime:
    """
    获取当前 UTC 时间（带时区）

    创建/更新时间统一由应用层写入 UTC 时间，统计类查询按同一时区比较，
    避免数据库会话时区与应用时区不一致导致的偏差。

    Returns:
        datetime: 当前 UTC 时间
    """
    return datetime.now(timezone.utc)


def start_of_today(timezone_name: str = "Asia/Shanghai", now: Optional[datetime] = None) -> datetime:
    """
    获取业务时区当天零点对应的 UTC 时间

    Args:
        timezone_name: 业务时区名称
        now: 当前时间（带时区），默认取 utc_now()

    Returns:
        datetime: 当天零点（UTC）
    """
    tz = ZoneInfo(timezone_name)
    local_now = (now or utc_now()).astimezone(tz)
    local_midnight = local_now.replace(hour=0, minute=0, second=0, microsecond=0)
    return local_midnight.astimezone(timezone.utc)
