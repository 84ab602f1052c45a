#!/usr/bin/env python
"""
数据库初始化脚本

功能：
- 自动创建数据库（如果不存在）
- 验证数据库连接
- 可选根据模型创建数据表（生产环境建议使用 alembic upgrade head）

使用方式：
    python scripts/init_db.py
    python scripts/init_db.py --create-tables
"""

import argparse
import asyncio
import sys
import os

from sqlalchemy import create_engine, text
from sqlalchemy.engine import URL, make_url
from sqlalchemy.exc import OperationalError, ProgrammingError

# 添加项目根目录到 Python 路径
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from app.core.config import settings
from infrastructure.database.connection import create_engine_from_settings, init_db


def ensure_psycopg3_url(database_url: str) -> URL:
    """
    确保数据库 URL 使用 psycopg3 驱动

    Args:
        database_url: 原始数据库 URL

    Returns:
        URL: 驱动为 postgresql+psycopg 的 URL

    Raises:
        ValueError: 非 PostgreSQL 数据库
    """
    url = make_url(database_url)
    if url.get_backend_name() != "postgresql":
        raise ValueError(f"不支持的数据库类型: {url.drivername}")
    return url.set(drivername="postgresql+psycopg")


def create_database(database_url: str) -> bool:
    """
    创建数据库（如果不存在）

    Args:
        database_url: 完整的数据库连接 URL

    Returns:
        bool: 成功返回 True，失败返回 False
    """
    try:
        url = ensure_psycopg3_url(database_url)
        db_name = url.database
        if not db_name:
            print("✗ 数据库 URL 中未指定数据库名")
            return False

        # 连接到默认库 postgres（而非目标数据库）
        server_url = url.set(database="postgres")
        print(f"正在连接到数据库服务器: {server_url.render_as_string(hide_password=True)}")
        print(f"目标数据库: {db_name}")

        engine = create_engine(server_url, isolation_level="AUTOCOMMIT")
        try:
            with engine.connect() as conn:
                exists = conn.execute(
                    text("SELECT 1 FROM pg_database WHERE datname = :db_name"),
                    {"db_name": db_name}
                ).fetchone() is not None

                if exists:
                    print(f"✓ 数据库 '{db_name}' 已存在")
                    return True

                print(f"正在创建数据库 '{db_name}'...")
                conn.execute(text(f'CREATE DATABASE "{db_name}"'))
                print(f"✓ 数据库 '{db_name}' 创建成功")
                return True
        finally:
            engine.dispose()

    except OperationalError as e:
        print(f"✗ 数据库连接失败: {e}")
        print("  请检查：")
        print("  1. 数据库服务器是否已启动")
        print("  2. 连接信息是否正确（用户名、密码、主机、端口）")
        print("  3. 用户是否有创建数据库的权限")
        return False
    except ProgrammingError as e:
        print(f"✗ 创建数据库失败: {e}")
        return False
    except ValueError as e:
        print(f"✗ {e}")
        return False


def check_database_connection(database_url: str) -> bool:
    """
    验证数据库连接

    Args:
        database_url: 完整的数据库连接 URL

    Returns:
        bool: 连接成功返回 True，否则返回 False
    """
    print("正在验证数据库连接...")
    engine = create_engine(ensure_psycopg3_url(database_url))
    try:
        with engine.connect() as conn:
            if conn.execute(text("SELECT 1")).scalar() == 1:
                print("✓ 数据库连接验证成功")
                return True
            print("✗ 数据库连接验证失败")
            return False
    except OperationalError as e:
        print(f"✗ 数据库连接失败: {e}")
        print("  请检查数据库 URL 配置是否正确")
        return False
    finally:
        engine.dispose()


async def create_tables() -> None:
    """根据 ORM 模型创建 health_drugs / health_users 表"""
    engine = create_engine_from_settings(settings)
    try:
        await init_db(engine)
    finally:
        await engine.dispose()


def main():
    """主函数"""
    parser = argparse.ArgumentParser(
        description="数据库初始化脚本",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
示例：
  # 仅创建数据库
  python scripts/init_db.py

  # 创建数据库并根据模型建表
  python scripts/init_db.py --create-tables
        """
    )
    parser.add_argument(
        "--create-tables",
        action="store_true",
        help="根据 ORM 模型创建数据表（已存在的表不会被修改）"
    )

    args = parser.parse_args()

    print("=" * 60)
    print("数据库初始化脚本")
    print("=" * 60)
    print()

    try:
        database_url = settings.DB_URI
    except ValueError as e:
        print(f"✗ 配置错误: {e}")
        print()
        print("请在 .env 文件中配置 DATABASE_URL，或配置：")
        print("  DB_HOST=localhost")
        print("  DB_PORT=5432")
        print("  DB_USER=postgres")
        print("  DB_PASSWORD=postgres")
        print("  DB_NAME=health")
        sys.exit(1)

    print("[1/3] 创建数据库")
    if not create_database(database_url):
        sys.exit(1)
    print()

    print("[2/3] 验证连接")
    if not check_database_connection(database_url):
        sys.exit(1)
    print()

    if args.create_tables:
        print("[3/3] 创建数据表")
        asyncio.run(create_tables())
        print("✓ 数据表创建完成")
    else:
        print("[3/3] 跳过建表（使用 alembic upgrade head 执行迁移，或加 --create-tables）")

    print()
    print("=" * 60)
    print("数据库初始化完成")
    print("=" * 60)


if __name__ == "__main__":
    main()
