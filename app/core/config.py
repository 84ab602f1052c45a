"""
应用配置管理
使用 Pydantic Settings 管理配置
"""
from pathlib import Path
from typing import Optional, Union
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def find_project_root() -> Path:
    """
    查找项目根目录（包含 .env 文件的目录）

    Returns:
        Path: 项目根目录路径
    """
    current = Path(__file__).resolve()
    # 当前文件位于 app/core/config.py，项目根目录应该是 current.parent.parent.parent
    project_root = current.parent.parent.parent

    env_file = project_root / ".env"
    if env_file.exists():
        return project_root

    # 如果项目根目录没有 .env，向上查找
    for parent in current.parents:
        env_file = parent / ".env"
        if env_file.exists():
            return parent

    return project_root


class Settings(BaseSettings):
    """应用配置"""

    # 数据库配置（从 .env 读取；DATABASE_URL 优先于分项配置）
    DATABASE_URL: Optional[str] = None
    DB_HOST: Optional[str] = None
    DB_PORT: Optional[int] = None
    DB_USER: Optional[str] = None
    DB_PASSWORD: Optional[str] = None
    DB_NAME: Optional[str] = None
    DB_TIMEZONE: str = "Asia/Shanghai"
    DB_AUTO_CREATE_TABLES: bool = Field(
        default=False,
        description="启动时是否根据模型自动建表（生产环境请使用 alembic 迁移）"
    )

    @property
    def DB_URI(self) -> str:
        """同步数据库连接 URI"""
        if self.DATABASE_URL:
            return self.DATABASE_URL
        if not all([self.DB_HOST, self.DB_PORT, self.DB_USER, self.DB_PASSWORD, self.DB_NAME]):
            raise ValueError("数据库配置不完整，请设置 DB_HOST, DB_PORT, DB_USER, DB_PASSWORD, DB_NAME")
        return f"postgresql+psycopg://{self.DB_USER}:{self.DB_PASSWORD}@{self.DB_HOST}:{self.DB_PORT}/{self.DB_NAME}"

    @property
    def ASYNC_DB_URI(self) -> str:
        """异步数据库连接 URI（psycopg3 同时支持同步与异步）"""
        return self.DB_URI

    # SQL 日志配置
    DB_SQL_LOG_ENABLED: bool = False
    DB_SQL_LOG_LEVEL: str = "INFO"
    DB_SQL_LOG_INCLUDE_PARAMS: bool = False
    DB_SQL_LOG_SLOW_QUERY_THRESHOLD: float = Field(
        default=1.0,
        description="慢查询阈值（秒）"
    )

    # 药智数据 API 配置
    DRUG_API_HOST: str = ""
    DRUG_API_APP_CODE: Optional[str] = None
    DRUG_API_BARCODE_PATH: str = "/barcode/query"
    DRUG_API_SEARCH_PATH: str = "/drug/search"
    DRUG_API_DETAIL_PATH: str = "/drug/detail"
    DRUG_API_TIMEOUT: float = Field(
        default=5.0,
        description="药品接口请求超时（秒），超时按远程不可用处理"
    )

    # 微信小程序配置
    WECHAT_APPID: Optional[str] = None
    WECHAT_SECRET: Optional[str] = None
    WECHAT_LOGIN_URL: str = "https://api.weixin.qq.com/sns/jscode2session"
    WECHAT_GRANT_TYPE: str = "authorization_code"
    WECHAT_TIMEOUT: float = 5.0

    # 应用配置
    LOG_LEVEL: str = "INFO"
    DEBUG: bool = False
    APP_HOST: str = "0.0.0.0"
    APP_PORT: int = 8000

    @field_validator('DRUG_API_TIMEOUT', 'WECHAT_TIMEOUT', mode='before')
    @classmethod
    def _validate_timeout(cls, v: Union[float, str, None]) -> float:
        """验证超时配置，空值时使用默认值"""
        if v is None or (isinstance(v, str) and v.strip() == ''):
            return 5.0
        return float(v)

    @field_validator('DB_AUTO_CREATE_TABLES', 'DB_SQL_LOG_ENABLED', 'DB_SQL_LOG_INCLUDE_PARAMS', 'DEBUG', mode='before')
    @classmethod
    def _validate_flag(cls, v: Union[bool, str, None]) -> bool:
        """验证布尔开关，空值时视为关闭"""
        if v is None or (isinstance(v, str) and v.strip() == ''):
            return False
        if isinstance(v, str):
            return v.lower() in ('true', '1', 'yes', 'on')
        return bool(v)

    model_config = SettingsConfigDict(
        env_file=str(find_project_root() / ".env"),
        env_file_encoding="utf-8",
        extra="ignore"
    )


settings = Settings()
