"""
用户模型
"""
import enum

from sqlalchemy import Column, Integer, SmallInteger, String, Text, DateTime, func

from infrastructure.database.base import Base, TABLE_PREFIX, utc_now


class UserStatus(str, enum.Enum):
    """用户状态枚举"""
    ACTIVE = "active"  # 正常
    DISABLED = "disabled"  # 禁用


class Gender(int, enum.Enum):
    """性别枚举"""
    UNKNOWN = 0
    MALE = 1
    FEMALE = 2


class User(Base):
    """小程序用户模型"""

    __tablename__ = f"{TABLE_PREFIX}users"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="用户ID（自增）"
    )
    openid = Column(
        String(64),
        nullable=False,
        unique=True,
        comment="微信openid（唯一）"
    )
    unionid = Column(String(64), nullable=True, index=True, comment="微信unionid")
    nickname = Column(String(100), nullable=True, comment="昵称")
    avatar_url = Column(String(500), nullable=True, comment="头像URL")
    gender = Column(SmallInteger, nullable=False, default=Gender.UNKNOWN.value, comment="性别：0-未知，1-男，2-女")
    age = Column(Integer, nullable=True, comment="年龄")
    phone = Column(String(20), nullable=True, unique=True, comment="手机号（非空时唯一）")
    emergency_contact = Column(String(100), nullable=True, comment="紧急联系人")
    emergency_phone = Column(String(20), nullable=True, comment="紧急联系人电话")
    medical_history = Column(Text, nullable=True, comment="病史信息")
    allergies = Column(Text, nullable=True, comment="过敏史")
    status = Column(
        String(20),
        nullable=False,
        default=UserStatus.ACTIVE.value,
        comment="状态：active-正常，disabled-禁用"
    )
    last_login_at = Column(DateTime(timezone=True), nullable=True, comment="最近登录时间")
    created_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        server_default=func.now(),
        comment="创建时间"
    )
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        default=utc_now,
        onupdate=utc_now,
        server_default=func.now(),
        comment="更新时间"
    )

    def __repr__(self):
        return f"<User(id={self.id}, openid={self.openid}, nickname={self.nickname})>"
