"""
药品模型
"""
import enum

from sqlalchemy import Column, Integer, String, Text, Numeric, DateTime, func

from infrastructure.database.base import Base, TABLE_PREFIX, utc_now


class DrugStatus(str, enum.Enum):
    """药品状态枚举"""
    ACTIVE = "active"  # 正常
    OFFLINE = "offline"  # 下架


class Drug(Base):
    """药品模型"""

    __tablename__ = f"{TABLE_PREFIX}drugs"

    id = Column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment="药品ID（自增）"
    )
    name = Column(String(200), nullable=False, index=True, comment="药品名称")
    barcode = Column(
        String(64),
        nullable=True,
        unique=True,
        comment="条形码（非空时唯一）"
    )
    approval_number = Column(
        String(100),
        nullable=True,
        unique=True,
        comment="批准文号（非空时唯一）"
    )
    manufacturer = Column(String(200), nullable=True, index=True, comment="生产厂家")
    specification = Column(String(200), nullable=True, comment="规格")
    dosage_form = Column(String(100), nullable=True, comment="剂型")
    main_ingredient = Column(Text, nullable=True, comment="主要成分")
    indications = Column(Text, nullable=True, comment="适应症")
    contraindications = Column(Text, nullable=True, comment="禁忌症")
    adverse_reactions = Column(Text, nullable=True, comment="不良反应")
    dosage_usage = Column(Text, nullable=True, comment="用法用量")
    precautions = Column(Text, nullable=True, comment="注意事项")
    drug_interactions = Column(Text, nullable=True, comment="药物相互作用")
    storage_conditions = Column(String(500), nullable=True, comment="贮藏条件")
    validity_period = Column(String(100), nullable=True, comment="有效期")
    image_url = Column(String(500), nullable=True, comment="药品图片URL")
    price = Column(Numeric(10, 2), nullable=True, comment="参考价格（精确小数）")
    status = Column(
        String(20),
        nullable=False,
        default=DrugStatus.ACTIVE.value,
        index=True,
        comment="状态：active-正常，offline-下架"
    )
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
        return f"<Drug(id={self.id}, name={self.name}, barcode={self.barcode})>"
