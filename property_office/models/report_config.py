"""
収支報告書の設定モデル
物件ごとの固定費目・立替金・分配金・口座情報
"""

from sqlalchemy import (
    Column,
    String,
    Numeric,
    Integer,
    Boolean,
    Text,
    DateTime,
    ForeignKey,
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship

from property_office.models.database import Base


class ReportConfiguration(Base):
    """収支報告書設定テーブル（物件ごとに1件）"""

    __tablename__ = "report_configurations"

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(String(50), unique=True, nullable=False, index=True)

    # (2) 支出: 210, 220, 240, 270 は設定値（本体金額・消費税）
    utility_amount = Column(Numeric(12, 2), default=0, nullable=False)
    utility_tax = Column(Numeric(12, 2), default=0, nullable=False)
    repair_amount = Column(Numeric(12, 2), default=0, nullable=False)
    repair_tax = Column(Numeric(12, 2), default=0, nullable=False)
    tenant_amount = Column(Numeric(12, 2), default=0, nullable=False)
    tenant_tax = Column(Numeric(12, 2), default=0, nullable=False)
    other_amount = Column(Numeric(12, 2), default=0, nullable=False)
    other_tax = Column(Numeric(12, 2), default=0, nullable=False)

    # (4) 立替金
    mortgage_total = Column(Numeric(12, 2), default=0, nullable=False)  # 元利金の返済額
    property_tax_total = Column(Numeric(12, 2), default=0, nullable=False)  # 固定資産税・都市計画税
    reserve_total = Column(Numeric(12, 2), default=0, nullable=False)  # 積立金

    # 賃料管理口座
    rent_account_bank = Column(String(100), default="")
    rent_account_branch = Column(String(100), default="")
    rent_account_type = Column(String(20), default="普通")
    rent_account_number = Column(String(20), default="")
    rent_account_holder = Column(String(100), default="")

    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    # リレーションシップ
    tranches = relationship(
        "DistributionTranche",
        back_populates="configuration",
        order_by="DistributionTranche.position",
        cascade="all, delete-orphan",
    )

    def __repr__(self):
        return f"<ReportConfiguration(property_id={self.property_id})>"


class DistributionTranche(Base):
    """分配金テーブル（(6)-(1)〜(6)-(3)）"""

    __tablename__ = "distribution_tranches"

    id = Column(Integer, primary_key=True, autoincrement=True)
    configuration_id = Column(
        Integer, ForeignKey("report_configurations.id"), nullable=False, index=True
    )
    position = Column(Integer, nullable=False)  # 1, 2, 3
    rate = Column(Numeric(5, 2), default=0, nullable=False)  # 配分率（%）
    rounding = Column(String(4), default="UP", nullable=False)  # 端数処理 UP(+) / DOWN(-)
    rounding_unit = Column(Integer, default=1, nullable=False)  # 端数処理の単位（円）
    adds_advance = Column(Boolean, default=False, nullable=False)  # (4)立替金を加算
    previous_adjustment = Column(Numeric(12, 2), default=0, nullable=False)  # 前月調整
    note = Column(Text, default="")

    # お振込先口座
    bank = Column(String(100), default="")
    branch = Column(String(100), default="")
    account_type = Column(String(20), default="普通")
    account_number = Column(String(20), default="")
    account_holder = Column(String(100), default="")

    configuration = relationship("ReportConfiguration", back_populates="tranches")

    def __repr__(self):
        return f"<DistributionTranche(position={self.position}, rate={self.rate})>"


# (2) 支出の固定費目
EXPENSE_CATEGORIES = [
    {"code": "210", "name": "水道光熱費", "key": "utility", "memo": "utilityMemo"},
    {"code": "220", "name": "修繕費", "key": "repair", "memo": "repairMemo"},
    {"code": "240", "name": "テナント募集費用", "key": "tenant", "memo": "tenantMemo"},
    {"code": "270", "name": "その他費用", "key": "other", "memo": "otherMemo"},
]

# (4) 立替金の項目
ADVANCE_ITEMS = [
    {"name": "元利金の返済額", "key": "mortgage", "memo": "mortgageMemo"},
    {"name": "固定資産税・都市計画税", "key": "property_tax", "memo": "propertyTaxMemo"},
    {"name": "積立金", "key": "reserve", "memo": "depositMemo"},
]

# 分配金の初期値
DEFAULT_TRANCHES = [
    {"position": 1, "rate": 50, "rounding": "UP", "rounding_unit": 1, "adds_advance": True},
    {"position": 2, "rate": 25, "rounding": "UP", "rounding_unit": 1, "adds_advance": False},
    {"position": 3, "rate": 25, "rounding": "DOWN", "rounding_unit": 1000, "adds_advance": False},
]
