"""
収支報告書メモモデル
「内容」欄の編集内容を項目キーごとに保存
"""

from sqlalchemy import Column, String, Integer, Text, DateTime, UniqueConstraint
from sqlalchemy.sql import func

from property_office.models.database import Base


class ReportMemo(Base):
    """収支報告書メモテーブル"""

    __tablename__ = "report_memos"
    __table_args__ = (UniqueConstraint("property_id", "field_key"),)

    id = Column(Integer, primary_key=True, autoincrement=True)
    property_id = Column(String(50), nullable=False, index=True)
    field_key = Column(String(50), nullable=False)
    content = Column(Text, default="")
    created_at = Column(DateTime, server_default=func.now())
    updated_at = Column(DateTime, server_default=func.now(), onupdate=func.now())

    def __repr__(self):
        return f"<ReportMemo(property_id={self.property_id}, field={self.field_key})>"


# 行ごとのメモ項目
ROW_MEMO_KEYS = [
    "incomeMemo",
    "otherIncomeMemo",
    "manageMemo",
    "utilityMemo",
    "repairMemo",
    "tenantMemo",
    "otherMemo",
    "mortgageMemo",
    "propertyTaxMemo",
    "depositMemo",
]
