"""
データモデル
"""

from property_office.models.database import Base, engine, SessionLocal, get_db
from property_office.models.report_config import ReportConfiguration, DistributionTranche
from property_office.models.report_memo import ReportMemo

__all__ = [
    "Base",
    "engine",
    "SessionLocal",
    "get_db",
    "ReportConfiguration",
    "DistributionTranche",
    "ReportMemo",
]
