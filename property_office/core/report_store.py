"""
収支報告書の設定・メモの保存
"""

from decimal import Decimal
from typing import Dict, List, Optional
import logging
import re

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from property_office.models.report_config import (
    DEFAULT_TRANCHES,
    DistributionTranche,
    ReportConfiguration,
)
from property_office.models.report_memo import ROW_MEMO_KEYS, ReportMemo

logger = logging.getLogger(__name__)

# 口座メモキーの末尾 → カラム名
ACCOUNT_FIELD_SUFFIXES = {
    "Bank": "bank",
    "Branch": "branch",
    "Type": "account_type",
    "Number": "account_number",
    "Holder": "account_holder",
}

RENT_ACCOUNT_COLUMNS = {
    "bank": "rent_account_bank",
    "branch": "rent_account_branch",
    "account_type": "rent_account_type",
    "account_number": "rent_account_number",
    "account_holder": "rent_account_holder",
}

CONFIG_NUMERIC_FIELDS = [
    "utility_amount",
    "utility_tax",
    "repair_amount",
    "repair_tax",
    "tenant_amount",
    "tenant_tax",
    "other_amount",
    "other_tax",
    "mortgage_total",
    "property_tax_total",
    "reserve_total",
]

TRANCHE_FIELDS = [
    "rate",
    "rounding",
    "rounding_unit",
    "adds_advance",
    "previous_adjustment",
    "note",
    "bank",
    "branch",
    "account_type",
    "account_number",
    "account_holder",
]

TRANCHE_NUMERIC_FIELDS = {"rate", "previous_adjustment"}

_RENT_ACCOUNT_KEY = re.compile(r"^rentAccount(Bank|Branch|Type|Number|Holder)$")
_TRANCHE_ACCOUNT_KEY = re.compile(r"^dist([1-3])(Bank|Branch|Type|Number|Holder)$")


class UnknownMemoFieldError(ValueError):
    """存在しないメモ項目"""


def _find_configuration(db: Session, property_id) -> Optional[ReportConfiguration]:
    return (
        db.query(ReportConfiguration)
        .filter(ReportConfiguration.property_id == str(property_id))
        .first()
    )


def get_or_create_configuration(db: Session, property_id: str) -> ReportConfiguration:
    """
    物件の報告書設定を取得（なければ初期値で作成）
    同時に作成された場合は既存の設定を返す
    """
    config = _find_configuration(db, property_id)
    if config:
        return config

    config = ReportConfiguration(property_id=str(property_id))
    for values in DEFAULT_TRANCHES:
        config.tranches.append(DistributionTranche(**values, previous_adjustment=0))
    for column in CONFIG_NUMERIC_FIELDS:
        setattr(config, column, Decimal("0"))

    try:
        db.add(config)
        db.commit()
        db.refresh(config)
    except IntegrityError:
        db.rollback()
        existing = _find_configuration(db, property_id)
        if existing is None:
            raise
        logger.info(f"Report configuration for property {property_id} already created")
        return existing
    except Exception as e:
        logger.error(f"Failed to create report configuration: {e}")
        db.rollback()
        raise

    logger.info(f"Report configuration created for property {property_id}")
    return config


def update_configuration(db: Session, property_id: str, data: Dict) -> ReportConfiguration:
    """
    報告書設定の部分更新
    data は snake_case のカラム名、分配金は tranches: [{position, ...}]
    """
    config = get_or_create_configuration(db, property_id)

    try:
        for column in CONFIG_NUMERIC_FIELDS:
            if data.get(column) is not None:
                setattr(config, column, Decimal(str(data[column])))

        for column in RENT_ACCOUNT_COLUMNS.values():
            if data.get(column) is not None:
                setattr(config, column, data[column])

        for tranche_data in data.get("tranches") or []:
            tranche = _tranche(config, tranche_data.get("position"))
            if tranche is None:
                continue
            for field in TRANCHE_FIELDS:
                value = tranche_data.get(field)
                if value is None:
                    continue
                if field in TRANCHE_NUMERIC_FIELDS:
                    value = Decimal(str(value))
                setattr(tranche, field, value)

        db.commit()
        db.refresh(config)
    except Exception as e:
        logger.error(f"Failed to update report configuration: {e}")
        db.rollback()
        raise

    logger.info(f"Report configuration updated for property {property_id}")
    return config


def _tranche(config: ReportConfiguration, position) -> Optional[DistributionTranche]:
    return next((t for t in config.tranches if t.position == position), None)


def configuration_to_dict(config: ReportConfiguration) -> Dict:
    """報告書設定のJSON表現"""
    data = {"propertyId": config.property_id}
    for column in CONFIG_NUMERIC_FIELDS:
        data[column] = float(getattr(config, column) or 0)
    for column in RENT_ACCOUNT_COLUMNS.values():
        data[column] = getattr(config, column) or ""

    data["tranches"] = []
    for tranche in config.tranches:
        item = {"position": tranche.position}
        for field in TRANCHE_FIELDS:
            value = getattr(tranche, field)
            item[field] = float(value or 0) if field in TRANCHE_NUMERIC_FIELDS else value
        data["tranches"].append(item)
    return data


def list_memos(db: Session, property_id: str) -> Dict[str, str]:
    memos = db.query(ReportMemo).filter(ReportMemo.property_id == str(property_id)).all()
    return {m.field_key: m.content or "" for m in memos}


def memo_keys() -> List[str]:
    """編集可能なメモキー一覧"""
    keys = list(ROW_MEMO_KEYS)
    keys += [f"rentAccount{suffix}" for suffix in ACCOUNT_FIELD_SUFFIXES]
    for position in (1, 2, 3):
        keys += [f"dist{position}{suffix}" for suffix in ACCOUNT_FIELD_SUFFIXES]
    return keys


def save_memo(db: Session, property_id: str, field_key: str, value: str) -> None:
    """
    「内容の編集」モーダルの保存
    行メモはメモテーブルへ、口座項目は報告書設定の口座情報へ反映
    """
    rent_match = _RENT_ACCOUNT_KEY.match(field_key)
    tranche_match = _TRANCHE_ACCOUNT_KEY.match(field_key)

    if field_key not in ROW_MEMO_KEYS and not rent_match and not tranche_match:
        raise UnknownMemoFieldError(f"不明な項目です: {field_key}")

    try:
        if rent_match:
            config = get_or_create_configuration(db, property_id)
            field = ACCOUNT_FIELD_SUFFIXES[rent_match.group(1)]
            setattr(config, RENT_ACCOUNT_COLUMNS[field], value)
        elif tranche_match:
            config = get_or_create_configuration(db, property_id)
            tranche = _tranche(config, int(tranche_match.group(1)))
            setattr(tranche, ACCOUNT_FIELD_SUFFIXES[tranche_match.group(2)], value)
        else:
            memo = (
                db.query(ReportMemo)
                .filter(
                    ReportMemo.property_id == str(property_id),
                    ReportMemo.field_key == field_key,
                )
                .first()
            )
            if memo is None:
                memo = ReportMemo(property_id=str(property_id), field_key=field_key)
                db.add(memo)
            memo.content = value
        db.commit()
    except Exception as e:
        logger.error(f"Failed to save memo {field_key}: {e}")
        db.rollback()
        raise

    logger.info(f"Memo saved: property={property_id}, field={field_key}")
