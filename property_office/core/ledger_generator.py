"""
台帳生成エンジン
レントロールと各台帳を突き合わせた表をDataFrameで生成
"""

from collections import OrderedDict
from typing import Dict, List, Optional
import logging

import pandas as pd

from property_office.config import settings
from property_office.core import ledger_merge
from property_office.services.backend_client import BackendClient

logger = logging.getLogger(__name__)

UNIT_COLUMNS = {
    "floor": "階",
    "roomNumber": "No.",
    "roomUsage": "用途",
    "contractor": "契約者",
}

RENT_ROLL_COLUMNS = {
    **UNIT_COLUMNS,
    "contractDate": "原契約日",
    "rentalArea": "賃貸面積",
    "rent": "賃料",
    "maintenanceFee": "共益費",
    "tax": "消費税",
    "totalRent": "共込賃料",
    "unitPrice": "坪単価",
    "parkingFee": "駐車場（税込）",
    "bikeParkingFee": "バイク",
    "bicycleParkingFee": "駐輪場",
    "storageFee": "倉庫",
    "totalFee": "合計",
    "bicycleParkingNumber": "駐輪場No.",
    "renewalFee": "更新料（税込）",
}

DEPOSIT_COLUMNS = {
    **UNIT_COLUMNS,
    "deposit": "敷金",
    "suubiki": "数引",
    "guaranteeMoney": "保証金",
    "reikin": "礼金",
}

UTILITY_COLUMNS = {
    **UNIT_COLUMNS,
    "electricity": "電気",
    "water": "水道",
    "gas": "ガス",
    "other1": "その他1",
    "other2": "その他2",
    "total": "合計",
}

WATER_FEE_COLUMNS = {
    **UNIT_COLUMNS,
    "contractDate": "原契約日",
    "previousReading": "前回指針",
    "currentReading": "今回指針",
    "usage": "使用量",
    "waterBill": "水道料",
}

MONTHLY_INCOME_COLUMNS = {
    **UNIT_COLUMNS,
    "contractorPaymentDate": "入金日（契約者）",
    "contractorPaymentAmount": "入金額（契約者）",
    "substitutePaymentDate": "入金日（代位弁済）",
    "substitutePaymentAmount": "入金額（代位弁済）",
    "substitutePayer": "代位弁済者",
    "totalIncome": "入金合計",
    "rentFee": "賃料",
    "utilityFee": "水光熱費",
    "difference": "差額",
}


def to_frame(rows: List[Dict], columns: Dict[str, str]) -> pd.DataFrame:
    """表示行を日本語列名のDataFrameに変換"""
    if not rows:
        return pd.DataFrame(columns=list(columns.values()))
    df = pd.DataFrame(rows)
    df = df.reindex(columns=list(columns.keys()))
    return df.rename(columns=columns)


class LedgerGenerator:
    """台帳生成エンジン"""

    def generate_rent_roll(self, rent_roll, year, month) -> pd.DataFrame:
        rolls = ledger_merge.filter_rent_roll(rent_roll, year, month)
        rows = [roll.model_dump(by_alias=True, mode="json") for roll in rolls]
        return to_frame(rows, RENT_ROLL_COLUMNS)

    def generate_deposits(self, rent_roll, deposits, year, month) -> pd.DataFrame:
        return to_frame(
            ledger_merge.deposit_rows(rent_roll, deposits, year, month), DEPOSIT_COLUMNS
        )

    def generate_utility_expenses(self, rent_roll, expenses, year, month) -> pd.DataFrame:
        return to_frame(
            ledger_merge.utility_rows(rent_roll, expenses, year, month), UTILITY_COLUMNS
        )

    def generate_water_fees(self, rent_roll, readings, year, month) -> pd.DataFrame:
        rows = ledger_merge.water_fee_rows(
            rent_roll, readings, year, month, settings.WATER_UNIT_RATE
        )
        return to_frame(rows, WATER_FEE_COLUMNS)

    def generate_monthly_income(self, rent_roll, incomes, year, month) -> pd.DataFrame:
        return to_frame(
            ledger_merge.monthly_income_rows(rent_roll, incomes, year, month),
            MONTHLY_INCOME_COLUMNS,
        )

    def generate_workbook_frames(
        self,
        client: BackendClient,
        property_id,
        year: Optional[int],
        month: Optional[int],
    ) -> Dict[str, pd.DataFrame]:
        """
        台帳ブック用のシート一覧
        取得は順番に行い、失敗時は BackendError を送出
        """
        rent_roll = client.list_rent_roll(property_id)
        deposits = client.list_deposits(property_id)
        expenses = client.list_utility_expenses(property_id)
        readings = client.list_water_fees(property_id)
        incomes = client.list_monthly_rent_income(property_id, year, month)

        frames = OrderedDict()
        frames["レントロール"] = self.generate_rent_roll(rent_roll, year, month)
        frames["預託金等"] = self.generate_deposits(rent_roll, deposits, year, month)
        frames["水道光熱通信料"] = self.generate_utility_expenses(rent_roll, expenses, year, month)
        frames["水道料明細"] = self.generate_water_fees(rent_roll, readings, year, month)
        frames["月額家賃入金明細"] = self.generate_monthly_income(rent_roll, incomes, year, month)

        logger.info(
            f"Ledger workbook frames generated: property={property_id}, {year}/{month}, "
            f"units={len(frames['レントロール'])}"
        )
        return frames


ledger_generator = LedgerGenerator()
