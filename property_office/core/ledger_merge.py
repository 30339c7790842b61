"""
レントロール結合
選択年月のレントロールを基準に各台帳を1行ずつ突き合わせる
"""

from datetime import date
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Tuple, TypeVar
import logging

from property_office.config import settings
from property_office.core.periods import in_period, is_current_month
from property_office.schemas import (
    Deposit,
    MonthlyRentIncome,
    MonthlyRentIncomeHistoryEntry,
    RentRollEntry,
    UncollectedAdvancePayment,
    UtilityExpense,
    WaterFeeReading,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

# レントロールに存在しない部屋の表示
PLACEHOLDER = "未登録"


def rent_roll_key(record) -> Optional[int]:
    """台帳行が参照するレントロールID（埋め込み rentRoll.id または rentRollId）"""
    embedded = getattr(record, "rent_roll", None)
    if embedded is not None:
        return embedded.id
    return getattr(record, "rent_roll_id", None)


def filter_rent_roll(
    rent_roll: Iterable[RentRollEntry], year: Optional[int], month: Optional[int]
) -> List[RentRollEntry]:
    return [roll for roll in rent_roll if in_period(roll.created_at, year, month)]


def find_first(records: Iterable[T], rent_roll_id: Optional[int]) -> Optional[T]:
    """最初に一致した1件のみ返す"""
    return next((r for r in records if rent_roll_key(r) == rent_roll_id), None)


def merge_with_rent_roll(
    rent_roll: Sequence[RentRollEntry],
    ledger: Sequence[T],
    year: Optional[int],
    month: Optional[int],
    build: Callable[[RentRollEntry, Optional[T]], Dict],
) -> List[Dict]:
    """
    選択年月のレントロール1行につき必ず1行を生成する
    対応するレントロールのない台帳行は表示しない
    """
    merged = []
    for roll in filter_rent_roll(rent_roll, year, month):
        merged.append(build(roll, find_first(ledger, roll.id)))
    return merged


def unit_fields(roll: RentRollEntry) -> Dict:
    return {
        "rentRollId": roll.id,
        "floor": roll.floor,
        "roomNumber": roll.room_number,
        "roomUsage": roll.room_usage,
        "contractor": roll.contractor,
    }


def _num(value) -> float:
    return float(value) if value else 0.0


# ---------------------------------------------------------------------------
# 預託金等
# ---------------------------------------------------------------------------


def deposit_rows(
    rent_roll: Sequence[RentRollEntry],
    deposits: Sequence[Deposit],
    year: Optional[int],
    month: Optional[int],
) -> List[Dict]:
    def build(roll: RentRollEntry, dep: Optional[Deposit]) -> Dict:
        return {
            "id": dep.id if dep else None,
            **unit_fields(roll),
            "deposit": _num(dep.deposit) if dep else 0.0,
            "suubiki": _num(dep.suubiki) if dep else 0.0,
            "guaranteeMoney": _num(dep.guarantee_money) if dep else 0.0,
            "reikin": _num(dep.reikin) if dep else 0.0,
        }

    return merge_with_rent_roll(rent_roll, deposits, year, month, build)


# ---------------------------------------------------------------------------
# 水道光熱通信料
# ---------------------------------------------------------------------------


def utility_total(expense: UtilityExpense) -> float:
    """電気 + 水道 + ガス + その他1 + その他2（未入力は0）"""
    total = (
        _num(expense.electricity)
        + _num(expense.water)
        + _num(expense.gas)
        + _num(expense.other1)
        + _num(expense.other2)
    )
    return round(total, 2)


def utility_rows(
    rent_roll: Sequence[RentRollEntry],
    expenses: Sequence[UtilityExpense],
    year: Optional[int],
    month: Optional[int],
) -> List[Dict]:
    def build(roll: RentRollEntry, exp: Optional[UtilityExpense]) -> Dict:
        if exp is None:
            return {
                "id": None,
                **unit_fields(roll),
                "electricity": 0.0,
                "water": 0.0,
                "gas": 0.0,
                "other1": 0.0,
                "other2": 0.0,
                "total": 0.0,
            }
        return {
            "id": exp.id,
            **unit_fields(roll),
            "electricity": _num(exp.electricity),
            "water": _num(exp.water),
            "gas": _num(exp.gas),
            "other1": _num(exp.other1),
            "other2": _num(exp.other2),
            "total": utility_total(exp),
        }

    return merge_with_rent_roll(rent_roll, expenses, year, month, build)


# ---------------------------------------------------------------------------
# 水道料明細
# ---------------------------------------------------------------------------


def water_usage(reading: WaterFeeReading, unit_rate: Optional[int] = None) -> Tuple[float, float]:
    """使用量 = 今回指針 - 前回指針、水道料 = 使用量 × 単価"""
    rate = settings.WATER_UNIT_RATE if unit_rate is None else unit_rate
    usage = _num(reading.current_reading) - _num(reading.previous_reading)
    return usage, usage * rate


def water_fee_rows(
    rent_roll: Sequence[RentRollEntry],
    readings: Sequence[WaterFeeReading],
    year: Optional[int],
    month: Optional[int],
    unit_rate: Optional[int] = None,
) -> List[Dict]:
    def build(roll: RentRollEntry, fee: Optional[WaterFeeReading]) -> Dict:
        usage, bill = water_usage(fee, unit_rate) if fee else (0.0, 0.0)
        return {
            **unit_fields(roll),
            "contractDate": roll.contract_date,
            "previousReading": _num(fee.previous_reading) if fee else 0.0,
            "currentReading": _num(fee.current_reading) if fee else 0.0,
            "usage": usage,
            "waterBill": bill,
        }

    return merge_with_rent_roll(rent_roll, readings, year, month, build)


# ---------------------------------------------------------------------------
# 月額家賃入金明細
# ---------------------------------------------------------------------------


def monthly_income_rows(
    rent_roll: Sequence[RentRollEntry],
    incomes: Sequence[MonthlyRentIncome],
    year: Optional[int],
    month: Optional[int],
) -> List[Dict]:
    """請求額（賃料 + 共益費）と入金合計の差額を算出"""

    def build(roll: RentRollEntry, inc: Optional[MonthlyRentIncome]) -> Dict:
        contractor_amount = _num(inc.contractor_payment_amount) if inc else 0.0
        substitute_amount = _num(inc.substitute_payment_amount) if inc else 0.0
        total_income = contractor_amount + substitute_amount
        rent_fee = _num(roll.rent)
        utility_fee = _num(roll.maintenance_fee)
        return {
            **unit_fields(roll),
            "contractorPaymentDate": (inc.contractor_payment_date or "") if inc else "",
            "contractorPaymentAmount": inc.contractor_payment_amount if inc else None,
            "substitutePaymentDate": (inc.substitute_payment_date or "") if inc else "",
            "substitutePaymentAmount": inc.substitute_payment_amount if inc else None,
            "substitutePayer": (inc.substitute_payer or "") if inc else "",
            "totalIncome": total_income,
            "rentFee": rent_fee,
            "utilityFee": utility_fee,
            "difference": rent_fee + utility_fee - total_income,
        }

    return merge_with_rent_roll(rent_roll, incomes, year, month, build)


# ---------------------------------------------------------------------------
# 月額家賃入金履歴
# ---------------------------------------------------------------------------


def history_rows(
    rent_roll: Sequence[RentRollEntry],
    history: Sequence[MonthlyRentIncomeHistoryEntry],
    year: Optional[int],
    month: Optional[int],
    window: Sequence[Tuple[int, int]],
    today: Optional[date] = None,
) -> List[Dict]:
    """表示期間の各月に入金額・差額を並べる（当月の差額のみ編集可）"""

    def build(roll: RentRollEntry, hist: Optional[MonthlyRentIncomeHistoryEntry]) -> Dict:
        months = hist.months if hist else []
        cells = []
        for y, m in window:
            found = next((c for c in months if c.year == y and c.month == m), None)
            cells.append(
                {
                    "year": y,
                    "month": m,
                    "incomeAmount": found.income_amount if found else 0.0,
                    "differenceAmount": found.difference_amount if found else 0.0,
                    "editable": is_current_month(y, m, today),
                }
            )
        return {
            **unit_fields(roll),
            "pastDifferenceTotal": hist.past_difference_total if hist else 0.0,
            "months": cells,
            "cumulativeDifference": hist.cumulative_difference if hist else 0.0,
        }

    return merge_with_rent_roll(rent_roll, history, year, month, build)


# ---------------------------------------------------------------------------
# 未収金・前受金
# ---------------------------------------------------------------------------


def uncollected_rows(
    payments: Sequence[UncollectedAdvancePayment], rent_roll: Sequence[RentRollEntry]
) -> List[Dict]:
    """未収金1件ごとに部屋情報を付与（レントロールにない部屋は「未登録」）"""
    rows = []
    for payment in payments:
        roll = next((r for r in rent_roll if r.id == payment.rent_roll_id), None)
        row = payment.model_dump(by_alias=True, mode="json")
        row["floor"] = (roll.floor if roll else None) or PLACEHOLDER
        row["roomNumber"] = (roll.room_number if roll else None) or PLACEHOLDER
        row["roomUsage"] = (roll.room_usage if roll else None) or PLACEHOLDER
        rows.append(row)
    return rows


def replace_by_id(collection: List[T], record: T) -> List[T]:
    """編集結果をIDで差し替える（他の行はそのまま）"""
    return [record if item.id == record.id else item for item in collection]
