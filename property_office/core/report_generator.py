"""
収支報告書生成エンジン
分類コード別の合計・固定費目・立替金から収支と分配金を算出
"""

from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from typing import Dict, List, Optional
import logging

from property_office.models.report_config import (
    ADVANCE_ITEMS,
    EXPENSE_CATEGORIES,
    ReportConfiguration,
)
from property_office.services.backend_client import BackendClient

logger = logging.getLogger(__name__)


def round_to_unit(value: Decimal, direction: str, unit: int = 1) -> Decimal:
    """
    端数処理
    UP(+) は切り上げ、DOWN(-) は切り捨て、unit 円単位
    """
    unit_value = Decimal(str(unit or 1))
    rounding = ROUND_CEILING if direction == "UP" else ROUND_FLOOR
    return (value / unit_value).quantize(Decimal("1"), rounding=rounding) * unit_value


class ReportGenerator:
    """収支報告書生成エンジン"""

    def fetch_sums(
        self,
        client: BackendClient,
        property_id,
        year: Optional[int] = None,
        month: Optional[int] = None,
        day: Optional[int] = None,
    ) -> Dict[str, Decimal]:
        """
        分類コード別合計を順に取得
        1件でも失敗すれば BackendError をそのまま送出し、残りは取得しない
        """
        house_rent = client.code100_sum(property_id, year, month, day)
        other_income = client.code140_sum(property_id, year, month, day)
        manage_amount = client.code200_amount_sum(property_id, year, month, day)
        manage_tax = client.code200_tax_sum(property_id, year, month, day)

        return {
            "houseRentTotal": house_rent,
            "otherIncomeTotal": other_income,
            "manageAmount": manage_amount,
            "manageTax": manage_tax,
        }

    def build_summary(self, sums: Dict[str, Decimal], config: ReportConfiguration) -> Dict:
        """
        収支サマリー
        (3) 収支 = (1) 収入 - (2) 支出、(5) 純収益 = (3) 収支 - (4) 立替金
        """
        summary = dict(sums)
        summary["manageTotal"] = sums["manageAmount"] + sums["manageTax"]

        for category in EXPENSE_CATEGORIES:
            key = category["key"]
            amount = Decimal(str(getattr(config, f"{key}_amount") or 0))
            tax = Decimal(str(getattr(config, f"{key}_tax") or 0))
            summary[f"{key}Amount"] = amount
            summary[f"{key}Tax"] = tax
            summary[f"{key}Total"] = amount + tax

        summary["incomeTotal"] = summary["houseRentTotal"] + summary["otherIncomeTotal"]
        summary["expenseTotal"] = summary["manageTotal"] + sum(
            (summary[f"{c['key']}Total"] for c in EXPENSE_CATEGORIES), Decimal("0")
        )
        summary["difference"] = summary["incomeTotal"] - summary["expenseTotal"]

        summary["totalAdvance"] = sum(
            (self._advance_total(config, item["key"]) for item in ADVANCE_ITEMS), Decimal("0")
        )
        summary["netIncome"] = summary["difference"] - summary["totalAdvance"]
        return summary

    def _advance_total(self, config: ReportConfiguration, key: str) -> Decimal:
        return Decimal(str(getattr(config, f"{key}_total") or 0))

    def build_distributions(self, summary: Dict, config: ReportConfiguration) -> List[Dict]:
        """
        分配金
        配分額 = 純収益 × 配分率（端数処理）、合計 = 配分額 + 立替金（対象のみ）+ 前月調整
        マイナスは振込0円とし翌月に調整
        """
        net_income = summary["netIncome"]
        distributions = []

        for tranche in config.tranches:
            rate = Decimal(str(tranche.rate or 0))
            allocated = round_to_unit(
                net_income * rate / Decimal("100"), tranche.rounding, tranche.rounding_unit
            )
            advance = summary["totalAdvance"] if tranche.adds_advance else Decimal("0")
            adjustment = Decimal(str(tranche.previous_adjustment or 0))
            total = allocated + advance + adjustment

            distributions.append(
                {
                    "position": tranche.position,
                    "netIncome": float(net_income),
                    "rate": float(rate),
                    "rounding": tranche.rounding,
                    "roundingUnit": tranche.rounding_unit,
                    "allocated": float(allocated),
                    "advance": float(advance),
                    "previousAdjustment": float(adjustment),
                    "total": float(total),
                    "payout": float(max(total, Decimal("0"))),
                    "carryForward": float(min(total, Decimal("0"))),
                    "note": tranche.note or "",
                    "account": {
                        "bank": tranche.bank or "",
                        "branch": tranche.branch or "",
                        "accountType": tranche.account_type or "",
                        "accountNumber": tranche.account_number or "",
                        "accountHolder": tranche.account_holder or "",
                    },
                }
            )

        return distributions

    def build_report(
        self,
        sums: Dict[str, Decimal],
        config: ReportConfiguration,
        memos: Optional[Dict[str, str]] = None,
        period: Optional[Dict] = None,
    ) -> Dict:
        """収支報告書（表示用）"""
        memos = memos or {}
        summary = self.build_summary(sums, config)

        income = [
            {
                "code": "100",
                "subject": "家賃収入",
                "amount": None,
                "tax": None,
                "total": float(summary["houseRentTotal"]),
                "memoKey": "incomeMemo",
                "memo": memos.get("incomeMemo", ""),
            },
            {
                "code": "140",
                "subject": "その他収入",
                "amount": None,
                "tax": None,
                "total": float(summary["otherIncomeTotal"]),
                "memoKey": "otherIncomeMemo",
                "memo": memos.get("otherIncomeMemo", ""),
            },
        ]

        expenses = [
            {
                "code": "200",
                "subject": "建物管理費",
                "amount": float(summary["manageAmount"]),
                "tax": float(summary["manageTax"]),
                "total": float(summary["manageTotal"]),
                "memoKey": "manageMemo",
                "memo": memos.get("manageMemo", ""),
            }
        ]
        for category in EXPENSE_CATEGORIES:
            key = category["key"]
            expenses.append(
                {
                    "code": category["code"],
                    "subject": category["name"],
                    "amount": float(summary[f"{key}Amount"]),
                    "tax": float(summary[f"{key}Tax"]),
                    "total": float(summary[f"{key}Total"]),
                    "memoKey": category["memo"],
                    "memo": memos.get(category["memo"], ""),
                }
            )

        advances = [
            {
                "code": "-",
                "subject": item["name"],
                "amount": 0.0,
                "tax": 0.0,
                "total": float(self._advance_total(config, item["key"])),
                "memoKey": item["memo"],
                "memo": memos.get(item["memo"], ""),
            }
            for item in ADVANCE_ITEMS
        ]

        return {
            "period": period or {"year": None, "month": None, "day": None},
            "summary": {key: float(value) for key, value in summary.items()},
            "income": income,
            "incomeTotal": float(summary["incomeTotal"]),
            "expenses": expenses,
            "expenseTotal": float(summary["expenseTotal"]),
            "difference": float(summary["difference"]),
            "advances": advances,
            "totalAdvance": float(summary["totalAdvance"]),
            "netIncome": float(summary["netIncome"]),
            "rentAccount": {
                "bank": config.rent_account_bank or "",
                "branch": config.rent_account_branch or "",
                "accountType": config.rent_account_type or "",
                "accountNumber": config.rent_account_number or "",
                "accountHolder": config.rent_account_holder or "",
            },
            "distributions": self.build_distributions(summary, config),
        }


report_generator = ReportGenerator()
