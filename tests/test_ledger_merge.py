"""
レントロール結合のテスト
"""

from datetime import date

from property_office.core import ledger_merge
from property_office.schemas import (
    Deposit,
    HistoryMonth,
    MonthlyRentIncome,
    MonthlyRentIncomeHistoryEntry,
    RentRollEntry,
    UncollectedAdvancePayment,
    UtilityExpense,
    WaterFeeReading,
)


def make_rent_roll():
    return [
        RentRollEntry(id=1, floor="1", room_number="101", room_usage="店舗", contractor="A",
                      rent=100000, maintenance_fee=10000, created_at="2024/03/01"),
        RentRollEntry(id=2, floor="2", room_number="201", room_usage="住居", contractor="B",
                      rent=80000, maintenance_fee=None, created_at="2024/03/01"),
        RentRollEntry(id=3, floor="3", room_number="301", room_usage="住居", contractor="C",
                      rent=70000, created_at="2024/02/01"),
    ]


class TestMergeWithRentRoll:
    """結合の基本動作"""

    def setup_method(self):
        self.rent_roll = make_rent_roll()

    def test_one_row_per_rent_roll_entry(self):
        """台帳の件数に関係なく、選択年月のレントロール1件につき1行"""
        deposits = [
            Deposit(id=10, rent_roll=self.rent_roll[0], deposit=300000),
            Deposit(id=11, rent_roll=self.rent_roll[0], deposit=999999),
            Deposit(id=12, rent_roll=RentRollEntry(id=99), deposit=1),
        ]
        rows = ledger_merge.deposit_rows(self.rent_roll, deposits, 2024, 3)

        assert [r["rentRollId"] for r in rows] == [1, 2]

    def test_first_match_only(self):
        """一致する台帳行が複数あっても最初の1件"""
        deposits = [
            Deposit(id=10, rent_roll=self.rent_roll[0], deposit=300000),
            Deposit(id=11, rent_roll=self.rent_roll[0], deposit=999999),
        ]
        rows = ledger_merge.deposit_rows(self.rent_roll, deposits, 2024, 3)

        assert rows[0]["id"] == 10
        assert rows[0]["deposit"] == 300000

    def test_unmatched_defaults(self):
        """対応する台帳行がない部屋は0で表示"""
        rows = ledger_merge.deposit_rows(self.rent_roll, [], 2024, 3)

        assert rows[1] == {
            "id": None,
            "rentRollId": 2,
            "floor": "2",
            "roomNumber": "201",
            "roomUsage": "住居",
            "contractor": "B",
            "deposit": 0.0,
            "suubiki": 0.0,
            "guaranteeMoney": 0.0,
            "reikin": 0.0,
        }

    def test_orphan_ledger_rows_dropped(self):
        """レントロールにない台帳行は表示しない"""
        expenses = [UtilityExpense(id=5, rent_roll=RentRollEntry(id=3), electricity=100)]
        rows = ledger_merge.utility_rows(self.rent_roll, expenses, 2024, 3)

        assert all(r["id"] is None for r in rows)

    def test_whole_year(self):
        """月未選択は通年"""
        rows = ledger_merge.deposit_rows(self.rent_roll, [], 2024, None)
        assert len(rows) == 3

    def test_rent_roll_key(self):
        """埋め込み rentRoll.id を優先し、なければ rentRollId"""
        assert ledger_merge.rent_roll_key(Deposit(rent_roll=RentRollEntry(id=7))) == 7
        assert ledger_merge.rent_roll_key(WaterFeeReading(rent_roll_id=8)) == 8


class TestLedgerCalculations:
    """各台帳の計算"""

    def setup_method(self):
        self.rent_roll = make_rent_roll()

    def test_utility_total(self):
        """電気 + 水道 + ガス + その他1 + その他2"""
        expense = UtilityExpense(electricity=10000, water=5000, gas=3000, other1=0, other2=0)
        assert ledger_merge.utility_total(expense) == 18000.00

    def test_utility_total_blank_is_zero(self):
        expense = UtilityExpense(electricity=1234.5, water=None, gas=0.25)
        assert ledger_merge.utility_total(expense) == 1234.75

    def test_utility_rows(self):
        expenses = [UtilityExpense(id=5, rent_roll=self.rent_roll[1], electricity=10000, water=5000, gas=3000)]
        rows = ledger_merge.utility_rows(self.rent_roll, expenses, 2024, 3)

        assert rows[1]["id"] == 5
        assert rows[1]["total"] == 18000.0
        assert rows[0]["total"] == 0.0

    def test_water_usage(self):
        """使用量 = 今回 - 前回、水道料 = 使用量 × 1200"""
        usage, bill = ledger_merge.water_usage(
            WaterFeeReading(previous_reading=0, current_reading=15), 1200
        )
        assert usage == 15
        assert bill == 18000

    def test_water_fee_rows(self):
        readings = [WaterFeeReading(id=1, rent_roll_id=1, previous_reading=10, current_reading=25)]
        rows = ledger_merge.water_fee_rows(self.rent_roll, readings, 2024, 3, 1200)

        assert rows[0]["usage"] == 15
        assert rows[0]["waterBill"] == 18000
        assert rows[1]["usage"] == 0.0
        assert rows[1]["waterBill"] == 0.0

    def test_monthly_income_rows(self):
        """差額 = 賃料 + 共益費 - 入金合計"""
        incomes = [
            MonthlyRentIncome(
                id=1,
                rent_roll_id=1,
                contractor_payment_amount=90000,
                substitute_payment_amount=15000,
            )
        ]
        rows = ledger_merge.monthly_income_rows(self.rent_roll, incomes, 2024, 3)

        assert rows[0]["totalIncome"] == 105000
        assert rows[0]["rentFee"] == 100000
        assert rows[0]["utilityFee"] == 10000
        assert rows[0]["difference"] == 5000
        assert rows[1]["utilityFee"] == 0.0
        assert rows[1]["difference"] == 80000

    def test_history_rows(self):
        """表示期間の各月を並べ、当月のみ編集可"""
        history = [
            MonthlyRentIncomeHistoryEntry(
                rent_roll_id=1,
                past_difference_total=2000,
                months=[HistoryMonth(year=2024, month=3, income_amount=100000, difference_amount=-500)],
                cumulative_difference=1500,
            )
        ]
        window = [(2024, 2), (2024, 3)]
        rows = ledger_merge.history_rows(
            self.rent_roll, history, 2024, 3, window, today=date(2024, 3, 20)
        )

        assert rows[0]["pastDifferenceTotal"] == 2000
        assert rows[0]["months"][0] == {
            "year": 2024,
            "month": 2,
            "incomeAmount": 0.0,
            "differenceAmount": 0.0,
            "editable": False,
        }
        assert rows[0]["months"][1]["differenceAmount"] == -500
        assert rows[0]["months"][1]["editable"] is True
        assert rows[1]["cumulativeDifference"] == 0.0

    def test_uncollected_rows_placeholder(self):
        """レントロールにない部屋は「未登録」"""
        payments = [
            UncollectedAdvancePayment(id=1, rent_roll_id=1, details="滞納"),
            UncollectedAdvancePayment(id=2, rent_roll_id=42, details="不明"),
        ]
        rows = ledger_merge.uncollected_rows(payments, self.rent_roll)

        assert rows[0]["roomNumber"] == "101"
        assert rows[1]["floor"] == ledger_merge.PLACEHOLDER
        assert rows[1]["roomNumber"] == "未登録"
        assert rows[1]["roomUsage"] == "未登録"

    def test_replace_by_id(self):
        """編集結果は同じIDの行だけを差し替える"""
        deposits = [Deposit(id=1, deposit=100), Deposit(id=2, deposit=200), Deposit(id=3, deposit=300)]
        edited = Deposit(id=2, deposit=250)

        result = ledger_merge.replace_by_id(deposits, edited)

        assert [d.deposit for d in result] == [100, 250, 300]
        assert result[0] is deposits[0]
        assert result[2] is deposits[2]
