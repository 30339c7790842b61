"""
収支報告書生成エンジンのテスト
"""

import pytest
from unittest.mock import MagicMock
from decimal import Decimal

from property_office.core import report_store
from property_office.core.report_generator import ReportGenerator, round_to_unit
from property_office.services.backend_client import BackendClient, BackendError


class TestRoundToUnit:
    """端数処理"""

    def test_round_up(self):
        assert round_to_unit(Decimal("203447.5"), "UP", 1) == Decimal("203448")

    def test_round_down(self):
        assert round_to_unit(Decimal("101723.5"), "DOWN", 1) == Decimal("101723")

    def test_round_down_thousand(self):
        """1000円単位の切り捨て"""
        assert round_to_unit(Decimal("101723.5"), "DOWN", 1000) == Decimal("101000")

    def test_round_up_negative(self):
        """マイナスの切り上げは0に近づく"""
        assert round_to_unit(Decimal("-1500.5"), "UP", 1) == Decimal("-1500")


class TestFetchSums:
    """分類コード別合計の取得"""

    def setup_method(self):
        self.generator = ReportGenerator()
        self.client = MagicMock(spec=BackendClient)

    def test_fetch_sums(self):
        self.client.code100_sum.return_value = Decimal("2000000")
        self.client.code140_sum.return_value = Decimal("50000")
        self.client.code200_amount_sum.return_value = Decimal("100000")
        self.client.code200_tax_sum.return_value = Decimal("10000")

        sums = self.generator.fetch_sums(self.client, 1, 2024, 3, None)

        assert sums == {
            "houseRentTotal": Decimal("2000000"),
            "otherIncomeTotal": Decimal("50000"),
            "manageAmount": Decimal("100000"),
            "manageTax": Decimal("10000"),
        }
        self.client.code100_sum.assert_called_once_with(1, 2024, 3, None)

    def test_failure_stops_remaining_fetches(self):
        """1件でも失敗したら残りは取得しない"""
        self.client.code100_sum.return_value = Decimal("1")
        self.client.code140_sum.side_effect = BackendError("error", 500)

        with pytest.raises(BackendError):
            self.generator.fetch_sums(self.client, 1)

        self.client.code200_amount_sum.assert_not_called()
        self.client.code200_tax_sum.assert_not_called()


class TestBuildReport:
    """収支計算と分配金"""

    def setup_method(self):
        self.generator = ReportGenerator()

    def _configure(self, db_session, **figures):
        return report_store.update_configuration(db_session, "1", figures)

    def test_manage_total_exact(self, db_session):
        """建物管理費の合計は本体 + 消費税（丸めなし）"""
        config = report_store.get_or_create_configuration(db_session, "1")
        sums = {
            "houseRentTotal": Decimal("0"),
            "otherIncomeTotal": Decimal("0"),
            "manageAmount": Decimal("12345.67"),
            "manageTax": Decimal("1234.56"),
        }
        summary = self.generator.build_summary(sums, config)
        assert summary["manageTotal"] == Decimal("13580.23")

    def test_self_consistent_statement(self, db_session):
        """収支 = 収入 - 支出、純収益 = 収支 - 立替金"""
        config = self._configure(
            db_session,
            utility_amount=230613,
            utility_tax=23059,
            other_amount=231408,
            other_tax=23141,
            mortgage_total=800000,
            property_tax_total=116157,
            reserve_total=100000,
        )
        sums = {
            "houseRentTotal": Decimal("2000000"),
            "otherIncomeTotal": Decimal("100000"),
            "manageAmount": Decimal("150000"),
            "manageTax": Decimal("15000"),
        }
        report = self.generator.build_report(sums, config)

        assert report["incomeTotal"] == 2100000
        assert report["expenseTotal"] == 165000 + 253672 + 254549
        assert report["difference"] == 2100000 - 673221
        assert report["totalAdvance"] == 1016157
        assert report["netIncome"] == report["difference"] - 1016157
        assert [e["code"] for e in report["expenses"]] == ["200", "210", "220", "240", "270"]

    def test_distribution_waterfall(self, db_session):
        """
        純収益 406,894 円の分配（初期設定）
        第1分配: 50% 切り上げ + 立替金、第2分配: 25% 切り上げ、第3分配: 25% 1000円未満切り捨て
        """
        config = self._configure(db_session, mortgage_total=1016157)
        sums = {
            "houseRentTotal": Decimal("1423051"),
            "otherIncomeTotal": Decimal("0"),
            "manageAmount": Decimal("0"),
            "manageTax": Decimal("0"),
        }
        report = self.generator.build_report(sums, config)
        assert report["netIncome"] == 406894

        first, second, third = report["distributions"]
        assert first["allocated"] == 203447
        assert first["payout"] == 203447 + 1016157
        assert second["allocated"] == 101724
        assert second["payout"] == 101724
        assert third["allocated"] == 101000
        assert third["payout"] == 101000

    def test_negative_total_carries_forward(self, db_session):
        """マイナスは振込0円、翌月調整へ"""
        config = self._configure(db_session, mortgage_total=500000)
        sums = {
            "houseRentTotal": Decimal("100000"),
            "otherIncomeTotal": Decimal("0"),
            "manageAmount": Decimal("0"),
            "manageTax": Decimal("0"),
        }
        report = self.generator.build_report(sums, config)

        second = report["distributions"][1]
        assert report["netIncome"] == -400000
        assert second["allocated"] == -100000
        assert second["payout"] == 0
        assert second["carryForward"] == -100000

    def test_previous_adjustment(self, db_session):
        """前月調整を加算"""
        config = report_store.update_configuration(
            db_session,
            "1",
            {"tranches": [{"position": 2, "previous_adjustment": -1724}]},
        )
        sums = {
            "houseRentTotal": Decimal("406896"),
            "otherIncomeTotal": Decimal("0"),
            "manageAmount": Decimal("0"),
            "manageTax": Decimal("0"),
        }
        report = self.generator.build_report(sums, config)

        assert report["distributions"][1]["total"] == 101724 - 1724

    def test_memos_and_accounts(self, db_session):
        """メモ・口座情報を表示に反映"""
        report_store.save_memo(db_session, "1", "incomeMemo", "3月分")
        report_store.save_memo(db_session, "1", "rentAccountBank", "みずほ銀行")
        report_store.save_memo(db_session, "1", "dist2Holder", "タフ太郎")
        config = report_store.get_or_create_configuration(db_session, "1")
        memos = report_store.list_memos(db_session, "1")
        sums = dict.fromkeys(
            ["houseRentTotal", "otherIncomeTotal", "manageAmount", "manageTax"], Decimal("0")
        )

        report = self.generator.build_report(sums, config, memos)

        assert report["income"][0]["memo"] == "3月分"
        assert report["rentAccount"]["bank"] == "みずほ銀行"
        assert report["distributions"][1]["account"]["accountHolder"] == "タフ太郎"
