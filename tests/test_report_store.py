"""
収支報告書の設定・メモ保存のテスト
"""

import pytest
from unittest.mock import patch
from decimal import Decimal

from property_office.core import report_store
from property_office.models import ReportMemo


class TestReportConfiguration:
    """報告書設定"""

    def test_defaults(self, db_session):
        """初期値: 配分率 50/25/25、端数 +/+/-、単位 1/1/1000"""
        config = report_store.get_or_create_configuration(db_session, 7)

        assert config.property_id == "7"
        assert [float(t.rate) for t in config.tranches] == [50, 25, 25]
        assert [t.rounding for t in config.tranches] == ["UP", "UP", "DOWN"]
        assert [t.rounding_unit for t in config.tranches] == [1, 1, 1000]
        assert [t.adds_advance for t in config.tranches] == [True, False, False]
        assert config.utility_amount == 0

    def test_get_returns_existing(self, db_session):
        first = report_store.get_or_create_configuration(db_session, "7")
        second = report_store.get_or_create_configuration(db_session, "7")
        assert first.id == second.id

    def test_concurrent_creation_returns_existing(self, db_session):
        """同時作成で一意制約に違反した場合は既存の設定を返す"""
        existing = report_store.get_or_create_configuration(db_session, "7")
        existing_id = existing.id
        find = report_store._find_configuration
        lookups = []

        def miss_first_lookup(db, property_id):
            lookups.append(property_id)
            return None if len(lookups) == 1 else find(db, property_id)

        with patch.object(report_store, "_find_configuration", side_effect=miss_first_lookup):
            config = report_store.get_or_create_configuration(db_session, "7")

        assert config.id == existing_id
        assert len(lookups) == 2
        assert len(config.tranches) == 3

    def test_partial_update(self, db_session):
        """指定した項目のみ更新"""
        report_store.update_configuration(db_session, "7", {"repair_amount": 5000})
        config = report_store.update_configuration(
            db_session,
            "7",
            {
                "repair_tax": 500,
                "rent_account_bank": "三井住友銀行",
                "tranches": [{"position": 3, "rate": 30, "rounding_unit": 100}],
            },
        )

        assert config.repair_amount == Decimal("5000")
        assert config.repair_tax == Decimal("500")
        assert config.rent_account_bank == "三井住友銀行"
        assert float(config.tranches[2].rate) == 30
        assert config.tranches[2].rounding_unit == 100
        assert config.tranches[2].rounding == "DOWN"

    def test_to_dict(self, db_session):
        config = report_store.get_or_create_configuration(db_session, "7")
        data = report_store.configuration_to_dict(config)

        assert data["propertyId"] == "7"
        assert data["mortgage_total"] == 0.0
        assert data["tranches"][0]["rate"] == 50.0
        assert data["tranches"][2]["rounding"] == "DOWN"


class TestReportMemos:
    """「内容の編集」の保存"""

    def test_row_memo_saved(self, db_session):
        report_store.save_memo(db_session, "7", "repairMemo", "外壁補修")
        assert report_store.list_memos(db_session, "7") == {"repairMemo": "外壁補修"}

    def test_row_memo_overwritten(self, db_session):
        """同じ項目は上書き"""
        report_store.save_memo(db_session, "7", "repairMemo", "外壁補修")
        report_store.save_memo(db_session, "7", "repairMemo", "屋上防水")

        assert db_session.query(ReportMemo).count() == 1
        assert report_store.list_memos(db_session, "7")["repairMemo"] == "屋上防水"

    def test_account_memo_updates_configuration(self, db_session):
        """口座項目は設定の口座情報に反映"""
        report_store.save_memo(db_session, "7", "rentAccountNumber", "1234567")
        report_store.save_memo(db_session, "7", "dist3Branch", "新宿支店")

        config = report_store.get_or_create_configuration(db_session, "7")
        assert config.rent_account_number == "1234567"
        assert config.tranches[2].branch == "新宿支店"
        assert report_store.list_memos(db_session, "7") == {}

    def test_unknown_key_rejected(self, db_session):
        with pytest.raises(report_store.UnknownMemoFieldError):
            report_store.save_memo(db_session, "7", "dist4Bank", "x")

    def test_memo_keys(self):
        keys = report_store.memo_keys()
        assert "incomeMemo" in keys
        assert "rentAccountHolder" in keys
        assert "dist1Type" in keys
        assert len(keys) == 10 + 5 * 4
