"""
台帳生成エンジンのテスト
"""

import pytest
from unittest.mock import MagicMock

from property_office.core.ledger_generator import ledger_generator, to_frame, DEPOSIT_COLUMNS
from property_office.schemas import Deposit, WaterFeeReading
from property_office.services.backend_client import BackendClient, BackendError


class TestLedgerGenerator:
    """台帳ブック用DataFrame"""

    def setup_method(self):
        self.client = MagicMock(spec=BackendClient)
        self.client.list_deposits.return_value = []
        self.client.list_utility_expenses.return_value = []
        self.client.list_water_fees.return_value = []
        self.client.list_monthly_rent_income.return_value = []

    def test_empty_frame_keeps_headers(self):
        df = to_frame([], DEPOSIT_COLUMNS)
        assert list(df.columns) == ["階", "No.", "用途", "契約者", "敷金", "数引", "保証金", "礼金"]
        assert df.empty

    def test_workbook_frames(self, sample_rent_roll, today):
        self.client.list_rent_roll.return_value = sample_rent_roll
        self.client.list_deposits.return_value = [
            Deposit(id=10, rent_roll=sample_rent_roll[0], deposit=300000)
        ]
        self.client.list_water_fees.return_value = [
            WaterFeeReading(id=1, rent_roll_id=2, previous_reading=10, current_reading=12)
        ]

        frames = ledger_generator.generate_workbook_frames(
            self.client, 1, today.year, today.month
        )

        assert list(frames.keys()) == [
            "レントロール",
            "預託金等",
            "水道光熱通信料",
            "水道料明細",
            "月額家賃入金明細",
        ]
        assert list(frames["レントロール"]["No."]) == ["101", "201"]
        assert list(frames["預託金等"]["敷金"]) == [300000, 0]
        assert list(frames["水道料明細"]["水道料"]) == [0, 2400]
        self.client.list_monthly_rent_income.assert_called_once_with(1, today.year, today.month)

    def test_failure_propagates(self, sample_rent_roll):
        self.client.list_rent_roll.return_value = sample_rent_roll
        self.client.list_deposits.side_effect = BackendError("NG", 500)

        with pytest.raises(BackendError):
            ledger_generator.generate_workbook_frames(self.client, 1, None, None)
        self.client.list_utility_expenses.assert_not_called()
