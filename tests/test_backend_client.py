"""
バックエンドAPIクライアントのテスト
"""

import pytest
from unittest.mock import MagicMock
from decimal import Decimal

import requests

from property_office.schemas import DepositForm, WaterFeeReading
from property_office.services.backend_client import BackendClient, BackendError


def make_response(status_code=200, json_data=None, text="", json_error=False):
    """requests.Response のモック"""
    response = MagicMock(spec=requests.Response)
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = text
    response.reason = "ERROR"
    if json_error:
        response.json.side_effect = ValueError("no json")
    else:
        response.json.return_value = json_data
    return response


class TestBackendClientRequest:
    """共通処理のテスト"""

    def setup_method(self):
        self.session = MagicMock(spec=requests.Session)
        self.client = BackendClient(base_url="http://backend:8080/api/", session=self.session)

    def test_url_join(self):
        """ベースURL末尾のスラッシュを除いて結合"""
        self.session.request.return_value = make_response(json_data=[])
        self.client.list_properties()

        args, kwargs = self.session.request.call_args
        assert args == ("GET", "http://backend:8080/api/properties")
        assert kwargs["timeout"] is None

    def test_non_2xx_uses_body_message(self):
        """2xx以外は応答本文の message を使う"""
        self.session.request.return_value = make_response(
            status_code=400, json_data={"message": "不正なリクエストです"}
        )
        with pytest.raises(BackendError) as exc_info:
            self.client.list_rent_roll(1)

        assert exc_info.value.status_code == 400
        assert exc_info.value.message == "不正なリクエストです"

    def test_non_2xx_falls_back_to_text(self):
        """JSONでない応答は本文テキスト"""
        self.session.request.return_value = make_response(
            status_code=500, text="Internal Server Error", json_error=True
        )
        with pytest.raises(BackendError) as exc_info:
            self.client.list_deposits(1)

        assert exc_info.value.status_code == 500
        assert exc_info.value.message == "Internal Server Error"

    def test_transport_failure(self):
        """通信失敗は status_code なしの BackendError"""
        self.session.request.side_effect = requests.exceptions.ConnectionError("refused")

        with pytest.raises(BackendError) as exc_info:
            self.client.list_properties()

        assert exc_info.value.status_code is None
        assert "通信エラー" in exc_info.value.message

    def test_no_retry(self):
        """失敗しても再送しない"""
        self.session.request.return_value = make_response(status_code=503, text="busy", json_error=True)

        with pytest.raises(BackendError):
            self.client.list_water_fees(1)

        assert self.session.request.call_count == 1


class TestBackendClientEndpoints:
    """各エンドポイントのテスト"""

    def setup_method(self):
        self.session = MagicMock(spec=requests.Session)
        self.client = BackendClient(base_url="http://backend/api", session=self.session)

    def test_period_params_omitted(self):
        """未指定の年月はクエリに含めない"""
        self.session.request.return_value = make_response(json_data=[])
        self.client.list_monthly_rent_income(5, year=2024)

        _, kwargs = self.session.request.call_args
        assert kwargs["params"] == {"year": 2024}

    def test_sum_returns_decimal(self):
        """合計は Decimal"""
        self.session.request.return_value = make_response(json_data=1234.5)
        result = self.client.code100_sum(5, 2024, 3, None)

        args, kwargs = self.session.request.call_args
        assert args[1] == "http://backend/api/properties/5/income-expense/code100sum"
        assert kwargs["params"] == {"year": 2024, "month": 3}
        assert result == Decimal("1234.5")

    def test_sum_null_is_zero(self):
        """該当なしの合計は0"""
        self.session.request.return_value = make_response(json_data=None)
        assert self.client.code200_tax_sum(5) == Decimal("0")

    def test_update_deposit_drops_rent_roll_id(self):
        """預託金の更新ではレントロールIDを送らない"""
        self.session.request.return_value = make_response(
            json_data={"id": 9, "deposit": 300000, "rentRoll": {"id": 1}}
        )
        saved = self.client.update_deposit(5, 9, DepositForm(rent_roll_id=1, deposit=300000))

        args, kwargs = self.session.request.call_args
        assert args == ("PUT", "http://backend/api/properties/5/deposit/9")
        assert "rentRollId" not in kwargs["json"]
        assert kwargs["json"]["guaranteeMoney"] == 0
        assert saved.rent_roll.id == 1

    def test_create_water_fee_payload(self):
        """水道料の登録は camelCase"""
        self.session.request.return_value = make_response(json_data={"id": 1, "rentRollId": 2})
        reading = WaterFeeReading(
            rent_roll_id=2, previous_reading=0, current_reading=15, created_at="2024/03/10"
        )
        self.client.create_water_fee(5, reading)

        _, kwargs = self.session.request.call_args
        assert kwargs["json"] == {
            "rentRollId": 2,
            "previousReading": 0.0,
            "currentReading": 15.0,
            "createdAt": "2024/03/10",
        }

    def test_history_update_uses_query_string(self):
        """入金履歴の更新はクエリ文字列で送る"""
        self.session.request.return_value = make_response(text="OK")
        result = self.client.update_monthly_rent_income_history(5, 1, 2024, 3, 100000, -5000)

        args, kwargs = self.session.request.call_args
        assert args == ("POST", "http://backend/api/properties/5/monthly-rent-income-history/update")
        assert kwargs["params"] == {
            "rentRollId": 1,
            "year": 2024,
            "month": 3,
            "incomeAmount": 100000,
            "differenceAmount": -5000,
        }
        assert result == "OK"

    def test_upload_is_multipart(self):
        """過去資料のアップロードは multipart"""
        self.session.request.return_value = make_response(json_data={})
        self.client.upload_past_document(5, "report.pdf", b"%PDF", "application/pdf")

        _, kwargs = self.session.request.call_args
        assert kwargs["files"] == {"file": ("report.pdf", b"%PDF", "application/pdf")}

    def test_income_expense_keeps_snake_created_at(self):
        """収入支出明細の created_at は snake_case のまま"""
        self.session.request.return_value = make_response(
            json_data=[{"id": 1, "created_at": "2024-03-01T00:00:00", "type": "INCOME", "code": 100}]
        )
        entries = self.client.list_income_expense(5)

        assert entries[0].created_at == "2024-03-01T00:00:00"
        assert entries[0].code == "100"


class TestBackendClientResponseParsing:
    """2xx応答の解析失敗"""

    def setup_method(self):
        self.session = MagicMock(spec=requests.Session)
        self.client = BackendClient(base_url="http://backend/api", session=self.session)

    def test_non_json_body(self):
        """JSONでない2xx応答は BackendError"""
        self.session.request.return_value = make_response(
            text="<html>proxy</html>", json_error=True
        )

        with pytest.raises(BackendError) as exc_info:
            self.client.list_properties()

        assert exc_info.value.status_code == 200
        assert exc_info.value.message.startswith("応答の解析に失敗しました")

    def test_invalid_record(self):
        """項目の不正なレコードは BackendError"""
        self.session.request.return_value = make_response(json_data=[{"id": 1, "name": None}])

        with pytest.raises(BackendError) as exc_info:
            self.client.list_properties()

        assert exc_info.value.message.startswith("応答の解析に失敗しました")

    def test_created_record_invalid(self):
        self.session.request.return_value = make_response(json_data={"id": "abc"})

        with pytest.raises(BackendError):
            self.client.create_deposit(1, DepositForm(rent_roll_id=1))

    def test_years_not_a_list(self):
        self.session.request.return_value = make_response(json_data={"years": [2024]})

        with pytest.raises(BackendError):
            self.client.list_income_expense_years(1)

    def test_sum_not_numeric(self):
        self.session.request.return_value = make_response(json_data="abc")

        with pytest.raises(BackendError):
            self.client.code140_sum(1)
