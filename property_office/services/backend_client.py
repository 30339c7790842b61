"""
物件管理バックエンドREST API連携サービス
"""

from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional
import logging

import requests

from property_office.config import settings
from property_office.schemas import (
    Deposit,
    DepositForm,
    IncomeExpenseEntry,
    InputManualEntry,
    MonthlyRentIncome,
    MonthlyRentIncomeHistoryEntry,
    PastDocument,
    Property,
    RentRollEntry,
    UncollectedAdvancePayment,
    UtilityExpense,
    UtilityExpenseForm,
    WaterFeeReading,
)

logger = logging.getLogger(__name__)


class BackendError(Exception):
    """通信失敗または2xx以外の応答"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code

    def __str__(self):
        if self.status_code is None:
            return self.message
        return f"{self.message} (HTTP {self.status_code})"


def _period_params(
    year: Optional[int] = None, month: Optional[int] = None, day: Optional[int] = None
) -> Dict[str, int]:
    """未指定の絞り込みはクエリに含めない"""
    params = {}
    if year:
        params["year"] = year
    if month:
        params["month"] = month
    if day:
        params["day"] = day
    return params


class BackendClient:
    """物件管理バックエンドAPIクライアント（自動リトライなし）"""

    def __init__(
        self,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = (base_url or settings.BACKEND_BASE_URL).rstrip("/")
        self.timeout = timeout if timeout is not None else settings.BACKEND_TIMEOUT
        self.session = session or requests.Session()

    # ------------------------------------------------------------------
    # 共通処理
    # ------------------------------------------------------------------

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    def _property_path(self, property_id, *parts) -> str:
        return "/".join(["properties", str(property_id), *[str(p) for p in parts]])

    @staticmethod
    def _error_message(response: requests.Response) -> str:
        """応答本文の message があればそれを使う"""
        try:
            body = response.json()
        except ValueError:
            return response.text or response.reason or ""
        if isinstance(body, dict):
            return str(body.get("message") or "")
        return str(body)

    def request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = self._url(path)
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as e:
            logger.error(f"Request failed: {method} {url} - {e}")
            raise BackendError(f"通信エラーが発生しました: {e}") from e

        logger.debug(f"{method} {url} -> {response.status_code}")

        if not response.ok:
            message = self._error_message(response)
            logger.error(f"Backend returned {response.status_code}: {method} {url} {message}")
            raise BackendError(message, status_code=response.status_code)

        return response

    def _parse(self, response: requests.Response, model=None, many: bool = False) -> Any:
        """
        2xx応答のJSONを解析し、model があればレコードに変換する
        JSONでない応答・項目の不正なレコードは BackendError
        """
        try:
            data = response.json()
            if model is None:
                return data
            if many:
                return [model.model_validate(item) for item in data]
            return model.model_validate(data)
        except (ValueError, TypeError) as e:
            logger.error(f"Invalid backend response ({response.status_code}): {e}")
            raise BackendError(
                f"応答の解析に失敗しました: {e}", status_code=response.status_code
            ) from e

    def _get_json(
        self, path: str, params: Optional[Dict[str, Any]] = None, model=None, many: bool = False
    ) -> Any:
        return self._parse(self.request("GET", path, params=params or None), model, many)

    def _post_json(self, path: str, payload: Dict[str, Any], model=None) -> Any:
        return self._parse(self.request("POST", path, json=payload), model)

    def _put_json(self, path: str, payload: Dict[str, Any], model=None) -> Any:
        return self._parse(self.request("PUT", path, json=payload), model)

    def _get_list(self, path: str, params: Optional[Dict[str, Any]] = None) -> List:
        data = self._get_json(path, params)
        if not isinstance(data, list):
            raise BackendError(f"応答の解析に失敗しました: 一覧ではありません ({data!r})")
        return data

    def _get_sum(self, property_id, endpoint: str, year=None, month=None, day=None) -> Decimal:
        value = self._get_json(
            self._property_path(property_id, "income-expense", endpoint),
            _period_params(year, month, day),
        )
        try:
            return Decimal(str(value or 0))
        except InvalidOperation as e:
            raise BackendError(f"応答の解析に失敗しました: {value!r}") from e

    # ------------------------------------------------------------------
    # 物件
    # ------------------------------------------------------------------

    def list_properties(self) -> List[Property]:
        return self._get_json("properties", model=Property, many=True)

    def create_property(self, name: str) -> Property:
        return self._post_json("properties", {"name": name}, model=Property)

    # ------------------------------------------------------------------
    # レントロール
    # ------------------------------------------------------------------

    def list_rent_roll(self, property_id) -> List[RentRollEntry]:
        return self._get_json(
            self._property_path(property_id, "rentroll"), model=RentRollEntry, many=True
        )

    def create_rent_roll(self, property_id, payload: Dict[str, Any]) -> RentRollEntry:
        return self._post_json(
            self._property_path(property_id, "rentroll"), payload, model=RentRollEntry
        )

    # ------------------------------------------------------------------
    # 預託金
    # ------------------------------------------------------------------

    def list_deposits(self, property_id) -> List[Deposit]:
        return self._get_json(
            self._property_path(property_id, "deposit"), model=Deposit, many=True
        )

    def create_deposit(self, property_id, form: DepositForm) -> Deposit:
        return self._post_json(
            self._property_path(property_id, "deposit"), form.to_payload(), model=Deposit
        )

    def update_deposit(self, property_id, deposit_id: int, form: DepositForm) -> Deposit:
        payload = form.to_payload()
        payload.pop("rentRollId", None)
        return self._put_json(
            self._property_path(property_id, "deposit", deposit_id), payload, model=Deposit
        )

    def delete_deposit(self, property_id, deposit_id: int) -> None:
        self.request("DELETE", self._property_path(property_id, "deposit", deposit_id))

    # ------------------------------------------------------------------
    # 水道光熱費
    # ------------------------------------------------------------------

    def list_utility_expenses(self, property_id) -> List[UtilityExpense]:
        return self._get_json(
            self._property_path(property_id, "utility-expenses"), model=UtilityExpense, many=True
        )

    def create_utility_expense(self, property_id, form: UtilityExpenseForm) -> UtilityExpense:
        return self._post_json(
            self._property_path(property_id, "utility-expenses"),
            form.to_payload(),
            model=UtilityExpense,
        )

    def update_utility_expense(
        self, property_id, utility_id: int, form: UtilityExpenseForm
    ) -> UtilityExpense:
        payload = form.to_payload()
        payload.pop("rentRollId", None)
        return self._put_json(
            self._property_path(property_id, "utility-expenses", utility_id),
            payload,
            model=UtilityExpense,
        )

    def delete_utility_expense(self, property_id, utility_id: int) -> None:
        self.request("DELETE", self._property_path(property_id, "utility-expenses", utility_id))

    # ------------------------------------------------------------------
    # 水道料
    # ------------------------------------------------------------------

    def list_water_fees(self, property_id) -> List[WaterFeeReading]:
        return self._get_json(
            self._property_path(property_id, "water-fees"), model=WaterFeeReading, many=True
        )

    def create_water_fee(self, property_id, reading: WaterFeeReading) -> WaterFeeReading:
        payload = reading.to_payload()
        payload.pop("id", None)
        return self._post_json(
            self._property_path(property_id, "water-fees"), payload, model=WaterFeeReading
        )

    # ------------------------------------------------------------------
    # 月額家賃入金
    # ------------------------------------------------------------------

    def list_monthly_rent_income(
        self, property_id, year: Optional[int] = None, month: Optional[int] = None
    ) -> List[MonthlyRentIncome]:
        return self._get_json(
            self._property_path(property_id, "monthly-rent-income"),
            _period_params(year, month),
            model=MonthlyRentIncome,
            many=True,
        )

    def create_monthly_rent_income(
        self, property_id, income: MonthlyRentIncome
    ) -> MonthlyRentIncome:
        payload = income.to_payload()
        payload.pop("id", None)
        return self._post_json(
            self._property_path(property_id, "monthly-rent-income"),
            payload,
            model=MonthlyRentIncome,
        )

    def list_monthly_rent_income_history(
        self, property_id
    ) -> List[MonthlyRentIncomeHistoryEntry]:
        return self._get_json(
            self._property_path(property_id, "monthly-rent-income-history"),
            model=MonthlyRentIncomeHistoryEntry,
            many=True,
        )

    def update_monthly_rent_income_history(
        self,
        property_id,
        rent_roll_id: int,
        year: int,
        month: int,
        income_amount: float,
        difference_amount: float,
    ) -> str:
        """当月の差額を更新（パラメータはクエリ文字列で送る）"""
        response = self.request(
            "POST",
            self._property_path(property_id, "monthly-rent-income-history", "update"),
            params={
                "rentRollId": rent_roll_id,
                "year": year,
                "month": month,
                "incomeAmount": income_amount,
                "differenceAmount": difference_amount,
            },
        )
        return response.text

    # ------------------------------------------------------------------
    # 未収金・前受金
    # ------------------------------------------------------------------

    def list_uncollected_payments(
        self, property_id, year: Optional[int] = None, month: Optional[int] = None
    ) -> List[UncollectedAdvancePayment]:
        return self._get_json(
            self._property_path(property_id, "uncollected-advance-payments"),
            _period_params(year, month),
            model=UncollectedAdvancePayment,
            many=True,
        )

    def create_uncollected_payment(
        self, property_id, payment: UncollectedAdvancePayment
    ) -> UncollectedAdvancePayment:
        payload = payment.to_payload()
        payload.pop("id", None)
        return self._post_json(
            self._property_path(property_id, "uncollected-advance-payments"),
            payload,
            model=UncollectedAdvancePayment,
        )

    # ------------------------------------------------------------------
    # 収入支出明細
    # ------------------------------------------------------------------

    def list_income_expense(
        self, property_id, year: Optional[int] = None, month: Optional[int] = None
    ) -> List[IncomeExpenseEntry]:
        return self._get_json(
            self._property_path(property_id, "income-expense"),
            _period_params(year, month),
            model=IncomeExpenseEntry,
            many=True,
        )

    def create_income_expense(self, property_id, payload: Dict[str, Any]) -> IncomeExpenseEntry:
        return self._post_json(
            self._property_path(property_id, "income-expense"), payload, model=IncomeExpenseEntry
        )

    def list_income_expense_years(self, property_id) -> List[int]:
        return self._get_list(self._property_path(property_id, "income-expense", "years"))

    def list_income_expense_months(self, property_id, year: int) -> List[int]:
        return self._get_list(
            self._property_path(property_id, "income-expense", "months"), {"year": year}
        )

    def code100_sum(self, property_id, year=None, month=None, day=None) -> Decimal:
        """分類コード100（家賃収入）の総額合計"""
        return self._get_sum(property_id, "code100sum", year, month, day)

    def code140_sum(self, property_id, year=None, month=None, day=None) -> Decimal:
        """分類コード140（その他収入）の総額合計"""
        return self._get_sum(property_id, "code140sum", year, month, day)

    def code200_amount_sum(self, property_id, year=None, month=None, day=None) -> Decimal:
        """分類コード200（建物管理費）の本体金額合計"""
        return self._get_sum(property_id, "code200amountsum", year, month, day)

    def code200_tax_sum(self, property_id, year=None, month=None, day=None) -> Decimal:
        """分類コード200（建物管理費）の消費税合計"""
        return self._get_sum(property_id, "code200taxsum", year, month, day)

    # ------------------------------------------------------------------
    # 入力マニュアル
    # ------------------------------------------------------------------

    def list_input_manual(
        self, property_id, year: Optional[int] = None, month: Optional[int] = None
    ) -> List[InputManualEntry]:
        return self._get_json(
            self._property_path(property_id, "input-manual"),
            _period_params(year, month),
            model=InputManualEntry,
            many=True,
        )

    def create_input_manual(self, property_id, payload: Dict[str, Any]) -> InputManualEntry:
        return self._post_json(
            self._property_path(property_id, "input-manual"), payload, model=InputManualEntry
        )

    def list_input_manual_years(self, property_id) -> List[int]:
        return self._get_list(self._property_path(property_id, "input-manual", "years"))

    def list_input_manual_months(self, property_id, year: int) -> List[int]:
        return self._get_list(
            self._property_path(property_id, "input-manual", "months"), {"year": year}
        )

    # ------------------------------------------------------------------
    # 過去資料
    # ------------------------------------------------------------------

    def list_past_documents(self, property_id) -> List[PastDocument]:
        return self._get_json(
            self._property_path(property_id, "past-documents"), model=PastDocument, many=True
        )

    def upload_past_document(
        self, property_id, file_name: str, content: bytes, content_type: Optional[str] = None
    ) -> None:
        files = {"file": (file_name, content, content_type or "application/octet-stream")}
        self.request("POST", self._property_path(property_id, "past-documents", "upload"), files=files)
        logger.info(f"Uploaded past document for property {property_id}: {file_name}")

    def download_past_document(self, property_id, document_id: int) -> requests.Response:
        """ダウンロード（バイナリはそのまま呼び出し元へ）"""
        return self.request(
            "GET", self._property_path(property_id, "past-documents", document_id, "download")
        )

    def delete_past_document(self, property_id, document_id: int) -> None:
        self.request("DELETE", self._property_path(property_id, "past-documents", document_id))


def get_backend_client() -> BackendClient:
    """バックエンドクライアントの依存性注入"""
    return BackendClient()
