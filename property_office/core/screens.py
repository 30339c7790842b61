"""
画面ごとの状態と取得・更新処理

各画面は選択中の期間・取得済みデータ・表示行・エラーを自前で保持し、
明示的な取得関数でバックエンドから読み込む。
依存する取得（レントロール → 台帳）は順番に実行し、
読み込みごとに世代番号を振って古い応答は破棄する。
取得に失敗した場合は error を設定し、直前の表示行はそのまま残す。
"""

from calendar import monthrange
from datetime import date
from typing import Any, Callable, Dict, List, Optional
import logging

import requests
from sqlalchemy.orm import Session

from property_office.config import settings
from property_office.core import ledger_merge, report_store
from property_office.core.periods import (
    PeriodSelection,
    format_created_at,
    is_current_month,
    rolling_months,
)
from property_office.core.report_generator import report_generator
from property_office.core.validation import (
    is_blank,
    require,
    require_fields,
)
from property_office.schemas import (
    Deposit,
    DepositForm,
    EntryType,
    IncomeExpenseEntry,
    IncomeExpenseForm,
    InputManualEntry,
    InputManualForm,
    MonthlyRentIncome,
    MonthlyRentIncomeHistoryEntry,
    PastDocument,
    Property,
    RentRollCreate,
    RentRollEntry,
    UncollectedAdvancePayment,
    UncollectedPaymentForm,
    UtilityExpense,
    UtilityExpenseForm,
    WaterFeeReading,
    WorkProgress,
    WORK_PROGRESS_LABELS,
)
from property_office.services.backend_client import BackendClient, BackendError

logger = logging.getLogger(__name__)

FETCH_ERROR_PREFIX = "データの取得中にエラーが発生しました: "

SELECT_RENT_ROLL_MESSAGE = "RentRollエントリを選択してください。"
SELECT_ROOM_MESSAGE = "部屋を選択してください。"
SELECT_ROOM_RENT_ROLL_MESSAGE = "部屋(RentRoll)を選択してください。"
INVALID_ROOM_NUMBER_MESSAGE = "選択した部屋番号が無効です。"
MISSING_RENT_ROLL_MESSAGE = "RentRollデータが存在しません。"
PROPERTY_NAME_MESSAGE = "物件名を入力してください。"
SELECT_MONTH_MESSAGE = "月を選択してください。"

# 物件ダッシュボードの画面一覧
SCREEN_INDEX = [
    {"key": "rentroll", "title": "レントロール"},
    {"key": "deposits", "title": "預託金等"},
    {"key": "utility-expenses", "title": "水道光熱通信料"},
    {"key": "water-fees", "title": "水道料明細"},
    {"key": "monthly-rent-income", "title": "月額家賃入金明細"},
    {"key": "monthly-rent-income-history", "title": "月額家賃入金履歴"},
    {"key": "uncollected-advance-payments", "title": "未収金前受金"},
    {"key": "income-expense", "title": "収入支出明細"},
    {"key": "report", "title": "収支報告"},
    {"key": "input-manual", "title": "入力マニュアル"},
    {"key": "past-documents", "title": "過去資料"},
]

# レントロール登録フォームの項目名
RENT_ROLL_FIELD_LABELS = {
    "floor": "階",
    "roomNumber": "No.",
    "roomUsage": "用途",
    "contractor": "契約者",
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

RENT_ROLL_OPTIONAL_FIELDS = {"bicycleParkingNumber"}

# 入力マニュアルのシート名
INPUT_MANUAL_SHEET_NAMES = [
    "表紙",
    "物件概要",
    "レントロール",
    "水道光熱通信料",
    "預託金等",
    "駐車場契約状況",
    "駐輪場契約状況",
    "水道料明細",
    "月額家賃入金明細",
    "月額家賃入金履歴",
    "未収金前受金",
    "収入支出明細",
    "収支報告",
    "リーシングレポート",
    "管理作業実績表",
    "駐車場契約内容",
    "請求書",
    "水道料金表",
]


class MissingDataError(Exception):
    """画面の前提となるデータがない"""


def _parse_float(value) -> Optional[float]:
    """数値に変換できない入力は None として送る"""
    if value is None or value == "":
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


class Screen:
    """画面の共通処理"""

    title = ""

    def __init__(
        self,
        client: BackendClient,
        property_id=None,
        selection: Optional[PeriodSelection] = None,
    ):
        self.client = client
        self.property_id = property_id
        self.selection = selection if selection is not None else PeriodSelection()
        self.rows: List[Dict] = []
        self.error: Optional[str] = None
        self.alert: Optional[str] = None
        self.generation = 0

    # ------------------------------------------------------------------
    # 読み込み
    # ------------------------------------------------------------------

    def fetch(self) -> Dict[str, Any]:
        raise NotImplementedError

    def apply(self, result: Dict[str, Any]) -> None:
        for name, value in result.items():
            setattr(self, name, value)
        self.rows = self.build_rows()

    def build_rows(self) -> List[Dict]:
        return []

    def load(self) -> bool:
        """
        データを再取得して表示行を置き換える
        失敗時・古い応答の場合は False（表示行は変更しない）
        """
        self.generation += 1
        token = self.generation

        try:
            result = self.fetch()
        except BackendError as e:
            if token == self.generation:
                self.error = f"{FETCH_ERROR_PREFIX}{e.message}"
            logger.warning(f"{self.title} fetch failed: {e}")
            return False
        except MissingDataError as e:
            if token == self.generation:
                self.error = str(e)
            logger.warning(f"{self.title}: {e}")
            return False

        if token != self.generation:
            logger.debug(f"{self.title}: stale response discarded (generation {token})")
            return False

        self.apply(result)
        self.error = None
        return True

    # ------------------------------------------------------------------
    # 期間選択
    # ------------------------------------------------------------------

    def select_year(self, year: Optional[int]) -> bool:
        self.selection.select_year(year)
        return self.load()

    def select_month(self, month: Optional[int]) -> bool:
        self.selection.select_month(month)
        return self.load()

    def select_period(self, year: Optional[int], month: Optional[int] = None) -> bool:
        """年・月をまとめて指定（読み込みは1回）"""
        self.selection.select_year(year)
        self.selection.select_month(month)
        return self.load()

    # ------------------------------------------------------------------
    # 更新
    # ------------------------------------------------------------------

    def _mutate(self, failure_message: str, func: Callable, *args, **kwargs):
        """
        登録・更新・削除の実行
        失敗時は alert にメッセージを設定して None を返す
        """
        self.alert = None
        try:
            return func(*args, **kwargs)
        except BackendError as e:
            self.alert = f"{failure_message}: {e.message}"
            logger.error(f"{self.title}: {failure_message} - {e}")
            return None

    def view(self) -> Dict:
        return {
            "title": self.title,
            "propertyId": self.property_id,
            "selection": self.selection.as_dict(),
            "rows": self.rows,
            "error": self.error,
        }


class RentRollJoinedScreen(Screen):
    """レントロールと突き合わせる台帳画面（初期表示は当月）"""

    def __init__(self, client, property_id, selection=None, today: Optional[date] = None):
        super().__init__(
            client, property_id, selection or PeriodSelection.current_month(today)
        )
        self.today = today
        self.rent_roll: List[RentRollEntry] = []

    def fetch_rent_roll(self) -> List[RentRollEntry]:
        return self.client.list_rent_roll(self.property_id)

    def rent_roll_options(self) -> List[Dict]:
        """部屋選択プルダウン（選択年月のレントロール）"""
        rolls = ledger_merge.filter_rent_roll(
            self.rent_roll, self.selection.year, self.selection.month
        )
        return [{"id": roll.id, "label": roll.label()} for roll in rolls]

    def find_rent_roll(self, rent_roll_id) -> Optional[RentRollEntry]:
        return next((r for r in self.rent_roll if r.id == rent_roll_id), None)


# ---------------------------------------------------------------------------
# 物件一覧
# ---------------------------------------------------------------------------


class PropertyDirectoryScreen(Screen):
    """物件一覧・物件登録"""

    title = "物件一覧"

    def __init__(self, client: BackendClient):
        super().__init__(client)
        self.properties: List[Property] = []

    def fetch(self):
        return {"properties": self.client.list_properties()}

    def build_rows(self):
        return [{"id": p.id, "name": p.name} for p in self.properties]

    def create(self, name: str) -> Optional[Property]:
        require(not is_blank(name), PROPERTY_NAME_MESSAGE)
        saved = self._mutate("登録に失敗しました", self.client.create_property, name.strip())
        if saved is not None:
            self.properties.append(saved)
            self.rows = self.build_rows()
            logger.info(f"Property created: {saved.id} {saved.name}")
        return saved


# ---------------------------------------------------------------------------
# レントロール
# ---------------------------------------------------------------------------


class RentRollScreen(RentRollJoinedScreen):
    """レントロール"""

    title = "レントロール"

    def fetch(self):
        return {"rent_roll": self.fetch_rent_roll()}

    def build_rows(self):
        rolls = ledger_merge.filter_rent_roll(
            self.rent_roll, self.selection.year, self.selection.month
        )
        return [roll.model_dump(by_alias=True, mode="json") for roll in rolls]

    def create(self, form: RentRollCreate) -> Optional[RentRollEntry]:
        """駐輪場No.以外はすべて必須"""
        values = form.to_payload()
        required = [k for k in RENT_ROLL_FIELD_LABELS if k not in RENT_ROLL_OPTIONAL_FIELDS]
        require_fields(values, required)

        saved = self._mutate(
            "登録エラー", self.client.create_rent_roll, self.property_id, values
        )
        if saved is not None:
            self.rent_roll.append(saved)
            self.rows = self.build_rows()
            logger.info(f"Rent roll created: property={self.property_id}, id={saved.id}")
        return saved

    def view(self):
        data = super().view()
        data["fieldLabels"] = RENT_ROLL_FIELD_LABELS
        return data


# ---------------------------------------------------------------------------
# 預託金等
# ---------------------------------------------------------------------------


class DepositScreen(RentRollJoinedScreen):
    """預託金等（登録・編集・削除）"""

    title = "預託金等"

    def __init__(self, client, property_id, selection=None, today=None):
        super().__init__(client, property_id, selection, today)
        self.deposits: List[Deposit] = []

    def fetch(self):
        rent_roll = self.fetch_rent_roll()
        deposits = self.client.list_deposits(self.property_id)
        return {"rent_roll": rent_roll, "deposits": deposits}

    def build_rows(self):
        return ledger_merge.deposit_rows(
            self.rent_roll, self.deposits, self.selection.year, self.selection.month
        )

    def create(self, form: DepositForm) -> Optional[Deposit]:
        require(form.rent_roll_id is not None, SELECT_RENT_ROLL_MESSAGE)
        saved = self._mutate(
            "登録に失敗しました", self.client.create_deposit, self.property_id, form
        )
        if saved is not None:
            self.deposits.append(saved)
            self.rows = self.build_rows()
        return saved

    def update(self, deposit_id: int, form: DepositForm) -> Optional[Deposit]:
        saved = self._mutate(
            "デポジットの更新に失敗しました",
            self.client.update_deposit,
            self.property_id,
            deposit_id,
            form,
        )
        if saved is not None:
            self.deposits = ledger_merge.replace_by_id(self.deposits, saved)
            self.rows = self.build_rows()
            logger.info(f"Deposit updated: {deposit_id}")
        return saved

    def delete(self, deposit_id: int) -> bool:
        self._mutate(
            "デポジット削除に失敗しました",
            self.client.delete_deposit,
            self.property_id,
            deposit_id,
        )
        if self.alert:
            return False
        self.deposits = [d for d in self.deposits if d.id != deposit_id]
        self.rows = self.build_rows()
        logger.info(f"Deposit deleted: {deposit_id}")
        return True

    def view(self):
        data = super().view()
        data["rentRollOptions"] = self.rent_roll_options()
        return data


# ---------------------------------------------------------------------------
# 水道光熱通信料
# ---------------------------------------------------------------------------


class UtilityExpenseScreen(RentRollJoinedScreen):
    """水道光熱通信料（登録・編集・削除）"""

    title = "水道光熱通信料"

    def __init__(self, client, property_id, selection=None, today=None):
        super().__init__(client, property_id, selection, today)
        self.expenses: List[UtilityExpense] = []

    def fetch(self):
        rent_roll = self.fetch_rent_roll()
        expenses = self.client.list_utility_expenses(self.property_id)
        return {"rent_roll": rent_roll, "expenses": expenses}

    def build_rows(self):
        return ledger_merge.utility_rows(
            self.rent_roll, self.expenses, self.selection.year, self.selection.month
        )

    def create(self, form: UtilityExpenseForm) -> Optional[UtilityExpense]:
        require(form.rent_roll_id is not None, SELECT_RENT_ROLL_MESSAGE)
        saved = self._mutate(
            "登録に失敗しました", self.client.create_utility_expense, self.property_id, form
        )
        if saved is not None:
            self.expenses.append(saved)
            self.rows = self.build_rows()
        return saved

    def update(self, utility_id: int, form: UtilityExpenseForm) -> Optional[UtilityExpense]:
        saved = self._mutate(
            "水道光熱費の更新に失敗しました",
            self.client.update_utility_expense,
            self.property_id,
            utility_id,
            form,
        )
        if saved is not None:
            self.expenses = ledger_merge.replace_by_id(self.expenses, saved)
            self.rows = self.build_rows()
            logger.info(f"Utility expense updated: {utility_id}")
        return saved

    def delete(self, utility_id: int) -> bool:
        self._mutate(
            "水道光熱費削除に失敗しました",
            self.client.delete_utility_expense,
            self.property_id,
            utility_id,
        )
        if self.alert:
            return False
        self.expenses = [e for e in self.expenses if e.id != utility_id]
        self.rows = self.build_rows()
        logger.info(f"Utility expense deleted: {utility_id}")
        return True

    def view(self):
        data = super().view()
        data["rentRollOptions"] = self.rent_roll_options()
        return data


# ---------------------------------------------------------------------------
# 水道料明細
# ---------------------------------------------------------------------------


class WaterFeeScreen(RentRollJoinedScreen):
    """水道料明細（使用量 × 単価）"""

    title = "水道料明細"

    def __init__(self, client, property_id, selection=None, today=None):
        super().__init__(client, property_id, selection, today)
        self.readings: List[WaterFeeReading] = []

    def fetch(self):
        rent_roll = self.fetch_rent_roll()
        readings = self.client.list_water_fees(self.property_id)
        return {"rent_roll": rent_roll, "readings": readings}

    def build_rows(self):
        return ledger_merge.water_fee_rows(
            self.rent_roll,
            self.readings,
            self.selection.year,
            self.selection.month,
            settings.WATER_UNIT_RATE,
        )

    def create(
        self, rent_roll_id, current_reading, previous_reading=0
    ) -> Optional[WaterFeeReading]:
        """今回指針の登録（記録日は本日）"""
        roll = self.find_rent_roll(rent_roll_id)
        require(roll is not None, SELECT_ROOM_MESSAGE)

        reading = WaterFeeReading(
            rent_roll_id=roll.id,
            previous_reading=_parse_float(previous_reading) or 0,
            current_reading=_parse_float(current_reading) or 0,
            created_at=format_created_at(self.today or date.today()),
        )
        saved = self._mutate(
            "保存に失敗しました", self.client.create_water_fee, self.property_id, reading
        )
        if saved is not None:
            self.readings.append(saved)
            self.rows = self.build_rows()
        return saved

    def view(self):
        data = super().view()
        data["unitRate"] = settings.WATER_UNIT_RATE
        data["rentRollOptions"] = self.rent_roll_options()
        return data


# ---------------------------------------------------------------------------
# 月額家賃入金明細
# ---------------------------------------------------------------------------


class MonthlyRentIncomeScreen(RentRollJoinedScreen):
    """月額家賃入金明細（請求額と入金額の差額）"""

    title = "月額家賃入金明細"

    def __init__(self, client, property_id, selection=None, today=None):
        super().__init__(client, property_id, selection, today)
        self.incomes: List[MonthlyRentIncome] = []

    def fetch(self):
        rent_roll = self.fetch_rent_roll()
        incomes = self.client.list_monthly_rent_income(
            self.property_id, self.selection.year, self.selection.month
        )
        return {"rent_roll": rent_roll, "incomes": incomes}

    def build_rows(self):
        return ledger_merge.monthly_income_rows(
            self.rent_roll, self.incomes, self.selection.year, self.selection.month
        )

    def create(self, income: MonthlyRentIncome) -> Optional[MonthlyRentIncome]:
        """選択中の年月で登録し、登録後は再取得"""
        require(self.selection.month is not None, SELECT_MONTH_MESSAGE)
        require(income.rent_roll_id is not None, SELECT_ROOM_RENT_ROLL_MESSAGE)
        entry = income.model_copy(
            update={"year": self.selection.year, "month": self.selection.month}
        )
        saved = self._mutate(
            "登録失敗", self.client.create_monthly_rent_income, self.property_id, entry
        )
        if saved is not None:
            self.load()
        return saved

    def view(self):
        data = super().view()
        data["rentRollOptions"] = self.rent_roll_options()
        return data


# ---------------------------------------------------------------------------
# 月額家賃入金履歴
# ---------------------------------------------------------------------------


class MonthlyRentIncomeHistoryScreen(RentRollJoinedScreen):
    """
    月額家賃入金履歴
    直近の月を並べて表示し、編集モードでは当月の差額のみ変更できる
    """

    title = "月額家賃入金履歴"

    def __init__(self, client, property_id, selection=None, today=None):
        super().__init__(client, property_id, selection, today)
        self.history: List[MonthlyRentIncomeHistoryEntry] = []
        self.editing = False
        self.pending: Dict[int, float] = {}

    def window(self):
        """表示する月（月未選択なら選択年の12月まで）"""
        today = self.today or date.today()
        year = self.selection.year or today.year
        month = self.selection.month or 12
        return rolling_months(year, month, settings.HISTORY_MONTHS)

    def fetch(self):
        rent_roll = self.fetch_rent_roll()
        history = self.client.list_monthly_rent_income_history(self.property_id)
        return {"rent_roll": rent_roll, "history": history}

    def build_rows(self):
        rows = ledger_merge.history_rows(
            self.rent_roll,
            self.history,
            self.selection.year,
            self.selection.month,
            self.window(),
            self.today,
        )
        for row in rows:
            value = self.pending.get(row["rentRollId"])
            if value is None:
                continue
            for cell in row["months"]:
                if cell["editable"]:
                    cell["differenceAmount"] = value
        return rows

    def start_edit(self) -> None:
        self.editing = True
        self.pending = {}

    def cancel_edit(self) -> None:
        self.editing = False
        self.pending = {}
        self.rows = self.build_rows()

    def edit_difference(self, rent_roll_id: int, year: int, month: int, value) -> bool:
        """当月以外・閲覧モード・表示していない部屋の編集は無視する"""
        if not self.editing or not is_current_month(year, month, self.today):
            logger.debug(f"Ignored history edit: rent_roll={rent_roll_id} {year}/{month}")
            return False
        if not any(row["rentRollId"] == rent_roll_id for row in self.rows):
            logger.debug(f"Ignored history edit for unlisted rent roll {rent_roll_id}")
            return False
        amount = _parse_float(value)
        self.pending[rent_roll_id] = amount if amount is not None else 0.0
        self.rows = self.build_rows()
        return True

    def _income_amount(self, rent_roll_id: int, year: int, month: int) -> float:
        entry = ledger_merge.find_first(self.history, rent_roll_id)
        if entry is None:
            return 0.0
        cell = next((c for c in entry.months if c.year == year and c.month == month), None)
        return cell.income_amount if cell else 0.0

    def save(self) -> bool:
        """変更した差額を送信（入金額は既存値のまま）し、再取得して閲覧モードに戻す"""
        today = self.today or date.today()
        for rent_roll_id, difference in list(self.pending.items()):
            income_amount = self._income_amount(rent_roll_id, today.year, today.month)
            self._mutate(
                "更新失敗",
                self.client.update_monthly_rent_income_history,
                self.property_id,
                rent_roll_id,
                today.year,
                today.month,
                income_amount,
                difference,
            )
            if self.alert:
                return False
            del self.pending[rent_roll_id]
            logger.info(
                f"History difference updated: rent_roll={rent_roll_id}, "
                f"{today.year}/{today.month} -> {difference}"
            )

        self.editing = False
        self.load()
        return True

    def view(self):
        data = super().view()
        data["window"] = [{"year": y, "month": m} for y, m in self.window()]
        data["mode"] = "edit" if self.editing else "view"
        return data


# ---------------------------------------------------------------------------
# 未収金・前受金
# ---------------------------------------------------------------------------


class UncollectedPaymentScreen(RentRollJoinedScreen):
    """未収金前受金（部屋番号で登録）"""

    title = "未収金前受金"

    def __init__(self, client, property_id, selection=None, today=None):
        super().__init__(client, property_id, selection, today)
        self.payments: List[UncollectedAdvancePayment] = []

    def fetch(self):
        rent_roll = self.fetch_rent_roll()
        if not rent_roll:
            raise MissingDataError(MISSING_RENT_ROLL_MESSAGE)
        payments = self.client.list_uncollected_payments(
            self.property_id, self.selection.year, self.selection.month
        )
        return {"rent_roll": rent_roll, "payments": payments}

    def build_rows(self):
        return ledger_merge.uncollected_rows(self.payments, self.rent_roll)

    def create(self, form: UncollectedPaymentForm) -> Optional[UncollectedAdvancePayment]:
        require(self.selection.month is not None, SELECT_MONTH_MESSAGE)
        roll = next((r for r in self.rent_roll if r.room_number == form.room_number), None)
        require(roll is not None, INVALID_ROOM_NUMBER_MESSAGE)

        values = form.model_dump(exclude={"room_number"})
        payment = UncollectedAdvancePayment(
            rent_roll_id=roll.id,
            year=self.selection.year,
            month=self.selection.month,
            **values,
        )
        saved = self._mutate(
            "新規登録失敗", self.client.create_uncollected_payment, self.property_id, payment
        )
        if saved is not None:
            self.load()
        return saved

    def view(self):
        data = super().view()
        data["roomNumbers"] = [r.room_number for r in self.rent_roll if r.room_number]
        return data


# ---------------------------------------------------------------------------
# 収入支出明細・入力マニュアル（年 → 月の絞り込み）
# ---------------------------------------------------------------------------


class DrillDownScreen(Screen):
    """年・月リストをバックエンドから取得する画面（初期表示は全期間）"""

    def __init__(self, client, property_id, selection=None):
        super().__init__(client, property_id, selection)
        self.years: List[int] = []
        self.months: List[int] = []

    def fetch_years(self) -> List[int]:
        raise NotImplementedError

    def fetch_months(self, year: int) -> List[int]:
        raise NotImplementedError

    def fetch_periods(self) -> Dict[str, List[int]]:
        years = self.fetch_years()
        months = self.fetch_months(self.selection.year) if self.selection.year else []
        return {"years": years, "months": months}

    def view(self):
        data = super().view()
        data["years"] = self.years
        data["months"] = self.months
        return data


class IncomeExpenseLedgerScreen(DrillDownScreen):
    """収入支出明細"""

    title = "収入支出明細"

    REQUIRED_FIELDS = ["created_at", "type", "partner", "code", "subject", "amount", "tax", "total"]

    def __init__(self, client, property_id, selection=None):
        super().__init__(client, property_id, selection)
        self.entries: List[IncomeExpenseEntry] = []

    def fetch_years(self):
        return self.client.list_income_expense_years(self.property_id)

    def fetch_months(self, year):
        return self.client.list_income_expense_months(self.property_id, year)

    def fetch(self):
        result = self.fetch_periods()
        result["entries"] = self.client.list_income_expense(
            self.property_id, self.selection.year, self.selection.month
        )
        return result

    def _rows_of(self, entry_type: EntryType) -> List[Dict]:
        return [
            e.model_dump(by_alias=True, mode="json") for e in self.entries if e.type == entry_type
        ]

    @property
    def income_rows(self) -> List[Dict]:
        return self._rows_of(EntryType.INCOME)

    @property
    def expense_rows(self) -> List[Dict]:
        return self._rows_of(EntryType.EXPENSE)

    def build_rows(self):
        return [e.model_dump(by_alias=True, mode="json") for e in self.entries]

    def create(self, form: IncomeExpenseForm) -> Optional[IncomeExpenseEntry]:
        """登録日は YYYY-MM-DD、送信時に T00:00:00 を付与"""
        require_fields(form.model_dump(), self.REQUIRED_FIELDS)

        payload = {
            "created_at": f"{form.created_at}T00:00:00",
            "type": form.type,
            "partner": form.partner,
            "code": form.code,
            "subject": form.subject,
            "amount": _parse_float(form.amount),
            "tax": _parse_float(form.tax),
            "total": _parse_float(form.total),
            "details": form.details,
        }
        saved = self._mutate(
            "登録失敗", self.client.create_income_expense, self.property_id, payload
        )
        if saved is not None:
            self.entries.insert(0, saved)
            self.rows = self.build_rows()
            logger.info(f"Income/expense entry created: {saved.id} ({saved.code})")
        return saved

    def view(self):
        data = super().view()
        data["income"] = self.income_rows
        data["expense"] = self.expense_rows
        return data


class InputManualScreen(DrillDownScreen):
    """入力マニュアル（作業チェックリスト）"""

    title = "入力マニュアル"

    REQUIRED_FIELDS = ["sheet_name", "work_progress", "work_content", "created_at"]

    def __init__(self, client, property_id, selection=None):
        super().__init__(client, property_id, selection)
        self.entries: List[InputManualEntry] = []

    def fetch_years(self):
        return self.client.list_input_manual_years(self.property_id)

    def fetch_months(self, year):
        return self.client.list_input_manual_months(self.property_id, year)

    def fetch(self):
        result = self.fetch_periods()
        result["entries"] = self.client.list_input_manual(
            self.property_id, self.selection.year, self.selection.month
        )
        return result

    def build_rows(self):
        rows = []
        for entry in self.entries:
            row = entry.model_dump(by_alias=True, mode="json")
            row["workProgressLabel"] = entry.work_progress_label
            rows.append(row)
        return rows

    def create(self, form: InputManualForm) -> Optional[InputManualEntry]:
        require_fields(form.model_dump(), self.REQUIRED_FIELDS)

        payload = {
            "sheetName": form.sheet_name,
            "workProgress": form.work_progress,
            "workContent": form.work_content,
            "created_at": f"{form.created_at}T00:00:00",
        }
        saved = self._mutate(
            "登録失敗", self.client.create_input_manual, self.property_id, payload
        )
        if saved is not None:
            self.entries.append(saved)
            self.rows = self.build_rows()
        return saved

    def view(self):
        data = super().view()
        data["sheetNames"] = INPUT_MANUAL_SHEET_NAMES
        data["workProgressOptions"] = [
            {"value": p.value, "label": WORK_PROGRESS_LABELS[p]} for p in WorkProgress
        ]
        return data


# ---------------------------------------------------------------------------
# 過去資料
# ---------------------------------------------------------------------------


class PastDocumentsScreen(Screen):
    """過去資料（アップロード・ダウンロード・削除）"""

    title = "過去資料"

    def __init__(self, client, property_id):
        super().__init__(client, property_id)
        self.documents: List[PastDocument] = []

    def fetch(self):
        return {"documents": self.client.list_past_documents(self.property_id)}

    def build_rows(self):
        return [{"id": d.id, "fileName": d.file_name} for d in self.documents]

    def upload(self, file_name: str, content: bytes, content_type: Optional[str] = None) -> bool:
        self._mutate(
            "ファイルアップロード失敗",
            self.client.upload_past_document,
            self.property_id,
            file_name,
            content,
            content_type,
        )
        if self.alert:
            return False
        self.load()
        return True

    def download(self, document_id: int) -> Optional[requests.Response]:
        return self._mutate(
            "ファイルダウンロード失敗",
            self.client.download_past_document,
            self.property_id,
            document_id,
        )

    def delete(self, document_id: int) -> bool:
        self._mutate(
            "ファイル削除失敗",
            self.client.delete_past_document,
            self.property_id,
            document_id,
        )
        if self.alert:
            return False
        self.load()
        return True


# ---------------------------------------------------------------------------
# 収支報告
# ---------------------------------------------------------------------------


class ReportScreen(DrillDownScreen):
    """
    収支報告
    4つの合計がすべて取得できた場合のみ報告書を差し替える
    """

    title = "収支報告"

    def __init__(self, client, db: Session, property_id, selection=None):
        super().__init__(client, property_id, selection)
        self.db = db
        self.sums = None
        self.report: Optional[Dict] = None
        self.days: List[int] = []

    def fetch_years(self):
        return self.client.list_income_expense_years(self.property_id)

    def fetch_months(self, year):
        return self.client.list_income_expense_months(self.property_id, year)

    def fetch(self):
        result = self.fetch_periods()
        year, month = self.selection.year, self.selection.month
        result["days"] = list(range(1, monthrange(year, month)[1] + 1)) if year and month else []
        result["sums"] = report_generator.fetch_sums(
            self.client, self.property_id, year, month, self.selection.day
        )
        return result

    def apply(self, result):
        super().apply(result)
        self.rebuild()

    def rebuild(self) -> None:
        """設定・メモの変更を反映（合計は再取得しない）"""
        if self.sums is None:
            return
        config = report_store.get_or_create_configuration(self.db, self.property_id)
        memos = report_store.list_memos(self.db, self.property_id)
        self.report = report_generator.build_report(
            self.sums, config, memos, self.selection.as_dict()
        )

    def select_day(self, day: Optional[int]) -> bool:
        self.selection.select_day(day)
        return self.load()

    def select_period(self, year, month=None, day=None) -> bool:
        self.selection.select_year(year)
        self.selection.select_month(month)
        self.selection.select_day(day)
        return self.load()

    def save_memo(self, field_key: str, value: str) -> None:
        report_store.save_memo(self.db, self.property_id, field_key, value)
        self.rebuild()

    def update_configuration(self, data: Dict) -> None:
        report_store.update_configuration(self.db, self.property_id, data)
        self.rebuild()

    def view(self):
        data = super().view()
        data["days"] = self.days
        data["report"] = self.report
        return data
