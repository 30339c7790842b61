"""
バックエンドとやり取りするレコード定義
JSONはcamelCase（一部 created_at のみsnake_case）
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class BackendModel(BaseModel):
    """バックエンドJSONの共通設定"""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
        extra="ignore",
    )

    def to_payload(self) -> dict:
        """送信用JSON（camelCase）"""
        return self.model_dump(by_alias=True, mode="json")


class EntryType(str, Enum):
    """収入支出区分"""

    INCOME = "INCOME"
    EXPENSE = "EXPENSE"


class WorkProgress(str, Enum):
    """作業進捗チェック"""

    COMPLETED = "COMPLETED"
    IN_PROGRESS = "IN_PROGRESS"


# 作業進捗の表示ラベル
WORK_PROGRESS_LABELS = {
    WorkProgress.COMPLETED: "●",
    WorkProgress.IN_PROGRESS: "確認中",
}


# ---------------------------------------------------------------------------
# 物件・レントロール
# ---------------------------------------------------------------------------


class Property(BackendModel):
    """物件"""

    id: Optional[int] = None
    name: str


class PropertyCreate(BackendModel):
    name: str = ""


class RentRollEntry(BackendModel):
    """レントロール（貸室ごとの契約条件）"""

    id: Optional[int] = None
    floor: Optional[str] = None  # 階
    room_number: Optional[str] = None  # No.
    room_usage: Optional[str] = None  # 用途
    contractor: Optional[str] = None  # 契約者
    contract_date: Optional[str] = None  # 原契約日
    rental_area: Optional[float] = None  # 賃貸面積
    rent: Optional[float] = None  # 賃料
    maintenance_fee: Optional[float] = None  # 共益費
    tax: Optional[float] = None  # 消費税
    total_rent: Optional[float] = None  # 共込賃料
    unit_price: Optional[float] = None  # 坪単価
    parking_fee: Optional[float] = None  # 駐車場（税込）
    bike_parking_fee: Optional[float] = None  # バイク
    bicycle_parking_fee: Optional[float] = None  # 駐輪場
    storage_fee: Optional[float] = None  # 倉庫
    total_fee: Optional[float] = None  # 合計
    bicycle_parking_number: Optional[str] = None  # 駐輪場No.
    renewal_fee: Optional[float] = None  # 更新料（税込）
    created_at: Optional[str] = None  # "yyyy/MM/dd"

    def label(self) -> str:
        """部屋選択プルダウンの表示"""
        return f"{self.floor}階 No.{self.room_number} {self.room_usage} {self.contractor}"


class RentRollCreate(BackendModel):
    """レントロール登録（画面入力は文字列のまま送信）"""

    floor: str = ""
    room_number: str = ""
    room_usage: str = ""
    contractor: str = ""
    contract_date: str = ""
    rental_area: str = ""
    rent: str = ""
    maintenance_fee: str = ""
    tax: str = ""
    total_rent: str = ""
    unit_price: str = ""
    parking_fee: str = ""
    bike_parking_fee: str = ""
    bicycle_parking_fee: str = ""
    storage_fee: str = ""
    total_fee: str = ""
    bicycle_parking_number: str = ""
    renewal_fee: str = ""


# ---------------------------------------------------------------------------
# 預託金・水道光熱費・水道料
# ---------------------------------------------------------------------------


class Deposit(BackendModel):
    """預託金等"""

    id: Optional[int] = None
    rent_roll: Optional[RentRollEntry] = None
    deposit: Optional[float] = None  # 敷金
    suubiki: Optional[float] = None  # 数引
    guarantee_money: Optional[float] = None  # 保証金
    reikin: Optional[float] = None  # 礼金


class DepositForm(BackendModel):
    """預託金の登録・編集フォーム"""

    rent_roll_id: Optional[int] = None
    deposit: float = 0
    suubiki: float = 0
    guarantee_money: float = 0
    reikin: float = 0


class UtilityExpense(BackendModel):
    """水道光熱通信料"""

    id: Optional[int] = None
    rent_roll: Optional[RentRollEntry] = None
    electricity: Optional[float] = None
    water: Optional[float] = None
    gas: Optional[float] = None
    other1: Optional[float] = None
    other2: Optional[float] = None
    created_at: Optional[str] = None


class UtilityExpenseForm(BackendModel):
    """水道光熱費の登録・編集フォーム"""

    rent_roll_id: Optional[int] = None
    electricity: float = 0
    water: float = 0
    gas: float = 0
    other1: float = 0
    other2: float = 0


class WaterFeeReading(BackendModel):
    """水道メーター検針"""

    id: Optional[int] = None
    rent_roll_id: Optional[int] = None
    previous_reading: Optional[float] = None
    current_reading: Optional[float] = None
    created_at: Optional[str] = None


# ---------------------------------------------------------------------------
# 月額家賃入金
# ---------------------------------------------------------------------------


class MonthlyRentIncome(BackendModel):
    """月額家賃入金明細"""

    id: Optional[int] = None
    rent_roll_id: Optional[int] = None
    year: Optional[int] = None
    month: Optional[int] = None
    contractor_payment_date: Optional[str] = None  # 当月入金（契約者）
    contractor_payment_amount: Optional[float] = None
    substitute_payment_date: Optional[str] = None  # 当月入金（代位弁済）
    substitute_payment_amount: Optional[float] = None
    substitute_payer: Optional[str] = None


class HistoryMonth(BackendModel):
    year: int
    month: int
    income_amount: float = 0
    difference_amount: float = 0


class MonthlyRentIncomeHistoryEntry(BackendModel):
    """月額家賃入金履歴"""

    rent_roll_id: Optional[int] = None
    past_difference_total: float = 0
    months: List[HistoryMonth] = Field(default_factory=list)
    cumulative_difference: float = 0


class UncollectedAdvancePayment(BackendModel):
    """未収金・前受金"""

    id: Optional[int] = None
    rent_roll_id: Optional[int] = None
    details: Optional[str] = None
    guarantee_company: Optional[str] = None
    notes: Optional[str] = None
    contact_info: Optional[str] = None
    pre_difference: Optional[float] = None
    deposit_adjustment: Optional[float] = None
    post_move_in_payment: Optional[float] = None
    uncollectible: Optional[float] = None
    year: Optional[int] = None
    month: Optional[int] = None


class UncollectedPaymentForm(BackendModel):
    """未収金の登録フォーム（部屋番号で指定）"""

    room_number: str = ""
    details: str = ""
    guarantee_company: str = ""
    notes: str = ""
    contact_info: str = ""
    pre_difference: float = 0
    deposit_adjustment: float = 0
    post_move_in_payment: float = 0
    uncollectible: float = 0


# ---------------------------------------------------------------------------
# 収入支出明細・入力マニュアル・過去資料
# ---------------------------------------------------------------------------


class IncomeExpenseEntry(BackendModel):
    """収入支出明細"""

    id: Optional[int] = None
    created_at: Optional[str] = Field(None, alias="created_at")
    type: Optional[EntryType] = None
    partner: Optional[str] = None  # 取引先
    code: Optional[str] = None  # 分類コード
    subject: Optional[str] = None  # 科目
    amount: Optional[float] = None  # 本体金額
    tax: Optional[float] = None  # 消費税
    total: Optional[float] = None  # 総額
    details: Optional[str] = None  # 内容


class IncomeExpenseForm(BackendModel):
    """収入支出の登録フォーム（created_at は YYYY-MM-DD）"""

    created_at: str = Field("", alias="created_at")
    type: str = ""
    partner: str = ""
    code: str = ""
    subject: str = ""
    amount: str = ""
    tax: str = ""
    total: str = ""
    details: str = ""


class InputManualEntry(BackendModel):
    """入力マニュアル（作業チェックリスト）"""

    id: Optional[int] = None
    order: Optional[int] = None
    sheet_name: Optional[str] = None
    work_progress: Optional[WorkProgress] = None
    work_content: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="created_at")

    @property
    def work_progress_label(self) -> str:
        if self.work_progress is None:
            return ""
        return WORK_PROGRESS_LABELS.get(self.work_progress, self.work_progress.value)


class InputManualForm(BackendModel):
    sheet_name: str = ""
    work_progress: str = ""
    work_content: str = ""
    created_at: str = Field("", alias="created_at")


class PastDocument(BackendModel):
    """過去資料"""

    id: Optional[int] = None
    file_name: Optional[str] = None


# ---------------------------------------------------------------------------
# 画面操作のリクエスト
# ---------------------------------------------------------------------------


class WaterFeeForm(BackendModel):
    """水道料の登録フォーム（前回指針は未指定なら0）"""

    rent_roll_id: Optional[int] = None
    previous_reading: float = 0
    current_reading: float = 0


class HistoryDifferenceUpdate(BackendModel):
    """入金履歴の差額編集"""

    year: int
    month: int
    difference_amount: float = 0


class TrancheUpdate(BackendModel):
    position: int
    rate: Optional[float] = None
    rounding: Optional[Literal["UP", "DOWN"]] = None
    rounding_unit: Optional[int] = None
    adds_advance: Optional[bool] = None
    previous_adjustment: Optional[float] = None
    note: Optional[str] = None
    bank: Optional[str] = None
    branch: Optional[str] = None
    account_type: Optional[str] = None
    account_number: Optional[str] = None
    account_holder: Optional[str] = None


class ReportConfigurationUpdate(BackendModel):
    """収支報告書設定の部分更新（未指定の項目は変更しない）"""

    utility_amount: Optional[float] = None
    utility_tax: Optional[float] = None
    repair_amount: Optional[float] = None
    repair_tax: Optional[float] = None
    tenant_amount: Optional[float] = None
    tenant_tax: Optional[float] = None
    other_amount: Optional[float] = None
    other_tax: Optional[float] = None
    mortgage_total: Optional[float] = None
    property_tax_total: Optional[float] = None
    reserve_total: Optional[float] = None
    rent_account_bank: Optional[str] = None
    rent_account_branch: Optional[str] = None
    rent_account_type: Optional[str] = None
    rent_account_number: Optional[str] = None
    rent_account_holder: Optional[str] = None
    tranches: List[TrancheUpdate] = Field(default_factory=list)


class MemoUpdate(BackendModel):
    """「内容の編集」の保存"""

    field_key: str
    value: str = ""
