"""
レントロールと突き合わせる台帳のエンドポイント
年・月の指定がなければ当月を表示
"""

from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import Response

from property_office.api.common import joined_selection, load_or_raise, raise_for_alert
from property_office.core.ledger_generator import ledger_generator
from property_office.core.periods import is_current_month
from property_office.core.screens import (
    DepositScreen,
    MonthlyRentIncomeHistoryScreen,
    MonthlyRentIncomeScreen,
    RentRollScreen,
    SELECT_ROOM_MESSAGE,
    UncollectedPaymentScreen,
    UtilityExpenseScreen,
    WaterFeeScreen,
)
from property_office.core.validation import require
from property_office.schemas import (
    DepositForm,
    HistoryDifferenceUpdate,
    MonthlyRentIncome,
    RentRollCreate,
    UncollectedPaymentForm,
    UtilityExpenseForm,
    WaterFeeForm,
)
from property_office.services.backend_client import BackendClient, get_backend_client
from property_office.services.export_service import excel_service

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------------
# レントロール
# ---------------------------------------------------------------------------


@router.get("/rentroll")
def get_rent_roll(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    screen = RentRollScreen(client, property_id, joined_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/rentroll", status_code=201)
def create_rent_roll(
    property_id: int, body: RentRollCreate, client: BackendClient = Depends(get_backend_client)
):
    screen = RentRollScreen(client, property_id)
    saved = screen.create(body)
    raise_for_alert(screen)
    return saved.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# 預託金等
# ---------------------------------------------------------------------------


@router.get("/deposits")
def get_deposits(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    screen = DepositScreen(client, property_id, joined_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/deposits", status_code=201)
def create_deposit(
    property_id: int, body: DepositForm, client: BackendClient = Depends(get_backend_client)
):
    screen = DepositScreen(client, property_id)
    saved = screen.create(body)
    raise_for_alert(screen)
    return saved.model_dump(by_alias=True)


@router.put("/deposits/{deposit_id}")
def update_deposit(
    property_id: int,
    deposit_id: int,
    body: DepositForm,
    client: BackendClient = Depends(get_backend_client),
):
    screen = DepositScreen(client, property_id)
    saved = screen.update(deposit_id, body)
    raise_for_alert(screen)
    return saved.model_dump(by_alias=True)


@router.delete("/deposits/{deposit_id}")
def delete_deposit(
    property_id: int, deposit_id: int, client: BackendClient = Depends(get_backend_client)
):
    screen = DepositScreen(client, property_id)
    screen.delete(deposit_id)
    raise_for_alert(screen)
    return {"deleted": deposit_id}


# ---------------------------------------------------------------------------
# 水道光熱通信料
# ---------------------------------------------------------------------------


@router.get("/utility-expenses")
def get_utility_expenses(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    screen = UtilityExpenseScreen(client, property_id, joined_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/utility-expenses", status_code=201)
def create_utility_expense(
    property_id: int, body: UtilityExpenseForm, client: BackendClient = Depends(get_backend_client)
):
    screen = UtilityExpenseScreen(client, property_id)
    saved = screen.create(body)
    raise_for_alert(screen)
    return saved.model_dump(by_alias=True)


@router.put("/utility-expenses/{utility_id}")
def update_utility_expense(
    property_id: int,
    utility_id: int,
    body: UtilityExpenseForm,
    client: BackendClient = Depends(get_backend_client),
):
    screen = UtilityExpenseScreen(client, property_id)
    saved = screen.update(utility_id, body)
    raise_for_alert(screen)
    return saved.model_dump(by_alias=True)


@router.delete("/utility-expenses/{utility_id}")
def delete_utility_expense(
    property_id: int, utility_id: int, client: BackendClient = Depends(get_backend_client)
):
    screen = UtilityExpenseScreen(client, property_id)
    screen.delete(utility_id)
    raise_for_alert(screen)
    return {"deleted": utility_id}


# ---------------------------------------------------------------------------
# 水道料明細
# ---------------------------------------------------------------------------


@router.get("/water-fees")
def get_water_fees(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    screen = WaterFeeScreen(client, property_id, joined_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/water-fees", status_code=201)
def create_water_fee(
    property_id: int, body: WaterFeeForm, client: BackendClient = Depends(get_backend_client)
):
    """部屋の存在確認のためレントロールを読み込んでから登録"""
    screen = load_or_raise(WaterFeeScreen(client, property_id))
    saved = screen.create(body.rent_roll_id, body.current_reading, body.previous_reading)
    raise_for_alert(screen)
    return saved.model_dump(by_alias=True)


# ---------------------------------------------------------------------------
# 月額家賃入金明細・履歴
# ---------------------------------------------------------------------------


@router.get("/monthly-rent-income")
def get_monthly_rent_income(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    screen = MonthlyRentIncomeScreen(client, property_id, joined_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/monthly-rent-income", status_code=201)
def create_monthly_rent_income(
    property_id: int,
    body: MonthlyRentIncome,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    """登録対象の年月は選択中の年月（未指定は当月）"""
    screen = MonthlyRentIncomeScreen(client, property_id, joined_selection(year, month))
    saved = screen.create(body)
    raise_for_alert(screen)
    return {"saved": saved.model_dump(by_alias=True), **screen.view()}


@router.get("/monthly-rent-income-history")
def get_monthly_rent_income_history(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    screen = MonthlyRentIncomeHistoryScreen(client, property_id, joined_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/monthly-rent-income-history/{rent_roll_id}")
def update_monthly_rent_income_history(
    property_id: int,
    rent_roll_id: int,
    body: HistoryDifferenceUpdate,
    client: BackendClient = Depends(get_backend_client),
):
    """当月の差額のみ更新可能（それ以外は409、一覧にない部屋は422）"""
    if not is_current_month(body.year, body.month):
        raise HTTPException(status_code=409, detail="当月以外の差額は編集できません。")

    screen = load_or_raise(MonthlyRentIncomeHistoryScreen(client, property_id))
    screen.start_edit()
    require(
        screen.edit_difference(rent_roll_id, body.year, body.month, body.difference_amount),
        SELECT_ROOM_MESSAGE,
    )
    screen.save()
    raise_for_alert(screen)
    return screen.view()


# ---------------------------------------------------------------------------
# 未収金・前受金
# ---------------------------------------------------------------------------


@router.get("/uncollected-advance-payments")
def get_uncollected_payments(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    screen = UncollectedPaymentScreen(client, property_id, joined_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/uncollected-advance-payments", status_code=201)
def create_uncollected_payment(
    property_id: int,
    body: UncollectedPaymentForm,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    """部屋番号はレントロールから引き当てる"""
    screen = load_or_raise(
        UncollectedPaymentScreen(client, property_id, joined_selection(year, month))
    )
    saved = screen.create(body)
    raise_for_alert(screen)
    return {"saved": saved.model_dump(by_alias=True), **screen.view()}


# ---------------------------------------------------------------------------
# 台帳ブック
# ---------------------------------------------------------------------------


@router.get("/ledger-workbook.xlsx")
def export_ledger_workbook(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    """レントロール・預託金等・水道光熱通信料・水道料明細・月額家賃入金明細"""
    selection = joined_selection(year, month)
    frames = ledger_generator.generate_workbook_frames(
        client, property_id, selection.year, selection.month
    )
    content = excel_service.generate_ledger_workbook(frames)
    filename = f"ledger_{property_id}_{selection.year}_{selection.month or 'all'}.xlsx"
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )
