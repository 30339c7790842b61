"""
収入支出明細・収支報告のエンドポイント
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query
from fastapi.responses import Response
from sqlalchemy.orm import Session
import logging

from property_office.api.common import drill_down_selection, load_or_raise, raise_for_alert
from property_office.core import report_store
from property_office.core.screens import IncomeExpenseLedgerScreen, ReportScreen
from property_office.models.database import get_db
from property_office.schemas import IncomeExpenseForm, MemoUpdate, ReportConfigurationUpdate
from property_office.services.backend_client import BackendClient, get_backend_client
from property_office.services.export_service import excel_service, pdf_service

logger = logging.getLogger(__name__)

router = APIRouter()

XLSX_MEDIA_TYPE = "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"


# ---------------------------------------------------------------------------
# 収入支出明細
# ---------------------------------------------------------------------------


@router.get("/income-expense")
def get_income_expense(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    """収入・支出に分けて表示（年月未指定は全期間）"""
    screen = IncomeExpenseLedgerScreen(client, property_id, drill_down_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/income-expense", status_code=201)
def create_income_expense(
    property_id: int, body: IncomeExpenseForm, client: BackendClient = Depends(get_backend_client)
):
    screen = IncomeExpenseLedgerScreen(client, property_id)
    saved = screen.create(body)
    raise_for_alert(screen)
    return saved.model_dump(by_alias=True)


@router.get("/income-expense/years")
def get_income_expense_years(property_id: int, client: BackendClient = Depends(get_backend_client)):
    return client.list_income_expense_years(property_id)


@router.get("/income-expense/months")
def get_income_expense_months(
    property_id: int, year: int, client: BackendClient = Depends(get_backend_client)
):
    return client.list_income_expense_months(property_id, year)


# ---------------------------------------------------------------------------
# 収支報告
# ---------------------------------------------------------------------------


def _report_screen(client, db, property_id, year, month, day) -> ReportScreen:
    screen = ReportScreen(client, db, property_id, drill_down_selection(year, month, day))
    return load_or_raise(screen)


def _property_name(client: BackendClient, property_id: int) -> str:
    """出力の見出し用（見つからなければ空）"""
    return next((p.name or "" for p in client.list_properties() if p.id == property_id), "")


@router.get("/report")
def get_report(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    day: Optional[int] = Query(None, ge=0, le=31),
    db: Session = Depends(get_db),
    client: BackendClient = Depends(get_backend_client),
):
    """収支報告書（年・月・日で絞り込み）"""
    return _report_screen(client, db, property_id, year, month, day).view()


@router.get("/report/config")
def get_report_config(property_id: int, db: Session = Depends(get_db)):
    config = report_store.get_or_create_configuration(db, property_id)
    return report_store.configuration_to_dict(config)


@router.put("/report/config")
def update_report_config(
    property_id: int, body: ReportConfigurationUpdate, db: Session = Depends(get_db)
):
    """固定費目・立替金・分配金・口座の設定"""
    data = body.model_dump(exclude_none=True)
    config = report_store.update_configuration(db, property_id, data)
    return report_store.configuration_to_dict(config)


@router.get("/report/memos")
def get_report_memos(property_id: int, db: Session = Depends(get_db)):
    return {
        "keys": report_store.memo_keys(),
        "memos": report_store.list_memos(db, property_id),
    }


@router.put("/report/memos")
def save_report_memo(property_id: int, body: MemoUpdate, db: Session = Depends(get_db)):
    """「内容の編集」の保存"""
    report_store.save_memo(db, property_id, body.field_key, body.value)
    return {"fieldKey": body.field_key, "value": body.value}


@router.get("/report/export.pdf")
def export_report_pdf(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    day: Optional[int] = Query(None, ge=0, le=31),
    db: Session = Depends(get_db),
    client: BackendClient = Depends(get_backend_client),
):
    screen = _report_screen(client, db, property_id, year, month, day)
    content = pdf_service.generate_report_pdf(screen.report, _property_name(client, property_id))
    logger.info(f"Report PDF exported: property={property_id}")
    return Response(
        content=content,
        media_type="application/pdf",
        headers={"Content-Disposition": f'attachment; filename="report_{property_id}.pdf"'},
    )


@router.get("/report/export.xlsx")
def export_report_excel(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    day: Optional[int] = Query(None, ge=0, le=31),
    db: Session = Depends(get_db),
    client: BackendClient = Depends(get_backend_client),
):
    screen = _report_screen(client, db, property_id, year, month, day)
    content = excel_service.generate_report_excel(screen.report, _property_name(client, property_id))
    logger.info(f"Report Excel exported: property={property_id}")
    return Response(
        content=content,
        media_type=XLSX_MEDIA_TYPE,
        headers={"Content-Disposition": f'attachment; filename="report_{property_id}.xlsx"'},
    )
