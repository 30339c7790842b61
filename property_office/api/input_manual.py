"""
入力マニュアルのエンドポイント
"""

from typing import Optional

from fastapi import APIRouter, Depends, Query

from property_office.api.common import drill_down_selection, load_or_raise, raise_for_alert
from property_office.core.screens import InputManualScreen
from property_office.schemas import InputManualForm
from property_office.services.backend_client import BackendClient, get_backend_client

router = APIRouter()


@router.get("/input-manual")
def get_input_manual(
    property_id: int,
    year: Optional[int] = None,
    month: Optional[int] = Query(None, ge=0, le=12),
    client: BackendClient = Depends(get_backend_client),
):
    screen = InputManualScreen(client, property_id, drill_down_selection(year, month))
    return load_or_raise(screen).view()


@router.post("/input-manual", status_code=201)
def create_input_manual(
    property_id: int, body: InputManualForm, client: BackendClient = Depends(get_backend_client)
):
    screen = InputManualScreen(client, property_id)
    saved = screen.create(body)
    raise_for_alert(screen)
    data = saved.model_dump(by_alias=True)
    data["workProgressLabel"] = saved.work_progress_label
    return data


@router.get("/input-manual/years")
def get_input_manual_years(property_id: int, client: BackendClient = Depends(get_backend_client)):
    return client.list_input_manual_years(property_id)


@router.get("/input-manual/months")
def get_input_manual_months(
    property_id: int, year: int, client: BackendClient = Depends(get_backend_client)
):
    return client.list_input_manual_months(property_id, year)
