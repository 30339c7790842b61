"""
物件一覧・ダッシュボード
"""

from fastapi import APIRouter, Depends

from property_office.api.common import joined_selection, load_or_raise, raise_for_alert
from property_office.core.screens import SCREEN_INDEX, PropertyDirectoryScreen, RentRollScreen
from property_office.schemas import PropertyCreate
from property_office.services.backend_client import BackendClient, get_backend_client

router = APIRouter()
dashboard_router = APIRouter()


@router.get("")
def list_properties(client: BackendClient = Depends(get_backend_client)):
    """物件一覧"""
    screen = load_or_raise(PropertyDirectoryScreen(client))
    return screen.view()


@router.post("", status_code=201)
def create_property(body: PropertyCreate, client: BackendClient = Depends(get_backend_client)):
    """物件登録"""
    screen = PropertyDirectoryScreen(client)
    saved = screen.create(body.name)
    raise_for_alert(screen)
    return saved.model_dump(by_alias=True)


@dashboard_router.get("/{property_id}")
def dashboard(property_id: int, client: BackendClient = Depends(get_backend_client)):
    """物件ダッシュボード（画面一覧 + 当月のレントロール）"""
    screen = load_or_raise(RentRollScreen(client, property_id, joined_selection(None, None)))
    return {
        "propertyId": property_id,
        "screens": [
            {**item, "path": f"/properties/{property_id}/{item['key']}"} for item in SCREEN_INDEX
        ],
        "rentRoll": screen.view(),
    }
