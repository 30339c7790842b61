"""
ヘルスチェックエンドポイント
"""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session
from sqlalchemy import text
import logging

from property_office.models.database import get_db
from property_office.services.backend_client import (
    BackendClient,
    BackendError,
    get_backend_client,
)

logger = logging.getLogger(__name__)

router = APIRouter()


def check_db_connection(db: Session) -> bool:
    """データベース接続確認"""
    try:
        db.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database check failed: {e}")
        return False


def check_backend_connection(client: BackendClient) -> bool:
    """物件管理バックエンド接続確認"""
    try:
        client.request("GET", "properties")
        return True
    except BackendError as e:
        logger.warning(f"Backend check failed: {e}")
        return False


@router.get("/")
def health_check(
    db: Session = Depends(get_db), client: BackendClient = Depends(get_backend_client)
):
    """ヘルスチェック"""
    db_status = check_db_connection(db)
    backend_status = check_backend_connection(client)

    status = "healthy" if db_status and backend_status else "unhealthy"

    return {
        "status": status,
        "services": {
            "database": "connected" if db_status else "disconnected",
            "backend": "connected" if backend_status else "disconnected",
        },
    }


@router.get("/ready")
def readiness_check(db: Session = Depends(get_db)):
    """レディネスチェック"""
    db_status = check_db_connection(db)

    if db_status:
        return {"status": "ready"}
    else:
        return {"status": "not ready", "reason": "Database not available"}


@router.get("/live")
def liveness_check():
    """ライブネスチェック"""
    return {"status": "alive"}
