"""
FastAPIアプリケーションのエントリーポイント
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

from property_office import __version__
from property_office.api import health, income_expense, input_manual, ledgers, past_documents, properties
from property_office.config import settings
from property_office.core.report_store import UnknownMemoFieldError
from property_office.core.validation import FormValidationError
from property_office.models.database import engine, Base
from property_office.services.backend_client import BackendError

# ログ設定
logging.basicConfig(
    level=logging.DEBUG if settings.DEBUG else logging.INFO,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
)

logger = logging.getLogger(__name__)

NOT_FOUND_MESSAGE = "ページが見つかりません。"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """アプリケーションのライフサイクル管理"""
    logger.info(f"Starting {settings.APP_NAME}...")
    Base.metadata.create_all(bind=engine)
    logger.info("Database tables created")
    yield
    logger.info(f"Shutting down {settings.APP_NAME}...")


app = FastAPI(
    title=settings.APP_NAME,
    description="物件・レントロール・各種台帳・収支報告書を管理する賃貸管理バックオフィス",
    version=__version__,
    lifespan=lifespan,
)

# CORS設定
app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# ルーター登録
property_prefix = "/properties/{property_id}"
app.include_router(health.router, prefix="/health", tags=["Health"])
app.include_router(properties.router, prefix="/properties", tags=["Properties"])
app.include_router(properties.dashboard_router, prefix="/dashboard", tags=["Properties"])
app.include_router(ledgers.router, prefix=property_prefix, tags=["Ledgers"])
app.include_router(income_expense.router, prefix=property_prefix, tags=["Income/Expense"])
app.include_router(input_manual.router, prefix=property_prefix, tags=["Input Manual"])
app.include_router(past_documents.router, prefix=property_prefix, tags=["Past Documents"])


@app.exception_handler(FormValidationError)
async def form_validation_handler(request: Request, exc: FormValidationError):
    """必須項目エラー（バックエンドには送信しない）"""
    return JSONResponse(status_code=422, content={"detail": str(exc), "messages": exc.messages})


@app.exception_handler(UnknownMemoFieldError)
async def unknown_memo_field_handler(request: Request, exc: UnknownMemoFieldError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(BackendError)
async def backend_error_handler(request: Request, exc: BackendError):
    """画面を経由しない取得の失敗"""
    logger.error(f"Backend error on {request.url.path}: {exc}")
    return JSONResponse(status_code=502, content={"detail": exc.message})


@app.exception_handler(404)
async def not_found_handler(request: Request, exc):
    return JSONResponse(status_code=404, content={"detail": NOT_FOUND_MESSAGE})


@app.get("/")
def root():
    """ルートエンドポイント"""
    return {
        "message": f"{settings.APP_NAME} APIサーバー稼働中",
        "version": __version__,
        "docs": "/docs",
    }
