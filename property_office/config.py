"""
アプリケーション設定を管理
環境変数から設定を読み込む
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    """アプリケーション設定"""

    # 物件管理バックエンド
    BACKEND_BASE_URL: str = "http://localhost:8080/api"
    BACKEND_TIMEOUT: Optional[float] = None  # 未設定ならタイムアウトなし

    # レポート設定・メモ保存用データベース
    DATABASE_URL: str = "sqlite:///./property_office.db"

    # 水道料単価（円/㎥）
    WATER_UNIT_RATE: int = 1200

    # 月額家賃入金履歴の表示月数
    HISTORY_MONTHS: int = 6

    # アプリケーション
    APP_NAME: str = "賃貸管理バックオフィス"
    DEBUG: bool = False

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
