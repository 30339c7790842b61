"""
pytest共通設定
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite:///:memory:")

import pytest
from datetime import date
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
from unittest.mock import MagicMock

from property_office.models.database import Base, get_db
from property_office.main import app
from property_office.schemas import RentRollEntry
from property_office.services.backend_client import BackendClient, get_backend_client


# テスト用インメモリデータベース
SQLALCHEMY_DATABASE_URL = "sqlite:///:memory:"

engine = create_engine(
    SQLALCHEMY_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """テスト用DBセッション"""
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def backend():
    """物件管理バックエンドのモック"""
    return MagicMock(spec=BackendClient)


@pytest.fixture(scope="function")
def client(db_session, backend):
    """テスト用FastAPIクライアント"""
    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_backend_client] = lambda: backend

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def today():
    return date.today()


@pytest.fixture
def this_month(today):
    """当月の createdAt"""
    return today.strftime("%Y/%m/01")


@pytest.fixture
def sample_rent_roll(this_month):
    """サンプルレントロール（当月2室 + 2020年1月1室）"""
    return [
        RentRollEntry(
            id=1,
            floor="1",
            room_number="101",
            room_usage="店舗",
            contractor="山田商店",
            contract_date="2019/04/01",
            rent=100000,
            maintenance_fee=10000,
            created_at=this_month,
        ),
        RentRollEntry(
            id=2,
            floor="2",
            room_number="201",
            room_usage="住居",
            contractor="佐藤太郎",
            contract_date="2021/10/01",
            rent=80000,
            maintenance_fee=5000,
            created_at=this_month,
        ),
        RentRollEntry(
            id=3,
            floor="3",
            room_number="301",
            room_usage="事務所",
            contractor="旧契約者",
            rent=90000,
            maintenance_fee=0,
            created_at="2020/01/15",
        ),
    ]
