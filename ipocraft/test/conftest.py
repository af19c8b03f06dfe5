import os

# 앱 import 전에 설정 (로컬 PostgreSQL / Redis 없이 실행)
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("CACHE_ENABLED", "false")
os.environ.setdefault("AUTO_CREATE_TABLES", "false")

from datetime import date, datetime

import pytest
import pytz
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ipocraft.dependencies import RequestClock, get_db, get_request_clock
from ipocraft.main import app
from ipocraft.models import Base, Broker, GmpHistory, IPO

# 2026-03-10 12:00 IST
FIXED_NOW = datetime(2026, 3, 10, 6, 30, tzinfo=pytz.UTC)
FIXED_TODAY = date(2026, 3, 10)

engine = create_engine(
    "sqlite://",
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture
def db_session():
    Base.metadata.create_all(bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db_session):
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_request_clock] = lambda: RequestClock(now=FIXED_NOW, today=FIXED_TODAY)
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def make_ipo(db_session):
    """IPO 행 생성 (gmp_history 는 [(gmp, naive UTC datetime), ...])"""
    counter = {"n": 0}

    def _make(name, gmp_history=(), **fields):
        counter["n"] += 1
        fields.setdefault("slug", name.lower().replace(" ", "-") + "-ipo")
        fields.setdefault("created_at", datetime(2026, 1, 1, 0, 0, counter["n"]))
        ipo = IPO(name=name, **fields)
        db_session.add(ipo)
        db_session.flush()
        for gmp, observed_at in gmp_history:
            db_session.add(GmpHistory(ipo_id=ipo.id, gmp=gmp, created_at=observed_at))
        db_session.commit()
        db_session.refresh(ipo)
        return ipo

    return _make


@pytest.fixture
def make_broker(db_session):
    def _make(name, **fields):
        fields.setdefault("slug", name.lower())
        broker = Broker(name=name, **fields)
        db_session.add(broker)
        db_session.commit()
        db_session.refresh(broker)
        return broker

    return _make
