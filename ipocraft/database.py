# ipocraft/database.py
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker, Session
from typing import Generator
import logging

from .config import settings

logger = logging.getLogger(__name__)

# SQLite(테스트/로컬)는 스레드 체크 해제 필요
_connect_args = {}
if settings.sqlalchemy_database_url.startswith("sqlite"):
    _connect_args = {"check_same_thread": False}

engine = create_engine(
    settings.sqlalchemy_database_url,
    pool_pre_ping=True,
    echo=settings.debug,
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """요청 단위 DB 세션"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def test_db_connection() -> bool:
    """DB 연결 확인 (헬스체크용)"""
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"❌ DB 연결 실패: {e}")
        return False


def create_tables() -> None:
    """ORM 메타데이터 기준 테이블 생성 (없는 테이블만)"""
    from .models.base import Base
    from .models import ipo_model, gmp_history_model, broker_model  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("✅ 테이블 생성/확인 완료")
