# ipocraft/dependencies.py
from fastapi import HTTPException, Request
from typing import Optional
from datetime import date, datetime

from .database import get_db, test_db_connection
from .services.cache_service import SnapshotCache
from .utils.timezone_utils import TimezoneHelper

__all__ = ["get_db", "verify_db_connection", "get_snapshot_cache", "get_request_clock", "RequestClock"]


async def verify_db_connection() -> None:
    """DB 연결이 안 되면 503"""
    if not test_db_connection():
        raise HTTPException(status_code=503, detail="데이터베이스에 연결할 수 없습니다")


def get_snapshot_cache(request: Request) -> Optional[SnapshotCache]:
    """lifespan 에서 초기화된 스냅샷 캐시 (없으면 None → DB 직접 조회)"""
    return getattr(request.app.state, "snapshot_cache", None)


class RequestClock:
    """요청 시점 시각 (요청당 한 번만 계산, 오늘 날짜는 인도 시간 기준)"""

    def __init__(self, now: datetime, today: date):
        self.now = now
        self.today = today

    def __repr__(self):
        return f"<RequestClock(now={self.now.isoformat()}, today={self.today})>"


def get_request_clock() -> RequestClock:
    now = TimezoneHelper.now_utc()
    return RequestClock(now=now, today=TimezoneHelper.as_calendar_date(now))
