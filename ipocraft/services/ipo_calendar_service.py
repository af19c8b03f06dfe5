# ipocraft/services/ipo_calendar_service.py
from sqlalchemy.orm import Session
from typing import Dict, List, Optional
from datetime import date, datetime, timedelta
import logging

from ipocraft.schemas.ipo_schema import IPOStatus, IPOView
from ipocraft.services.cache_service import SnapshotCache
from ipocraft.services.ipo_listing_service import IPOListingService
from ipocraft.utils.timezone_utils import TimezoneHelper

logger = logging.getLogger(__name__)


def _open_date_key(view: IPOView):
    # 시작일 없는 항목은 맨 뒤
    return (view.open_date is None, view.open_date or date.min)


class IPOCalendarService:
    """IPO 캘린더 비즈니스 로직 서비스 (상태는 공통 상태 계산 로직 사용)"""

    def __init__(self, db: Session, cache: Optional[SnapshotCache] = None):
        self.db = db
        self.listing = IPOListingService(db, cache)

    def _sorted_views(self, today: Optional[date], now: Optional[datetime]) -> List[IPOView]:
        return sorted(self.listing.get_views(today=today, now=now), key=_open_date_key)

    def get_calendar(
        self,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> Dict[str, List[IPOView]]:
        """
        상태별 IPO 일정 (청약 시작일 오름차순)
        """
        groups: Dict[str, List[IPOView]] = {status.value.lower(): [] for status in IPOStatus}
        for view in self._sorted_views(today, now):
            groups[view.lifecycle_status.value.lower()].append(view)
        return groups

    def get_monthly_ipos(
        self,
        year: Optional[int] = None,
        month: Optional[int] = None,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> List[IPOView]:
        """
        특정 월에 청약이 시작되는 IPO (미지정 시 이번 달)
        """
        if year is None or month is None:
            base = today or TimezoneHelper.today_ist()
            year, month = base.year, base.month

        return [
            v for v in self._sorted_views(today, now)
            if v.open_date is not None and v.open_date.year == year and v.open_date.month == month
        ]

    def get_statistics(self, today: Optional[date] = None, now: Optional[datetime] = None) -> dict:
        """
        IPO 캘린더 통계 정보
        """
        today = today or TimezoneHelper.today_ist()
        views = self.listing.get_views(today=today, now=now)

        next_month = today.replace(day=1) + timedelta(days=32)
        next_month = next_month.replace(day=1)
        future_7days = today + timedelta(days=7)

        def opens_in(v: IPOView, year: int, month: int) -> bool:
            return v.open_date is not None and v.open_date.year == year and v.open_date.month == month

        by_status: Dict[str, int] = {status.value: 0 for status in IPOStatus}
        by_type: Dict[str, int] = {}
        for v in views:
            by_status[v.lifecycle_status.value] += 1
            by_type[v.ipo_type.value] = by_type.get(v.ipo_type.value, 0) + 1

        # 평균 공모가 범위 (상장 전 IPO 중 상/하단 모두 있는 것만)
        priced = [
            v for v in views
            if v.price_min is not None and v.price_max is not None
            and v.lifecycle_status != IPOStatus.LISTED
        ]
        avg_price_range = {
            "low": round(sum(v.price_min for v in priced) / len(priced), 2) if priced else 0.0,
            "high": round(sum(v.price_max for v in priced) / len(priced), 2) if priced else 0.0,
        }

        return {
            "total_ipos": len(views),
            "this_month": sum(1 for v in views if opens_in(v, today.year, today.month)),
            "next_month": sum(1 for v in views if opens_in(v, next_month.year, next_month.month)),
            "by_status": by_status,
            "by_type": by_type,
            "avg_price_range": avg_price_range,
            "opening_7days": sum(
                1 for v in views
                if v.open_date is not None and today <= v.open_date <= future_7days
            ),
        }
