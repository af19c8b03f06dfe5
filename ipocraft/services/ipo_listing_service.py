# ipocraft/services/ipo_listing_service.py
from sqlalchemy.orm import Session
from pydantic import BaseModel, Field, field_validator
from typing import Any, Dict, Iterable, List, Optional, Tuple
from datetime import date, datetime
from collections import defaultdict
import logging

from ipocraft.models.ipo_model import IPO
from ipocraft.models.gmp_history_model import GmpHistory
from ipocraft.schemas.ipo_schema import (
    AllotmentBadge,
    GmpHistoryPoint,
    IPODetailResponse,
    IPORecord,
    IPOStatus,
    IPOView,
    SortKey,
)
from ipocraft.services.cache_service import SnapshotCache
from ipocraft.services.exceptions import IPONotFoundError
from ipocraft.utils.coercion import parse_leading_float
from ipocraft.utils.gmp_trend import clean_series, compute_gmp_trend, issue_price_for
from ipocraft.utils.ipo_status import derive_status, resolve_allotment_badge
from ipocraft.utils.timezone_utils import TimezoneHelper

logger = logging.getLogger(__name__)

_ALL_VALUES = {"", "all"}


class ListingFilter(BaseModel):
    """GMP 테이블 / IPO 목록 필터 옵션"""
    search_text: Optional[str] = Field(None, description="이름/슬러그 검색어")
    status_filter: Optional[str] = Field(None, description="Upcoming | Open | Closed | Listed | All")
    type_filter: Optional[str] = Field(None, description="mainboard | sme | all")
    active_only: bool = Field(False, description="청약 중(Open)만")
    sort_key: Optional[SortKey] = Field(None, description="gmp | sub | closing")

    @field_validator('sort_key', mode='before')
    @classmethod
    def empty_sort(cls, v):
        """'none' / 빈 값은 정렬 없음"""
        if isinstance(v, str) and v.strip().lower() in ("", "none"):
            return None
        return v


# =========================
# 조립 (IPO + GMP 이력 → 화면용 레코드)
# =========================

def group_history(points: Iterable[GmpHistoryPoint]) -> Dict[int, List[GmpHistoryPoint]]:
    """GMP 이력을 IPO ID 별로 묶기"""
    grouped: Dict[int, List[GmpHistoryPoint]] = defaultdict(list)
    for point in points:
        grouped[point.ipo_id].append(point)
    return dict(grouped)


def build_view(
    record: IPORecord,
    points: Iterable[GmpHistoryPoint],
    today: date,
    now: datetime,
) -> IPOView:
    """IPO 1건에 상태 / 배정 배지 / GMP 추세 붙이기"""
    status = derive_status(
        record.open_date,
        record.close_date,
        record.listing_date,
        today,
        explicit_status=record.status,
    )
    badge = resolve_allotment_badge(
        record.allotment_date,
        record.allotment_out,
        record.listing_date,
        today,
    )
    trend = compute_gmp_trend(
        points,
        record.gmp,
        now,
        issue_price=issue_price_for(record.price_min, record.price_max),
    )
    check_url = record.allotment_link if badge == AllotmentBadge.ALLOTMENT_OUT else None

    return IPOView(
        **record.model_dump(),
        lifecycle_status=status,
        allotment_badge=badge,
        allotment_check_url=check_url,
        gmp_trend=trend,
    )


def assemble_listing(
    records: Iterable[IPORecord],
    history_by_ipo: Dict[int, List[GmpHistoryPoint]],
    today: date,
    now: datetime,
) -> List[IPOView]:
    """입력 순서를 유지한 채 화면용 레코드 목록 생성"""
    return [build_view(r, history_by_ipo.get(r.id, []), today, now) for r in records]


# =========================
# 필터 / 정렬
# =========================

def _matches_search(view: IPOView, needle: str) -> bool:
    return needle in view.name.lower() or needle in view.slug.lower()


def _closing_key(view: IPOView) -> Tuple[bool, date]:
    # 마감일 없는 항목은 맨 뒤
    return (view.close_date is None, view.close_date or date.min)


def filter_and_sort(views: Iterable[IPOView], options: ListingFilter) -> List[IPOView]:
    """
    필터 → 정렬 순서로 적용 (입력은 건드리지 않음)

    상태 필터는 항상 날짜로 계산한 상태 기준입니다.
    정렬은 모두 안정 정렬이라 같은 값이면 입력 순서를 유지합니다.
    """
    result = list(views)

    needle = (options.search_text or "").strip().lower()
    if needle:
        result = [v for v in result if _matches_search(v, needle)]

    status = (options.status_filter or "").strip().lower()
    if status not in _ALL_VALUES:
        result = [v for v in result if v.lifecycle_status.value.lower() == status]

    ipo_type = (options.type_filter or "").strip().lower()
    if ipo_type not in _ALL_VALUES:
        result = [v for v in result if v.ipo_type.value.lower() == ipo_type]

    if options.active_only:
        result = [v for v in result if v.lifecycle_status == IPOStatus.OPEN]

    if options.sort_key == SortKey.GMP:
        result.sort(key=lambda v: v.gmp_trend.latest or 0, reverse=True)
    elif options.sort_key == SortKey.SUB:
        result.sort(key=lambda v: parse_leading_float(v.sub_total), reverse=True)
    elif options.sort_key == SortKey.CLOSING:
        result.sort(key=_closing_key)

    return result


# =========================
# 서비스
# =========================

def normalize_ipo_rows(rows: Iterable[Any]) -> List[IPORecord]:
    """
    DB 행 → IPORecord

    id/slug/name 이 없는 행은 건너뜁니다. 날짜 형식 오류는 그대로 ValidationError.
    """
    records = []
    for row in rows:
        get = row.get if isinstance(row, dict) else lambda key: getattr(row, key, None)
        if not get("id") or not get("slug") or not get("name"):
            logger.warning(f"⚠️ 식별 정보가 없는 IPO 행 건너뜀: {row!r}")
            continue
        records.append(IPORecord.model_validate(row))
    return records


class IPOListingService:
    """IPO 목록 / 상세 / GMP 테이블 조회 서비스"""

    def __init__(self, db: Session, cache: Optional[SnapshotCache] = None):
        self.db = db
        self.cache = cache

    def _fetch_snapshot(self) -> Tuple[List[IPORecord], List[GmpHistoryPoint]]:
        """IPO 목록(최신 등록순) + 해당 IPO들의 GMP 이력"""
        rows = (
            self.db.query(IPO)
            .order_by(IPO.created_at.desc(), IPO.id.desc())
            .all()
        )
        records = normalize_ipo_rows(rows)

        points: List[GmpHistoryPoint] = []
        ids = [r.id for r in records]
        if ids:
            history_rows = (
                self.db.query(GmpHistory)
                .filter(GmpHistory.ipo_id.in_(ids))
                .order_by(GmpHistory.created_at.asc(), GmpHistory.id.asc())
                .all()
            )
            points = [GmpHistoryPoint.from_orm_row(h) for h in history_rows]

        return records, points

    def load_snapshot(self) -> Tuple[List[IPORecord], List[GmpHistoryPoint]]:
        """캐시 우선, 없으면 DB"""
        if self.cache is not None:
            cached = self.cache.get_snapshot()
            if cached is not None:
                return cached

        records, points = self._fetch_snapshot()

        if self.cache is not None:
            self.cache.set_snapshot(records, points)
        return records, points

    def get_views(self, today: Optional[date] = None, now: Optional[datetime] = None) -> List[IPOView]:
        """전체 IPO 화면용 레코드 (필터 없음)"""
        now = now or TimezoneHelper.now_utc()
        today = today or TimezoneHelper.as_calendar_date(now)
        records, points = self.load_snapshot()
        return assemble_listing(records, group_history(points), today, now)

    def get_listing(
        self,
        options: ListingFilter,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
    ) -> List[IPOView]:
        """필터/정렬 적용된 IPO 목록"""
        views = filter_and_sort(self.get_views(today, now), options)
        if limit:
            views = views[:limit]
        logger.debug(f"📋 IPO 목록 {len(views)}건 (filter={options.model_dump()})")
        return views

    def get_detail(
        self,
        slug: str,
        today: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> IPODetailResponse:
        """슬러그로 IPO 상세 조회 (상세는 항상 DB에서 직접)"""
        now = now or TimezoneHelper.now_utc()
        today = today or TimezoneHelper.as_calendar_date(now)

        row = self.db.query(IPO).filter(IPO.slug == slug).first()
        if row is None:
            raise IPONotFoundError(f"IPO를 찾을 수 없습니다: {slug}")

        record = IPORecord.model_validate(row)
        points = [GmpHistoryPoint.from_orm_row(h) for h in row.gmp_history]
        view = build_view(record, points, today, now)

        min_investment = None
        if record.price_max is not None and record.lot_size is not None:
            min_investment = record.price_max * record.lot_size

        return IPODetailResponse(
            **view.model_dump(),
            gmp_series=clean_series(points),
            min_investment=min_investment,
        )
