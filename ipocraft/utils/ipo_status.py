# ipocraft/utils/ipo_status.py
"""
IPO 진행 상태 / 배정 배지 계산

모든 함수는 '오늘'을 인자로 받습니다. 현재 시각은 요청 경계에서 한 번만 만들고
여기서는 절대 시계를 읽지 않습니다.
"""
from datetime import date, datetime
from typing import Any, Optional, Union

from ipocraft.schemas.ipo_schema import AllotmentBadge, IPOStatus
from ipocraft.utils.coercion import coerce_flag
from ipocraft.utils.timezone_utils import TimezoneHelper

DateLike = Union[date, datetime, None]

_STATUS_BY_NAME = {status.value.lower(): status for status in IPOStatus}


def _parse_explicit_status(value: Optional[str]) -> Optional[IPOStatus]:
    if not value:
        return None
    return _STATUS_BY_NAME.get(str(value).strip().lower())


def is_listed(listing_date: DateLike, today: DateLike) -> bool:
    """상장일이 오늘 이전(포함)이면 상장 완료"""
    listing = TimezoneHelper.as_calendar_date(listing_date)
    today = TimezoneHelper.as_calendar_date(today)
    return listing is not None and listing <= today


def derive_status(
    open_date: DateLike,
    close_date: DateLike,
    listing_date: DateLike,
    today: DateLike,
    explicit_status: Optional[str] = None,
) -> IPOStatus:
    """
    날짜로 IPO 상태 계산 (먼저 맞는 규칙이 우선)

    1. 상장일 <= 오늘 → Listed (다른 날짜는 무시)
    2. 오늘 < 청약 시작일 → Upcoming
    3. 시작일 <= 오늘 <= 마감일 → Open (양 끝 포함)
    4. 오늘 > 마감일 → Closed
    5. 날짜 정보 부족 → 관리자 입력 상태가 유효하면 그 값, 아니면 Upcoming
    """
    today = TimezoneHelper.as_calendar_date(today)
    open_day = TimezoneHelper.as_calendar_date(open_date)
    close_day = TimezoneHelper.as_calendar_date(close_date)

    if is_listed(listing_date, today):
        return IPOStatus.LISTED
    if open_day is not None and today < open_day:
        return IPOStatus.UPCOMING
    if open_day is not None and close_day is not None and open_day <= today <= close_day:
        return IPOStatus.OPEN
    if close_day is not None and today > close_day:
        return IPOStatus.CLOSED

    return _parse_explicit_status(explicit_status) or IPOStatus.UPCOMING


def resolve_allotment_badge(
    allotment_date: DateLike,
    allotment_out: Any,
    listing_date: DateLike,
    today: DateLike,
) -> Optional[AllotmentBadge]:
    """
    배정 배지 결정

    상장 후에는 배지를 숨기고, 배정일 전에도 숨깁니다.
    배정일 이후에는 관리자 플래그에 따라 Out / Awaited.
    """
    today = TimezoneHelper.as_calendar_date(today)
    allotment_day = TimezoneHelper.as_calendar_date(allotment_date)

    if is_listed(listing_date, today):
        return None
    if allotment_day is None or today < allotment_day:
        return None
    if coerce_flag(allotment_out):
        return AllotmentBadge.ALLOTMENT_OUT
    return AllotmentBadge.ALLOTMENT_AWAITED
