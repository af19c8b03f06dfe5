# ipocraft/utils/timezone_utils.py
import pytz
from datetime import date, datetime
from typing import Optional, Union

from ipocraft.config import settings

# 시간대 상수 (시장 시간대는 설정값, 기본 Asia/Kolkata)
UTC = pytz.UTC
MARKET_TZ = pytz.timezone(settings.market_timezone)


class TimezoneHelper:
    """시간대 처리 유틸리티 클래스 (IPO 일정은 인도 표준시 기준)"""

    @staticmethod
    def now_utc() -> datetime:
        """현재 UTC 시간 반환"""
        return datetime.now(UTC)

    @staticmethod
    def now_ist() -> datetime:
        """현재 인도 시간 반환"""
        return datetime.now(MARKET_TZ)

    @staticmethod
    def today_ist() -> date:
        """인도 시간 기준 오늘 날짜"""
        return TimezoneHelper.now_ist().date()

    @staticmethod
    def ensure_utc(dt: datetime) -> datetime:
        """naive datetime 은 UTC 로 간주"""
        if dt.tzinfo is None:
            return UTC.localize(dt)
        return dt.astimezone(UTC)

    @staticmethod
    def to_ist(dt: datetime) -> datetime:
        """UTC(또는 naive) datetime을 인도 시간으로 변환"""
        return TimezoneHelper.ensure_utc(dt).astimezone(MARKET_TZ)

    @staticmethod
    def to_utc(dt: datetime, from_tz: Optional[str] = None) -> datetime:
        """특정 시간대(기본: 시장 시간대)의 datetime을 UTC로 변환"""
        if dt.tzinfo is None:
            source_tz = pytz.timezone(from_tz) if from_tz else MARKET_TZ
            dt = source_tz.localize(dt)
        return dt.astimezone(UTC)

    @staticmethod
    def as_calendar_date(value: Union[date, datetime, None]) -> Optional[date]:
        """
        날짜 비교용으로 시간 부분 제거

        datetime 은 to_ist 와 같은 규칙(naive 는 UTC)으로 인도 시간으로 바꾼 뒤 날짜만 사용합니다.
        """
        if value is None:
            return None
        if isinstance(value, datetime):
            return TimezoneHelper.to_ist(value).date()
        return value


# 편의 함수들
def now_utc() -> datetime:
    """현재 UTC 시간"""
    return TimezoneHelper.now_utc()


def today_ist() -> date:
    """인도 기준 오늘"""
    return TimezoneHelper.today_ist()
