# ipocraft/utils/gmp_trend.py
"""
GMP 이력으로 추세 요약 계산

입력 순서는 믿지 않고 관측 시간 기준으로 다시 정렬합니다.
숫자가 아닌 값 / 시간이 없는 값은 제외합니다.
"""
from datetime import datetime
from typing import Any, Iterable, List, Optional

from ipocraft.schemas.ipo_schema import GmpHistoryPoint, GmpSeriesPoint, GmpTrend, TrendDirection
from ipocraft.utils.coercion import to_nullable_number
from ipocraft.utils.timezone_utils import TimezoneHelper

NO_TIMESTAMP_LABEL = "Updated —"


def clean_series(points: Iterable[GmpHistoryPoint]) -> List[GmpSeriesPoint]:
    """유효한 관측값만 남기고 오래된 순으로 정렬"""
    series = []
    for point in points or []:
        gmp = to_nullable_number(getattr(point, "gmp", None))
        observed_at = getattr(point, "observed_at", None)
        if gmp is None or observed_at is None:
            continue
        series.append(GmpSeriesPoint(gmp=gmp, observed_at=observed_at))

    # naive/aware 가 섞여 있어도 비교 가능하도록 UTC 기준으로 정렬
    series.sort(key=lambda p: TimezoneHelper.ensure_utc(p.observed_at))
    return series


def issue_price_for(price_min: Any, price_max: Any) -> Optional[float]:
    """공모가 = 상단가, 없으면 하단가"""
    upper = to_nullable_number(price_max)
    if upper is not None:
        return upper
    return to_nullable_number(price_min)


def format_time_ago(timestamp: Optional[datetime], now: datetime) -> str:
    """
    마지막 갱신 시각을 상대 시간 문구로

    - 미래 / 1분 미만: "Updated just now"
    - 1~59분: "Updated N min(s) ago"
    - 1시간: "Updated 1 hr ago", 2~23시간: "Updated N hrs ago"
    - 24시간 이상: "Updated N day(s) ago"
    """
    if timestamp is None:
        return NO_TIMESTAMP_LABEL

    elapsed = TimezoneHelper.ensure_utc(now) - TimezoneHelper.ensure_utc(timestamp)
    minutes = int(elapsed.total_seconds() // 60)

    if minutes < 1:
        return "Updated just now"
    if minutes < 60:
        return f"Updated {minutes} min{'s' if minutes > 1 else ''} ago"

    hours = minutes // 60
    if hours == 1:
        return "Updated 1 hr ago"
    if hours < 24:
        return f"Updated {hours} hrs ago"

    days = hours // 24
    return f"Updated {days} day{'s' if days > 1 else ''} ago"


def compute_gmp_trend(
    points: Iterable[GmpHistoryPoint],
    fallback_gmp: Any,
    now: datetime,
    issue_price: Any = None,
) -> GmpTrend:
    """
    GMP 추세 요약

    Args:
        points: 한 IPO의 GMP 이력 (순서 무관)
        fallback_gmp: 이력이 없을 때 latest 로 쓸 IPO의 gmp 값 (high/low 에는 미반영)
        now: 기준 시각
        issue_price: 공모가 (공모가 대비 비율 계산용)
    """
    series = clean_series(points)

    latest_point = series[-1] if series else None
    previous_point = series[-2] if len(series) >= 2 else None

    latest = latest_point.gmp if latest_point else to_nullable_number(fallback_gmp)
    previous = previous_point.gmp if previous_point else None

    change_percent = None
    if latest is not None and previous is not None and previous != 0:
        change_percent = (latest - previous) / previous * 100

    trend_direction = None
    if change_percent is not None:
        trend_direction = TrendDirection.UP if change_percent >= 0 else TrendDirection.DOWN

    values = [p.gmp for p in series]
    high = max(values) if values else None
    low = min(values) if values else None

    percent_vs_issue_price = None
    price = to_nullable_number(issue_price)
    if latest is not None and price is not None and price > 0:
        percent_vs_issue_price = latest / price * 100

    last_updated_at = latest_point.observed_at if latest_point else None

    return GmpTrend(
        latest=latest,
        previous=previous,
        change_percent=change_percent,
        trend_direction=trend_direction,
        high=high,
        low=low,
        percent_vs_issue_price=percent_vs_issue_price,
        last_updated_at=last_updated_at,
        last_updated_relative=format_time_ago(last_updated_at, now),
        points_count=len(series),
    )


def plan_gmp_history_point(
    ipo_id: int,
    previous_gmp: Any,
    new_gmp: Any,
    now: datetime,
) -> Optional[GmpHistoryPoint]:
    """
    GMP 변경 시 이력 1건을 만들지 결정 (저장은 호출자 몫)

    새 값이 숫자이고 이전 값과 다를 때만 반환합니다. 이전 값이 없으면 변경으로 봅니다.
    """
    new_value = to_nullable_number(new_gmp)
    if new_value is None:
        return None
    if new_value == to_nullable_number(previous_gmp):
        return None
    return GmpHistoryPoint(ipo_id=ipo_id, gmp=new_value, observed_at=now)
