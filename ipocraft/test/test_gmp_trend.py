from datetime import datetime, timedelta

import pytest
import pytz

from ipocraft.schemas.ipo_schema import GmpHistoryPoint, TrendDirection
from ipocraft.utils.gmp_trend import (
    NO_TIMESTAMP_LABEL,
    clean_series,
    compute_gmp_trend,
    format_time_ago,
    issue_price_for,
    plan_gmp_history_point,
)

NOW = datetime(2026, 3, 10, 12, 0, tzinfo=pytz.UTC)


def point(gmp, minutes_ago, ipo_id=1):
    return GmpHistoryPoint(ipo_id=ipo_id, gmp=gmp, observed_at=NOW - timedelta(minutes=minutes_ago))


def test_trend_up_with_change_percent():
    trend = compute_gmp_trend([point(100, 120), point(120, 30)], fallback_gmp=None, now=NOW)
    assert trend.latest == 120
    assert trend.previous == 100
    assert trend.change_percent == pytest.approx(20.0)
    assert trend.trend_direction == TrendDirection.UP
    assert trend.high == 120
    assert trend.low == 100
    assert trend.points_count == 2


def test_trend_down():
    trend = compute_gmp_trend([point(80, 10), point(100, 60)], fallback_gmp=None, now=NOW)
    assert trend.latest == 80
    assert trend.previous == 100
    assert trend.change_percent == pytest.approx(-20.0)
    assert trend.trend_direction == TrendDirection.DOWN


def test_unordered_input_is_sorted_by_time():
    points = [point(130, 5), point(90, 300), point(110, 60)]
    trend = compute_gmp_trend(points, fallback_gmp=None, now=NOW)
    assert trend.latest == 130
    assert trend.previous == 110
    assert trend.last_updated_at == NOW - timedelta(minutes=5)


def test_zero_change_counts_as_up():
    trend = compute_gmp_trend([point(50, 60), point(50, 10)], fallback_gmp=None, now=NOW)
    assert trend.change_percent == 0
    assert trend.trend_direction == TrendDirection.UP


def test_previous_zero_has_no_change_percent():
    trend = compute_gmp_trend([point(0, 60), point(40, 10)], fallback_gmp=None, now=NOW)
    assert trend.change_percent is None
    assert trend.trend_direction is None


def test_no_history_uses_fallback_gmp_only_for_latest():
    trend = compute_gmp_trend([], fallback_gmp="75", now=NOW)
    assert trend.latest == 75
    assert trend.previous is None
    assert trend.high is None
    assert trend.low is None
    assert trend.points_count == 0
    assert trend.last_updated_relative == NO_TIMESTAMP_LABEL


def test_single_point():
    trend = compute_gmp_trend([point(60, 10)], fallback_gmp=999, now=NOW)
    assert trend.latest == 60
    assert trend.previous is None
    assert trend.change_percent is None
    assert trend.high == trend.low == 60


def test_non_numeric_and_nan_points_are_dropped():
    points = [
        point(100, 100),
        GmpHistoryPoint(ipo_id=1, gmp="n/a", observed_at=NOW - timedelta(minutes=50)),
        GmpHistoryPoint(ipo_id=1, gmp=float("nan"), observed_at=NOW - timedelta(minutes=40)),
        GmpHistoryPoint(ipo_id=1, gmp=500, observed_at=None),
        point(110, 5),
    ]
    trend = compute_gmp_trend(points, fallback_gmp=None, now=NOW)
    assert trend.points_count == 2
    assert trend.high == 110
    assert trend.previous == 100


def test_percent_vs_issue_price():
    trend = compute_gmp_trend([point(50, 10)], fallback_gmp=None, now=NOW, issue_price=200)
    assert trend.percent_vs_issue_price == pytest.approx(25.0)

    trend = compute_gmp_trend([point(50, 10)], fallback_gmp=None, now=NOW, issue_price=0)
    assert trend.percent_vs_issue_price is None


def test_issue_price_prefers_upper_band():
    assert issue_price_for(95, 100) == 100
    assert issue_price_for(95, None) == 95
    assert issue_price_for(None, "") is None


def test_clean_series_handles_mixed_naive_and_aware():
    naive = GmpHistoryPoint(ipo_id=1, gmp=10, observed_at=datetime(2026, 3, 10, 11, 0))
    aware = GmpHistoryPoint(ipo_id=1, gmp=20, observed_at=datetime(2026, 3, 10, 10, 0, tzinfo=pytz.UTC))
    series = clean_series([naive, aware])
    assert [p.gmp for p in series] == [20, 10]


@pytest.mark.parametrize(
    "elapsed, expected",
    [
        (timedelta(seconds=30), "Updated just now"),
        (timedelta(minutes=-5), "Updated just now"),
        (timedelta(minutes=1), "Updated 1 min ago"),
        (timedelta(minutes=45), "Updated 45 mins ago"),
        (timedelta(minutes=60), "Updated 1 hr ago"),
        (timedelta(minutes=119), "Updated 1 hr ago"),
        (timedelta(hours=5), "Updated 5 hrs ago"),
        (timedelta(hours=24), "Updated 1 day ago"),
        (timedelta(days=3, hours=2), "Updated 3 days ago"),
    ],
)
def test_format_time_ago(elapsed, expected):
    assert format_time_ago(NOW - elapsed, NOW) == expected


def test_format_time_ago_without_timestamp():
    assert format_time_ago(None, NOW) == NO_TIMESTAMP_LABEL


def test_format_time_ago_naive_timestamp_is_utc():
    assert format_time_ago(datetime(2026, 3, 10, 11, 0), NOW) == "Updated 1 hr ago"


def test_plan_history_point_only_on_change():
    assert plan_gmp_history_point(1, 100, 100, NOW) is None
    assert plan_gmp_history_point(1, "100.00", 100.0, NOW) is None
    assert plan_gmp_history_point(1, 100, None, NOW) is None
    assert plan_gmp_history_point(1, 100, "abc", NOW) is None

    created = plan_gmp_history_point(1, 100, 120, NOW)
    assert created.ipo_id == 1
    assert created.gmp == 120
    assert created.observed_at == NOW


def test_plan_history_point_first_value():
    created = plan_gmp_history_point(7, None, 0, NOW)
    assert created is not None
    assert created.gmp == 0
