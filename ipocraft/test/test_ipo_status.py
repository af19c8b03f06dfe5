from datetime import date, datetime

import pytest
import pytz

from ipocraft.schemas.ipo_schema import AllotmentBadge, IPOStatus
from ipocraft.utils.ipo_status import derive_status, is_listed, resolve_allotment_badge

TODAY = date(2026, 3, 10)


@pytest.mark.parametrize(
    "open_date, close_date, listing_date, expected",
    [
        (date(2026, 3, 12), date(2026, 3, 14), None, IPOStatus.UPCOMING),
        (date(2026, 3, 10), date(2026, 3, 12), None, IPOStatus.OPEN),
        (date(2026, 3, 8), date(2026, 3, 10), None, IPOStatus.OPEN),
        (date(2026, 3, 10), date(2026, 3, 10), None, IPOStatus.OPEN),
        (date(2026, 3, 4), date(2026, 3, 6), None, IPOStatus.CLOSED),
        (date(2026, 3, 4), date(2026, 3, 6), date(2026, 3, 10), IPOStatus.LISTED),
        (date(2026, 3, 4), date(2026, 3, 6), date(2026, 3, 11), IPOStatus.CLOSED),
    ],
)
def test_derive_status_by_dates(open_date, close_date, listing_date, expected):
    assert derive_status(open_date, close_date, listing_date, TODAY) == expected


def test_listed_wins_over_every_other_date():
    # 상장일이 지났으면 청약 기간 중이어도 Listed
    status = derive_status(date(2026, 3, 9), date(2026, 3, 20), date(2026, 3, 1), TODAY)
    assert status == IPOStatus.LISTED


def test_upcoming_when_only_open_date_in_future():
    assert derive_status(date(2026, 4, 1), None, None, TODAY) == IPOStatus.UPCOMING


def test_closed_when_only_close_date_in_past():
    assert derive_status(None, date(2026, 3, 1), None, TODAY) == IPOStatus.CLOSED


def test_open_date_passed_without_close_date_falls_back():
    assert derive_status(date(2026, 3, 1), None, None, TODAY) == IPOStatus.UPCOMING
    assert derive_status(date(2026, 3, 1), None, None, TODAY, explicit_status="Open") == IPOStatus.OPEN


@pytest.mark.parametrize(
    "explicit, expected",
    [
        (None, IPOStatus.UPCOMING),
        ("", IPOStatus.UPCOMING),
        ("closed", IPOStatus.CLOSED),
        (" Listed ", IPOStatus.LISTED),
        ("Open", IPOStatus.OPEN),
        ("something-else", IPOStatus.UPCOMING),
    ],
)
def test_fallback_to_explicit_status_when_no_dates(explicit, expected):
    assert derive_status(None, None, None, TODAY, explicit_status=explicit) == expected


def test_explicit_status_ignored_when_dates_decide():
    status = derive_status(date(2026, 3, 12), date(2026, 3, 14), None, TODAY, explicit_status="Closed")
    assert status == IPOStatus.UPCOMING


def test_aware_today_uses_india_calendar_date():
    # 2026-03-09 20:00 UTC == 2026-03-10 01:30 IST
    now = datetime(2026, 3, 9, 20, 0, tzinfo=pytz.UTC)
    assert derive_status(date(2026, 3, 10), date(2026, 3, 12), None, now) == IPOStatus.OPEN


def test_is_listed():
    assert is_listed(date(2026, 3, 10), TODAY)
    assert not is_listed(date(2026, 3, 11), TODAY)
    assert not is_listed(None, TODAY)


def test_badge_hidden_before_allotment_date():
    assert resolve_allotment_badge(date(2026, 3, 11), True, None, TODAY) is None


def test_badge_hidden_without_allotment_date():
    assert resolve_allotment_badge(None, True, None, TODAY) is None


@pytest.mark.parametrize("flag", [True, "true", "1", 1])
def test_badge_out_for_truthy_flags(flag):
    assert resolve_allotment_badge(date(2026, 3, 10), flag, None, TODAY) == AllotmentBadge.ALLOTMENT_OUT


@pytest.mark.parametrize("flag", [False, "false", "0", 0, None, "", "yes", "TRUE", "True", " 1 "])
def test_badge_awaited_for_other_flags(flag):
    assert resolve_allotment_badge(date(2026, 3, 9), flag, None, TODAY) == AllotmentBadge.ALLOTMENT_AWAITED


def test_badge_suppressed_once_listed():
    assert resolve_allotment_badge(date(2026, 3, 5), True, date(2026, 3, 10), TODAY) is None
    assert resolve_allotment_badge(date(2026, 3, 5), True, date(2026, 3, 11), TODAY) == AllotmentBadge.ALLOTMENT_OUT
