from datetime import date, datetime

import pytest
import pytz
from pydantic import ValidationError

from ipocraft.schemas.ipo_schema import AllotmentBadge, GmpHistoryPoint, IPORecord, IPOStatus, IPOType, SortKey
from ipocraft.services.ipo_listing_service import (
    ListingFilter,
    assemble_listing,
    build_view,
    filter_and_sort,
    group_history,
    normalize_ipo_rows,
)

TODAY = date(2026, 3, 10)
NOW = datetime(2026, 3, 10, 6, 30, tzinfo=pytz.UTC)


def record(ipo_id, name, **fields):
    return IPORecord(id=ipo_id, name=name, slug=name.lower().replace(" ", "-") + "-ipo", **fields)


def view(ipo_id, name, **fields):
    return build_view(record(ipo_id, name, **fields), [], TODAY, NOW)


@pytest.fixture
def views():
    return [
        view(1, "Alpha Tech", gmp=50, sub_total="12.5x", ipo_type="mainboard",
             open_date=date(2026, 3, 9), close_date=date(2026, 3, 11)),
        view(2, "Beta Foods", gmp=None, sub_total="3", ipo_type="sme",
             open_date=date(2026, 3, 9), close_date=date(2026, 3, 13)),
        view(3, "Gamma Power", gmp=120, sub_total=None, ipo_type="mainboard",
             open_date=date(2026, 3, 20), close_date=date(2026, 3, 24)),
        view(4, "Delta Steel", gmp=50, sub_total="40.2", ipo_type="SME",
             open_date=date(2026, 2, 1), close_date=date(2026, 2, 3), listing_date=date(2026, 2, 6)),
        view(5, "Epsilon Labs", gmp=-10, sub_total="abc", ipo_type="mainboard",
             open_date=date(2026, 3, 2), close_date=date(2026, 3, 4)),
    ]


def ids(items):
    return [v.id for v in items]


def test_no_options_keeps_input_order(views):
    result = filter_and_sort(views, ListingFilter())
    assert ids(result) == [1, 2, 3, 4, 5]
    assert result is not views


def test_status_filter_uses_derived_status(views):
    assert ids(filter_and_sort(views, ListingFilter(status_filter="open"))) == [1, 2]
    assert ids(filter_and_sort(views, ListingFilter(status_filter="Upcoming"))) == [3]
    assert ids(filter_and_sort(views, ListingFilter(status_filter="LISTED"))) == [4]
    assert ids(filter_and_sort(views, ListingFilter(status_filter="closed"))) == [5]
    assert ids(filter_and_sort(views, ListingFilter(status_filter="all"))) == [1, 2, 3, 4, 5]


def test_type_filter(views):
    assert ids(filter_and_sort(views, ListingFilter(type_filter="sme"))) == [2, 4]
    assert ids(filter_and_sort(views, ListingFilter(type_filter="Mainboard"))) == [1, 3, 5]


def test_search_matches_name_and_slug(views):
    assert ids(filter_and_sort(views, ListingFilter(search_text="gamma"))) == [3]
    assert ids(filter_and_sort(views, ListingFilter(search_text="steel-ipo"))) == [4]
    assert ids(filter_and_sort(views, ListingFilter(search_text="   "))) == [1, 2, 3, 4, 5]


def test_active_only(views):
    assert ids(filter_and_sort(views, ListingFilter(active_only=True))) == [1, 2]


def test_sort_by_gmp_desc_with_missing_as_zero(views):
    result = filter_and_sort(views, ListingFilter(sort_key="gmp"))
    # 같은 GMP(50)는 입력 순서 유지, 없는 값은 0 취급
    assert ids(result) == [3, 1, 4, 2, 5]


def test_sort_by_gmp_keeps_order_between_missing_values(views):
    items = [view(6, "Zeta Chem", gmp=None)] + views
    result = filter_and_sort(items, ListingFilter(sort_key="gmp"))
    # 6, 2 모두 GMP 없음 → 입력 순서 그대로
    assert ids(result) == [3, 1, 4, 6, 2, 5]


@pytest.mark.parametrize("sort_key", [None, *SortKey])
@pytest.mark.parametrize("status_filter", [None, "open"])
def test_filter_and_sort_is_idempotent(views, sort_key, status_filter):
    options = ListingFilter(sort_key=sort_key, status_filter=status_filter)
    once = filter_and_sort(views, options)
    twice = filter_and_sort(once, options)
    assert ids(twice) == ids(once)


def test_sort_by_subscription_leading_number(views):
    result = filter_and_sort(views, ListingFilter(sort_key=SortKey.SUB))
    assert ids(result) == [4, 1, 2, 3, 5]


def test_sort_by_closing_date_missing_last():
    items = [
        view(1, "No Close"),
        view(2, "Late", close_date=date(2026, 3, 30)),
        view(3, "Early", close_date=date(2026, 3, 11)),
    ]
    assert ids(filter_and_sort(items, ListingFilter(sort_key="closing"))) == [3, 2, 1]


def test_none_sort_key_keeps_order(views):
    assert ListingFilter(sort_key="none").sort_key is None
    assert ids(filter_and_sort(views, ListingFilter(sort_key=""))) == [1, 2, 3, 4, 5]


def test_filters_combine_before_sort(views):
    options = ListingFilter(status_filter="open", type_filter="all", sort_key="sub")
    assert ids(filter_and_sort(views, options)) == [1, 2]


def test_build_view_allotment_link_only_when_out():
    out = view(1, "Out Co", allotment_date=date(2026, 3, 9), allotment_out="1",
               allotment_link="https://registrar.example/check")
    awaited = view(2, "Wait Co", allotment_date=date(2026, 3, 9), allotment_out=False,
                   allotment_link="https://registrar.example/check")
    assert out.allotment_badge == AllotmentBadge.ALLOTMENT_OUT
    assert out.allotment_check_url == "https://registrar.example/check"
    assert awaited.allotment_badge == AllotmentBadge.ALLOTMENT_AWAITED
    assert awaited.allotment_check_url is None


def test_assemble_listing_attaches_history_per_ipo():
    records = [record(1, "One", gmp=10), record(2, "Two", gmp=30)]
    points = [
        GmpHistoryPoint(ipo_id=1, gmp=5, observed_at=datetime(2026, 3, 9, 10, 0)),
        GmpHistoryPoint(ipo_id=1, gmp=10, observed_at=datetime(2026, 3, 10, 5, 30)),
    ]
    items = assemble_listing(records, group_history(points), TODAY, NOW)
    assert ids(items) == [1, 2]
    assert items[0].gmp_trend.previous == 5
    assert items[0].gmp_trend.change_percent == pytest.approx(100.0)
    assert items[0].gmp_trend.last_updated_relative == "Updated 1 hr ago"
    assert items[1].gmp_trend.latest == 30
    assert items[1].gmp_trend.points_count == 0


def test_record_normalizes_loose_values():
    rec = IPORecord(
        id=1, name="Loose", slug="loose-ipo",
        price_max="abc", gmp="", lot_size="0", sub_total=12.0,
        allotment_out="true", ipo_type=None, exchange="  ", open_date="",
    )
    assert rec.price_max is None
    assert rec.gmp is None
    assert rec.lot_size is None
    assert rec.sub_total == "12"
    assert rec.allotment_out is True
    assert rec.ipo_type == IPOType.MAINBOARD
    assert rec.exchange is None
    assert rec.open_date is None


def test_record_rejects_malformed_date():
    with pytest.raises(ValidationError):
        IPORecord(id=1, name="Bad", slug="bad-ipo", open_date="not-a-date")


def test_normalize_rows_skips_rows_without_identity():
    rows = [
        {"id": 1, "name": "Kept", "slug": "kept-ipo"},
        {"id": 2, "name": "", "slug": "no-name-ipo"},
        {"id": None, "name": "No Id", "slug": "no-id-ipo"},
    ]
    assert [r.id for r in normalize_ipo_rows(rows)] == [1]


def test_view_status_defaults_upcoming_without_dates():
    assert view(1, "Dateless").lifecycle_status == IPOStatus.UPCOMING
    assert view(2, "Dateless Closed", status="closed").lifecycle_status == IPOStatus.CLOSED


def test_record_normalizes_disclosure_values():
    rec = IPORecord(
        id=1, name="Disclosed", slug="disclosed-ipo",
        eps_pre="12.4", roce="abc", market_cap=float("nan"),
        retail_max_lots="13", shni_lots=2.5, bhni_shares=-1,
        company_website="  ", objectives=" Expansion ",
    )
    assert rec.eps_pre == 12.4
    assert rec.roce is None
    assert rec.market_cap is None
    assert rec.retail_max_lots == 13
    assert rec.shni_lots is None
    assert rec.bhni_shares is None
    assert rec.company_website is None
    assert rec.objectives == "Expansion"
