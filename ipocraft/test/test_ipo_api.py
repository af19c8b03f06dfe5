from datetime import date, datetime

API = "/api/v1/ipos"


def test_list_ipos_newest_first_with_derived_fields(client, make_ipo):
    make_ipo("Old Co", open_date=date(2026, 2, 1), close_date=date(2026, 2, 3), listing_date=date(2026, 2, 6))
    make_ipo(
        "New Co",
        gmp=40,
        price_min=95,
        price_max=100,
        open_date=date(2026, 3, 9),
        close_date=date(2026, 3, 11),
        allotment_date=date(2026, 3, 12),
    )

    response = client.get(f"{API}/")

    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 2
    assert [item["name"] for item in body["items"]] == ["New Co", "Old Co"]

    new_co = body["items"][0]
    assert new_co["lifecycle_status"] == "Open"
    assert new_co["allotment_badge"] is None
    assert new_co["gmp_trend"]["latest"] == 40
    assert new_co["gmp_trend"]["percent_vs_issue_price"] == 40
    assert new_co["gmp_trend"]["last_updated_relative"] == "Updated —"
    assert body["items"][1]["lifecycle_status"] == "Listed"


def test_list_ipos_status_filter_ignores_stored_status(client, make_ipo):
    # 저장된 status 는 'Open' 이지만 날짜상 이미 마감
    make_ipo("Stale", status="Open", open_date=date(2026, 3, 1), close_date=date(2026, 3, 3))
    make_ipo("Live", open_date=date(2026, 3, 10), close_date=date(2026, 3, 12))

    response = client.get(f"{API}/", params={"status": "open"})

    assert response.status_code == 200
    assert [item["name"] for item in response.json()["items"]] == ["Live"]


def test_list_ipos_limit_and_search(client, make_ipo):
    for name in ("Apple Agro", "Apple Infra", "Banana Corp"):
        make_ipo(name)

    body = client.get(f"{API}/", params={"search": "apple", "limit": 1}).json()

    assert body["total_count"] == 1
    assert body["items"][0]["name"] == "Apple Infra"
    assert body["search"] == "apple"


def test_gmp_table_sort_and_active(client, make_ipo):
    make_ipo("Low", gmp=10, sub_total="50x", open_date=date(2026, 3, 9), close_date=date(2026, 3, 13))
    make_ipo("High", gmp=90, sub_total="2x", open_date=date(2026, 3, 9), close_date=date(2026, 3, 11))
    make_ipo("Future", gmp=200, open_date=date(2026, 4, 1), close_date=date(2026, 4, 3))

    by_gmp = client.get(f"{API}/gmp", params={"sort": "gmp"}).json()
    assert [i["name"] for i in by_gmp["items"]] == ["Future", "High", "Low"]
    assert by_gmp["sort"] == "gmp"

    active_by_sub = client.get(f"{API}/gmp", params={"active": "true", "sort": "sub"}).json()
    assert [i["name"] for i in active_by_sub["items"]] == ["Low", "High"]
    assert active_by_sub["active_only"] is True

    by_closing = client.get(f"{API}/gmp", params={"sort": "closing"}).json()
    assert [i["name"] for i in by_closing["items"]] == ["High", "Low", "Future"]


def test_gmp_table_rejects_unknown_sort(client):
    assert client.get(f"{API}/gmp", params={"sort": "price"}).status_code == 422


def test_detail_includes_series_and_trend(client, make_ipo):
    make_ipo(
        "Tata Tech",
        slug="tata-tech-ipo",
        gmp=130,
        price_max=500,
        lot_size=30,
        gmp_history=[
            (110, datetime(2026, 3, 9, 6, 30)),
            (100, datetime(2026, 3, 8, 6, 30)),
            (130, datetime(2026, 3, 10, 6, 0)),
        ],
    )

    response = client.get(f"{API}/tata-tech-ipo")

    assert response.status_code == 200
    body = response.json()
    assert body["slug"] == "tata-tech-ipo"
    assert body["min_investment"] == 15000
    assert [p["gmp"] for p in body["gmp_series"]] == [100, 110, 130]

    trend = body["gmp_trend"]
    assert trend["latest"] == 130
    assert trend["previous"] == 110
    assert trend["trend_direction"] == "up"
    assert trend["high"] == 130
    assert trend["low"] == 100
    assert trend["points_count"] == 3
    assert trend["last_updated_relative"] == "Updated 30 mins ago"


def test_detail_allotment_link_only_when_out(client, make_ipo):
    make_ipo(
        "Allotted",
        slug="allotted-ipo",
        allotment_date=date(2026, 3, 9),
        allotment_out=True,
        allotment_link="https://registrar.example/allotted",
    )

    body = client.get(f"{API}/allotted-ipo").json()

    assert body["allotment_badge"] == "Allotment Out"
    assert body["allotment_check_url"] == "https://registrar.example/allotted"


def test_detail_not_found(client):
    response = client.get(f"{API}/missing-ipo")
    assert response.status_code == 404


def test_root_and_info_endpoints(client):
    assert client.get("/").json()["status"] == "running"
    assert client.get("/health").json()["database"] == "connected"

    info = client.get("/api/v1/").json()
    assert set(info["available_endpoints"]) == {"ipos", "ipo-calendar", "brokers", "admin"}
