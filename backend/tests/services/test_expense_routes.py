"""Expense Routes: owner-scoped CRUD, range listing and stats over HTTP.

Invariants verified:
    - Missing X-User-Id is 401
    - Lists are newest first and carry meta (count, degraded, pushed_bound)
    - Another owner's expense is 404
    - Stats aggregate exactly the listed window
"""

import pytest


async def _create(client, amount, category, date, headers=None):
    res = await client.post("/api/v1/expenses", json={
        "amount": amount, "category": category, "date": date,
    }, headers=headers)
    assert res.status_code == 201
    return res.json()["expense"]


@pytest.fixture
async def expenses(client, other_owner):
    created = [
        await _create(client, 10, "food", "2024-05-01T12:00:00Z"),
        await _create(client, 20, "rent", "2024-05-02T12:00:00Z"),
        await _create(client, 30, "food", "2024-05-03T12:00:00Z"),
        await _create(client, 40, "fun", "2024-05-04T12:00:00Z"),
    ]
    await _create(client, 999, "food", "2024-05-02T13:00:00Z", headers=other_owner)
    return created


async def test_missing_owner_header_is_401(client):
    res = await client.get("/api/v1/expenses", headers={"X-User-Id": ""})
    assert res.status_code == 401
    assert res.json()["error"]["code"] == "OWNER_REQUIRED"


async def test_create_expense(client):
    expense = await _create(client, 12.5, "  food ", "2024-05-01T08:00:00Z")
    assert expense["amount"] == 12.5
    assert expense["category"] == "food"
    assert expense["user_id"] == "user-a"
    assert expense["tags"] is None


async def test_create_expense_rejects_negative_amount(client):
    res = await client.post("/api/v1/expenses", json={"amount": -1, "category": "food"})
    assert res.status_code == 400
    assert res.json()["error"]["code"] == "VALIDATION_ERROR"


async def test_create_expense_defaults_date_to_now(client):
    res = await client.post("/api/v1/expenses", json={"amount": 1, "category": "food"})
    assert res.status_code == 201
    assert res.json()["expense"]["date"]


async def test_list_newest_first(client, expenses):
    res = await client.get("/api/v1/expenses")
    body = res.json()
    assert res.status_code == 200
    assert [e["amount"] for e in body["expenses"]] == [40, 30, 20, 10]
    assert body["meta"] == {"count": 4, "degraded": False, "pushed_bound": None}


async def test_list_date_range_inclusive(client, expenses):
    res = await client.get("/api/v1/expenses", params={
        "start_date": "2024-05-02T12:00:00Z", "end_date": "2024-05-03T12:00:00Z",
    })
    body = res.json()
    assert [e["amount"] for e in body["expenses"]] == [30, 20]
    assert body["meta"]["pushed_bound"] == "start"


async def test_list_end_only_with_category(client, expenses):
    res = await client.get("/api/v1/expenses", params={
        "end_date": "2024-05-03T23:59:59Z", "category": "food",
    })
    body = res.json()
    assert [e["amount"] for e in body["expenses"]] == [30, 10]
    assert body["meta"] == {"count": 2, "degraded": False, "pushed_bound": "end"}


async def test_list_limit(client, expenses):
    res = await client.get("/api/v1/expenses", params={
        "start_date": "2024-05-01T00:00:00Z", "limit": 2,
    })
    assert [e["amount"] for e in res.json()["expenses"]] == [40, 30]


@pytest.mark.parametrize("limit", [0, -5, 501])
async def test_list_rejects_out_of_range_limit(client, limit):
    res = await client.get("/api/v1/expenses", params={"limit": limit})
    assert res.status_code == 400


async def test_stats_for_window(client, expenses):
    res = await client.get("/api/v1/expenses/stats", params={
        "start_date": "2024-05-01T00:00:00Z", "end_date": "2024-05-03T00:00:00Z",
    })
    stats = res.json()["stats"]
    assert stats["total_amount"] == 30
    assert stats["category_breakdown"] == {"food": 10, "rent": 20}
    assert stats["daily_breakdown"] == {"2024-05-01": 10, "2024-05-02": 20}
    assert stats["average_daily"] == 15


async def test_update_own_expense(client, expenses):
    res = await client.put(
        f"/api/v1/expenses/{expenses[0]['id']}", json={"amount": 11, "category": "snacks"},
    )
    assert res.status_code == 200
    assert res.json()["expense"]["amount"] == 11
    assert res.json()["expense"]["category"] == "snacks"


async def test_other_owners_expense_is_404(client, expenses, other_owner):
    res = await client.put(
        f"/api/v1/expenses/{expenses[0]['id']}", json={"amount": 1}, headers=other_owner,
    )
    assert res.status_code == 404
    res = await client.delete(f"/api/v1/expenses/{expenses[0]['id']}", headers=other_owner)
    assert res.status_code == 404


async def test_delete_expense(client, expenses):
    res = await client.delete(f"/api/v1/expenses/{expenses[0]['id']}")
    assert res.status_code == 200
    listed = (await client.get("/api/v1/expenses")).json()["expenses"]
    assert expenses[0]["id"] not in {e["id"] for e in listed}
