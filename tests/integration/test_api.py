import dataclasses
from decimal import Decimal
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient


@pytest.fixture
def owner():
    return uuid4()


@pytest.fixture
def headers(auth_headers, owner):
    return auth_headers(owner)


def test_owner_routes_require_a_token(client: TestClient):
    r = client.get("/api/v1/students")
    assert r.status_code == 401
    body = r.json()
    assert body["code"] == "unauthorized"
    assert body["correlation_id"] == r.headers["X-Request-ID"]


def test_invalid_token_is_unauthorized(client: TestClient):
    r = client.get("/api/v1/groups", headers={"Authorization": "Bearer not-a-jwt"})
    assert r.status_code == 401


def test_request_id_is_echoed(client: TestClient, headers):
    r = client.get("/api/v1/students", headers={**headers, "X-Request-ID": "req-123"})
    assert r.status_code == 200
    assert r.headers["X-Request-ID"] == "req-123"


def test_student_crud(client: TestClient, headers):
    r = client.post("/api/v1/students", json={"full_name": "  Ahmed Ali ", "phone": "0100 123 4567"}, headers=headers)
    assert r.status_code == 201
    student = r.json()
    assert student["full_name"] == "Ahmed Ali"

    r = client.get("/api/v1/students", params={"q": "ahmed"}, headers=headers)
    assert [s["id"] for s in r.json()] == [student["id"]]

    r = client.patch(f"/api/v1/students/{student['id']}", json={"active": False}, headers=headers)
    assert r.json()["active"] is False
    assert r.json()["phone"] == "0100 123 4567"

    r = client.delete(f"/api/v1/students/{student['id']}", headers=headers)
    assert r.status_code == 204
    r = client.get(f"/api/v1/students/{student['id']}", headers=headers)
    assert r.status_code == 404
    assert r.json()["code"] == "student_not_found"


def test_ensure_student_is_idempotent(client: TestClient, headers):
    first = client.post("/api/v1/students/ensure", json={"full_name": "Sara"}, headers=headers).json()
    second = client.post("/api/v1/students/ensure", json={"full_name": " Sara "}, headers=headers).json()
    assert first["id"] == second["id"]


def test_blank_name_is_a_validation_error(client: TestClient, headers):
    r = client.post("/api/v1/students", json={"full_name": "   "}, headers=headers)
    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"


def test_unknown_payment_method_is_rejected(client: TestClient, headers):
    r = client.post("/api/v1/payments", json={"amount": "10", "method": "cheque"}, headers=headers)
    assert r.status_code == 422


def test_sub_cent_amount_is_a_validation_error(client: TestClient, headers):
    r = client.post("/api/v1/payments", json={"amount": "0.001"}, headers=headers)
    assert r.status_code == 422
    assert r.json()["code"] == "validation_error"
    assert client.get("/api/v1/payments", headers=headers).json() == []

    group = client.post("/api/v1/groups", json={"name": "Physics", "due_total": "100"}, headers=headers).json()
    r = client.post(
        f"/api/v1/groups/{group['id']}/settlements",
        json={"mode": "partial", "amount": "0.004"},
        headers=headers,
    )
    assert r.status_code == 422
    assert client.get("/api/v1/payments", headers=headers).json() == []


def test_owners_cannot_see_each_other(client: TestClient, auth_headers):
    mine, theirs = auth_headers(uuid4()), auth_headers(uuid4())
    group = client.post("/api/v1/groups", json={"name": "Physics"}, headers=mine).json()

    assert client.get("/api/v1/groups", headers=theirs).json() == []
    assert client.get(f"/api/v1/groups/{group['id']}", headers=theirs).status_code == 404
    assert client.patch(f"/api/v1/groups/{group['id']}", json={"name": "X"}, headers=theirs).status_code == 404


def test_group_balance_and_settlement_flow(client: TestClient, headers):
    group = client.post("/api/v1/groups", json={"name": "Physics", "due_total": "1000"}, headers=headers).json()
    for amount in ("400", "300"):
        r = client.post("/api/v1/payments", json={"amount": amount, "group_id": group["id"]}, headers=headers)
        assert r.status_code == 201

    balance = client.get(f"/api/v1/groups/{group['id']}/balance", headers=headers).json()
    assert Decimal(balance["remaining"]) == Decimal("300")

    r = client.post(
        f"/api/v1/groups/{group['id']}/settlements",
        json={"mode": "partial", "amount": "500"},
        headers=headers,
    )
    assert r.status_code == 422
    assert r.json()["code"] == "invalid_settlement_amount"

    r = client.post(f"/api/v1/groups/{group['id']}/settlements", json={"mode": "full"}, headers=headers)
    assert r.status_code == 201
    result = r.json()
    assert Decimal(result["payment"]["amount"]) == Decimal("300")
    assert Decimal(result["balance"]["paid_total"]) == Decimal("1000")
    assert Decimal(result["balance"]["remaining"]) == Decimal("0")


def test_group_members_and_delete(client: TestClient, headers):
    group = client.post("/api/v1/groups", json={"name": "Maths"}, headers=headers).json()
    s1 = client.post("/api/v1/students", json={"full_name": "S1"}, headers=headers).json()
    s2 = client.post("/api/v1/students", json={"full_name": "S2"}, headers=headers).json()

    r = client.put(
        f"/api/v1/groups/{group['id']}/members",
        json={"student_ids": [s1["id"], s2["id"]]},
        headers=headers,
    )
    assert r.status_code == 204
    assert client.get(f"/api/v1/students/{s1['id']}", headers=headers).json()["group_id"] == group["id"]

    assert client.delete(f"/api/v1/groups/{group['id']}", headers=headers).status_code == 204
    students = client.get("/api/v1/students", headers=headers).json()
    assert all(s["group_id"] is None for s in students)
    assert client.get("/api/v1/groups", headers=headers).json() == []


def test_expense_crud(client: TestClient, headers):
    r = client.post(
        "/api/v1/expenses",
        json={"description": "Rent", "amount": "250.50", "spent_at": "2024-03-01"},
        headers=headers,
    )
    assert r.status_code == 201
    expense = r.json()
    r = client.patch(f"/api/v1/expenses/{expense['id']}", json={"amount": "300"}, headers=headers)
    assert Decimal(r.json()["amount"]) == Decimal("300")
    assert client.delete(f"/api/v1/expenses/{expense['id']}", headers=headers).status_code == 204
    assert client.get("/api/v1/expenses", headers=headers).json() == []


def test_guest_code_lifecycle(client: TestClient, headers):
    assert client.get("/api/v1/guest-codes/active", headers=headers).json() is None

    r = client.post("/api/v1/guest-codes", json={"code": "abc123"}, headers=headers)
    assert r.status_code == 201
    assert r.json()["code"] == "ABC123"

    client.post("/api/v1/payments", json={"amount": "75", "paid_at": "2024-05-02", "note": "Sara"}, headers=headers)

    assert client.post("/api/v1/guest/verify", json={"code": " abc123"}).json() == {"valid": True}

    r = client.get("/api/v1/guest/summary", headers={"X-Guest-Code": "ABC123"})
    assert r.status_code == 200
    summary = r.json()
    assert Decimal(summary["total"]) == Decimal("75")
    assert summary["count"] == 1
    assert set(summary["payments"][0]) == {"paid_at", "amount", "method"}

    rotated = client.post("/api/v1/guest-codes", json={}, headers=headers).json()
    assert rotated["code"] != "ABC123"
    assert client.post("/api/v1/guest/verify", json={"code": "abc123"}).json() == {"valid": False}

    assert client.delete("/api/v1/guest-codes", headers=headers).status_code == 204
    r = client.get("/api/v1/guest/summary", headers={"X-Guest-Code": rotated["code"]})
    assert r.status_code == 401
    assert r.json()["code"] == "invalid_guest_code"


def test_reports(client: TestClient, headers):
    group = client.post("/api/v1/groups", json={"name": "Physics", "due_total": "1000"}, headers=headers).json()
    client.post(
        "/api/v1/payments",
        json={"amount": "400", "group_id": group["id"], "paid_at": "2024-03-02"},
        headers=headers,
    )
    client.post("/api/v1/expenses", json={"description": "Rent", "amount": "100", "spent_at": "2024-03-05"}, headers=headers)

    dashboard = client.get("/api/v1/reports/dashboard", params={"month": "03"}, headers=headers).json()
    assert Decimal(dashboard["net_income"]) == Decimal("300")
    assert dashboard["groups_with_debt"][0]["group"]["name"] == "Physics"
    assert Decimal(dashboard["groups_with_debt"][0]["balance"]["remaining"]) == Decimal("600")

    monthly = client.get("/api/v1/reports/monthly", headers=headers).json()
    assert [m["month"] for m in monthly["months"]] == ["2024-03"]

    insights = client.get("/api/v1/reports/insights", params={"today": "2024-03-20"}, headers=headers).json()
    assert len(insights) == 3

    snapshot = client.get("/api/v1/reports/snapshot", headers=headers).json()
    assert len(snapshot["groups"]) == 1 and len(snapshot["payments"]) == 1

    r = client.get("/api/v1/reports/dashboard", params={"month": "13"}, headers=headers)
    assert r.status_code == 422


def test_db_health(client: TestClient):
    r = client.get("/_health/db")
    assert r.status_code == 200
    assert r.json()["ok"] is True


def test_reports_see_rows_past_the_page_size(api_settings, auth_headers, owner):
    from tutorledger.main import create_app

    settings = dataclasses.replace(api_settings, search_page_size=3)
    headers = auth_headers(owner)
    with TestClient(create_app(settings)) as client:
        group = client.post("/api/v1/groups", json={"name": "Physics", "due_total": "500"}, headers=headers).json()
        ids = [
            client.post("/api/v1/students", json={"full_name": f"Student {i}"}, headers=headers).json()["id"]
            for i in range(5)
        ]
        r = client.put(f"/api/v1/groups/{group['id']}/members", json={"student_ids": ids}, headers=headers)
        assert r.status_code == 204
        assert len(client.get("/api/v1/students", headers=headers).json()) == 3

        r = client.post(
            "/api/v1/payments",
            json={"amount": "100", "student_id": ids[-1], "paid_at": "2024-03-05"},
            headers=headers,
        )
        assert r.status_code == 201

        monthly = client.get("/api/v1/reports/monthly", headers=headers).json()
        assert {k: Decimal(v) for k, v in monthly["by_group"].items()} == {"Physics": Decimal("100")}

        for name in ("Z1", "Z2", "Z3"):
            client.post("/api/v1/groups", json={"name": name, "due_total": "10"}, headers=headers)
        assert len(client.get("/api/v1/groups", headers=headers).json()) == 3

        dashboard = client.get("/api/v1/reports/dashboard", headers=headers).json()
        names = [d["group"]["name"] for d in dashboard["groups_with_debt"]]
        assert names[0] == "Physics"
        assert sorted(names[1:]) == ["Z1", "Z2", "Z3"]
