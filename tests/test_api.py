from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from database import Base, _enable_sqlite_pragmas, get_db
from identity import issue_identity_token
from main import app
from periods import local_now
from seed import seed_default_categories


@pytest.fixture()
def client():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    event.listen(engine, "connect", _enable_sqlite_pragmas)
    Base.metadata.create_all(engine)
    TestingSession = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)
    with TestingSession() as session:
        seed_default_categories(session)
        session.commit()

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield TestClient(app)
    app.dependency_overrides.clear()


def _register(client: TestClient, username: str) -> dict[str, str]:
    response = client.post(
        "/api/v1/users/register",
        json={
            "username": username,
            "email": f"{username}@example.com",
            "password": "long-enough-pw",
        },
    )
    assert response.status_code == 201
    user_id = response.json()["data"]["id"]
    return {"Authorization": f"Bearer {issue_identity_token(user_id)}"}


def _category_id(client: TestClient, headers: dict[str, str], name: str) -> str:
    categories = client.get("/api/v1/categories", headers=headers).json()["data"]
    return next(c["id"] for c in categories if c["name"] == name)


def test_requests_without_valid_token_are_rejected(client: TestClient) -> None:
    assert client.get("/api/v1/categories").status_code == 401
    response = client.get(
        "/api/v1/categories", headers={"Authorization": "Bearer not-a-token"}
    )
    assert response.status_code == 401


def test_register_returns_camel_case_profile(client: TestClient) -> None:
    headers = _register(client, "erin")
    profile = client.get("/api/v1/users/profile", headers=headers).json()["data"]
    assert profile["username"] == "erin"
    assert profile["isActive"] is True
    assert "passwordHash" not in profile

    duplicate = client.post(
        "/api/v1/users/register",
        json={
            "username": "erin",
            "email": "another@example.com",
            "password": "long-enough-pw",
        },
    )
    assert duplicate.status_code == 409


def test_expense_crud_and_pagination_envelope(client: TestClient) -> None:
    headers = _register(client, "frank")
    food = _category_id(client, headers, "Food & Dining")
    today = local_now().date()

    for offset in range(3):
        response = client.post(
            "/api/v1/expenses",
            headers=headers,
            json={
                "name": f"Meal {offset}",
                "amount": 12.5 + offset,
                "categoryId": food,
                "date": (today - timedelta(days=offset)).isoformat(),
            },
        )
        assert response.status_code == 201
        created = response.json()["data"]
        assert created["category"]["name"] == "Food & Dining"

    listing = client.get(
        "/api/v1/expenses", headers=headers, params={"page": 1, "limit": 2}
    ).json()
    assert len(listing["data"]) == 2
    assert listing["pagination"] == {
        "total": 3,
        "page": 1,
        "limit": 2,
        "totalPages": 2,
    }
    assert listing["data"][0]["name"] == "Meal 0"
    assert listing["data"][0]["amount"] == 12.5

    expense_id = listing["data"][0]["id"]
    updated = client.put(
        f"/api/v1/expenses/{expense_id}",
        headers=headers,
        json={"notes": "with dessert"},
    ).json()["data"]
    assert updated["notes"] == "with dessert"

    other = _register(client, "grace")
    assert client.get(f"/api/v1/expenses/{expense_id}", headers=other).status_code == 404
    assert (
        client.delete(f"/api/v1/expenses/{expense_id}", headers=other).status_code
        == 403
    )

    deleted = client.delete(f"/api/v1/expenses/{expense_id}", headers=headers)
    assert deleted.status_code == 200
    assert deleted.json()["data"]["message"] == "Expense deleted successfully"

    recent = client.get("/api/v1/expenses/recent", headers=headers).json()["data"]
    assert [e["name"] for e in recent] == ["Meal 1", "Meal 2"]


def test_category_errors_map_to_status_codes(client: TestClient) -> None:
    headers = _register(client, "heidi")
    shopping = _category_id(client, headers, "Shopping")

    conflict = client.post(
        "/api/v1/categories", headers=headers, json={"name": "Shopping"}
    )
    assert conflict.status_code == 409
    assert conflict.json()["detail"] == "Category with this name already exists"

    forbidden = client.delete(f"/api/v1/categories/{shopping}", headers=headers)
    assert forbidden.status_code == 403

    missing = client.get("/api/v1/categories/unknown", headers=headers)
    assert missing.status_code == 404

    invalid = client.post(
        "/api/v1/categories",
        headers=headers,
        json={"name": "Plants", "color": "green"},
    )
    assert invalid.status_code == 422


def test_budget_and_statistics_routes(client: TestClient) -> None:
    headers = _register(client, "ivan")
    food = _category_id(client, headers, "Food & Dining")
    today = local_now().date()

    assert client.get("/api/v1/budgets/current", headers=headers).json() == {
        "data": None
    }

    budget = client.post(
        "/api/v1/budgets",
        headers=headers,
        json={
            "amount": 100,
            "periodType": "WEEKLY",
            "startDate": today.isoformat(),
        },
    )
    assert budget.status_code == 201
    assert budget.json()["data"]["endDate"] == (today + timedelta(days=6)).isoformat()

    overlapping = client.post(
        "/api/v1/budgets",
        headers=headers,
        json={"amount": 50, "periodType": "MONTHLY", "startDate": today.isoformat()},
    )
    assert overlapping.status_code == 400

    client.post(
        "/api/v1/expenses",
        headers=headers,
        json={"name": "Groceries", "amount": 40, "categoryId": food},
    )

    current = client.get("/api/v1/budgets/current", headers=headers).json()["data"]
    assert current["spent"] == 40.0
    assert current["remaining"] == 60.0
    assert current["percentage"] == 40.0
    assert current["isOverBudget"] is False

    dashboard = client.get("/api/v1/statistics/dashboard", headers=headers).json()[
        "data"
    ]
    assert dashboard["todayTotal"] == 40.0
    assert dashboard["topCategories"][0]["name"] == "Food & Dining"
    assert dashboard["budgetStatus"]["budgetId"] == current["budgetId"]

    by_category = client.get(
        "/api/v1/statistics/by-category", headers=headers
    ).json()["data"]
    assert by_category[0]["percentage"] == 100.0

    bad_range = client.get(
        "/api/v1/statistics/daily",
        headers=headers,
        params={"startDate": "2024-02-02", "endDate": "2024-02-01"},
    )
    assert bad_range.status_code == 400


def test_token_of_deleted_account_is_rejected(client: TestClient) -> None:
    headers = _register(client, "judy")
    food = _category_id(client, headers, "Food & Dining")
    client.post(
        "/api/v1/expenses",
        headers=headers,
        json={"name": "Coffee", "amount": 3, "categoryId": food},
    )

    response = client.request(
        "DELETE",
        "/api/v1/users/account",
        headers=headers,
        json={"password": "long-enough-pw"},
    )
    assert response.status_code == 200

    for method, path, body in [
        ("POST", "/api/v1/categories", {"name": "Afterlife"}),
        ("POST", "/api/v1/expenses", {"name": "Tea", "amount": 2, "categoryId": food}),
        (
            "POST",
            "/api/v1/budgets",
            {"amount": 5, "periodType": "WEEKLY", "startDate": "2024-01-01"},
        ),
        ("GET", "/api/v1/users/profile", None),
    ]:
        rejected = client.request(method, path, headers=headers, json=body)
        assert rejected.status_code == 401, path


def test_expense_listing_accepts_both_parameter_spellings(client: TestClient) -> None:
    headers = _register(client, "ken")
    food = _category_id(client, headers, "Food & Dining")
    today = local_now().date()
    for offset, amount in enumerate([5, 50, 20]):
        client.post(
            "/api/v1/expenses",
            headers=headers,
            json={
                "name": f"Snack {offset}",
                "amount": amount,
                "categoryId": food,
                "date": (today - timedelta(days=offset)).isoformat(),
            },
        )

    def amounts(params: dict[str, str]) -> list[float]:
        response = client.get("/api/v1/expenses", headers=headers, params=params)
        assert response.status_code == 200
        return [e["amount"] for e in response.json()["data"]]

    assert amounts({"sortBy": "amount", "order": "asc"}) == [5.0, 20.0, 50.0]
    assert amounts({"sort_by": "amount", "order": "asc"}) == [5.0, 20.0, 50.0]
    assert amounts({"minAmount": "10", "sort_by": "amount"}) == [50.0, 20.0]
    assert amounts({"min_amount": "10", "sortBy": "amount"}) == [50.0, 20.0]

    unknown = client.get(
        "/api/v1/expenses", headers=headers, params={"sortby": "amount"}
    )
    assert unknown.status_code == 422
    invalid = client.get("/api/v1/expenses", headers=headers, params={"page": "0"})
    assert invalid.status_code == 422
