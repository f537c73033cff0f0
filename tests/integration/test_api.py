"""Integration tests for API endpoints"""

import uuid
import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from abudget.domain.models import Category
from abudget.infrastructure.database.repositories import CategoryRepository


@pytest.fixture
def seeded_categories(db, food, groceries, housing):
    repo = CategoryRepository(db)
    for category in (food, groceries, housing):
        repo.add_category(category)
    return {"food": food, "groceries": groceries, "housing": housing}


def _period_body(start: str, end: str, allocations=(), incomes=(("Salary", "3000"),), period_id=None):
    body = {
        "methodology": "zeroBased",
        "start_date": start,
        "end_date": end,
        "income_sources": [{"source_name": n, "amount": a} for n, a in incomes],
        "allocations": [{"category_id": str(c), "planned_amount": p} for c, p in allocations],
    }
    if period_id:
        body["id"] = period_id
    return body


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31"))
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "abudget_period_commit_total" in response.text


def test_request_id_header(client: TestClient):
    response = client.get("/health")
    assert "X-Request-ID" in response.headers

    traced = client.get("/health", headers={"X-Request-ID": "trace-123"})
    assert traced.headers["X-Request-ID"] == "trace-123"


def test_create_period(client: TestClient, seeded_categories):
    """Test POST /v1/periods persists income and allocations"""
    food = seeded_categories["food"]
    response = client.post(
        "/v1/periods",
        json=_period_body("2025-01-01", "2025-01-31", allocations=((food.id, "400"),)),
    )

    assert response.status_code == 201
    data = response.json()
    assert data["methodology"] == "zeroBased"
    assert Decimal(data["income_sources"][0]["amount"]) == Decimal("3000")
    assert data["allocations"][0]["category_id"] == str(food.id)

    listed = client.get("/v1/periods").json()
    assert [p["id"] for p in listed] == [data["id"]]


def test_create_period_overlap_conflict(client: TestClient):
    """Test overlapping period is rejected with 409 and the conflicting bounds"""
    client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31"))

    response = client.post("/v1/periods", json=_period_body("2025-01-31", "2025-02-28"))

    assert response.status_code == 409
    detail = response.json()["detail"]
    assert detail[0]["error"] == "PeriodOverlap"
    assert detail[0]["conflict_start"] == "2025-01-01"
    assert detail[0]["conflict_end"] == "2025-01-31"


def test_create_period_validation_error(client: TestClient):
    """Test missing income is a 422"""
    response = client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31", incomes=()))

    assert response.status_code == 422
    assert response.json()["detail"][0]["error"] == "NoIncome"


def test_edit_period_in_place(client: TestClient):
    """Test resubmitting with the same id extends the period"""
    created = client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31")).json()

    response = client.post(
        "/v1/periods",
        json=_period_body("2025-01-01", "2025-02-05", period_id=created["id"]),
    )

    assert response.status_code == 201
    assert response.json()["end_date"] == "2025-02-05"
    assert len(client.get("/v1/periods").json()) == 1


def test_get_and_delete_period(client: TestClient):
    created = client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31")).json()

    assert client.get(f"/v1/periods/{created['id']}").status_code == 200
    assert client.delete(f"/v1/periods/{created['id']}").status_code == 204
    assert client.get(f"/v1/periods/{created['id']}").status_code == 404


def test_get_period_bad_id(client: TestClient):
    assert client.get("/v1/periods/not-a-uuid").status_code == 400
    assert client.get("/v1/periods/00000000-0000-0000-0000-000000000000").status_code == 404


def test_record_transaction_assignment(client: TestClient, seeded_categories):
    """Test response reports the covering period or null when orphaned"""
    period = client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31")).json()
    food = seeded_categories["food"]

    inside = client.post(
        "/v1/transactions",
        json={"date": "2025-01-15", "sub_total": "20", "tax": "1.5", "merchant": "Market", "bucket": "needs", "category_id": str(food.id)},
    )
    outside = client.post(
        "/v1/transactions",
        json={"date": "2025-03-01", "sub_total": "5", "merchant": "Cafe", "bucket": "wants"},
    )

    assert inside.status_code == 201
    assert inside.json()["period_id"] == period["id"]
    assert Decimal(inside.json()["total"]) == Decimal("21.5")
    assert outside.status_code == 201
    assert outside.json()["period_id"] is None

    orphaned = client.get("/v1/transactions/orphaned").json()["transactions"]
    assert [t["merchant"] for t in orphaned] == ["Cafe"]


def test_record_transaction_validation(client: TestClient):
    response = client.post(
        "/v1/transactions",
        json={"date": "2025-01-15", "sub_total": "0", "merchant": "Market", "bucket": "needs"},
    )
    assert response.status_code == 422
    assert response.json()["detail"][0]["error"] == "AmountInvalid"


def test_period_summary(client: TestClient, seeded_categories):
    """Test summary rolls up sub-category spending and reconciles buckets"""
    food, groceries = seeded_categories["food"], seeded_categories["groceries"]
    period = client.post(
        "/v1/periods",
        json=_period_body("2025-01-01", "2025-01-31", allocations=((food.id, "400"),)),
    ).json()
    client.post(
        "/v1/transactions",
        json={"date": "2025-01-10", "sub_total": "120", "tax": "10", "merchant": "Market", "bucket": "needs", "sub_category_id": str(groceries.id)},
    )

    response = client.get(f"/v1/periods/{period['id']}/summary")

    assert response.status_code == 200
    data = response.json()
    assert Decimal(data["totals"]["spent"]) == Decimal("130")
    assert Decimal(data["totals"]["remaining"]) == Decimal("2870")
    assert Decimal(data["allocations"][0]["remaining"]) == Decimal("270")
    assert data["buckets"]["needs"]["comparison"] == "underTarget"
    assert data["buckets"]["savings"]["comparison"] == "underTarget"


def test_prefill_endpoint(client: TestClient, seeded_categories):
    """Test prefill returns an unsaved draft with carry-over"""
    food = seeded_categories["food"]
    previous = client.post(
        "/v1/periods",
        json=_period_body("2025-01-01", "2025-01-31", allocations=((food.id, "400"),)),
    ).json()
    client.post(
        "/v1/transactions",
        json={"date": "2025-01-10", "sub_total": "150", "merchant": "Market", "bucket": "needs", "category_id": str(food.id)},
    )

    response = client.post(
        "/v1/periods/prefill",
        json={"previous_period_id": previous["id"], "start_date": "2025-02-01", "end_date": "2025-02-28"},
    )

    assert response.status_code == 200
    draft = response.json()
    assert draft["step"] == "settingAllocations"
    assert Decimal(draft["allocations"][0]["carry_over_amount"]) == Decimal("250")
    assert Decimal(draft["total_income"]) == Decimal("3000")
    assert len(client.get("/v1/periods").json()) == 1


def test_prefill_unknown_previous(client: TestClient):
    response = client.post(
        "/v1/periods/prefill",
        json={"previous_period_id": "00000000-0000-4000-8000-000000000000"},
    )
    assert response.status_code == 404


def test_settings_get_or_create_and_update(client: TestClient):
    """Test default targets and percentage validation on update"""
    data = client.get("/v1/settings").json()
    assert Decimal(data["needs_percentage"]) == Decimal("50")

    bad = client.put("/v1/settings", json={"needs_percentage": "33", "wants_percentage": "33", "savings_percentage": "33"})
    assert bad.status_code == 422
    assert bad.json()["detail"][0]["error"] == "PercentageSumInvalid"
    assert bad.json()["detail"][0]["actual_sum"] == "99"

    good = client.put("/v1/settings", json={"needs_percentage": "33", "wants_percentage": "33", "savings_percentage": "34"})
    assert good.status_code == 200
    assert Decimal(client.get("/v1/settings").json()["savings_percentage"]) == Decimal("34")


def test_settings_reject_more_precision_than_stored(client: TestClient):
    """Test percentages finer than four places are refused instead of rounded"""
    response = client.put(
        "/v1/settings",
        json={"needs_percentage": "33.33333", "wants_percentage": "33.33333", "savings_percentage": "33.33334"},
    )

    assert response.status_code == 422
    data = client.get("/v1/settings").json()
    total = sum(Decimal(data[k]) for k in ("needs_percentage", "wants_percentage", "savings_percentage"))
    assert total == Decimal("100")


def test_settings_accept_four_decimal_places(client: TestClient):
    response = client.put(
        "/v1/settings",
        json={"needs_percentage": "33.3333", "wants_percentage": "33.3333", "savings_percentage": "33.3334"},
    )

    assert response.status_code == 200
    assert Decimal(client.get("/v1/settings").json()["savings_percentage"]) == Decimal("33.3334")


def test_period_rejects_sub_cent_income(client: TestClient):
    """Test an income that would round to zero never reaches storage"""
    response = client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31", incomes=(("Tips", "0.004"),)))

    assert response.status_code == 422
    assert client.get("/v1/periods").json() == []


def test_transaction_rejects_sub_cent_amounts(client: TestClient):
    response = client.post(
        "/v1/transactions",
        json={"date": "2025-01-15", "sub_total": "0.001", "merchant": "Market", "bucket": "needs"},
    )
    assert response.status_code == 422
    assert client.get("/v1/transactions").json()["transactions"] == []


def test_allocation_for_name_based_category_id(client: TestClient, db):
    """Test category ids of any UUID version round-trip through the API"""
    food = Category(id=uuid.uuid5(uuid.NAMESPACE_DNS, "food"), name="Food")
    CategoryRepository(db).add_category(food)

    response = client.post(
        "/v1/periods",
        json=_period_body("2025-01-01", "2025-01-31", allocations=((food.id, "400"),)),
    )

    assert response.status_code == 201
    assert response.json()["allocations"][0]["category_id"] == str(food.id)

    recorded = client.post(
        "/v1/transactions",
        json={"date": "2025-01-10", "sub_total": "25", "merchant": "Market", "bucket": "needs", "category_id": str(food.id)},
    )
    assert recorded.status_code == 201
    assert recorded.json()["category_id"] == str(food.id)


def test_active_period_endpoint(client: TestClient):
    """Test lookup by day, including the 404 outside every period"""
    period = client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31")).json()

    found = client.get("/v1/periods/active", params={"today": "2025-01-31"})
    assert found.status_code == 200
    assert found.json()["id"] == period["id"]

    assert client.get("/v1/periods/active", params={"today": "2025-02-01"}).status_code == 404


def test_list_transactions_with_filters(client: TestClient, seeded_categories):
    food, housing = seeded_categories["food"], seeded_categories["housing"]
    period = client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31")).json()
    for body in (
        {"date": "2025-01-05", "sub_total": "10", "merchant": "Market", "bucket": "needs", "category_id": str(food.id)},
        {"date": "2025-01-06", "sub_total": "900", "merchant": "Landlord", "bucket": "needs", "category_id": str(housing.id)},
        {"date": "2025-02-06", "sub_total": "15", "merchant": "Cinema", "bucket": "wants"},
    ):
        client.post("/v1/transactions", json=body)

    by_category = client.get("/v1/transactions", params={"category_id": str(food.id)}).json()["transactions"]
    assert [t["merchant"] for t in by_category] == ["Market"]
    assert by_category[0]["period_id"] == period["id"]

    wants = client.get("/v1/transactions", params={"bucket": "wants"}).json()["transactions"]
    assert [t["merchant"] for t in wants] == ["Cinema"]
    assert wants[0]["period_id"] is None

    in_january = client.get("/v1/transactions", params={"start_date": "2025-01-01", "end_date": "2025-01-31"})
    assert len(in_january.json()["transactions"]) == 2


def test_update_transaction_moves_between_periods(client: TestClient):
    """Test an edited date re-derives the covering period"""
    client.post("/v1/periods", json=_period_body("2025-01-01", "2025-01-31"))
    created = client.post(
        "/v1/transactions",
        json={"date": "2025-03-01", "sub_total": "5", "merchant": "Cafe", "bucket": "wants"},
    ).json()
    assert created["period_id"] is None

    response = client.put(
        f"/v1/transactions/{created['id']}",
        json={"date": "2025-01-20", "sub_total": "6", "tax": "0.50", "merchant": "Cafe", "bucket": "wants"},
    )

    assert response.status_code == 200
    assert response.json()["period_id"] is not None
    assert Decimal(response.json()["total"]) == Decimal("6.50")
    assert client.get("/v1/transactions/orphaned").json()["transactions"] == []


def test_update_transaction_validation_and_missing(client: TestClient):
    created = client.post(
        "/v1/transactions",
        json={"date": "2025-01-20", "sub_total": "5", "merchant": "Cafe", "bucket": "wants"},
    ).json()

    invalid = client.put(
        f"/v1/transactions/{created['id']}",
        json={"date": "2025-01-20", "sub_total": "5", "merchant": " ", "bucket": "wants"},
    )
    assert invalid.status_code == 422
    assert invalid.json()["detail"][0]["error"] == "RequiredFieldMissing"

    missing = client.put(
        "/v1/transactions/00000000-0000-0000-0000-000000000000",
        json={"date": "2025-01-20", "sub_total": "5", "merchant": "Cafe", "bucket": "wants"},
    )
    assert missing.status_code == 404


def test_delete_transaction(client: TestClient):
    created = client.post(
        "/v1/transactions",
        json={"date": "2025-01-20", "sub_total": "5", "merchant": "Cafe", "bucket": "wants"},
    ).json()

    assert client.delete(f"/v1/transactions/{created['id']}").status_code == 204
    assert client.delete(f"/v1/transactions/{created['id']}").status_code == 404
    assert client.delete("/v1/transactions/not-a-uuid").status_code == 400
    assert client.get("/v1/transactions").json()["transactions"] == []


def test_settings_reset(client: TestClient):
    client.put("/v1/settings", json={"needs_percentage": "60", "wants_percentage": "30", "savings_percentage": "10"})

    response = client.post("/v1/settings/reset")

    assert response.status_code == 200
    assert Decimal(response.json()["needs_percentage"]) == Decimal("50")
    assert Decimal(client.get("/v1/settings").json()["savings_percentage"]) == Decimal("20")
