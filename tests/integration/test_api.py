"""Integration tests for API endpoints"""

import pytest
from decimal import Decimal
from fastapi.testclient import TestClient
from sqlalchemy.orm import Session
from risk_gateway.domain.models import MerchantCategory, RiskProfile, RuleType
from risk_gateway.domain.rules import RuleDefinition
from risk_gateway.infrastructure.database.models import RiskRuleRecord
from risk_gateway.infrastructure.database.repositories import CustomerRepository, RuleRepository


@pytest.fixture
def seeded(db: Session) -> dict:
    """Two customers and the default rule set"""
    customers = CustomerRepository(db)
    john = customers.create_customer("John Doe", "john.doe@example.com", "USA", RiskProfile.LOW)
    bob = customers.create_customer("Bob Johnson", "bob.johnson@example.com", "Canada", RiskProfile.HIGH)

    rules = RuleRepository(db)
    rules.create_rule(
        RuleDefinition("High Amount", RuleType.AMOUNT_THRESHOLD.value, 50, amount_threshold=Decimal("10000"))
    )
    rules.create_rule(
        RuleDefinition("Gambling", RuleType.MERCHANT_CATEGORY.value, 40, merchant_category=MerchantCategory.GAMBLING.value)
    )
    rules.create_rule(
        RuleDefinition("High Frequency", RuleType.FREQUENCY.value, 30, frequency_count=1, frequency_window_minutes=10)
    )
    db.commit()
    return {"john": john.id, "bob": bob.id}


def _submit(client: TestClient, customer_id: int, amount: str, category: str):
    return client.post(
        "/v1/transactions",
        json={"customer_id": customer_id, "amount": amount, "currency": "USD", "merchant_category": category},
    )


def test_health_endpoint(client: TestClient):
    """Test health check endpoint"""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_metrics_endpoint(client: TestClient):
    """Test Prometheus metrics endpoint"""
    response = client.get("/metrics")
    assert response.status_code == 200
    assert "risk_decision_total" in response.text


def test_request_id_is_echoed(client: TestClient):
    response = client.get("/health", headers={"X-Request-ID": "abc-123"})
    assert response.headers["X-Request-ID"] == "abc-123"


def test_submit_approved_transaction(client: TestClient, seeded: dict):
    """Small retail purchase matches nothing"""
    response = _submit(client, seeded["john"], "50.00", "RETAIL")

    assert response.status_code == 200
    data = response.json()
    assert data["risk_score"] == 0
    assert data["status"] == "APPROVED"
    assert data["matched_rules"] == []
    assert data["customer_email"] == "john.doe@example.com"
    assert Decimal(data["amount"]) == Decimal("50.00")


def test_submit_flagged_transaction(client: TestClient, seeded: dict):
    """High amount + gambling = 90 points"""
    response = _submit(client, seeded["bob"], "15000.00", "GAMBLING")

    assert response.status_code == 200
    data = response.json()
    assert data["risk_score"] == 90
    assert data["status"] == "FLAGGED"
    assert [m["rule_name"] for m in data["matched_rules"]] == ["High Amount", "Gambling"]
    assert "15000.00" in data["matched_rules"][0]["reason"]


def test_submit_ignores_client_timestamp(client: TestClient, seeded: dict):
    response = client.post(
        "/v1/transactions",
        json={
            "customer_id": seeded["john"],
            "amount": "10.00",
            "currency": "USD",
            "merchant_category": "RETAIL",
            "timestamp": "1999-01-01T00:00:00",
        },
    )

    assert response.status_code == 200
    assert not response.json()["timestamp"].startswith("1999")


def test_frequency_rule_trips_on_repeat_submissions(client: TestClient, seeded: dict):
    """Rule 'more than 1 in 10 minutes' matches on the third submission"""
    scores = [_submit(client, seeded["john"], "20.00", "RETAIL").json()["risk_score"] for _ in range(3)]

    assert scores == [0, 0, 30]


def test_submit_unknown_customer(client: TestClient, seeded: dict):
    response = _submit(client, 9999, "50.00", "RETAIL")

    assert response.status_code == 404
    assert client.get("/v1/transactions").json()["total_elements"] == 0


def test_submit_invalid_category(client: TestClient, seeded: dict):
    response = _submit(client, seeded["john"], "50.00", "gambling")

    assert response.status_code == 400
    assert "Invalid merchant category" in response.json()["detail"]
    assert client.get("/v1/transactions").json()["total_elements"] == 0


@pytest.mark.parametrize("amount", ["0", "-5.00"])
def test_submit_non_positive_amount(client: TestClient, seeded: dict, amount: str):
    response = _submit(client, seeded["john"], amount, "RETAIL")

    assert response.status_code == 422


def test_submit_with_unknown_rule_type_in_registry(client: TestClient, db: Session, seeded: dict):
    db.add(RiskRuleRecord(rule_name="Velocity", rule_type="VELOCITY", risk_points=90, active=True))
    db.commit()

    response = _submit(client, seeded["john"], "50.00", "RETAIL")

    assert response.status_code == 200
    assert response.json()["status"] == "APPROVED"
    assert "Velocity" not in [r["rule_name"] for r in client.get("/v1/rules").json()]


@pytest.mark.parametrize("amount", ["0.004", "10000.001"])
def test_submit_amount_beyond_cents_rejected(client: TestClient, seeded: dict, amount: str):
    """Amounts are stored with two decimals, so finer ones are refused rather than rounded"""
    response = _submit(client, seeded["john"], amount, "RETAIL")

    assert response.status_code == 422
    assert client.get("/v1/transactions").json()["total_elements"] == 0


def test_get_transaction(client: TestClient, seeded: dict):
    created = _submit(client, seeded["bob"], "15000.00", "GAMBLING").json()

    response = client.get(f"/v1/transactions/{created['id']}")

    assert response.status_code == 200
    assert response.json()["matched_rules"] == created["matched_rules"]


def test_get_transaction_not_found(client: TestClient):
    response = client.get("/v1/transactions/424242")
    assert response.status_code == 404


def test_list_transactions_filters(client: TestClient, seeded: dict):
    _submit(client, seeded["john"], "50.00", "RETAIL")
    _submit(client, seeded["bob"], "15000.00", "GAMBLING")
    _submit(client, seeded["bob"], "60.00", "CRYPTO")

    flagged = client.get("/v1/transactions", params={"status": "FLAGGED"}).json()
    assert flagged["total_elements"] == 1
    assert flagged["content"][0]["customer_name"] == "Bob Johnson"

    bobs = client.get("/v1/transactions", params={"search": "BOB"}).json()
    assert bobs["total_elements"] == 2

    paged = client.get("/v1/transactions", params={"page": 1, "size": 2}).json()
    assert paged["total_pages"] == 2
    assert len(paged["content"]) == 1


def test_list_transactions_invalid_status(client: TestClient):
    response = client.get("/v1/transactions", params={"status": "PENDING"})
    assert response.status_code == 400


def test_customers_endpoints(client: TestClient):
    created = client.post(
        "/v1/customers",
        json={"name": "Jane Smith", "email": "jane.smith@example.com", "country": "UK", "risk_profile": "MEDIUM"},
    )
    assert created.status_code == 201

    duplicate = client.post(
        "/v1/customers",
        json={"name": "Jane Again", "email": "jane.smith@example.com", "country": "UK", "risk_profile": "LOW"},
    )
    assert duplicate.status_code == 400

    bad_profile = client.post(
        "/v1/customers",
        json={"name": "X", "email": "x@example.com", "country": "UK", "risk_profile": "EXTREME"},
    )
    assert bad_profile.status_code == 400

    customers = client.get("/v1/customers").json()
    assert [c["email"] for c in customers] == ["jane.smith@example.com"]


def test_create_and_update_rule(client: TestClient):
    created = client.post(
        "/v1/rules",
        json={"rule_name": "Crypto", "rule_type": "MERCHANT_CATEGORY", "merchant_category": "CRYPTO", "risk_points": 20},
    )
    assert created.status_code == 201
    rule = created.json()
    assert rule["active"] is True

    updated = client.put(
        f"/v1/rules/{rule['id']}",
        json={
            "rule_name": "Crypto",
            "rule_type": "MERCHANT_CATEGORY",
            "merchant_category": "CRYPTO",
            "risk_points": 35,
            "active": False,
        },
    )
    assert updated.status_code == 200
    assert updated.json()["risk_points"] == 35
    assert client.get("/v1/rules").json()[0]["active"] is False


def test_create_rule_missing_parameters(client: TestClient):
    response = client.post(
        "/v1/rules",
        json={"rule_name": "Burst", "rule_type": "FREQUENCY", "frequency_count": 3, "risk_points": 30},
    )

    assert response.status_code == 400
    assert client.get("/v1/rules").json() == []


def test_update_unknown_rule(client: TestClient):
    response = client.put(
        "/v1/rules/999",
        json={"rule_name": "X", "rule_type": "AMOUNT_THRESHOLD", "amount_threshold": "1", "risk_points": 1},
    )
    assert response.status_code == 404
