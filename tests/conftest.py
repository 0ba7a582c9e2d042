"""Pytest fixtures for testing"""

import pytest
from datetime import datetime
from decimal import Decimal
from typing import Dict, Generator, List, Tuple
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from risk_gateway.api.main import create_app
from risk_gateway.infrastructure.database.models import Base
from risk_gateway.infrastructure.database.session import get_db
from risk_gateway.domain.models import (
    Customer,
    MerchantCategory,
    RiskProfile,
    RiskRule,
    RuleType,
    TransactionDecision,
    TransactionInput,
)


# Test database
TEST_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(TEST_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

EVALUATED_AT = datetime(2026, 2, 2, 10, 30, 0)


@pytest.fixture
def db() -> Generator[Session, None, None]:
    """Create test database and session"""
    Base.metadata.create_all(bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def client(db: Session) -> TestClient:
    """Create FastAPI test client with test database"""
    app = create_app()

    def override_get_db():
        try:
            yield db
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    return TestClient(app)


class FakeHistory:
    """In-memory transaction history returning a fixed count"""

    def __init__(self, count: int = 0):
        self.count = count
        self.calls: List[Tuple[int, datetime]] = []

    def count_customer_transactions_after(self, customer_id: int, cutoff: datetime) -> int:
        self.calls.append((customer_id, cutoff))
        return self.count


class InMemoryStore:
    """Customer lookup, rule registry, history and transaction store in one"""

    def __init__(self, customers: List[Customer], rules: List[RiskRule]):
        self.customers: Dict[int, Customer] = {c.id: c for c in customers}
        self.rules = rules
        self.pending: List[Tuple[TransactionInput, TransactionDecision]] = []
        self.committed: List[Tuple[TransactionInput, TransactionDecision]] = []
        self.rollbacks = 0

    def find_customer_by_id(self, customer_id: int):
        return self.customers.get(customer_id)

    def list_active_rules(self) -> List[RiskRule]:
        return [r for r in self.rules if r.active]

    def count_customer_transactions_after(self, customer_id: int, cutoff: datetime) -> int:
        return sum(
            1 for txn, decision in self.committed
            if txn.customer_id == customer_id and decision.timestamp > cutoff
        )

    def persist_decision(self, transaction: TransactionInput, decision: TransactionDecision) -> int:
        self.pending.append((transaction, decision))
        return len(self.committed) + len(self.pending)

    def commit(self) -> None:
        self.committed.extend(self.pending)
        self.pending = []

    def rollback(self) -> None:
        self.pending = []
        self.rollbacks += 1


@pytest.fixture
def customer() -> Customer:
    return Customer(
        id=1,
        name="Test Customer",
        email="test@example.com",
        country="USA",
        risk_profile=RiskProfile.LOW,
    )


@pytest.fixture
def amount_rule() -> RiskRule:
    return RiskRule(
        id=1,
        name="High Amount",
        rule_type=RuleType.AMOUNT_THRESHOLD,
        amount_threshold=Decimal("10000.00"),
        risk_points=50,
    )


@pytest.fixture
def gambling_rule() -> RiskRule:
    return RiskRule(
        id=2,
        name="Gambling",
        rule_type=RuleType.MERCHANT_CATEGORY,
        merchant_category=MerchantCategory.GAMBLING,
        risk_points=40,
    )


@pytest.fixture
def frequency_rule() -> RiskRule:
    return RiskRule(
        id=3,
        name="High Frequency",
        rule_type=RuleType.FREQUENCY,
        frequency_count=3,
        frequency_window_minutes=10,
        risk_points=30,
    )


def make_input(amount: str = "100.00", category: str = "RETAIL", customer_id: int = 1) -> TransactionInput:
    return TransactionInput(
        customer_id=customer_id,
        amount=Decimal(amount),
        currency="USD",
        merchant_category=category,
    )
