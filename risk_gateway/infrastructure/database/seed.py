"""Demo data: customers, the default rule set and some transaction history"""

import logging
from datetime import datetime, timedelta
from decimal import Decimal

from sqlalchemy.orm import Session

from risk_gateway.domain.models import (
    MatchedRule,
    MerchantCategory,
    RiskProfile,
    RuleType,
)
from risk_gateway.domain.rules import RuleDefinition
from risk_gateway.domain.scoring import calculate_risk_score, determine_status
from risk_gateway.domain.serialization import dump_matched_rules
from risk_gateway.infrastructure.database.models import TransactionRecord
from risk_gateway.infrastructure.database.repositories import CustomerRepository, RuleRepository

logger = logging.getLogger(__name__)


def seed_database(db: Session, now: datetime) -> bool:
    """
    Populate an empty database.

    Returns False without changes if any customer already exists.
    """
    customers = CustomerRepository(db)
    if customers.count() > 0:
        logger.info("Data already initialized. Skipping seed data")
        return False

    logger.info("Initializing seed data")

    john = customers.create_customer("John Doe", "john.doe@example.com", "USA", RiskProfile.LOW)
    jane = customers.create_customer("Jane Smith", "jane.smith@example.com", "UK", RiskProfile.MEDIUM)
    bob = customers.create_customer("Bob Johnson", "bob.johnson@example.com", "Canada", RiskProfile.HIGH)

    rules = RuleRepository(db)
    high_amount = rules.create_rule(
        RuleDefinition(
            name="High Amount",
            rule_type=RuleType.AMOUNT_THRESHOLD.value,
            amount_threshold=Decimal("10000.00"),
            risk_points=50,
        )
    )
    gambling = rules.create_rule(
        RuleDefinition(
            name="Gambling",
            rule_type=RuleType.MERCHANT_CATEGORY.value,
            merchant_category=MerchantCategory.GAMBLING.value,
            risk_points=40,
        )
    )
    rules.create_rule(
        RuleDefinition(
            name="High Frequency",
            rule_type=RuleType.FREQUENCY.value,
            frequency_count=3,
            frequency_window_minutes=10,
            risk_points=30,
        )
    )

    def amount_match(amount: str) -> MatchedRule:
        return MatchedRule(
            high_amount.id, high_amount.name, RuleType.AMOUNT_THRESHOLD.name, 50,
            f"Transaction amount {amount} exceeds threshold {high_amount.amount_threshold}",
        )

    gambling_match = MatchedRule(
        gambling.id, gambling.name, RuleType.MERCHANT_CATEGORY.name, 40,
        "High-risk merchant category: GAMBLING",
    )

    # (customer, amount, currency, timestamp, category, matches)
    history = []
    history += [(john, "50.00", "USD", now - timedelta(hours=i), MerchantCategory.RETAIL, []) for i in range(10)]
    history.append((jane, "12000.00", "USD", now - timedelta(hours=5), MerchantCategory.RETAIL, [amount_match("12000.00")]))
    history.append((jane, "500.00", "USD", now - timedelta(hours=3), MerchantCategory.GAMBLING, [gambling_match]))
    history.append(
        (bob, "15000.00", "USD", now - timedelta(hours=2), MerchantCategory.GAMBLING,
         [amount_match("15000.00"), gambling_match])
    )
    history += [
        (john, "200.00", "USD", now - timedelta(minutes=30 + i * 5), MerchantCategory.CRYPTO, [])
        for i in range(5)
    ]
    # Four recent transactions: Bob's next submission inside the window trips High Frequency
    burst_start = now - timedelta(minutes=8)
    history += [
        (bob, "100.00", "USD", burst_start + timedelta(minutes=i * 2), MerchantCategory.RETAIL, [])
        for i in range(4)
    ]
    history.append((jane, "5000.00", "EUR", now - timedelta(days=1), MerchantCategory.OTHER, []))
    history.append((john, "9999.99", "USD", now - timedelta(days=2), MerchantCategory.RETAIL, []))

    for customer, amount, currency, timestamp, category, matches in history:
        score = calculate_risk_score(matches)
        db.add(
            TransactionRecord(
                customer_id=customer.id,
                amount=Decimal(amount),
                currency=currency,
                timestamp=timestamp,
                merchant_category=category.value,
                risk_score=score,
                matched_rules_json=dump_matched_rules(matches),
                status=determine_status(score).value,
            )
        )

    db.commit()
    logger.info(f"Seed data initialization completed: {len(history)} transactions")
    return True
