"""Data access layer for customers, risk rules and transactions"""

import logging
import math
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session, contains_eager, joinedload

from risk_gateway.domain.exceptions import BadRequestError, NotFoundError
from risk_gateway.domain.models import (
    Customer,
    MerchantCategory,
    RiskProfile,
    RiskRule,
    RuleType,
    StoredTransaction,
    TransactionDecision,
    TransactionInput,
    TransactionPage,
    TransactionStatus,
)
from risk_gateway.domain.rules import RuleDefinition, validate_rule_definition
from risk_gateway.domain.serialization import dump_matched_rules, load_matched_rules
from risk_gateway.infrastructure.database.models import CustomerRecord, RiskRuleRecord, TransactionRecord

logger = logging.getLogger(__name__)


def to_customer(record: CustomerRecord) -> Customer:
    return Customer(
        id=record.id,
        name=record.name,
        email=record.email,
        country=record.country,
        risk_profile=RiskProfile(record.risk_profile),
    )


def to_risk_rule(record: RiskRuleRecord, rule_type: RuleType) -> RiskRule:
    return RiskRule(
        id=record.id,
        name=record.rule_name,
        rule_type=rule_type,
        risk_points=record.risk_points,
        active=record.active,
        amount_threshold=record.amount_threshold,
        merchant_category=MerchantCategory.parse(record.merchant_category),
        frequency_count=record.frequency_count,
        frequency_window_minutes=record.frequency_window_minutes,
    )


def to_stored_transaction(record: TransactionRecord) -> StoredTransaction:
    return StoredTransaction(
        id=record.id,
        customer_id=record.customer.id,
        customer_name=record.customer.name,
        customer_email=record.customer.email,
        amount=record.amount,
        currency=record.currency,
        timestamp=record.timestamp,
        merchant_category=MerchantCategory(record.merchant_category),
        risk_score=record.risk_score,
        status=TransactionStatus(record.status),
        matched_rules=load_matched_rules(record.matched_rules_json),
    )


class CustomerRepository:
    """Repository for customers"""

    def __init__(self, db: Session):
        self.db = db

    def find_customer_by_id(self, customer_id: int) -> Optional[Customer]:
        """
        Fetch a customer and lock the row until the session ends.

        The row lock serializes concurrent submissions for one customer on
        databases that support SELECT ... FOR UPDATE.
        """
        record = (
            self.db.query(CustomerRecord)
            .filter(CustomerRecord.id == customer_id)
            .with_for_update()
            .first()
        )
        return to_customer(record) if record else None

    def list_customers(self) -> List[Customer]:
        return [to_customer(c) for c in self.db.query(CustomerRecord).order_by(CustomerRecord.id).all()]

    def create_customer(
        self,
        name: str,
        email: str,
        country: str,
        risk_profile: RiskProfile,
    ) -> Customer:
        """Persist a new customer"""
        if self.db.query(CustomerRecord).filter(CustomerRecord.email == email).first():
            raise BadRequestError(f"Customer with email {email} already exists")

        record = CustomerRecord(
            name=name,
            email=email,
            country=country,
            risk_profile=risk_profile.value,
        )
        self.db.add(record)
        self.db.flush()
        return to_customer(record)

    def count(self) -> int:
        return self.db.query(CustomerRecord).count()


class RuleRepository:
    """Repository for risk rules"""

    def __init__(self, db: Session):
        self.db = db

    def list_rules(self) -> List[RiskRule]:
        return self._known_rules(self.db.query(RiskRuleRecord).order_by(RiskRuleRecord.id).all())

    def list_active_rules(self) -> List[RiskRule]:
        """Active rules in registry order (ascending id)"""
        records = (
            self.db.query(RiskRuleRecord)
            .filter(RiskRuleRecord.active.is_(True))
            .order_by(RiskRuleRecord.id)
            .all()
        )
        return self._known_rules(records)

    @staticmethod
    def _known_rules(records: List[RiskRuleRecord]) -> List[RiskRule]:
        """Convert rows, leaving out any whose rule type no evaluator understands"""
        rules = []
        for record in records:
            rule_type = RuleType.parse(record.rule_type)
            if rule_type is None:
                logger.warning(
                    "Skipping risk rule with unknown type",
                    extra={"rule_id": record.id, "rule_type": record.rule_type},
                )
                continue
            rules.append(to_risk_rule(record, rule_type))
        return rules

    def create_rule(self, definition: RuleDefinition) -> RiskRule:
        """Validate and persist a new rule"""
        rule_type, merchant_category = validate_rule_definition(definition)

        record = RiskRuleRecord(
            rule_name=definition.name,
            rule_type=rule_type.value,
            amount_threshold=definition.amount_threshold,
            merchant_category=merchant_category.value if merchant_category else None,
            frequency_count=definition.frequency_count,
            frequency_window_minutes=definition.frequency_window_minutes,
            risk_points=definition.risk_points,
            active=definition.active,
        )
        self.db.add(record)
        self.db.flush()
        return to_risk_rule(record, rule_type)

    def update_rule(self, rule_id: int, definition: RuleDefinition) -> Tuple[RiskRule, Dict[str, Any]]:
        """
        Replace a rule's configuration.

        Returns the updated rule and the changed name/points/active fields
        as {"field": {"old": ..., "new": ...}}.
        """
        record = self.db.query(RiskRuleRecord).filter(RiskRuleRecord.id == rule_id).first()
        if record is None:
            raise NotFoundError(f"Risk rule not found with id: {rule_id}")

        rule_type, merchant_category = validate_rule_definition(definition)

        changes: Dict[str, Any] = {}
        for attr, new in (
            ("rule_name", definition.name),
            ("risk_points", definition.risk_points),
            ("active", definition.active),
        ):
            old = getattr(record, attr)
            if old != new:
                changes[attr] = {"old": old, "new": new}

        record.rule_name = definition.name
        record.rule_type = rule_type.value
        record.amount_threshold = definition.amount_threshold
        record.merchant_category = merchant_category.value if merchant_category else None
        record.frequency_count = definition.frequency_count
        record.frequency_window_minutes = definition.frequency_window_minutes
        record.risk_points = definition.risk_points
        record.active = definition.active
        self.db.flush()

        return to_risk_rule(record, rule_type), changes


class TransactionRepository:
    """Repository for transactions; also the history source for frequency rules"""

    def __init__(self, db: Session):
        self.db = db

    def count_customer_transactions_after(self, customer_id: int, cutoff: datetime) -> int:
        return (
            self.db.query(func.count(TransactionRecord.id))
            .filter(
                TransactionRecord.customer_id == customer_id,
                TransactionRecord.timestamp > cutoff,
            )
            .scalar()
        )

    def persist_decision(self, transaction: TransactionInput, decision: TransactionDecision) -> int:
        """Store a transaction with its score, status and full match list"""
        record = TransactionRecord(
            customer_id=transaction.customer_id,
            amount=transaction.amount,
            currency=transaction.currency,
            timestamp=decision.timestamp,
            merchant_category=transaction.merchant_category,
            risk_score=decision.risk_score,
            matched_rules_json=dump_matched_rules(decision.matched_rules),
            status=decision.status.value,
        )
        self.db.add(record)
        self.db.flush()  # Get ID without committing
        return record.id

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def get_transaction(self, transaction_id: int) -> StoredTransaction:
        record = (
            self.db.query(TransactionRecord)
            .options(joinedload(TransactionRecord.customer))
            .filter(TransactionRecord.id == transaction_id)
            .first()
        )
        if record is None:
            raise NotFoundError(f"Transaction not found with id: {transaction_id}")
        return to_stored_transaction(record)

    def list_transactions(
        self,
        page: int = 0,
        size: int = 10,
        status: Optional[str] = None,
        search: Optional[str] = None,
    ) -> TransactionPage:
        """
        Page through transactions, newest first.

        Args:
            status: APPROVED or FLAGGED; anything else is a BadRequestError
            search: case-insensitive substring of customer name or email
        """
        query = self.db.query(TransactionRecord).join(TransactionRecord.customer)

        if status:
            parsed = TransactionStatus.parse(status)
            if parsed is None:
                raise BadRequestError(f"Invalid status: {status}")
            query = query.filter(TransactionRecord.status == parsed.value)

        if search:
            pattern = f"%{search.lower()}%"
            query = query.filter(
                or_(
                    func.lower(CustomerRecord.name).like(pattern),
                    func.lower(CustomerRecord.email).like(pattern),
                )
            )

        total = query.count()
        records = (
            query.options(contains_eager(TransactionRecord.customer))
            .order_by(TransactionRecord.timestamp.desc(), TransactionRecord.id.desc())
            .offset(page * size)
            .limit(size)
            .all()
        )

        return TransactionPage(
            content=[to_stored_transaction(r) for r in records],
            page=page,
            size=size,
            total_elements=total,
            total_pages=math.ceil(total / size) if size else 0,
        )
