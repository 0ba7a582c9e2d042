"""Pydantic schemas for API request/response validation"""

from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, Field

from risk_gateway.domain.models import Customer, RiskRule, StoredTransaction
from risk_gateway.domain.rules import RuleDefinition


class TransactionRequest(BaseModel):
    """Request body for POST /v1/transactions; any client timestamp is ignored"""

    customer_id: int = Field(..., description="Customer identifier")
    amount: Decimal = Field(..., gt=0, max_digits=19, decimal_places=2, description="Transaction amount")
    currency: str = Field(..., min_length=1, description="Currency code")
    merchant_category: str = Field(..., min_length=1, description="Merchant category, e.g. RETAIL")


class MatchedRuleSchema(BaseModel):
    rule_id: int
    rule_name: str
    rule_type: str
    points: int
    reason: str


class TransactionResponse(BaseModel):
    """Stored transaction with its risk decision"""

    id: int
    customer_id: int
    customer_name: str
    customer_email: str
    amount: Decimal
    currency: str
    timestamp: datetime
    merchant_category: str
    risk_score: int
    status: str
    matched_rules: List[MatchedRuleSchema]

    @classmethod
    def from_domain(cls, transaction: StoredTransaction) -> "TransactionResponse":
        return cls(
            id=transaction.id,
            customer_id=transaction.customer_id,
            customer_name=transaction.customer_name,
            customer_email=transaction.customer_email,
            amount=transaction.amount,
            currency=transaction.currency,
            timestamp=transaction.timestamp,
            merchant_category=transaction.merchant_category.value,
            risk_score=transaction.risk_score,
            status=transaction.status.value,
            matched_rules=[
                MatchedRuleSchema(
                    rule_id=m.rule_id,
                    rule_name=m.rule_name,
                    rule_type=m.rule_type,
                    points=m.points,
                    reason=m.reason,
                )
                for m in transaction.matched_rules
            ],
        )


class TransactionPageResponse(BaseModel):
    """Response for GET /v1/transactions"""

    content: List[TransactionResponse]
    page: int
    size: int
    total_elements: int
    total_pages: int


class CustomerRequest(BaseModel):
    """Request body for POST /v1/customers"""

    name: str = Field(..., min_length=1)
    email: str = Field(..., pattern=r"^[^@\s]+@[^@\s]+$")
    country: str = Field(..., min_length=1)
    risk_profile: str = Field(..., description="LOW, MEDIUM or HIGH")


class CustomerResponse(BaseModel):
    id: int
    name: str
    email: str
    country: str
    risk_profile: str

    @classmethod
    def from_domain(cls, customer: Customer) -> "CustomerResponse":
        return cls(
            id=customer.id,
            name=customer.name,
            email=customer.email,
            country=customer.country,
            risk_profile=customer.risk_profile.value,
        )


class RiskRuleRequest(BaseModel):
    """Request body for POST /v1/rules and PUT /v1/rules/{rule_id}"""

    rule_name: str = Field(..., min_length=1)
    rule_type: str = Field(..., description="AMOUNT_THRESHOLD, MERCHANT_CATEGORY or FREQUENCY")
    amount_threshold: Optional[Decimal] = Field(None, max_digits=19, decimal_places=2)
    merchant_category: Optional[str] = None
    frequency_count: Optional[int] = Field(None, ge=0)
    frequency_window_minutes: Optional[int] = Field(None, gt=0)
    risk_points: int = Field(..., ge=0)
    active: bool = True

    def to_definition(self) -> RuleDefinition:
        return RuleDefinition(
            name=self.rule_name,
            rule_type=self.rule_type,
            risk_points=self.risk_points,
            active=self.active,
            amount_threshold=self.amount_threshold,
            merchant_category=self.merchant_category,
            frequency_count=self.frequency_count,
            frequency_window_minutes=self.frequency_window_minutes,
        )


class RiskRuleResponse(BaseModel):
    id: int
    rule_name: str
    rule_type: str
    amount_threshold: Optional[Decimal] = None
    merchant_category: Optional[str] = None
    frequency_count: Optional[int] = None
    frequency_window_minutes: Optional[int] = None
    risk_points: int
    active: bool

    @classmethod
    def from_domain(cls, rule: RiskRule) -> "RiskRuleResponse":
        return cls(
            id=rule.id,
            rule_name=rule.name,
            rule_type=rule.rule_type.value,
            amount_threshold=rule.amount_threshold,
            merchant_category=rule.merchant_category.value if rule.merchant_category else None,
            frequency_count=rule.frequency_count,
            frequency_window_minutes=rule.frequency_window_minutes,
            risk_points=rule.risk_points,
            active=rule.active,
        )
