"""Domain models - pure Python dataclasses representing business entities"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import List, Optional, Tuple, Union


class _ParseableEnum(str, Enum):
    """String enum with exact, case-sensitive parsing that never raises"""

    @classmethod
    def parse(cls, raw: Optional[str]):
        if raw is None:
            return None
        try:
            return cls[raw]
        except KeyError:
            return None


class RuleType(_ParseableEnum):
    AMOUNT_THRESHOLD = "AMOUNT_THRESHOLD"
    MERCHANT_CATEGORY = "MERCHANT_CATEGORY"
    FREQUENCY = "FREQUENCY"


class MerchantCategory(_ParseableEnum):
    RETAIL = "RETAIL"
    GROCERY = "GROCERY"
    TRAVEL = "TRAVEL"
    ELECTRONICS = "ELECTRONICS"
    GAMBLING = "GAMBLING"
    CRYPTO = "CRYPTO"
    OTHER = "OTHER"


class RiskProfile(_ParseableEnum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"


class TransactionStatus(_ParseableEnum):
    APPROVED = "APPROVED"
    FLAGGED = "FLAGGED"


@dataclass(frozen=True)
class AmountThresholdParams:
    threshold: Decimal


@dataclass(frozen=True)
class MerchantCategoryParams:
    category: MerchantCategory


@dataclass(frozen=True)
class FrequencyParams:
    count: int
    window_minutes: int


RuleParameters = Union[AmountThresholdParams, MerchantCategoryParams, FrequencyParams]


@dataclass
class RiskRule:
    """
    Configured risk rule as held by the rule registry.

    The registry stores every type-specific parameter as an optional column;
    parameters() narrows them to the variant the rule type requires.
    """

    id: int
    name: str
    rule_type: RuleType
    risk_points: int
    active: bool = True
    amount_threshold: Optional[Decimal] = None
    merchant_category: Optional[MerchantCategory] = None
    frequency_count: Optional[int] = None
    frequency_window_minutes: Optional[int] = None

    def parameters(self) -> Optional[RuleParameters]:
        """Typed parameters for this rule's type, or None if any are missing"""
        if self.rule_type is RuleType.AMOUNT_THRESHOLD:
            if self.amount_threshold is None:
                return None
            return AmountThresholdParams(threshold=self.amount_threshold)

        if self.rule_type is RuleType.MERCHANT_CATEGORY:
            if self.merchant_category is None:
                return None
            return MerchantCategoryParams(category=self.merchant_category)

        if self.rule_type is RuleType.FREQUENCY:
            if self.frequency_count is None or self.frequency_window_minutes is None:
                return None
            return FrequencyParams(
                count=self.frequency_count,
                window_minutes=self.frequency_window_minutes,
            )

        return None


@dataclass
class Customer:
    """Customer profile, read-only during evaluation"""

    id: int
    name: str
    email: str
    country: str
    risk_profile: RiskProfile


@dataclass
class TransactionInput:
    """Candidate transaction as submitted by a caller"""

    customer_id: int
    amount: Decimal
    currency: str
    merchant_category: str  # raw, validated by the submission service
    timestamp: Optional[datetime] = None  # assigned at submission


@dataclass(frozen=True)
class MatchedRule:
    """A rule whose condition held for a transaction"""

    rule_id: int
    rule_name: str
    rule_type: str
    points: int
    reason: str


@dataclass(frozen=True)
class TransactionDecision:
    """Output of risk evaluation for one submission"""

    matched_rules: Tuple[MatchedRule, ...]
    risk_score: int
    status: TransactionStatus
    timestamp: datetime


@dataclass
class StoredTransaction:
    """Persisted transaction with its decision, as returned by queries"""

    id: int
    customer_id: int
    customer_name: str
    customer_email: str
    amount: Decimal
    currency: str
    timestamp: datetime
    merchant_category: MerchantCategory
    risk_score: int
    status: TransactionStatus
    matched_rules: List[MatchedRule] = field(default_factory=list)


@dataclass
class TransactionPage:
    content: List[StoredTransaction]
    page: int
    size: int
    total_elements: int
    total_pages: int
