"""Validation of risk rule definitions submitted through rule management"""

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Tuple

from risk_gateway.domain.exceptions import BadRequestError
from risk_gateway.domain.models import MerchantCategory, RuleType


@dataclass
class RuleDefinition:
    """Unvalidated rule fields as supplied by an operator"""

    name: str
    rule_type: str
    risk_points: int
    active: bool = True
    amount_threshold: Optional[Decimal] = None
    merchant_category: Optional[str] = None
    frequency_count: Optional[int] = None
    frequency_window_minutes: Optional[int] = None


def validate_rule_definition(definition: RuleDefinition) -> Tuple[RuleType, Optional[MerchantCategory]]:
    """
    Check that a definition carries the parameters its type requires.

    Returns the parsed rule type and merchant category.

    Raises:
        BadRequestError: unknown rule type or category, missing parameters,
            or negative risk points
    """
    rule_type = RuleType.parse(definition.rule_type)
    if rule_type is None:
        raise BadRequestError(f"Invalid rule type: {definition.rule_type}")

    if definition.risk_points is None or definition.risk_points < 0:
        raise BadRequestError("Risk points must be a non-negative integer")

    merchant_category = None
    if definition.merchant_category is not None:
        merchant_category = MerchantCategory.parse(definition.merchant_category)
        if merchant_category is None:
            raise BadRequestError(f"Invalid merchant category: {definition.merchant_category}")

    if rule_type is RuleType.AMOUNT_THRESHOLD and definition.amount_threshold is None:
        raise BadRequestError("Amount threshold is required for AMOUNT_THRESHOLD rule")

    if rule_type is RuleType.MERCHANT_CATEGORY and merchant_category is None:
        raise BadRequestError("Merchant category is required for MERCHANT_CATEGORY rule")

    if rule_type is RuleType.FREQUENCY and (
        definition.frequency_count is None or definition.frequency_window_minutes is None
    ):
        raise BadRequestError("Frequency count and window minutes are required for FREQUENCY rule")

    return rule_type, merchant_category
