"""Rule evaluators - one per rule type, selected by the dispatcher in scoring.py"""

import logging
from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import List, Optional, Protocol

from risk_gateway.domain.models import (
    AmountThresholdParams,
    Customer,
    FrequencyParams,
    MatchedRule,
    MerchantCategory,
    MerchantCategoryParams,
    RiskRule,
    RuleType,
    TransactionInput,
)

logger = logging.getLogger(__name__)


class TransactionHistory(Protocol):
    """Read access to a customer's past transactions"""

    def count_customer_transactions_after(self, customer_id: int, cutoff: datetime) -> int:
        ...


class RiskRuleEvaluator(ABC):
    """Evaluates rules of a single type against a candidate transaction"""

    rule_type: RuleType

    def supports(self, rule_type: RuleType) -> bool:
        return rule_type == self.rule_type

    @abstractmethod
    def evaluate(
        self,
        transaction: TransactionInput,
        customer: Customer,
        rule: RiskRule,
        evaluated_at: datetime,
    ) -> Optional[MatchedRule]:
        """
        Return a MatchedRule if the rule's condition holds, otherwise None.

        A rule missing the parameters its type requires never matches.
        """

    def _match(self, rule: RiskRule, reason: str) -> MatchedRule:
        return MatchedRule(
            rule_id=rule.id,
            rule_name=rule.name,
            rule_type=rule.rule_type.name,
            points=rule.risk_points,
            reason=reason,
        )


class AmountThresholdEvaluator(RiskRuleEvaluator):
    """Matches when the amount is strictly above the configured threshold"""

    rule_type = RuleType.AMOUNT_THRESHOLD

    def evaluate(self, transaction, customer, rule, evaluated_at):
        params = rule.parameters()
        if not isinstance(params, AmountThresholdParams):
            return None

        if transaction.amount > params.threshold:
            return self._match(
                rule,
                f"Transaction amount {transaction.amount} exceeds threshold {params.threshold}",
            )
        return None


class MerchantCategoryEvaluator(RiskRuleEvaluator):
    """Matches when the transaction's merchant category equals the configured one"""

    rule_type = RuleType.MERCHANT_CATEGORY

    def evaluate(self, transaction, customer, rule, evaluated_at):
        params = rule.parameters()
        if not isinstance(params, MerchantCategoryParams):
            return None

        category = MerchantCategory.parse(transaction.merchant_category)
        if category is None:
            return None

        if category is params.category:
            return self._match(rule, f"High-risk merchant category: {category.name}")
        return None


class FrequencyEvaluator(RiskRuleEvaluator):
    """
    Matches when the customer made more than `count` transactions inside the
    rolling window ending at the evaluation timestamp.
    """

    rule_type = RuleType.FREQUENCY

    def __init__(self, history: TransactionHistory):
        self.history = history

    def evaluate(self, transaction, customer, rule, evaluated_at):
        params = rule.parameters()
        if not isinstance(params, FrequencyParams):
            return None

        cutoff = evaluated_at - timedelta(minutes=params.window_minutes)
        observed = self.history.count_customer_transactions_after(customer.id, cutoff)
        logger.debug(
            "Frequency check",
            extra={"customer_id": customer.id, "rule_id": rule.id, "observed": observed, "cutoff": cutoff.isoformat()},
        )

        # "more than X" means strictly greater than X
        if observed > params.count:
            return self._match(
                rule,
                f"Frequency threshold exceeded: {observed} transactions in "
                f"{params.window_minutes} minutes (threshold: {params.count})",
            )
        return None


def default_evaluators(history: TransactionHistory) -> List[RiskRuleEvaluator]:
    """
    Evaluator registration list.

    Order matters: the dispatcher uses the first evaluator that supports a
    rule's type and ignores the rest.
    """
    return [
        AmountThresholdEvaluator(),
        MerchantCategoryEvaluator(),
        FrequencyEvaluator(history),
    ]
