"""Risk scoring engine - rule dispatch, score aggregation and status decision"""

import logging
from datetime import datetime
from typing import Iterable, List, Sequence

from risk_gateway.domain.evaluators import RiskRuleEvaluator
from risk_gateway.domain.models import (
    Customer,
    MatchedRule,
    RiskRule,
    TransactionDecision,
    TransactionInput,
    TransactionStatus,
)

logger = logging.getLogger(__name__)

# Scores at or above this value need manual review
FLAGGED_THRESHOLD = 70


def evaluate_rules(
    rules: Iterable[RiskRule],
    evaluators: Sequence[RiskRuleEvaluator],
    transaction: TransactionInput,
    customer: Customer,
    evaluated_at: datetime,
) -> List[MatchedRule]:
    """
    Run each active rule through the first evaluator that supports its type.

    Matches are returned in rule order. Rules with no supporting evaluator
    are skipped.
    """
    matches: List[MatchedRule] = []

    for rule in rules:
        if not rule.active:
            continue

        evaluator = next((e for e in evaluators if e.supports(rule.rule_type)), None)
        if evaluator is None:
            logger.debug("No evaluator for rule type", extra={"rule_id": rule.id, "rule_type": str(rule.rule_type)})
            continue

        match = evaluator.evaluate(transaction, customer, rule, evaluated_at)
        if match is not None:
            logger.debug("Rule matched", extra={"rule_name": match.rule_name, "points": match.points})
            matches.append(match)

    return matches


def calculate_risk_score(matches: Iterable[MatchedRule]) -> int:
    """Total points across all matched rules"""
    return sum(m.points for m in matches)


def determine_status(score: int) -> TransactionStatus:
    """
    Map risk score to a status.

    - score >= 70: FLAGGED (manual review)
    - otherwise:   APPROVED
    """
    if score >= FLAGGED_THRESHOLD:
        return TransactionStatus.FLAGGED
    return TransactionStatus.APPROVED


def make_risk_decision(
    rules: Iterable[RiskRule],
    evaluators: Sequence[RiskRuleEvaluator],
    transaction: TransactionInput,
    customer: Customer,
    evaluated_at: datetime,
) -> TransactionDecision:
    """
    Main entry point: evaluate rules and decide.

    Returns complete TransactionDecision with matches, score and status.
    """
    matches = evaluate_rules(rules, evaluators, transaction, customer, evaluated_at)
    score = calculate_risk_score(matches)

    return TransactionDecision(
        matched_rules=tuple(matches),
        risk_score=score,
        status=determine_status(score),
        timestamp=evaluated_at,
    )
