"""Prometheus metrics for monitoring flag rates, score distribution and rule hits"""

from typing import Iterable

from prometheus_client import Counter, Histogram

from risk_gateway.domain.models import MatchedRule, TransactionDecision

# Decision metrics
decision_counter = Counter(
    "risk_decision_total",
    "Total transaction risk decisions made",
    ["status"],  # APPROVED | FLAGGED
)

risk_score_histogram = Histogram(
    "risk_score",
    "Distribution of aggregate risk scores",
    buckets=[0, 10, 30, 50, 69, 70, 90, 120, 200],
)

rule_match_counter = Counter(
    "rule_match_total",
    "Rule matches by rule type",
    ["rule_type"],
)

submission_failure_counter = Counter(
    "submission_failures_total",
    "Rejected or failed transaction submissions",
    ["reason"],  # not_found | bad_request | error
)

# Service health
request_duration_histogram = Histogram(
    "http_request_duration_seconds",
    "HTTP request latency",
    ["method", "endpoint", "status"],
)


def record_decision(decision: TransactionDecision) -> None:
    """Record decision metrics for monitoring flag rates and score distribution"""
    decision_counter.labels(status=decision.status.value).inc()
    risk_score_histogram.observe(decision.risk_score)
    record_rule_matches(decision.matched_rules)


def record_rule_matches(matches: Iterable[MatchedRule]) -> None:
    for match in matches:
        rule_match_counter.labels(rule_type=match.rule_type).inc()
