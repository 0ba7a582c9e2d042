"""Unit tests for matched rule storage encoding"""

import json

import pytest
from risk_gateway.domain.exceptions import MatchedRuleSerializationError
from risk_gateway.domain.models import MatchedRule
from risk_gateway.domain.serialization import dump_matched_rules, load_matched_rules


def test_dump_matched_rules_uses_stored_field_names():
    matches = [MatchedRule(1, "High Amount", "AMOUNT_THRESHOLD", 50, "Transaction amount 15000.00 exceeds threshold 10000")]

    assert json.loads(dump_matched_rules(matches)) == [
        {
            "ruleId": 1,
            "ruleName": "High Amount",
            "ruleType": "AMOUNT_THRESHOLD",
            "points": 50,
            "reason": "Transaction amount 15000.00 exceeds threshold 10000",
        }
    ]


def test_dump_empty_list():
    assert dump_matched_rules([]) == "[]"


def test_dump_unencodable_value_raises():
    bad = MatchedRule(object(), "Broken", "FREQUENCY", 10, "reason")

    with pytest.raises(MatchedRuleSerializationError):
        dump_matched_rules([bad])


def test_load_preserves_order():
    raw = json.dumps(
        [
            {"ruleId": 2, "ruleName": "Gambling", "ruleType": "MERCHANT_CATEGORY", "points": 40, "reason": "b"},
            {"ruleId": 1, "ruleName": "High Amount", "ruleType": "AMOUNT_THRESHOLD", "points": 50, "reason": "a"},
        ]
    )

    assert [m.rule_id for m in load_matched_rules(raw)] == [2, 1]


@pytest.mark.parametrize(
    "raw",
    [
        None,
        "",
        "not json",
        '{"ruleId": 1}',
        '[{"ruleId": 1, "ruleName": "missing fields"}]',
        "[1, 2, 3]",
    ],
)
def test_load_falls_back_to_empty_list(raw):
    """Undecodable payloads are lossy but never fail the read"""
    assert load_matched_rules(raw) == []
