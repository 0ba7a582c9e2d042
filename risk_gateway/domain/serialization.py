"""JSON encoding of matched rule lists for storage alongside a transaction"""

import json
import logging
from typing import Iterable, List, Optional

from risk_gateway.domain.exceptions import MatchedRuleSerializationError
from risk_gateway.domain.models import MatchedRule

logger = logging.getLogger(__name__)


def dump_matched_rules(matches: Iterable[MatchedRule]) -> str:
    """Encode matches as a JSON array using camelCase keys"""
    try:
        return json.dumps(
            [
                {
                    "ruleId": m.rule_id,
                    "ruleName": m.rule_name,
                    "ruleType": m.rule_type,
                    "points": m.points,
                    "reason": m.reason,
                }
                for m in matches
            ]
        )
    except (TypeError, ValueError) as e:
        logger.error(f"Failed to serialize matched rules: {e}")
        raise MatchedRuleSerializationError("Failed to serialize matched rules") from e


def load_matched_rules(raw: Optional[str]) -> List[MatchedRule]:
    """
    Decode a stored match list.

    Undecodable payloads yield an empty list so the owning transaction can
    still be read.
    """
    if not raw:
        return []

    try:
        return [
            MatchedRule(
                rule_id=item["ruleId"],
                rule_name=item["ruleName"],
                rule_type=item["ruleType"],
                points=int(item["points"]),
                reason=item["reason"],
            )
            for item in json.loads(raw)
        ]
    except (KeyError, ValueError, TypeError) as e:
        logger.warning(f"Failed to deserialize matched rules, returning empty list: {e}")
        return []
