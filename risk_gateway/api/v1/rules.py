"""/v1/rules - risk rule management"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from risk_gateway.api.v1.schemas import RiskRuleRequest, RiskRuleResponse
from risk_gateway.domain.exceptions import BadRequestError, NotFoundError
from risk_gateway.infrastructure.database.repositories import RuleRepository
from risk_gateway.infrastructure.database.session import get_db
from risk_gateway.infrastructure.observability.logging import audit_event

router = APIRouter()


@router.get("/rules", response_model=List[RiskRuleResponse])
def list_rules(db: Session = Depends(get_db)):
    """All rules, active and inactive, in evaluation order"""
    return [RiskRuleResponse.from_domain(r) for r in RuleRepository(db).list_rules()]


@router.post("/rules", response_model=RiskRuleResponse, status_code=201)
def create_rule(request_body: RiskRuleRequest, db: Session = Depends(get_db)):
    """
    Create a rule.

    The parameters required by the rule type must be present:
    - AMOUNT_THRESHOLD: amount_threshold
    - MERCHANT_CATEGORY: merchant_category
    - FREQUENCY: frequency_count and frequency_window_minutes
    """
    try:
        rule = RuleRepository(db).create_rule(request_body.to_definition())
        db.commit()
    except BadRequestError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    audit_event(
        "RISK_RULE_CREATED",
        "CREATE_RISK_RULE",
        "RiskRule",
        rule.id,
        details={"rule_name": rule.name, "rule_type": rule.rule_type.value, "risk_points": rule.risk_points},
    )
    return RiskRuleResponse.from_domain(rule)


@router.put("/rules/{rule_id}", response_model=RiskRuleResponse)
def update_rule(rule_id: int, request_body: RiskRuleRequest, db: Session = Depends(get_db)):
    """Replace a rule's configuration"""
    try:
        rule, changes = RuleRepository(db).update_rule(rule_id, request_body.to_definition())
        db.commit()
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except BadRequestError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    audit_event(
        "RISK_RULE_UPDATED",
        "UPDATE_RISK_RULE",
        "RiskRule",
        rule.id,
        details={"rule_name": rule.name, "changes": changes},
    )
    return RiskRuleResponse.from_domain(rule)
