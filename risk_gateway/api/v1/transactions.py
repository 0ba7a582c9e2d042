"""/v1/transactions - submit transactions for risk evaluation and browse results"""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.orm import Session

from risk_gateway.api.dependencies import get_request_id, get_submission_service
from risk_gateway.api.v1.schemas import TransactionPageResponse, TransactionRequest, TransactionResponse
from risk_gateway.config import settings
from risk_gateway.domain.exceptions import BadRequestError, NotFoundError
from risk_gateway.domain.models import TransactionInput, TransactionStatus
from risk_gateway.domain.submission import SubmissionResult, TransactionSubmissionService
from risk_gateway.infrastructure.database.repositories import TransactionRepository
from risk_gateway.infrastructure.database.session import get_db
from risk_gateway.infrastructure.observability.logging import audit_event, log_decision
from risk_gateway.infrastructure.observability.metrics import record_decision, submission_failure_counter

router = APIRouter()


@router.post("/transactions", response_model=TransactionResponse)
def submit_transaction(
    request_body: TransactionRequest,
    request: Request,
    db: Session = Depends(get_db),
    service: TransactionSubmissionService = Depends(get_submission_service),
):
    """
    Score a transaction against the active risk rules.

    Flow:
    1. Resolve customer (404 if unknown)
    2. Validate merchant category (400 if unknown)
    3. Stamp server-side timestamp, evaluate rules, decide
    4. Persist transaction with score, status and matched rules
    5. Return the stored transaction
    """
    request_id = get_request_id(request)

    try:
        result = service.submit_transaction(
            TransactionInput(
                customer_id=request_body.customer_id,
                amount=request_body.amount,
                currency=request_body.currency,
                merchant_category=request_body.merchant_category,
            )
        )

    except NotFoundError as e:
        submission_failure_counter.labels(reason="not_found").inc()
        logging.warning(f"Transaction rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=404, detail=str(e))

    except BadRequestError as e:
        submission_failure_counter.labels(reason="bad_request").inc()
        audit_event("SYSTEM_ERROR", "SUBMIT_TRANSACTION", "Transaction", status="FAILURE", error_message=str(e))
        logging.warning(f"Transaction rejected: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=400, detail=str(e))

    except Exception as e:
        submission_failure_counter.labels(reason="error").inc()
        audit_event(
            "SYSTEM_ERROR", "SUBMIT_TRANSACTION", "Transaction", status="FAILURE",
            error_message=f"Unexpected error: {e}", details={"exception_type": type(e).__name__},
        )
        logging.error(f"Unexpected error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=500, detail="Internal server error")

    # Record metrics and logs
    record_decision(result.decision)
    log_decision(
        request_id,
        result.transaction_id,
        result.customer.id,
        result.decision.risk_score,
        result.decision.status.value,
        len(result.decision.matched_rules),
        result.rules_evaluated,
        result.duration_ms,
    )
    _audit_submission(request_body, result)

    return TransactionResponse.from_domain(TransactionRepository(db).get_transaction(result.transaction_id))


def _audit_submission(request_body: TransactionRequest, result: SubmissionResult) -> None:
    decision = result.decision

    audit_event(
        "TRANSACTION_SUBMITTED",
        "SUBMIT_TRANSACTION",
        "Transaction",
        result.transaction_id,
        details={
            "customer_id": result.customer.id,
            "customer_email": result.customer.email,
            "amount": str(request_body.amount),
            "currency": request_body.currency,
            "merchant_category": request_body.merchant_category,
            "risk_score": decision.risk_score,
            "status": decision.status.value,
            "matched_rules_count": len(decision.matched_rules),
            "execution_time_ms": result.duration_ms,
        },
    )
    audit_event(
        "RISK_EVALUATION_PERFORMED",
        "EVALUATE_RISK",
        "Transaction",
        result.transaction_id,
        details={
            "total_risk_score": decision.risk_score,
            "rules_evaluated": result.rules_evaluated,
            "rules_matched": len(decision.matched_rules),
        },
    )

    if decision.status is TransactionStatus.FLAGGED:
        audit_event(
            "TRANSACTION_FLAGGED",
            "FLAG_TRANSACTION",
            "Transaction",
            result.transaction_id,
            status="WARNING",
            details={
                "risk_score": decision.risk_score,
                "matched_rules": [m.rule_name for m in decision.matched_rules],
            },
        )
    else:
        audit_event(
            "TRANSACTION_APPROVED",
            "APPROVE_TRANSACTION",
            "Transaction",
            result.transaction_id,
            details={"risk_score": decision.risk_score},
        )


@router.get("/transactions", response_model=TransactionPageResponse)
def list_transactions(
    page: int = Query(0, ge=0),
    size: Optional[int] = Query(None, ge=1),
    status: Optional[str] = Query(None, description="APPROVED or FLAGGED"),
    search: Optional[str] = Query(None, description="Customer name or email substring"),
    db: Session = Depends(get_db),
):
    """Page through transactions, newest first"""
    size = min(size or settings.default_page_size, settings.max_page_size)

    try:
        result = TransactionRepository(db).list_transactions(page=page, size=size, status=status, search=search)
    except BadRequestError as e:
        raise HTTPException(status_code=400, detail=str(e))

    return TransactionPageResponse(
        content=[TransactionResponse.from_domain(t) for t in result.content],
        page=result.page,
        size=result.size,
        total_elements=result.total_elements,
        total_pages=result.total_pages,
    )


@router.get("/transactions/{transaction_id}", response_model=TransactionResponse)
def get_transaction(transaction_id: int, db: Session = Depends(get_db)):
    """Retrieve a transaction with its matched rules"""
    try:
        transaction = TransactionRepository(db).get_transaction(transaction_id)
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))

    audit_event(
        "TRANSACTION_RETRIEVED",
        "GET_TRANSACTION",
        "Transaction",
        transaction_id,
        details={
            "customer_id": transaction.customer_id,
            "risk_score": transaction.risk_score,
            "status": transaction.status.value,
        },
    )

    return TransactionResponse.from_domain(transaction)
