"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session

from risk_gateway.domain.submission import TransactionSubmissionService
from risk_gateway.infrastructure.database.repositories import (
    CustomerRepository,
    RuleRepository,
    TransactionRepository,
)
from risk_gateway.infrastructure.database.session import get_db


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_submission_service(db: Session = Depends(get_db)) -> TransactionSubmissionService:
    """Provide a submission service bound to the request's database session"""
    transactions = TransactionRepository(db)
    return TransactionSubmissionService(
        customers=CustomerRepository(db),
        rules=RuleRepository(db),
        history=transactions,
        store=transactions,
    )
