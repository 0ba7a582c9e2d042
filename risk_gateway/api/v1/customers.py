"""/v1/customers - list and register customers"""

from typing import List

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from risk_gateway.api.v1.schemas import CustomerRequest, CustomerResponse
from risk_gateway.domain.exceptions import BadRequestError
from risk_gateway.domain.models import RiskProfile
from risk_gateway.infrastructure.database.repositories import CustomerRepository
from risk_gateway.infrastructure.database.session import get_db
from risk_gateway.infrastructure.observability.logging import audit_event

router = APIRouter()


@router.get("/customers", response_model=List[CustomerResponse])
def list_customers(db: Session = Depends(get_db)):
    customers = CustomerRepository(db).list_customers()
    audit_event("CUSTOMERS_RETRIEVED", "LIST_CUSTOMERS", "Customer", details={"count": len(customers)})
    return [CustomerResponse.from_domain(c) for c in customers]


@router.post("/customers", response_model=CustomerResponse, status_code=201)
def create_customer(request_body: CustomerRequest, db: Session = Depends(get_db)):
    """Register a customer; risk_profile must be LOW, MEDIUM or HIGH"""
    risk_profile = RiskProfile.parse(request_body.risk_profile)
    if risk_profile is None:
        raise HTTPException(status_code=400, detail=f"Invalid risk profile: {request_body.risk_profile}")

    try:
        customer = CustomerRepository(db).create_customer(
            name=request_body.name,
            email=request_body.email,
            country=request_body.country,
            risk_profile=risk_profile,
        )
        db.commit()
    except BadRequestError as e:
        db.rollback()
        raise HTTPException(status_code=400, detail=str(e))

    audit_event(
        "CUSTOMER_CREATED",
        "CREATE_CUSTOMER",
        "Customer",
        customer.id,
        details={"email": customer.email, "risk_profile": customer.risk_profile.value},
    )
    return CustomerResponse.from_domain(customer)
