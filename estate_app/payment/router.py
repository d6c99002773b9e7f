from fastapi import APIRouter, Depends, HTTPException, status, Request, Query
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from ..db import get_db
from ..error_audit import get_error_auditor
from ..exceptions import ValidationError, NotFoundError, ServerError
from ..logging_config import get_logger, log_error
from .models import PAYMENT_KIND_PROPERTY
from .schemas import (
    CreatePaymentRequest, CreatePaymentResponse, PaymentCheckResponse,
    PaymentHistoryResponse, InvoiceResponse
)
from .service import PaymentService
from .store import PaymentStore, payment_to_dict
from .summary import get_payment_summary
from .invoice import InvoiceComposer

logger = get_logger(__name__)

router = APIRouter(prefix="/payments", tags=["payments"])

@router.post("/", response_model=CreatePaymentResponse)
def create_payment(
    payment_data: CreatePaymentRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """Record a standalone property payment"""
    try:
        return PaymentService(db).create_payment(payment_data)

    except ValidationError as e:
        logger.info("Payment rejected", extra={
            "user_id": payment_data.user_id,
            "property_id": payment_data.property_id,
            "reason": e.message
        })
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message
        )
    except ServerError as e:
        get_error_auditor(db).log_server_error(e, request, user_id=payment_data.user_id)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message
        )

@router.get("/check", response_model=PaymentCheckResponse)
def check_payment(
    user_id: int = Query(..., description="Paying user"),
    property_id: int = Query(..., description="Standalone property"),
    db: Session = Depends(get_db)
):
    """Deposit progress of a user on a property"""
    try:
        summary = get_payment_summary(db, user_id, property_id)
        payments = PaymentStore(db).find_by_user_and_property(user_id, property_id)

        return {
            "success": True,
            "data": {
                "payment_summary": summary.model_dump(),
                "payments": [payment_to_dict(p) for p in payments]
            }
        }

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message
        )
    except SQLAlchemyError as e:
        log_error(logger, e, {"user_id": user_id, "property_id": property_id}, "check_payment_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error while checking payment"
        )

@router.get("/user/{user_id}", response_model=PaymentHistoryResponse)
def get_user_payment_history(user_id: int, db: Session = Depends(get_db)):
    """Property payments of a user"""
    try:
        payments = PaymentStore(db).find_all_for_user(user_id, kind=PAYMENT_KIND_PROPERTY)

        logger.info("Payment history fetched", extra={
            "user_id": user_id,
            "payments_count": len(payments)
        })

        if not payments:
            return {"success": True, "message": "No payments found for this user", "payments": []}
        return {"success": True, "payments": payments}

    except SQLAlchemyError as e:
        log_error(logger, e, {"user_id": user_id}, "payment_history_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error while fetching payment history"
        )

@router.get("/user-all/{user_id}", response_model=PaymentHistoryResponse)
def get_all_user_payments(user_id: int, db: Session = Depends(get_db)):
    """Property payments and apartment bookings of a user, most recent first"""
    try:
        payments = PaymentStore(db).find_all_for_user(user_id)

        logger.info("Merged payment history fetched", extra={
            "user_id": user_id,
            "payments_count": len(payments),
            "property_payments": sum(1 for p in payments if p["kind"] == PAYMENT_KIND_PROPERTY)
        })

        return {"success": True, "payments": payments}

    except SQLAlchemyError as e:
        log_error(logger, e, {"user_id": user_id}, "merged_payment_history_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error while fetching payment history"
        )

@router.get("/invoice/{payment_id}", response_model=InvoiceResponse)
def generate_invoice(payment_id: int, request: Request, db: Session = Depends(get_db)):
    """Invoice view of a property payment or an apartment booking"""
    try:
        invoice = InvoiceComposer(db).compose(payment_id)
        return {"success": True, "invoice": invoice}

    except NotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=e.message
        )
    except ServerError as e:
        get_error_auditor(db).log_server_error(e, request, context_data={"payment_id": payment_id})
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message
        )

@router.get("/all", response_model=PaymentHistoryResponse)
def get_all_payments(db: Session = Depends(get_db)):
    """Every recorded payment, most recent first"""
    try:
        return {"success": True, "payments": PaymentService(db).list_all()}

    except SQLAlchemyError as e:
        log_error(logger, e, {}, "list_payments_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error"
        )
