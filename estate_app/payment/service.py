from typing import Any, Dict, List
from sqlalchemy.orm import Session
from ..exceptions import ValidationError, ServerError
from ..logging_config import get_logger, log_error, log_business_event
from .models import PAYMENT_KIND_PROPERTY
from .schemas import CreatePaymentRequest, CreatePaymentResponse
from .store import PaymentStore, payment_to_dict
from .validation import require_fields, validate_amount, validate_payment_request

logger = get_logger(__name__)

class PaymentService:
    """Standalone property payments (deposit or full payment)."""

    def __init__(self, db: Session):
        self.db = db
        self.store = PaymentStore(db)

    def create_payment(self, request: CreatePaymentRequest) -> CreatePaymentResponse:
        require_fields(
            "All payment fields are required",
            user_id=request.user_id,
            property_id=request.property_id,
            amount_paid=request.amount_paid,
            payment_method=request.payment_method,
            payment_details=request.payment_details,
            status=request.status,
        )
        amount_paid = validate_amount(request.amount_paid)
        payment_method, payment_details = validate_payment_request(
            request.payment_method, request.payment_details
        )

        try:
            payment_id = self.store.insert(
                kind=PAYMENT_KIND_PROPERTY,
                user_id=request.user_id,
                property_id=request.property_id,
                total_price=request.total_price,
                amount_paid=amount_paid,
                payment_method=payment_method,
                payment_details=payment_details,
                status=request.status,
                invoice_number=request.invoice_number,
            )
            self.db.commit()
        except ValidationError:
            self.db.rollback()
            raise
        except Exception as e:
            self.db.rollback()
            log_error(logger, e, {
                "user_id": request.user_id,
                "property_id": request.property_id
            }, "payment_creation_error")
            raise ServerError("Server error while processing payment", original=e) from e

        log_business_event(logger, "property_payment_recorded", {
            "user_id": request.user_id,
            "property_id": request.property_id,
            "payment_id": payment_id,
            "payment_method": payment_method,
            "amount_paid": float(amount_paid)
        })
        return CreatePaymentResponse(
            payment_id=payment_id,
            status=request.status,
            invoice_number=request.invoice_number,
        )

    def list_all(self) -> List[Dict[str, Any]]:
        return [payment_to_dict(p) for p in self.store.find_all()]
