from decimal import Decimal
from typing import Any, Dict
from sqlalchemy import and_
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session
from ..exceptions import NotFoundError, ServerError
from ..models import User, Property, Apartment
from ..booking.models import ApartmentBooking, ApartmentUnit
from ..logging_config import get_logger, log_error
from .models import Payment, PAYMENT_KIND_PROPERTY
from .schemas import InvoiceView, UnitDetails
from .store import payment_to_dict
from .summary import get_payment_summary, percentage_of

logger = get_logger(__name__)

class InvoiceComposer:
    """Builds the read-only invoice projection of a payment.

    The payment family is read from `payments.kind`, so each family has a
    single join path.
    """

    def __init__(self, db: Session):
        self.db = db

    def compose(self, payment_id: int) -> InvoiceView:
        try:
            payment = self.db.query(Payment).filter(Payment.id == payment_id).first()
            if payment is None:
                raise NotFoundError("Payment not found")

            if payment.kind == PAYMENT_KIND_PROPERTY:
                invoice = self._property_invoice(payment)
            else:
                invoice = self._apartment_invoice(payment)
        except SQLAlchemyError as e:
            log_error(logger, e, {"payment_id": payment_id}, "invoice_generation_error")
            raise ServerError("Server error while generating invoice", original=e) from e

        logger.info("Invoice generated", extra={
            "payment_id": payment_id,
            "payment_type": invoice.payment_type,
            "invoice_number": invoice.invoice_number
        })
        return invoice

    def _property_invoice(self, payment: Payment) -> InvoiceView:
        user, listing = self.db.query(User, Property).select_from(Payment).outerjoin(
            User, Payment.user_id == User.id
        ).outerjoin(
            Property, Payment.property_id == Property.id
        ).filter(Payment.id == payment.id).one()

        data = self._base(payment, user)
        data.update({
            "payment_type": PAYMENT_KIND_PROPERTY,
            "property_name": listing.name if listing else None,
            "location": listing.location if listing else None,
        })

        try:
            summary = get_payment_summary(self.db, payment.user_id, payment.property_id)
            data.update(summary.model_dump())
        except Exception as e:
            # Degrade to figures from this payment row alone
            log_error(logger, e, {
                "payment_id": payment.id,
                "user_id": payment.user_id,
                "property_id": payment.property_id
            }, "invoice_summary_fallback")
            price = Decimal(listing.price) if listing and listing.price is not None else Decimal("0")
            paid = Decimal(payment.amount_paid or 0)
            data.update({
                "full_property_price": float(price),
                "deposit_amount": float(payment.total_price or 0),
                "total_paid": float(paid),
                "pending_amount": float(price - paid),
                "percentage_paid": percentage_of(paid, price),
            })

        return InvoiceView(**data)

    def _apartment_invoice(self, payment: Payment) -> InvoiceView:
        row = self.db.query(ApartmentBooking, Apartment, ApartmentUnit, User).select_from(Payment).join(
            ApartmentBooking, ApartmentBooking.payment_id == Payment.id
        ).outerjoin(
            Apartment, ApartmentBooking.apartment_id == Apartment.id
        ).outerjoin(
            ApartmentUnit, and_(ApartmentBooking.unit_id == ApartmentUnit.id, ApartmentBooking.is_demo.is_(False))
        ).outerjoin(
            User, Payment.user_id == User.id
        ).filter(Payment.id == payment.id).first()

        if row is None:
            raise NotFoundError("Payment not found")
        booking, apartment, unit, user = row

        paid = float(payment.amount_paid)
        data = self._base(payment, user)
        data.update({
            "payment_type": payment.kind,
            "property_name": apartment.name if apartment else None,
            "location": apartment.location if apartment else None,
            "booking_id": booking.id,
            "full_property_price": float(payment.total_price or payment.amount_paid),
            "deposit_amount": paid,
            "total_paid": paid,
            "pending_amount": 0,
            "percentage_paid": 100,
            "unit_details": UnitDetails(
                unit_number=unit.unit_number if unit else None,
                floor_number=unit.floor_number if unit else None,
                bedrooms=unit.bedrooms if unit else None,
                bathrooms=unit.bathrooms if unit else None,
                area=float(unit.area) if unit and unit.area is not None else None,
            ),
        })
        return InvoiceView(**data)

    def _base(self, payment: Payment, user: User) -> Dict[str, Any]:
        data = payment_to_dict(payment)
        data.pop("kind")
        data["user_name"] = user.full_name if user else None
        data["email"] = user.email if user else None
        return data
