from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional
from sqlalchemy import and_
from sqlalchemy.orm import Session
from ..models import Property, Apartment
from ..booking.models import ApartmentBooking, ApartmentUnit
from ..logging_config import get_logger, log_database_operation
from .models import Payment, PAYMENT_KIND_PROPERTY, PAYMENT_KIND_APARTMENT
from .schemas import PaymentDetails
from .validation import validate_payment_record

logger = get_logger(__name__)

def _money(value) -> Optional[float]:
    return float(value) if value is not None else None

def payment_to_dict(payment: Payment) -> Dict[str, Any]:
    return {
        "id": payment.id,
        "kind": payment.kind,
        "user_id": payment.user_id,
        "property_id": payment.property_id,
        "total_price": _money(payment.total_price),
        "amount_paid": float(payment.amount_paid),
        "payment_method": payment.payment_method,
        "payment_details": payment.payment_details or {},
        "status": payment.status,
        "payment_date": payment.payment_date,
        "invoice_number": payment.invoice_number,
    }

class PaymentStore:
    """Persistence for both payment families.

    Writes only flush; the caller owns the transaction and decides when to
    commit or roll back.
    """

    def __init__(self, db: Session):
        self.db = db

    def insert(
        self,
        *,
        kind: str,
        user_id: int,
        property_id: int,
        amount_paid: Decimal,
        payment_method: str,
        payment_details: PaymentDetails,
        status: str,
        total_price: Optional[Decimal] = None,
        invoice_number: Optional[str] = None,
        payment_date: Optional[datetime] = None,
    ) -> int:
        """Validate and add a payment row, returning its id"""
        validate_payment_record(payment_method, payment_details)
        if kind not in (PAYMENT_KIND_PROPERTY, PAYMENT_KIND_APARTMENT):
            raise ValueError(f"Unknown payment kind: {kind}")

        payment = Payment(
            kind=kind,
            user_id=user_id,
            property_id=property_id,
            total_price=total_price,
            amount_paid=amount_paid,
            payment_method=payment_method,
            payment_details=payment_details.sanitized(),
            status=status,
            invoice_number=invoice_number,
        )
        if payment_date is not None:
            payment.payment_date = payment_date

        self.db.add(payment)
        self.db.flush()
        log_database_operation(logger, "insert", "payments", user_id, payment.id)
        return payment.id

    def stamp_invoice(self, payment_id: int, invoice_number: str) -> None:
        updated = self.db.query(Payment).filter(Payment.id == payment_id).update(
            {Payment.invoice_number: invoice_number}, synchronize_session="fetch"
        )
        if updated != 1:
            raise LookupError(f"Payment {payment_id} not found while stamping invoice")
        log_database_operation(logger, "stamp_invoice", "payments", record_id=payment_id)

    def find_by_user_and_property(self, user_id: int, property_id: int) -> List[Payment]:
        return self.db.query(Payment).filter(
            Payment.user_id == user_id,
            Payment.property_id == property_id,
            Payment.kind == PAYMENT_KIND_PROPERTY
        ).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()

    def find_all(self) -> List[Payment]:
        return self.db.query(Payment).order_by(Payment.payment_date.desc(), Payment.id.desc()).all()

    def find_all_for_user(self, user_id: int, kind: Optional[str] = None) -> List[Dict[str, Any]]:
        """Payments of a user, most recent first, with listing and unit context.

        `kind` restricts the result to one payment family; by default both
        families are merged.
        """
        records = []
        if kind in (None, PAYMENT_KIND_PROPERTY):
            rows = self.db.query(Payment, Property).outerjoin(
                Property, Payment.property_id == Property.id
            ).filter(
                Payment.user_id == user_id,
                Payment.kind == PAYMENT_KIND_PROPERTY
            ).all()
            for payment, listing in rows:
                record = payment_to_dict(payment)
                record.update({
                    "property_name": listing.name if listing else None,
                    "location": listing.location if listing else None,
                    "price": _money(listing.price) if listing else None,
                })
                records.append(record)

        if kind in (None, PAYMENT_KIND_APARTMENT):
            rows = self.db.query(Payment, ApartmentBooking, Apartment, ApartmentUnit).join(
                ApartmentBooking, ApartmentBooking.payment_id == Payment.id
            ).outerjoin(
                Apartment, ApartmentBooking.apartment_id == Apartment.id
            ).outerjoin(
                ApartmentUnit, and_(ApartmentBooking.unit_id == ApartmentUnit.id, ApartmentBooking.is_demo.is_(False))
            ).filter(
                Payment.user_id == user_id,
                Payment.kind == PAYMENT_KIND_APARTMENT
            ).all()
            for payment, booking, apartment, unit in rows:
                record = payment_to_dict(payment)
                record.update({
                    "property_name": apartment.name if apartment else None,
                    "location": apartment.location if apartment else None,
                    "price": _money(unit.price) if unit else None,
                    "booking_id": booking.id,
                    "unit_number": unit.unit_number if unit else None,
                })
                records.append(record)

        records.sort(key=lambda r: (r["payment_date"], r["id"]), reverse=True)
        return records
