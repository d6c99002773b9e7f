from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from sqlalchemy import and_
from sqlalchemy.orm import Session
from ..exceptions import ValidationError, UnitUnavailableError, ServerError
from ..logging_config import get_logger, log_error, log_business_event
from ..models import Apartment
from ..payment.models import Payment, PAYMENT_KIND_APARTMENT
from ..payment.store import PaymentStore
from ..payment.validation import require_fields, validate_amount, validate_payment_request
from .inventory import UnitInventory
from .models import ApartmentBooking, ApartmentUnit
from .schemas import BookApartmentRequest, BookingResult

logger = get_logger(__name__)

FALLBACK_UNIT_PREFIX = "fallback-"
FALLBACK_NOTE = "Demo booking - Unit is a fallback demo unit"
BOOKING_PAYMENT_STATUS = "completed"
BOOKING_STATUS = "confirmed"

def parse_unit_id(unit_id) -> Tuple[int, bool]:
    """Returns (unit id, is fallback). Fallback ids lose their prefix."""
    raw = str(unit_id).strip()
    is_fallback = raw.startswith(FALLBACK_UNIT_PREFIX)
    if is_fallback:
        raw = raw[len(FALLBACK_UNIT_PREFIX):]
    try:
        return int(raw), is_fallback
    except ValueError:
        raise ValidationError("Invalid unit ID format")

def make_invoice_number(property_id: int, now: Optional[datetime] = None) -> str:
    """APT-<property id>-<unix seconds>; unique only per property per second"""
    now = now or datetime.now(timezone.utc)
    return f"APT-{property_id}-{int(now.timestamp())}"

class BookingService:
    def __init__(self, db: Session):
        self.db = db
        self.payments = PaymentStore(db)
        self.inventory = UnitInventory(db)

    def book_apartment(self, request: BookApartmentRequest) -> BookingResult:
        """Record a payment and book a unit in one transaction.

        Validation happens before anything is written. Every write after
        that either commits together or is rolled back together.
        """
        require_fields(
            "All booking fields are required",
            user_id=request.user_id,
            property_id=request.property_id,
            unit_id=request.unit_id,
            amount_paid=request.amount_paid,
            payment_method=request.payment_method,
            payment_details=request.payment_details,
        )
        amount_paid = validate_amount(request.amount_paid)
        payment_method, payment_details = validate_payment_request(
            request.payment_method, request.payment_details
        )
        unit_id, is_fallback = parse_unit_id(request.unit_id)

        logger.info("Apartment booking attempt", extra={
            "user_id": request.user_id,
            "property_id": request.property_id,
            "unit_id": str(request.unit_id),
            "payment_method": payment_method,
            "amount_paid": float(amount_paid)
        })

        try:
            payment_id = self.payments.insert(
                kind=PAYMENT_KIND_APARTMENT,
                user_id=request.user_id,
                property_id=request.property_id,
                total_price=request.total_price if request.total_price is not None else amount_paid,
                amount_paid=amount_paid,
                payment_method=payment_method,
                payment_details=payment_details,
                status=BOOKING_PAYMENT_STATUS,
            )

            if is_fallback:
                booking = ApartmentBooking(
                    user_id=request.user_id,
                    apartment_id=request.property_id,
                    unit_id=unit_id,
                    is_demo=True,
                    payment_id=payment_id,
                    amount=amount_paid,
                    status=BOOKING_STATUS,
                    notes=FALLBACK_NOTE,
                )
                self.db.add(booking)
            else:
                if self.inventory.find_available(unit_id) is None:
                    raise UnitUnavailableError(unit_id)

                booking = ApartmentBooking(
                    user_id=request.user_id,
                    apartment_id=request.property_id,
                    unit_id=unit_id,
                    is_demo=False,
                    payment_id=payment_id,
                    amount=amount_paid,
                    status=BOOKING_STATUS,
                )
                self.db.add(booking)
                self.db.flush()
                self.inventory.mark_booked(unit_id)

            invoice_number = make_invoice_number(request.property_id)
            self.payments.stamp_invoice(payment_id, invoice_number)

            self.db.commit()

        except UnitUnavailableError:
            self.db.rollback()
            logger.warning("Unit not available for booking", extra={
                "user_id": request.user_id,
                "property_id": request.property_id,
                "unit_id": unit_id
            })
            raise

        except ValidationError:
            self.db.rollback()
            raise

        except Exception as e:
            self.db.rollback()
            log_error(logger, e, {
                "user_id": request.user_id,
                "property_id": request.property_id,
                "unit_id": str(request.unit_id)
            }, "apartment_booking_error")
            raise ServerError("Failed to process booking", original=e) from e

        log_business_event(logger, "apartment_booked", {
            "user_id": request.user_id,
            "property_id": request.property_id,
            "unit_id": unit_id,
            "payment_id": payment_id,
            "invoice_number": invoice_number,
            "fallback_unit": is_fallback
        })
        return BookingResult(payment_id=payment_id, invoice_number=invoice_number)

    def get_user_bookings(self, user_id: int) -> List[Dict[str, Any]]:
        """Bookings of a user with apartment, unit and payment context, newest first"""
        rows = self.db.query(ApartmentBooking, Apartment, ApartmentUnit, Payment).outerjoin(
            Apartment, ApartmentBooking.apartment_id == Apartment.id
        ).outerjoin(
            ApartmentUnit, and_(ApartmentBooking.unit_id == ApartmentUnit.id, ApartmentBooking.is_demo.is_(False))
        ).outerjoin(
            Payment, ApartmentBooking.payment_id == Payment.id
        ).filter(
            ApartmentBooking.user_id == user_id
        ).order_by(ApartmentBooking.booking_date.desc(), ApartmentBooking.id.desc()).all()

        bookings = []
        for booking, apartment, unit, payment in rows:
            bookings.append({
                "booking_id": booking.id,
                "apartment_id": booking.apartment_id,
                "unit_id": booking.unit_id,
                "payment_id": booking.payment_id,
                "booking_date": booking.booking_date,
                "amount": float(booking.amount),
                "booking_status": booking.status,
                "notes": booking.notes,
                "name": apartment.name if apartment else None,
                "location": apartment.location if apartment else None,
                "description": apartment.description if apartment else None,
                "amenities": apartment.amenities if apartment else None,
                "unit_number": unit.unit_number if unit else None,
                "floor_number": unit.floor_number if unit else None,
                "price": float(unit.price) if unit else None,
                "bedrooms": unit.bedrooms if unit else None,
                "bathrooms": unit.bathrooms if unit else None,
                "area": float(unit.area) if unit and unit.area is not None else None,
                "invoice_number": payment.invoice_number if payment else None,
                "payment_method": payment.payment_method if payment else None,
                "payment_status": payment.status if payment else None,
            })
        return bookings
