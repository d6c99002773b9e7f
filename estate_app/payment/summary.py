from decimal import Decimal, ROUND_HALF_UP
from sqlalchemy.orm import Session
from ..exceptions import NotFoundError
from ..models import Property
from ..logging_config import get_logger
from .models import Payment, PAYMENT_KIND_PROPERTY
from .schemas import PaymentSummary

logger = get_logger(__name__)

DEPOSIT_RATE = Decimal("0.10")
COMPLETED_STATUSES = ("completed", "paid")
CENTS = Decimal("0.01")

def round_money(value: Decimal) -> Decimal:
    return Decimal(value).quantize(CENTS, rounding=ROUND_HALF_UP)

def percentage_of(paid: Decimal, price: Decimal) -> int:
    """Whole percent of `price` covered by `paid`, half-up; 0 for a zero price"""
    if not price:
        return 0
    return int((Decimal(paid) / Decimal(price) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))

def get_payment_summary(db: Session, user_id: int, property_id: int) -> PaymentSummary:
    """Deposit progress of a user on a standalone property.

    Raises NotFoundError when the user has no payment at all for the
    property; a user with only non-completed payments gets a summary with
    nothing paid.
    """
    payments = db.query(Payment).filter(
        Payment.user_id == user_id,
        Payment.property_id == property_id,
        Payment.kind == PAYMENT_KIND_PROPERTY
    ).all()

    if not payments:
        raise NotFoundError("No payment found")

    listing = db.query(Property).filter(Property.id == property_id).first()
    if listing is not None:
        full_price = Decimal(listing.price)
    else:
        # Listing removed: fall back to the price recorded with the payments
        recorded = [p.total_price for p in payments if p.total_price is not None]
        full_price = Decimal(max(recorded)) if recorded else Decimal("0")

    deposit_amount = round_money(full_price * DEPOSIT_RATE)
    total_paid = round_money(sum(
        (Decimal(p.amount_paid) for p in payments if p.status in COMPLETED_STATUSES),
        Decimal("0")
    ))

    # Overpayment is reported as is: negative pending, percentage above the deposit share
    summary = PaymentSummary(
        full_property_price=float(round_money(full_price)),
        deposit_amount=float(deposit_amount),
        total_paid=float(total_paid),
        pending_amount=float(deposit_amount - total_paid),
        percentage_paid=percentage_of(total_paid, full_price),
    )

    logger.debug("Payment summary computed", extra={
        "user_id": user_id,
        "property_id": property_id,
        "payments_count": len(payments),
        "percentage_paid": summary.percentage_paid
    })
    return summary
