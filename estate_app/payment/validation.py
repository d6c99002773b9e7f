"""
Payment method and payment detail checks.

The detail rules live on the pydantic variants in payment.schemas. The request
boundary (booking and standalone payment services) and PaymentStore.insert both
go through those models, so a record one layer rejects can never be persisted
by the other.
"""
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple, Type

from pydantic import BaseModel, TypeAdapter
from pydantic import ValidationError as SchemaValidationError

from ..exceptions import ValidationError
from .schemas import CreditCardDetails, UpiDetails, PaymentDetails, PositiveAmount

METHOD_CREDIT_CARD = "credit_card"
METHOD_UPI = "upi"

# Accepted at the boundary; "card" is a legacy alias
ACCEPTED_METHODS = (METHOD_CREDIT_CARD, "card", METHOD_UPI)
STORED_METHODS = (METHOD_CREDIT_CARD, METHOD_UPI)

CARD_REQUIRED_MESSAGE = "All credit card details are required"
UPI_REQUIRED_MESSAGE = "UPI ID is required for UPI payments"

_amount_adapter = TypeAdapter(PositiveAmount)

def normalize_payment_method(payment_method: str) -> str:
    if payment_method not in ACCEPTED_METHODS:
        raise ValidationError("Only credit card and UPI payments are accepted")
    return METHOD_CREDIT_CARD if payment_method == "card" else payment_method

def require_fields(message: str, **fields: Any) -> None:
    """Fail with `message` if any field is missing or blank"""
    missing = [name for name, value in fields.items() if value is None or value == "" or value == {}]
    if missing:
        raise ValidationError(message)

def validate_amount(amount: Optional[Decimal]) -> Decimal:
    if amount is None:
        raise ValidationError("Please enter a valid payment amount")
    try:
        return _amount_adapter.validate_python(amount)
    except SchemaValidationError:
        raise ValidationError("Please enter a valid payment amount")

def _first_message(error: SchemaValidationError) -> str:
    first = error.errors()[0]
    cause = first.get("ctx", {}).get("error")
    return str(cause) if cause is not None else first["msg"]

def _build(model: Type[BaseModel], fields: Dict[str, Any]) -> PaymentDetails:
    try:
        return model(**fields)
    except SchemaValidationError as e:
        raise ValidationError(_first_message(e))

def _text(details: Dict[str, Any], key: str) -> str:
    value = details.get(key)
    return str(value).strip() if value is not None else ""

def parse_payment_details(payment_method: str, payment_details: Dict[str, Any]) -> PaymentDetails:
    """Build the typed detail variant for an already normalized method"""
    if not isinstance(payment_details, dict):
        raise ValidationError("Payment details must be an object")

    if payment_method == METHOD_CREDIT_CARD:
        fields = {key: _text(payment_details, key) for key in ("card_holder", "card_number", "expiry_date", "cvv")}
        if not all(fields.values()):
            raise ValidationError(CARD_REQUIRED_MESSAGE)
        return _build(CreditCardDetails, fields)

    upi_id = _text(payment_details, "upi_id")
    if not upi_id:
        raise ValidationError(UPI_REQUIRED_MESSAGE)
    return _build(UpiDetails, {"upi_id": upi_id})

def validate_payment_request(payment_method: str, payment_details: Dict[str, Any]) -> Tuple[str, PaymentDetails]:
    """Boundary check: returns the normalized method and typed details"""
    method = normalize_payment_method(payment_method)
    return method, parse_payment_details(method, payment_details)

def validate_payment_record(payment_method: str, payment_details: PaymentDetails) -> None:
    """Store-side re-check: rebuilds the variant so its field rules run again"""
    if payment_method not in STORED_METHODS:
        raise ValidationError("Only credit card and UPI payments are accepted")
    if payment_method == METHOD_CREDIT_CARD:
        model, message = CreditCardDetails, CARD_REQUIRED_MESSAGE
    else:
        model, message = UpiDetails, UPI_REQUIRED_MESSAGE
    if not isinstance(payment_details, model):
        raise ValidationError(message)
    _build(model, payment_details.model_dump(exclude={"method"}))
