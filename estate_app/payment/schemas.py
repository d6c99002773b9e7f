from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any, List, Union, Literal, Annotated
from datetime import datetime
from decimal import Decimal

MIN_CARD_NUMBER_LENGTH = 16
MIN_CVV_LENGTH = 3

PositiveAmount = Annotated[Decimal, Field(gt=0)]

def _required(value: str) -> str:
    value = value.strip()
    if not value:
        raise ValueError("All credit card details are required")
    return value

class CreditCardDetails(BaseModel):
    method: Literal["credit_card"] = "credit_card"
    card_holder: str
    card_number: str
    expiry_date: str  # MM/YY
    cvv: str

    @field_validator("card_holder")
    @classmethod
    def validate_card_holder(cls, v):
        return _required(v)

    @field_validator("card_number")
    @classmethod
    def validate_card_number(cls, v):
        v = _required(v)
        if len(v) < MIN_CARD_NUMBER_LENGTH:
            raise ValueError("Please enter a valid card number")
        return v

    @field_validator("expiry_date")
    @classmethod
    def validate_expiry_date(cls, v):
        v = _required(v)
        if "/" not in v:
            raise ValueError("Please enter a valid expiry date (MM/YY)")
        return v

    @field_validator("cvv")
    @classmethod
    def validate_cvv(cls, v):
        v = _required(v)
        if len(v) < MIN_CVV_LENGTH:
            raise ValueError("Please enter a valid CVV")
        return v

    def sanitized(self) -> Dict[str, Any]:
        """Persisted shape: masked number, no CVV"""
        digits = self.card_number.replace(" ", "").replace("-", "")
        return {
            "card_holder": self.card_holder,
            "card_number": "*" * (len(digits) - 4) + digits[-4:],
            "expiry_date": self.expiry_date,
        }

class UpiDetails(BaseModel):
    method: Literal["upi"] = "upi"
    upi_id: str

    @field_validator("upi_id")
    @classmethod
    def validate_upi_id(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("UPI ID is required for UPI payments")
        if "@" not in v:
            raise ValueError("Please enter a valid UPI ID")
        return v

    def sanitized(self) -> Dict[str, Any]:
        return {"upi_id": self.upi_id}

PaymentDetails = Union[CreditCardDetails, UpiDetails]

class CreatePaymentRequest(BaseModel):
    """Standalone property payment"""
    user_id: Optional[int] = None
    property_id: Optional[int] = None
    total_price: Optional[Decimal] = None
    amount_paid: Optional[Decimal] = None
    payment_method: Optional[str] = None
    payment_details: Optional[Dict[str, Any]] = None
    status: Optional[str] = None
    invoice_number: Optional[str] = None

    class Config:
        extra = "forbid"

class CreatePaymentResponse(BaseModel):
    success: bool = True
    payment_id: int
    status: str
    invoice_number: Optional[str] = None

class PaymentRecordResponse(BaseModel):
    id: int
    kind: str
    user_id: int
    property_id: int
    total_price: Optional[float] = None
    amount_paid: float
    payment_method: str
    payment_details: Dict[str, Any]
    status: str
    payment_date: datetime
    invoice_number: Optional[str] = None
    # Filled in by the history joins
    property_name: Optional[str] = None
    location: Optional[str] = None
    price: Optional[float] = None
    booking_id: Optional[int] = None
    unit_number: Optional[str] = None

    class Config:
        from_attributes = True

class PaymentSummary(BaseModel):
    full_property_price: float
    deposit_amount: float
    total_paid: float
    pending_amount: float
    percentage_paid: int

class PaymentCheckResponse(BaseModel):
    success: bool = True
    data: Dict[str, Any]

class PaymentHistoryResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    payments: List[PaymentRecordResponse] = []

class UnitDetails(BaseModel):
    unit_number: Optional[str] = None
    floor_number: Optional[int] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[float] = None

class InvoiceView(BaseModel):
    id: int
    payment_type: str
    user_id: int
    property_id: int
    user_name: Optional[str] = None
    email: Optional[str] = None
    property_name: Optional[str] = None
    location: Optional[str] = None
    total_price: Optional[float] = None
    amount_paid: float
    payment_method: str
    payment_details: Dict[str, Any]
    status: str
    payment_date: datetime
    invoice_number: Optional[str] = None

    full_property_price: float
    deposit_amount: float
    total_paid: float
    pending_amount: float
    percentage_paid: int

    booking_id: Optional[int] = None
    unit_details: Optional[UnitDetails] = None

class InvoiceResponse(BaseModel):
    success: bool = True
    invoice: InvoiceView
