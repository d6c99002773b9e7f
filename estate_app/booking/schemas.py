from pydantic import BaseModel
from typing import Optional, Dict, Any, List, Union
from datetime import datetime
from decimal import Decimal

class BookApartmentRequest(BaseModel):
    user_id: Optional[int] = None
    property_id: Optional[int] = None  # apartments.id
    unit_id: Optional[Union[int, str]] = None  # unit id, or "fallback-<n>" for demo units
    total_price: Optional[Decimal] = None
    amount_paid: Optional[Decimal] = None
    payment_method: Optional[str] = None
    payment_details: Optional[Dict[str, Any]] = None
    property_name: Optional[str] = None
    # Sent by the payment form; bookings are always recorded as completed
    status: Optional[str] = None

    class Config:
        extra = "forbid"

class BookingResult(BaseModel):
    payment_id: int
    invoice_number: str

class BookApartmentResponse(BaseModel):
    success: bool = True
    message: str = "Apartment booked successfully"
    data: BookingResult

class UnitResponse(BaseModel):
    id: int
    apartment_id: int
    unit_number: str
    floor_number: Optional[int]
    price: float
    bedrooms: Optional[int]
    bathrooms: Optional[int]
    area: Optional[float]
    status: str

    class Config:
        from_attributes = True

class BookedApartmentResponse(BaseModel):
    booking_id: int
    apartment_id: int
    unit_id: int
    payment_id: int
    booking_date: datetime
    amount: float
    booking_status: str
    notes: Optional[str] = None
    name: Optional[str] = None
    location: Optional[str] = None
    description: Optional[str] = None
    amenities: Optional[str] = None
    unit_number: Optional[str] = None
    floor_number: Optional[int] = None
    price: Optional[float] = None
    bedrooms: Optional[int] = None
    bathrooms: Optional[int] = None
    area: Optional[float] = None
    invoice_number: Optional[str] = None
    payment_method: Optional[str] = None
    payment_status: Optional[str] = None

class BookedApartmentsResponse(BaseModel):
    success: bool = True
    message: Optional[str] = None
    data: List[BookedApartmentResponse] = []
