from fastapi import APIRouter, Depends, HTTPException, status, Request, Query
from sqlalchemy.orm import Session
from sqlalchemy.exc import SQLAlchemyError
from typing import List
from ..db import get_db
from ..error_audit import get_error_auditor
from ..exceptions import ValidationError, UnitUnavailableError, ServerError
from ..logging_config import get_logger, log_error
from .inventory import UnitInventory
from .schemas import BookApartmentRequest, BookApartmentResponse, UnitResponse, BookedApartmentsResponse
from .service import BookingService

logger = get_logger(__name__)

router = APIRouter(prefix="/apartments", tags=["apartments"])

@router.post("/book", response_model=BookApartmentResponse)
def book_apartment(
    booking_data: BookApartmentRequest,
    request: Request,
    db: Session = Depends(get_db)
):
    """Pay for and book an apartment unit"""
    try:
        result = BookingService(db).book_apartment(booking_data)
        return {"success": True, "message": "Apartment booked successfully", "data": result}

    except ValidationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=e.message
        )
    except UnitUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=e.message
        )
    except ServerError as e:
        get_error_auditor(db).log_server_error(e, request, user_id=booking_data.user_id, context_data={
            "property_id": booking_data.property_id,
            "unit_id": str(booking_data.unit_id)
        })
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=e.message
        )

@router.get("/units", response_model=List[UnitResponse])
def get_apartment_units(
    apartment_id: int = Query(..., description="Apartment whose units to list"),
    db: Session = Depends(get_db)
):
    """Units of an apartment with their availability"""
    try:
        units = UnitInventory(db).list_units(apartment_id)
        return [
            {
                "id": unit.id,
                "apartment_id": unit.apartment_id,
                "unit_number": unit.unit_number,
                "floor_number": unit.floor_number,
                "price": float(unit.price),
                "bedrooms": unit.bedrooms,
                "bathrooms": unit.bathrooms,
                "area": float(unit.area) if unit.area is not None else None,
                "status": unit.status
            }
            for unit in units
        ]

    except SQLAlchemyError as e:
        log_error(logger, e, {"apartment_id": apartment_id}, "list_units_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to fetch apartment units"
        )

@router.get("/user/{user_id}/bookings", response_model=BookedApartmentsResponse)
def get_user_booked_apartments(user_id: int, db: Session = Depends(get_db)):
    """Apartments booked by a user, newest first"""
    try:
        bookings = BookingService(db).get_user_bookings(user_id)
        if not bookings:
            return {"success": True, "message": "No booked apartments found for this user", "data": []}
        return {"success": True, "data": bookings}

    except SQLAlchemyError as e:
        log_error(logger, e, {"user_id": user_id}, "user_bookings_error")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Server error while fetching booked apartments"
        )
