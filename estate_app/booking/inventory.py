from typing import List, Optional
from sqlalchemy.orm import Session
from ..exceptions import UnitUnavailableError
from ..logging_config import get_logger, log_database_operation
from .models import ApartmentUnit, UNIT_AVAILABLE, UNIT_BOOKED

logger = get_logger(__name__)

class UnitInventory:
    """Apartment units and their availability state.

    All methods run inside the caller's transaction.
    """

    def __init__(self, db: Session):
        self.db = db

    def list_units(self, apartment_id: int) -> List[ApartmentUnit]:
        return self.db.query(ApartmentUnit).filter(
            ApartmentUnit.apartment_id == apartment_id
        ).order_by(ApartmentUnit.floor_number, ApartmentUnit.unit_number).all()

    def find_available(self, unit_id: int) -> Optional[ApartmentUnit]:
        """Re-read the unit under a row lock, only if it is still available"""
        return self.db.query(ApartmentUnit).filter(
            ApartmentUnit.id == unit_id,
            ApartmentUnit.status == UNIT_AVAILABLE
        ).with_for_update().first()

    def mark_booked(self, unit_id: int) -> None:
        """Flip an available unit to booked.

        The update is conditional on the unit still being available, so a
        booking that lost a race to the same unit updates zero rows and fails.
        """
        updated = self.db.query(ApartmentUnit).filter(
            ApartmentUnit.id == unit_id,
            ApartmentUnit.status == UNIT_AVAILABLE
        ).update({ApartmentUnit.status: UNIT_BOOKED}, synchronize_session="fetch")

        if updated != 1:
            raise UnitUnavailableError(unit_id)
        log_database_operation(logger, "mark_booked", "apartment_units", record_id=unit_id)
