import os
import tempfile
from decimal import Decimal

import pytest

# Must be set before estate_app.db builds its engine
_TMP_DIR = tempfile.mkdtemp(prefix="estate-tests-")
os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(_TMP_DIR, 'estate.db')}"
os.environ["LOG_DIR"] = os.path.join(_TMP_DIR, "logs")
os.environ["CREATE_TABLES"] = "false"

from fastapi.testclient import TestClient  # noqa: E402

from estate_app.main import app  # noqa: E402
from estate_app.db import Base, SessionLocal, engine  # noqa: E402
from estate_app.models import User, Property, Apartment  # noqa: E402
from estate_app.booking.models import ApartmentUnit  # noqa: E402

USER_ID = 1
OTHER_USER_ID = 2
PROPERTY_ID = 9
PROPERTY_PRICE = Decimal("100000.00")
APARTMENT_ID = 3
UNIT_ID = 42
SECOND_UNIT_ID = 43
BOOKED_UNIT_ID = 44

UPI_DETAILS = {"upi_id": "name@bank"}
CARD_DETAILS = {
    "card_holder": "Asha Rao",
    "card_number": "4111 1111 1111 1234",
    "expiry_date": "08/29",
    "cvv": "123",
}


def seed(db):
    db.add_all([
        User(id=USER_ID, first_name="Asha", last_name="Rao", email="asha@example.com"),
        User(id=OTHER_USER_ID, first_name="Vikram", last_name="Nair", email="vikram@example.com"),
        Property(id=PROPERTY_ID, name="Lakeview Villa", location="Pune", price=PROPERTY_PRICE),
        Apartment(id=APARTMENT_ID, name="Palm Residency", location="Bengaluru", amenities="Pool, Gym"),
    ])
    db.flush()
    db.add_all([
        ApartmentUnit(id=UNIT_ID, apartment_id=APARTMENT_ID, unit_number="A-101", floor_number=1,
                      price=Decimal("1000.00"), bedrooms=2, bathrooms=1, area=Decimal("850.00"),
                      status="available"),
        ApartmentUnit(id=SECOND_UNIT_ID, apartment_id=APARTMENT_ID, unit_number="A-102", floor_number=1,
                      price=Decimal("1200.00"), bedrooms=3, bathrooms=2, area=Decimal("1100.00"),
                      status="available"),
        ApartmentUnit(id=BOOKED_UNIT_ID, apartment_id=APARTMENT_ID, unit_number="B-201", floor_number=2,
                      price=Decimal("1500.00"), bedrooms=3, bathrooms=2, area=Decimal("1300.00"),
                      status="booked"),
    ])
    db.commit()


@pytest.fixture(autouse=True)
def schema():
    """Fresh tables and seed rows for every test"""
    Base.metadata.create_all(bind=engine)
    db = SessionLocal()
    try:
        seed(db)
    finally:
        db.close()
    yield
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db():
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client():
    return TestClient(app)


@pytest.fixture
def booking_payload():
    return {
        "user_id": USER_ID,
        "property_id": APARTMENT_ID,
        "unit_id": UNIT_ID,
        "total_price": "1000",
        "amount_paid": "1000",
        "payment_method": "upi",
        "payment_details": dict(UPI_DETAILS),
        "property_name": "Palm Residency",
    }
