from sqlalchemy import Column, String, Text, ForeignKey, Numeric, DateTime, Integer, Boolean
from sqlalchemy.orm import relationship, backref
from ..db import Base
from ..models import utcnow
from ..payment.models import Payment

UNIT_AVAILABLE = "available"
UNIT_BOOKED = "booked"

class ApartmentUnit(Base):
    __tablename__ = "apartment_units"
    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    apartment_id = Column(Integer, ForeignKey('apartments.id', ondelete='CASCADE'), nullable=False, index=True)
    unit_number = Column(String(20), nullable=False)
    floor_number = Column(Integer, nullable=True)
    price = Column(Numeric(14, 2), nullable=False)
    bedrooms = Column(Integer, nullable=True)
    bathrooms = Column(Integer, nullable=True)
    area = Column(Numeric(10, 2), nullable=True)
    status = Column(String(20), nullable=False, default=UNIT_AVAILABLE, index=True)

    apartment = relationship('Apartment', backref='units')

class ApartmentBooking(Base):
    __tablename__ = "apartment_bookings"
    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    apartment_id = Column(Integer, nullable=False, index=True)
    # Not a foreign key: fallback bookings keep the stripped demo id
    unit_id = Column(Integer, nullable=False, index=True)
    is_demo = Column(Boolean, nullable=False, default=False)
    payment_id = Column(Integer, ForeignKey('payments.id'), nullable=False, unique=True, index=True)
    booking_date = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    amount = Column(Numeric(14, 2), nullable=False)
    status = Column(String(20), nullable=False, default="confirmed")
    notes = Column(Text, nullable=True)

    payment = relationship(Payment, backref=backref('booking', uselist=False))
    user = relationship('User', backref='apartment_bookings')
