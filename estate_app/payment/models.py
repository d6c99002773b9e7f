from sqlalchemy import Column, String, Text, ForeignKey, Numeric, DateTime, Integer, JSON
from sqlalchemy.orm import relationship
from ..db import Base
from ..models import utcnow

PAYMENT_KIND_PROPERTY = "property"
PAYMENT_KIND_APARTMENT = "apartment"

class Payment(Base):
    __tablename__ = "payments"
    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    # Payment family, fixed when the row is written
    kind = Column(String(20), nullable=False, index=True)
    user_id = Column(Integer, ForeignKey('users.id'), nullable=False, index=True)
    # properties.id for the property family, apartments.id for bookings
    property_id = Column(Integer, nullable=False, index=True)

    total_price = Column(Numeric(14, 2), nullable=True)
    amount_paid = Column(Numeric(14, 2), nullable=False)
    payment_method = Column(String(20), nullable=False)  # credit_card, upi
    payment_details = Column(JSON, nullable=False)
    status = Column(String(20), nullable=False, index=True)  # completed, paid, ...
    payment_date = Column(DateTime(timezone=True), nullable=False, default=utcnow, index=True)
    invoice_number = Column(Text, nullable=True)

    user = relationship('User', backref='payments')
