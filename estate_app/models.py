from sqlalchemy import Column, String, Boolean, DateTime, Text, Integer, Numeric, JSON, Index
from datetime import datetime, timezone
from .db import Base

def utcnow():
    return datetime.now(timezone.utc)

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    first_name = Column(Text, nullable=False)
    last_name = Column(Text, nullable=True)
    email = Column(Text, unique=True, index=True, nullable=True)
    role = Column(String(20), nullable=False, default="buyer")  # buyer, seller, admin
    created_at = Column(DateTime(timezone=True), default=utcnow)

    @property
    def full_name(self) -> str:
        return " ".join(part for part in (self.first_name, self.last_name) if part)

class Property(Base):
    """Standalone listing paid for through the deposit flow."""
    __tablename__ = "properties"
    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(Text, nullable=False)
    location = Column(Text, nullable=True)
    price = Column(Numeric(14, 2), nullable=False)
    description = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

class Apartment(Base):
    """Multi-unit building; units live in apartment_units."""
    __tablename__ = "apartments"
    id = Column(Integer, primary_key=True, autoincrement=True, index=True)
    name = Column(Text, nullable=False)
    location = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    amenities = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow)

class ErrorAudit(Base):
    __tablename__ = "error_audits"

    id = Column(Integer, primary_key=True, autoincrement=True)

    # Error Classification
    error_type = Column(String(50), nullable=False)  # API_ERROR, SERVER_ERROR
    severity = Column(String(20), nullable=False)    # LOW, MEDIUM, HIGH, CRITICAL
    source = Column(String(50), nullable=False)      # BACKEND

    # Context Information
    user_id = Column(Integer, nullable=True)
    request_id = Column(String(100), nullable=True)

    # Error Details
    error_code = Column(String(50), nullable=True)
    error_message = Column(Text, nullable=False)
    stack_trace = Column(Text, nullable=True)

    # Request Context
    endpoint = Column(String(200), nullable=True)
    http_method = Column(String(10), nullable=True)
    http_status = Column(Integer, nullable=True)
    user_agent = Column(String(500), nullable=True)
    ip_address = Column(String(45), nullable=True)

    context_data = Column(JSON, nullable=True)

    resolved = Column(Boolean, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    __table_args__ = (
        Index('idx_error_type_created', 'error_type', 'created_at'),
        Index('idx_severity_created', 'severity', 'created_at'),
        Index('idx_endpoint_created', 'endpoint', 'created_at'),
    )
