# app/models/registration.py
from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func
import uuid

from app.models.base import Base

def _uuid() -> str:
    return str(uuid.uuid4())

class RegistrationRequest(Base):
    __tablename__ = "registration_requests"

    id = Column(String, primary_key=True, default=_uuid)

    # Company
    company_name = Column(String, nullable=True, index=True)
    ico = Column(String, nullable=True)
    dic = Column(String, nullable=True)
    street = Column(String, nullable=True)
    city = Column(String, nullable=True)
    psc = Column(String, nullable=True)
    country = Column(String, nullable=True)

    # Contact person
    contact_person_name = Column(String, nullable=True)
    contact_person_surname = Column(String, nullable=True)
    email = Column(String, nullable=True, index=True)
    phone = Column(String, nullable=True)

    # pending / approved / rejected
    status = Column(String, nullable=False, default="pending", index=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
