# app/models/auth_account.py
from sqlalchemy import Boolean, Column, DateTime, String, Text
from sqlalchemy.sql import func
import uuid

from app.models.base import Base

def _uuid() -> str:
    return str(uuid.uuid4())

class AuthAccount(Base):
    """Local stand-in for the hosted identity store."""
    __tablename__ = "auth_accounts"

    id = Column(String, primary_key=True, default=_uuid)
    email = Column(String, unique=True, index=True, nullable=False)
    password_hash = Column(String, nullable=False)
    # JSON-encoded user metadata, e.g. {"company_id": "..."}
    user_metadata = Column(Text, nullable=False, default="{}")
    email_confirmed = Column(Boolean, nullable=False, default=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
