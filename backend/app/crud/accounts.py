# app/crud/accounts.py
import json
from typing import Any, Dict, Optional

from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.orm import Session

from app.models.auth_account import AuthAccount

pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def get_by_email(db: Session, email: str) -> Optional[AuthAccount]:
    if not email:
        return None
    return db.execute(select(AuthAccount).where(AuthAccount.email == email)).scalar_one_or_none()


def create_account(
    db: Session, *, email: str, password: str, metadata: Dict[str, Any] | None, email_confirmed: bool
) -> AuthAccount:
    obj = AuthAccount(
        email=email,
        password_hash=pwd_context.hash(password),
        user_metadata=json.dumps(metadata or {}),
        email_confirmed=email_confirmed,
    )
    db.add(obj)
    db.commit()
    db.refresh(obj)
    return obj


def account_to_dict(obj: AuthAccount) -> Dict[str, Any]:
    return {
        "id": obj.id,
        "email": obj.email,
        "user_metadata": json.loads(obj.user_metadata or "{}"),
        "email_confirmed": bool(obj.email_confirmed),
        "created_at": obj.created_at.isoformat() if obj.created_at else None,
    }


def update_metadata(db: Session, account_id: str, metadata: Dict[str, Any]) -> Optional[AuthAccount]:
    obj = db.get(AuthAccount, account_id)
    if obj is None:
        return None
    obj.user_metadata = json.dumps(metadata or {})
    db.commit()
    db.refresh(obj)
    return obj
