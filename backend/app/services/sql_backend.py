# backend/app/services/sql_backend.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Type

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from app.core.config import Settings, get_settings
from app.core.errors import BackendError
from app.crud import accounts as crud_accounts
from app.crud import rows as crud_rows
from app.db.base import create_all
from app.db.session import make_engine, make_session_factory
from app.models.base import Base
from app.models.company import Company
from app.models.registration import RegistrationRequest

logger = logging.getLogger(__name__)

_FACTORIES: Dict[str, sessionmaker] = {}


class SqlBackend:
    """Backend contract on top of SQLAlchemy, for local development and tests."""

    def __init__(self, session_factory: sessionmaker, settings: Optional[Settings] = None):
        settings = settings or get_settings()
        self.session_factory = session_factory
        self.tables: Dict[str, Type[Base]] = {
            settings.REGISTRATIONS_TABLE: RegistrationRequest,
            settings.COMPANIES_TABLE: Company,
        }
        # reset mails are recorded, not sent
        self.outbox: List[Dict[str, str]] = []

    @classmethod
    def from_url(cls, url: str, settings: Optional[Settings] = None) -> "SqlBackend":
        factory = _FACTORIES.get(url)
        if factory is None:
            engine = make_engine(url)
            create_all(engine)
            factory = _FACTORIES[url] = make_session_factory(engine)
        return cls(factory, settings=settings)

    def _model(self, table: str) -> Type[Base]:
        model = self.tables.get(table)
        if model is None:
            raise BackendError(f"Unknown table: {table}")
        return model

    def _run(self, fn, *args, **kwargs):
        with self.session_factory() as db:
            try:
                return fn(db, *args, **kwargs)
            except (SQLAlchemyError, KeyError) as e:
                db.rollback()
                logger.error("[sql] %s failed: %s", fn.__name__, e)
                raise BackendError(str(e)) from e

    # ---------- rows ----------
    def list_rows(self, table: str, order_by: str, ascending: bool) -> List[Dict[str, Any]]:
        return self._run(crud_rows.list_rows, self._model(table), order_by=order_by, ascending=ascending)

    def get_row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        return self._run(crud_rows.get_row, self._model(table), row_id)

    def insert_row(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        return self._run(crud_rows.insert_row, self._model(table), record)

    def update_rows(
        self, table: str, row_id: str, changes: Dict[str, Any], match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        return self._run(crud_rows.update_rows, self._model(table), row_id, changes, match)

    def delete_row(self, table: str, row_id: str) -> None:
        self._run(crud_rows.delete_row, self._model(table), row_id)

    # ---------- identities ----------
    def create_account(
        self, email: str, password: str, metadata: Dict[str, Any], email_confirmed: bool
    ) -> Dict[str, Any]:
        def _create(db):
            if crud_accounts.get_by_email(db, email) is not None:
                raise BackendError("A user with this email address has already been registered")
            obj = crud_accounts.create_account(
                db, email=email, password=password, metadata=metadata, email_confirmed=email_confirmed
            )
            return crud_accounts.account_to_dict(obj)

        return self._run(_create)

    def get_account(self, email: str) -> Optional[Dict[str, Any]]:
        def _get(db):
            obj = crud_accounts.get_by_email(db, email)
            return crud_accounts.account_to_dict(obj) if obj else None

        return self._run(_get)

    def update_account(self, account_id: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        def _update(db):
            obj = crud_accounts.update_metadata(db, account_id, metadata)
            if obj is None:
                raise BackendError("User not found")
            return crud_accounts.account_to_dict(obj)

        return self._run(_update)

    def send_reset_email(self, email: str, redirect_url: str) -> None:
        logger.info("[sql] reset mail to=%s redirect=%s (not sent, local backend)", email, redirect_url)
        self.outbox.append({"email": email, "redirect_to": redirect_url})
