# backend/app/services/backends.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Protocol

from app.core.config import Settings, get_settings
from app.core.errors import ConfigurationError

logger = logging.getLogger(__name__)


class Backend(Protocol):
    """Row store + identity store the workflows talk to. Failures raise BackendError."""

    def list_rows(self, table: str, order_by: str, ascending: bool) -> List[Dict[str, Any]]: ...

    def get_row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]: ...

    def insert_row(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]: ...

    def update_rows(
        self, table: str, row_id: str, changes: Dict[str, Any], match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]: ...

    def delete_row(self, table: str, row_id: str) -> None: ...

    def create_account(
        self, email: str, password: str, metadata: Dict[str, Any], email_confirmed: bool
    ) -> Dict[str, Any]: ...

    def get_account(self, email: str) -> Optional[Dict[str, Any]]: ...

    def update_account(self, account_id: str, metadata: Dict[str, Any]) -> Dict[str, Any]: ...

    def send_reset_email(self, email: str, redirect_url: str) -> None: ...


def require_service_role(settings: Settings) -> None:
    """Raise before any network call when the elevated key is not configured."""
    if settings.BACKEND == "supabase" and not settings.SUPABASE_URL.strip():
        logger.error("[config] SUPABASE_URL is not defined")
        raise ConfigurationError("Supabase configuration is missing.")
    if not settings.has_service_role:
        logger.error("[config] SUPABASE_SERVICE_ROLE_KEY is not defined")
        raise ConfigurationError("Supabase configuration is missing.")


def _sql_backend(settings: Settings) -> Backend:
    from app.services.sql_backend import SqlBackend

    return SqlBackend.from_url(settings.DATABASE_URL, settings=settings)


def read_backend(settings: Optional[Settings] = None) -> Backend:
    """Backend bound to the normal (anon) scope."""
    settings = settings or get_settings()
    if settings.BACKEND == "sql":
        return _sql_backend(settings)
    if not settings.SUPABASE_URL.strip() or not settings.SUPABASE_ANON_KEY.strip():
        raise ConfigurationError("Supabase URL or anon key is not defined.")
    from app.services.supabase import SupabaseClient

    return SupabaseClient(settings.SUPABASE_URL, settings.SUPABASE_ANON_KEY, timeout=settings.BACKEND_TIMEOUT)


def admin_backend(settings: Optional[Settings] = None) -> Backend:
    """Backend bound to the elevated (service role) scope."""
    settings = settings or get_settings()
    require_service_role(settings)
    if settings.BACKEND == "sql":
        return _sql_backend(settings)
    from app.services.supabase import SupabaseClient

    return SupabaseClient(
        settings.SUPABASE_URL, settings.SUPABASE_SERVICE_ROLE_KEY, timeout=settings.BACKEND_TIMEOUT
    )


class BackendProvider:
    """Hands out scoped backends; routes depend on this so tests can swap it."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()

    def read(self) -> Backend:
        return read_backend(self.settings)

    def admin(self) -> Backend:
        return admin_backend(self.settings)
