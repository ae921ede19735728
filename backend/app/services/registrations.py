# backend/app/services/registrations.py
"""
Registration review workflows.

  load_registrations   read all rows in the requested order
  approve_registration company -> status -> account -> invitation mail
  reject_registration  conditional pending -> rejected

Approval is a small saga: every write registers a compensating action and a
later failure undoes the earlier writes in reverse order. The status update is
conditional on status=pending, so two approvals (or an approve racing a reject)
cannot both win even across processes.
"""
from __future__ import annotations

import logging
import threading
import uuid
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterator, List, Optional, Tuple, Union

from pydantic import ValidationError

from app.core.config import Settings, get_settings
from app.core.errors import BackendError, ConflictError, NotFoundError, WorkflowError
from app.schemas.registrations import ApprovalResult, Registration, RejectionResult
from app.services.backends import Backend, admin_backend, require_service_role

logger = logging.getLogger(__name__)

SORT_FIELDS = ("created_at", "company_name", "status")
PENDING, APPROVED, REJECTED = "pending", "approved", "rejected"

STEP_MESSAGES = {
    "create_company": "Failed to create company",
    "update_request": "Failed to update request",
    "create_user": "Failed to create user",
}


# ---------------------------------------------------------------------------
# Sorting
# ---------------------------------------------------------------------------
@dataclass
class SortState:
    field: str = "created_at"
    direction: str = "desc"

    def __post_init__(self) -> None:
        if self.field not in SORT_FIELDS:
            raise ValueError(f"Unsupported sort field: {self.field}")
        if self.direction not in ("asc", "desc"):
            raise ValueError(f"Unsupported sort direction: {self.direction}")

    @property
    def ascending(self) -> bool:
        return self.direction == "asc"

    def toggle(self, field: str) -> "SortState":
        """Same field flips the direction; a new field starts ascending."""
        if field not in SORT_FIELDS:
            raise ValueError(f"Unsupported sort field: {field}")
        if field == self.field:
            self.direction = "desc" if self.ascending else "asc"
        else:
            self.field = field
            self.direction = "asc"
        return self


def load_registrations(backend: Backend, sort: SortState, settings: Optional[Settings] = None) -> List[Registration]:
    settings = settings or get_settings()
    rows = backend.list_rows(settings.REGISTRATIONS_TABLE, sort.field, sort.ascending)
    try:
        return [Registration.model_validate(r) for r in rows]
    except ValidationError as e:
        raise BackendError(f"Unexpected registration row: {e.errors()[0].get('msg', e)}") from e


def get_registration(backend: Backend, registration_id: str, settings: Optional[Settings] = None) -> Registration:
    settings = settings or get_settings()
    row = backend.get_row(settings.REGISTRATIONS_TABLE, registration_id)
    if row is None:
        raise NotFoundError("Registration not found")
    return Registration.model_validate(row)


# ---------------------------------------------------------------------------
# In-flight guard
# ---------------------------------------------------------------------------
class RowGuard:
    """Set of registration ids with an action running in this process."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._busy: set[str] = set()

    def is_busy(self, row_id: str) -> bool:
        with self._lock:
            return row_id in self._busy

    def busy_ids(self) -> set[str]:
        with self._lock:
            return set(self._busy)

    @contextmanager
    def hold(self, row_id: str) -> Iterator[None]:
        with self._lock:
            if row_id in self._busy:
                raise ConflictError("Registration is already being processed")
            self._busy.add(row_id)
        try:
            yield
        finally:
            with self._lock:
                self._busy.discard(row_id)


row_guard = RowGuard()


# ---------------------------------------------------------------------------
# Approval
# ---------------------------------------------------------------------------
def company_record(registration: Registration, company_id: str) -> Dict[str, Any]:
    return {
        "id": company_id,
        "company_name": registration.company_name,
        "ico": registration.ico,
        "dic": registration.dic,
        "street": registration.street,
        "city": registration.city,
        "postal_code": registration.psc,
        "country": registration.country,
        "contact_person_name": registration.contact_person_name,
        "contact_person_surname": registration.contact_person_surname,
        "contact_email": registration.email,
        "contact_phone": registration.phone,
        "wallet_balance": 0,
    }


class _Compensations:
    def __init__(self, registration_id: str) -> None:
        self.registration_id = registration_id
        self._stack: List[Tuple[str, Callable[[], None]]] = []

    def push(self, name: str, action: Callable[[], None]) -> None:
        self._stack.append((name, action))

    def unwind(self) -> List[str]:
        """Run in reverse order; return names of the ones that failed."""
        failed: List[str] = []
        while self._stack:
            name, action = self._stack.pop()
            try:
                action()
                logger.info("[approve] compensated %s registration=%s", name, self.registration_id)
            except BackendError:
                logger.exception("[approve] compensation %s failed registration=%s", name, self.registration_id)
                failed.append(name)
        return failed


def _fail(step: str, registration_id: str, cause: BackendError, comp: _Compensations) -> WorkflowError:
    logger.error("[approve] step=%s registration=%s error=%s", step, registration_id, cause.message)
    unreconciled = comp.unwind()
    if unreconciled:
        logger.error("[approve] registration=%s needs manual reconcile: %s", registration_id, ", ".join(unreconciled))
    return WorkflowError(
        STEP_MESSAGES[step],
        step=step,
        registration_id=registration_id,
        cause=cause.message,
        unreconciled=unreconciled,
    )


def _provision(backend: Backend, registration: Registration, settings: Settings) -> ApprovalResult:
    reg_table, company_table = settings.REGISTRATIONS_TABLE, settings.COMPANIES_TABLE
    rid = registration.id
    comp = _Compensations(rid)

    # 1. new company id, never the registration's own
    company_id = str(uuid.uuid4())

    # 2. company row
    try:
        backend.insert_row(company_table, company_record(registration, company_id))
    except BackendError as e:
        raise _fail("create_company", rid, e, comp) from e
    comp.push(f"delete company {company_id}", lambda: backend.delete_row(company_table, company_id))

    # 3. pending -> approved, only if nobody else moved it first
    try:
        updated = backend.update_rows(reg_table, rid, {"status": APPROVED}, match={"status": PENDING})
    except BackendError as e:
        raise _fail("update_request", rid, e, comp) from e
    if not updated:
        raise _fail("update_request", rid, BackendError("Registration is no longer pending"), comp)
    comp.push(
        "revert request status",
        lambda: _revert_status(backend, reg_table, rid),
    )

    # 4. identity; the random password is never shown, the user sets one via mail
    email = registration.email or ""
    try:
        account = _provision_account(backend, email, company_id, company_table)
    except BackendError as e:
        err = _fail("create_user", rid, e, comp)
        err.unreconciled.extend(_stray_account(backend, email, company_id))
        raise err from e

    # 5. invitation mail is best-effort
    email_sent = True
    try:
        backend.send_reset_email(registration.email or "", settings.reset_redirect_url)
    except BackendError as e:
        email_sent = False
        logger.warning("[approve] reset mail failed registration=%s email=%s error=%s", rid, registration.email, e.message)

    logger.info("[approve] registration=%s company=%s email_sent=%s", rid, company_id, email_sent)
    return ApprovalResult(
        registration_id=rid,
        company_id=company_id,
        account_id=(account or {}).get("id"),
        email_sent=email_sent,
    )


def _owner(account: Optional[Dict[str, Any]]) -> Optional[str]:
    return ((account or {}).get("user_metadata") or {}).get("company_id")


def _provision_account(backend: Backend, email: str, company_id: str, company_table: str) -> Dict[str, Any]:
    """
    Create the account for `company_id`, keyed by email.

    An existing account whose company no longer exists was left behind by an
    earlier failed approval and is re-pointed at the new company. An account
    owned by a live company (or by none) is never taken over.
    """
    existing = backend.get_account(email)
    if existing is not None:
        owner = _owner(existing)
        if owner == company_id:
            return existing
        if not owner or backend.get_row(company_table, owner) is not None:
            raise BackendError(f"Account {email} already exists")
        logger.warning("[approve] adopting account email=%s stale_company=%s company=%s", email, owner, company_id)
        metadata = dict(existing.get("user_metadata") or {}, company_id=company_id)
        return backend.update_account(existing["id"], metadata)

    try:
        return backend.create_account(email, str(uuid.uuid4()), {"company_id": company_id}, False)
    except BackendError:
        # the create may have landed even though the response did not (timeouts)
        created = backend.get_account(email)
        if _owner(created) == company_id:
            logger.warning("[approve] account email=%s created despite error, keeping it", email)
            return created
        raise


def _stray_account(backend: Backend, email: str, company_id: str) -> List[str]:
    """Accounts still pointing at the company that was just compensated away."""
    try:
        account = backend.get_account(email)
    except BackendError:
        logger.exception("[approve] could not check account email=%s company=%s", email, company_id)
        return [f"check account {email} for company {company_id}"]
    if _owner(account) == company_id:
        logger.error("[approve] account email=%s points at removed company=%s", email, company_id)
        return [f"account {account.get('id')} ({email}) points at removed company {company_id}"]
    return []


def _revert_status(backend: Backend, table: str, registration_id: str) -> None:
    if not backend.update_rows(table, registration_id, {"status": PENDING}, match={"status": APPROVED}):
        raise BackendError("Registration status changed before it could be reverted")


def approve_registration(
    registration: Union[Registration, str],
    *,
    backend: Optional[Backend] = None,
    settings: Optional[Settings] = None,
    guard: Optional[RowGuard] = None,
) -> ApprovalResult:
    """
    Provision a Company and an auth account for a pending registration.

    Idempotent by registration id: an already approved row returns
    `already_processed=True` and creates nothing. A rejected row is a conflict.
    """
    settings = settings or get_settings()
    require_service_role(settings)
    backend = backend or admin_backend(settings)
    guard = guard or row_guard
    rid = registration if isinstance(registration, str) else registration.id

    with guard.hold(rid):
        # authoritative state, not whatever the caller had on screen
        current = get_registration(backend, rid, settings)
        if current.status == APPROVED:
            logger.info("[approve] registration=%s already approved, skipping", rid)
            return ApprovalResult(registration_id=rid, already_processed=True)
        if current.status != PENDING:
            raise ConflictError(f"Registration is {current.status}, not pending")
        return _provision(backend, current, settings)


# ---------------------------------------------------------------------------
# Rejection
# ---------------------------------------------------------------------------
def reject_registration(
    registration_id: str,
    *,
    backend: Optional[Backend] = None,
    settings: Optional[Settings] = None,
    guard: Optional[RowGuard] = None,
) -> RejectionResult:
    settings = settings or get_settings()
    require_service_role(settings)
    backend = backend or admin_backend(settings)
    guard = guard or row_guard

    with guard.hold(registration_id):
        updated = backend.update_rows(
            settings.REGISTRATIONS_TABLE, registration_id, {"status": REJECTED}, match={"status": PENDING}
        )
        if updated:
            logger.info("[reject] registration=%s", registration_id)
            return RejectionResult(registration_id=registration_id)

        current = get_registration(backend, registration_id, settings)
        if current.status == REJECTED:
            return RejectionResult(registration_id=registration_id, already_processed=True)
        raise ConflictError(f"Registration is {current.status}, not pending")
