# backend/app/services/board.py
from __future__ import annotations

import logging
import threading
from typing import Callable, Dict, List, Optional

from app.core.config import Settings, get_settings
from app.core.errors import RegistrationAdminError
from app.schemas.registrations import BoardRow, BoardSnapshot, Registration
from app.services.backends import Backend
from app.services.registrations import (
    PENDING,
    RowGuard,
    SortState,
    approve_registration,
    load_registrations,
    reject_registration,
    row_guard,
)

logger = logging.getLogger(__name__)


class RegistrationBoard:
    """
    View state of the registrations admin page.

    Rows are kept as an ordered {id: Registration} mapping from the last load;
    actions patch single rows in place instead of reloading. `error` is a read
    failure (shown instead of the table), `message` an inline action failure.

    Requests share one board, so every change to its state goes through
    `_lock`. Workflows run outside it; only their outcome is applied under it.
    """

    def __init__(
        self,
        read_backend: Callable[[], Backend],
        *,
        settings: Optional[Settings] = None,
        admin_backend: Optional[Callable[[], Backend]] = None,
        guard: Optional[RowGuard] = None,
    ):
        self.settings = settings or get_settings()
        self._read_backend = read_backend
        self._admin_backend = admin_backend
        self.guard = guard or row_guard
        self.sort = SortState()
        self.rows: Dict[str, Registration] = {}
        self.loading = False
        self.error: Optional[str] = None
        self.message: Optional[str] = None
        self._lock = threading.RLock()

    # ---------- reads ----------
    def reload(self) -> None:
        with self._lock:
            self.loading = True
            self.error = None
            try:
                items = load_registrations(self._read_backend(), self.sort, self.settings)
                self.rows = {r.id: r for r in items}
            except RegistrationAdminError as e:
                logger.error("[board] load failed: %s", e.message)
                self.rows = {}
                self.error = e.message
            finally:
                self.loading = False

    def toggle_sort(self, field: str) -> None:
        with self._lock:
            self.sort.toggle(field)
            self.reload()

    # ---------- writes ----------
    def patch(self, row_id: str, **changes) -> Optional[Registration]:
        with self._lock:
            row = self.rows.get(row_id)
            if row is None:
                return None
            self.rows[row_id] = row.model_copy(update=changes)
            return self.rows[row_id]

    def _admin(self) -> Optional[Backend]:
        return self._admin_backend() if self._admin_backend else None

    def _finish(self, row_id: str, result, error: Optional[RegistrationAdminError]) -> bool:
        with self._lock:
            if error is not None:
                self.message = error.message
                return False
            self.message = None
            self.patch(row_id, status=result.status)
            return True

    def approve(self, row_id: str) -> bool:
        try:
            result = approve_registration(
                row_id, backend=self._admin(), settings=self.settings, guard=self.guard
            )
        except RegistrationAdminError as e:
            return self._finish(row_id, None, e)
        return self._finish(row_id, result, None)

    def reject(self, row_id: str) -> bool:
        try:
            result = reject_registration(
                row_id, backend=self._admin(), settings=self.settings, guard=self.guard
            )
        except RegistrationAdminError as e:
            return self._finish(row_id, None, e)
        return self._finish(row_id, result, None)

    # ---------- view ----------
    def actions_for(self, row: Registration) -> List[str]:
        if row.status != PENDING or self.guard.is_busy(row.id):
            return []
        return ["approve", "reject"]

    def snapshot(self) -> BoardSnapshot:
        with self._lock:
            busy = self.guard.busy_ids()
            rows = [
                BoardRow(**r.model_dump(), actions=self.actions_for(r), busy=r.id in busy)
                for r in self.rows.values()
            ]
            return BoardSnapshot(
                rows=[] if self.error else rows,
                sort=self.sort.field,
                direction=self.sort.direction,
                loading=self.loading,
                error=self.error,
                message=self.message,
            )
