# tests/conftest.py
"""
Shared fixtures.

FakeBackend implements the backend contract in memory, records every call
and can be told to fail specific methods, which is all the workflow tests
need to drive each saga branch.
"""
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

import pytest

from app.core.config import Settings
from app.core.errors import BackendError
from app.services.registrations import RowGuard

REG = "registration_requests"
COMPANIES = "companies"


class FakeBackend:
    def __init__(self):
        self.tables: Dict[str, Dict[str, Dict[str, Any]]] = {REG: {}, COMPANIES: {}}
        self.accounts: List[Dict[str, Any]] = []
        self.emails: List[Dict[str, str]] = []
        self.calls: List[tuple] = []
        self.failures: Dict[str, str] = {}
        self.lost_responses: Dict[str, str] = {}

    # ---------- test helpers ----------
    def seed(self, **row) -> Dict[str, Any]:
        row.setdefault("status", "pending")
        row.setdefault("created_at", datetime(2024, 1, 1, tzinfo=timezone.utc).isoformat())
        self.tables[REG][row["id"]] = dict(row)
        return self.tables[REG][row["id"]]

    def fail_after_write(self, method: str, message: str = "Read timed out") -> None:
        self.lost_responses[method] = message

    def fail(self, method: str, message: str = "boom") -> None:
        self.failures[method] = message

    def _call(self, name: str, *args) -> None:
        self.calls.append((name,) + args)
        if name in self.failures:
            raise BackendError(self.failures[name])

    def call_names(self) -> List[str]:
        return [c[0] for c in self.calls]

    # ---------- contract ----------
    def list_rows(self, table: str, order_by: str, ascending: bool) -> List[Dict[str, Any]]:
        self._call("list_rows", table, order_by, ascending)
        rows = list(self.tables[table].values())
        return sorted(rows, key=lambda r: (r.get(order_by) or ""), reverse=not ascending)

    def get_row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        self._call("get_row", table, row_id)
        row = self.tables[table].get(row_id)
        return dict(row) if row else None

    def insert_row(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        self._call("insert_row", table, record)
        self.tables[table][record["id"]] = dict(record)
        return dict(record)

    def update_rows(self, table, row_id, changes, match=None):
        self._call("update_rows", table, row_id, changes, match)
        row = self.tables[table].get(row_id)
        if row is None:
            return []
        if any(row.get(k) != v for k, v in (match or {}).items()):
            return []
        row.update(changes)
        return [dict(row)]

    def delete_row(self, table: str, row_id: str) -> None:
        self._call("delete_row", table, row_id)
        self.tables[table].pop(row_id, None)

    def create_account(self, email, password, metadata, email_confirmed):
        self._call("create_account", email, password, metadata, email_confirmed)
        account = {
            "id": f"user-{len(self.accounts) + 1}",
            "email": email,
            "password": password,
            "user_metadata": dict(metadata),
            "email_confirmed": email_confirmed,
        }
        self.accounts.append(account)
        if "create_account" in self.lost_responses:
            # write landed, response did not
            raise BackendError(self.lost_responses["create_account"])
        return self._public(account)

    def get_account(self, email):
        self._call("get_account", email)
        for account in self.accounts:
            if account["email"] == email:
                return self._public(account)
        return None

    def update_account(self, account_id, metadata):
        self._call("update_account", account_id, metadata)
        for account in self.accounts:
            if account["id"] == account_id:
                account["user_metadata"] = dict(metadata)
                return self._public(account)
        raise BackendError("User not found")

    @staticmethod
    def _public(account):
        return {k: v for k, v in account.items() if k != "password"}

    def send_reset_email(self, email: str, redirect_url: str) -> None:
        self._call("send_reset_email", email, redirect_url)
        self.emails.append({"email": email, "redirect_to": redirect_url})


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        BACKEND="supabase",
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_ANON_KEY="anon-key",
        SUPABASE_SERVICE_ROLE_KEY="service-key",
        BASE_URL="https://admin.example.com",
    )


@pytest.fixture
def unconfigured_settings() -> Settings:
    return Settings(
        _env_file=None,
        BACKEND="supabase",
        SUPABASE_URL="https://project.supabase.co",
        SUPABASE_ANON_KEY="anon-key",
        SUPABASE_SERVICE_ROLE_KEY="",
    )


@pytest.fixture
def backend() -> FakeBackend:
    return FakeBackend()


@pytest.fixture
def guard() -> RowGuard:
    return RowGuard()


@pytest.fixture
def acme(backend: FakeBackend) -> Dict[str, Any]:
    return backend.seed(
        id="r1",
        company_name="Acme",
        ico="123",
        dic="CZ123",
        street="Main 1",
        city="Praha",
        psc="11000",
        country="CZ",
        contact_person_name="Jana",
        contact_person_surname="Nova",
        email="a@x.com",
        phone="+420 777 000 111",
    )
