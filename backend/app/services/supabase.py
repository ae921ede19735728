# backend/app/services/supabase.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

import requests

from app.core.errors import BackendError

logger = logging.getLogger(__name__)

DEFAULT_HEADERS = {
    "Accept": "application/json",
    "Content-Type": "application/json",
}
USERS_PAGE_SIZE = 1000


def _error_message(resp: requests.Response) -> str:
    """PostgREST uses `message`, GoTrue uses `msg` / `error_description`."""
    try:
        data = resp.json()
    except ValueError:
        data = None
    if isinstance(data, dict):
        for key in ("message", "msg", "error_description", "error"):
            val = data.get(key)
            if isinstance(val, str) and val.strip():
                return val.strip()
    text = (resp.text or "").strip()
    return text[:300] or f"HTTP {resp.status_code}"


class SupabaseClient:
    """
    Minimal client for the two Supabase services we need:
      - PostgREST  (/rest/v1)  for rows
      - GoTrue     (/auth/v1)  for accounts and password-reset mail
    The scope is whatever key it was built with (anon or service role).
    """

    def __init__(self, url: str, key: str, *, timeout: float = 15.0, session: Optional[requests.Session] = None):
        self.base = url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(DEFAULT_HEADERS)
        self.session.headers.update({"apikey": key, "Authorization": f"Bearer {key}"})

    # ---------- transport ----------
    def _request(self, method: str, path: str, **kwargs) -> requests.Response:
        url = f"{self.base}{path}"
        try:
            resp = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            logger.error("[supabase] %s %s failed: %s", method, path, e)
            raise BackendError(str(e) or e.__class__.__name__) from e
        if resp.status_code >= 400:
            msg = _error_message(resp)
            logger.error("[supabase] %s %s -> %s %s", method, path, resp.status_code, msg)
            raise BackendError(msg)
        return resp

    @staticmethod
    def _json(resp: requests.Response) -> Any:
        if not resp.content:
            return None
        try:
            return resp.json()
        except ValueError as e:
            raise BackendError("Invalid JSON from backend") from e

    @staticmethod
    def _eq(value: Any) -> str:
        return f"eq.{value}"

    # ---------- rows (PostgREST) ----------
    def list_rows(self, table: str, order_by: str, ascending: bool) -> List[Dict[str, Any]]:
        params = {"select": "*", "order": f"{order_by}.{'asc' if ascending else 'desc'}"}
        data = self._json(self._request("GET", f"/rest/v1/{table}", params=params))
        return list(data or [])

    def get_row(self, table: str, row_id: str) -> Optional[Dict[str, Any]]:
        params = {"select": "*", "id": self._eq(row_id)}
        data = self._json(self._request("GET", f"/rest/v1/{table}", params=params)) or []
        return data[0] if data else None

    def insert_row(self, table: str, record: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._request(
            "POST",
            f"/rest/v1/{table}",
            json=[record],
            headers={"Prefer": "return=representation"},
        )
        data = self._json(resp) or []
        return data[0] if data else dict(record)

    def update_rows(
        self, table: str, row_id: str, changes: Dict[str, Any], match: Optional[Dict[str, Any]] = None
    ) -> List[Dict[str, Any]]:
        params = {"id": self._eq(row_id)}
        for key, value in (match or {}).items():
            params[key] = self._eq(value)
        resp = self._request(
            "PATCH",
            f"/rest/v1/{table}",
            params=params,
            json=changes,
            headers={"Prefer": "return=representation"},
        )
        return list(self._json(resp) or [])

    def delete_row(self, table: str, row_id: str) -> None:
        self._request("DELETE", f"/rest/v1/{table}", params={"id": self._eq(row_id)})

    # ---------- identities (GoTrue) ----------
    def create_account(
        self, email: str, password: str, metadata: Dict[str, Any], email_confirmed: bool
    ) -> Dict[str, Any]:
        payload = {
            "email": email,
            "password": password,
            "user_metadata": metadata,
            "email_confirm": email_confirmed,
        }
        data = self._json(self._request("POST", "/auth/v1/admin/users", json=payload)) or {}
        # newer GoTrue returns the user directly, older ones wrap it
        return data.get("user", data) if isinstance(data, dict) else {}

    def get_account(self, email: str) -> Optional[Dict[str, Any]]:
        """GoTrue has no email filter on the admin list, so page through it."""
        wanted = (email or "").strip().lower()
        page = 1
        while True:
            params = {"page": page, "per_page": USERS_PAGE_SIZE}
            data = self._json(self._request("GET", "/auth/v1/admin/users", params=params)) or {}
            users = data.get("users", []) if isinstance(data, dict) else list(data)
            for user in users:
                if (user.get("email") or "").lower() == wanted:
                    return user
            if len(users) < USERS_PAGE_SIZE:
                return None
            page += 1

    def update_account(self, account_id: str, metadata: Dict[str, Any]) -> Dict[str, Any]:
        resp = self._request("PUT", f"/auth/v1/admin/users/{account_id}", json={"user_metadata": metadata})
        data = self._json(resp) or {}
        return data.get("user", data) if isinstance(data, dict) else {}

    def send_reset_email(self, email: str, redirect_url: str) -> None:
        self._request(
            "POST",
            "/auth/v1/recover",
            params={"redirect_to": redirect_url},
            json={"email": email},
        )
