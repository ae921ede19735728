"""
Exceptions raised by the registration workflows and backend clients.
"""
from typing import List, Optional


class RegistrationAdminError(Exception):
    """Base error; `message` is shown to the operator as-is."""

    status_code = 500

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(message)


class ConfigurationError(RegistrationAdminError):
    """Required settings (usually the service role key) are missing."""

    status_code = 500


class BackendError(RegistrationAdminError):
    """A remote read/write failed or returned an error payload."""

    status_code = 502


class NotFoundError(RegistrationAdminError):
    status_code = 404


class ConflictError(RegistrationAdminError):
    """Row is busy or no longer in the state the action expects."""

    status_code = 409


class WorkflowError(RegistrationAdminError):
    """
    A provisioning step failed. `step` names the failed step and
    `unreconciled` lists compensations that could not be applied, so the
    operator knows which records need manual cleanup.
    """

    status_code = 502

    def __init__(
        self,
        message: str,
        *,
        step: str,
        registration_id: str,
        cause: Optional[str] = None,
        unreconciled: Optional[List[str]] = None,
    ):
        super().__init__(message)
        self.step = step
        self.registration_id = registration_id
        self.cause = cause
        self.unreconciled = list(unreconciled or [])
