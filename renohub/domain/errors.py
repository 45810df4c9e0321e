"""
Backend error taxonomy and user-facing message keys
"""
from typing import Dict, Optional, Tuple

import httpx
from postgrest.exceptions import APIError

UNIQUE_VIOLATION = "23505"
NO_ROWS = "PGRST116"


class BackendError(Exception):
    """Failure reported by (or while talking to) the hosted backend"""

    def __init__(
        self,
        message: str,
        code: Optional[str] = None,
        details: Optional[str] = None,
        hint: Optional[str] = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.details = details
        self.hint = hint

    @property
    def is_unique_violation(self) -> bool:
        return self.code == UNIQUE_VIOLATION

    @property
    def is_not_found(self) -> bool:
        return self.code == NO_ROWS

    def __repr__(self) -> str:
        return f"BackendError(message={self.message!r}, code={self.code!r})"


def to_backend_error(exc: BaseException) -> BackendError:
    """Normalize any exception raised by the backend client"""
    if isinstance(exc, BackendError):
        return exc
    if isinstance(exc, APIError):
        return BackendError(
            exc.message or "Backend request failed",
            code=exc.code,
            details=exc.details,
            hint=exc.hint,
        )
    if isinstance(exc, httpx.TimeoutException):
        return BackendError(f"Request timed out: {exc}", code="ETIMEDOUT")
    if isinstance(exc, httpx.ConnectError):
        return BackendError(f"Connection failed: {exc}", code="ECONNREFUSED")
    if isinstance(exc, httpx.HTTPStatusError):
        return BackendError(str(exc), code=str(exc.response.status_code))
    message = str(exc) or "Unknown error"
    return BackendError(message)


POSTGRES_ERROR_KEYS: Dict[str, str] = {
    "PGRST116": "error.notFound",
    "PGRST301": "error.unauthorized",
    "PGRST204": "error.noContent",
    "23505": "error.duplicate",
    "23503": "error.foreignKeyViolation",
    "23502": "error.notNullViolation",
    "42P01": "error.tableNotFound",
    "42501": "error.insufficientPrivilege",
    "42883": "error.undefinedFunction",
    "22P02": "error.invalidTextRepresentation",
    "23514": "error.checkViolation",
    "40001": "error.serializationFailure",
    "40P01": "error.deadlockDetected",
}

NETWORK_ERROR_KEYS: Dict[str, str] = {
    "ECONNREFUSED": "error.network",
    "ETIMEDOUT": "error.timeout",
    "ENOTFOUND": "error.network",
    "ENETUNREACH": "error.network",
    "ECONNRESET": "error.network",
}

STORAGE_ERROR_KEYS: Dict[str, str] = {
    "Payload too large": "error.fileTooLarge",
    "Invalid file type": "error.invalidFileType",
    "Storage quota exceeded": "error.storageQuotaExceeded",
}

AUTH_ERROR_KEYS: Dict[str, str] = {
    "invalid_grant": "auth.errors.invalidCredentials",
    "user_not_found": "auth.errors.invalidCredentials",
    "invalid_credentials": "auth.errors.invalidCredentials",
    "email_exists": "auth.errors.emailExists",
    "weak_password": "auth.errors.passwordLength",
    "user_already_registered": "auth.errors.emailExists",
}


def translate_error(error: Optional[BaseException]) -> str:
    """Map an error to an i18n message key"""
    if error is None:
        return "error.unknown"

    backend_error = to_backend_error(error)
    message = backend_error.message
    code = backend_error.code

    if code and code in AUTH_ERROR_KEYS:
        return AUTH_ERROR_KEYS[code]

    if code and code in POSTGRES_ERROR_KEYS:
        return POSTGRES_ERROR_KEYS[code]

    for network_code, key in NETWORK_ERROR_KEYS.items():
        if network_code in message or code == network_code:
            return key

    for pattern, key in STORAGE_ERROR_KEYS.items():
        if pattern in message:
            return key

    lower = message.lower()
    if "network" in lower or "connection" in lower:
        return "error.network"
    if "timeout" in lower or "timed out" in lower:
        return "error.timeout"
    if "permission" in lower or "unauthorized" in lower:
        return "error.unauthorized"
    if "not found" in lower:
        return "error.notFound"
    if "duplicate" in lower or "already exists" in lower:
        return "error.duplicate"

    return "error.unknown"


def error_details(error: BaseException) -> Tuple[str, Optional[str]]:
    """Return (message key, detail text) for display"""
    backend_error = to_backend_error(error)
    return translate_error(backend_error), backend_error.details or backend_error.message
