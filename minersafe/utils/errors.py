"""
Error Inspection Helpers.

Supabase raises ``postgrest.exceptions.APIError`` for data-store failures
and ``gotrue`` ``AuthApiError`` for identity failures.  Both expose
``code`` and ``message`` attributes; these helpers read them without
importing the SDK exception classes so any error-shaped object works.
"""

from __future__ import annotations

import re
from typing import Optional

import requests

from minersafe.models.auth_models import (
    ACCOUNT_EXISTS_PATTERNS,
    ACCOUNT_EXISTS_STATUSES,
    AuthError,
    AuthErrorCode,
)

__all__ = [
    "auth_error_from_exception",
    "error_code",
    "error_message",
    "error_status",
    "is_missing_relation",
    "matches_account_exists",
]

# PostgreSQL "undefined_table" and PostgREST "table not in schema cache".
_MISSING_RELATION_CODES: frozenset[str] = frozenset({"42P01", "PGRST205"})

_INVALID_CREDENTIAL_CODES: frozenset[str] = frozenset({
    "invalid_credentials",
    "invalid_grant",
    "user_not_found",
})

_ACCOUNT_EXISTS_RE: re.Pattern[str] = re.compile(
    "|".join(f"(?:{pattern})" for pattern in ACCOUNT_EXISTS_PATTERNS),
    re.IGNORECASE,
)


def error_message(exc: BaseException) -> str:
    """Return the SDK ``message`` attribute, falling back to ``str(exc)``."""
    message = getattr(exc, "message", None)
    if isinstance(message, str) and message:
        return message
    return str(exc)


def error_code(exc: BaseException) -> str:
    """Return the SDK ``code`` attribute as a string ("" when absent)."""
    code = getattr(exc, "code", None)
    return "" if code is None else str(code)


def error_status(exc: BaseException) -> Optional[int]:
    """Return the HTTP ``status`` attached to an auth error, if any."""
    status = getattr(exc, "status", None)
    try:
        return int(status) if status is not None else None
    except (TypeError, ValueError):
        return None


def is_missing_relation(exc: BaseException, table: str) -> bool:
    """``True`` when *exc* means *table* has not been provisioned yet.

    Matches on the error code first, then on the message naming *table*
    together with a "schema cache" or "does not exist" phrase.
    """
    if error_code(exc) in _MISSING_RELATION_CODES:
        return True

    message = error_message(exc).lower()
    if table.lower() not in message:
        return False
    return "schema cache" in message or "does not exist" in message


def auth_error_from_exception(exc: BaseException) -> AuthError:
    """Classify a provider / transport exception, keeping its message verbatim."""
    message = error_message(exc) or "An unexpected error occurred."
    status = error_status(exc)

    if isinstance(exc, (ConnectionError, TimeoutError, requests.RequestException)):
        return AuthError(code=AuthErrorCode.NETWORK_ERROR, message=message, status=status)

    lowered = message.lower()
    if error_code(exc) in _INVALID_CREDENTIAL_CODES or "invalid login credentials" in lowered:
        return AuthError(
            code=AuthErrorCode.INVALID_CREDENTIALS, message=message, status=status,
        )

    if error_code(exc) or status is not None:
        return AuthError(code=AuthErrorCode.PROVIDER_ERROR, message=message, status=status)

    return AuthError(code=AuthErrorCode.UNKNOWN_ERROR, message=message, status=status)


def matches_account_exists(text: Optional[str], status: Optional[int] = None) -> bool:
    """``True`` when *text* / *status* report an already-registered email."""
    if status is not None and status in ACCOUNT_EXISTS_STATUSES:
        return True
    if not text:
        return False
    return _ACCOUNT_EXISTS_RE.search(text) is not None
