from __future__ import annotations

from enum import Enum
from typing import List, Optional, Tuple, TYPE_CHECKING

if TYPE_CHECKING:
    from .models import QuotaStatus


class ErrorKind(str, Enum):
    QUOTA = "quota"
    TRANSPORT = "transport"
    AUTH = "auth"
    SCHEMA = "schema"
    UNKNOWN = "unknown"


class TennisImportError(Exception):
    kind: ErrorKind = ErrorKind.UNKNOWN

    def __init__(self, message: str, kind: Optional[ErrorKind] = None):
        super().__init__(message)
        if kind is not None:
            self.kind = kind


class QuotaExceededError(TennisImportError):
    kind = ErrorKind.QUOTA

    def __init__(self, status: "QuotaStatus"):
        super().__init__(f"Request quota reached ({status.daily_limit} requests max)")
        self.status = status


class ProviderHTTPError(TennisImportError):
    """Non-2xx answer from the tennis provider."""

    def __init__(self, status_code: int, reason: str = "", body: str = ""):
        if status_code in (401, 403):
            kind = ErrorKind.AUTH
        elif status_code == 429:
            kind = ErrorKind.QUOTA
        else:
            kind = ErrorKind.TRANSPORT
        super().__init__(f"Tennis API error: {status_code} {reason}".strip(), kind)
        self.status_code = status_code
        self.body = body


class TransportError(TennisImportError):
    kind = ErrorKind.TRANSPORT


class SchemaError(TennisImportError):
    kind = ErrorKind.SCHEMA


def classify_exception(exc: BaseException) -> ErrorKind:
    if isinstance(exc, TennisImportError):
        return exc.kind
    return ErrorKind.UNKNOWN


def troubleshooting(kind: ErrorKind) -> Tuple[str, List[str]]:
    return {
        ErrorKind.TRANSPORT: (
            "Could not reach the tennis API",
            [
                "Check outbound network connectivity",
                "Check that RAPIDAPI_KEY is set",
                "Check the Tennis Devs subscription on RapidAPI",
                "The provider may be throttling or temporarily down",
            ],
        ),
        ErrorKind.QUOTA: (
            "Tennis API quota exceeded",
            [
                "The request budget for today is spent",
                "The provider quota resets at midnight UTC",
                "Use get_quota_status to watch usage",
                "Free plan: 300 requests per day",
            ],
        ),
        ErrorKind.AUTH: (
            "Access to the tennis API was refused",
            [
                "Check RAPIDAPI_KEY",
                "Make sure the account is subscribed to Tennis Devs",
                "The key may be expired or revoked",
            ],
        ),
        ErrorKind.SCHEMA: (
            "Database schema error",
            [
                "Run `tennis-importer init-db` to create the tables",
                "Make sure TENNIS is present in the sports table",
                "Check TENNIS_DB_PATH points at the right database",
            ],
        ),
    }.get(
        kind,
        (
            "Unexpected import error",
            [
                "Check the server logs for details",
                "Use test_connection to diagnose the provider",
            ],
        ),
    )
