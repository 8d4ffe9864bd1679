"""API error type and translation of backend failures into user-facing messages."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

SESSION_EXPIRED_MESSAGE = (
    "Your session has expired. This usually happens after 7 days of inactivity. "
    "Please log out and log back in."
)
NO_ACCESS_MESSAGE = "You don't have access to this project."
EMAIL_NOT_VERIFIED_MESSAGE = "Please verify your email address before logging in."
INVALID_CREDENTIALS_MESSAGE = "Invalid email or password. Please try again."
FORBIDDEN_MESSAGE = "You don't have permission to perform this action."
UNEXPECTED_ERROR_MESSAGE = "An unexpected error occurred. Please try again."

_API_ERROR_PREFIX = re.compile(r"^API Error:\s*", re.IGNORECASE)
_STATUS_PREFIX = re.compile(
    r"^\d{3}\s+(Bad Request|Unauthorized|Forbidden|Not Found|Unprocessable Content|Unprocessable Entity)\s*-\s*",
    re.IGNORECASE,
)
_BARE_DETAIL = re.compile(r'^\{"detail":"(.+)"\}$', re.IGNORECASE)
_EMAIL_PREFIX = re.compile(r"^value is not a valid email address: ")


@dataclass
class APIError(Exception):
    """A failed backend request.

    ``status_code`` is ``None`` for transport failures (connection refused,
    timeouts) where no HTTP response was received.
    """

    message: str
    status_code: int | None = None
    status_text: str = ""
    body: str = ""

    def __str__(self) -> str:
        return self.message

    @classmethod
    def from_response(cls, status_code: int, status_text: str, body: str) -> "APIError":
        message = f"API Error: {status_code} {status_text}".rstrip()
        if body:
            message = f"{message} - {body}"
        return cls(message=message, status_code=status_code, status_text=status_text, body=body)


class ErrorKind(str, Enum):
    VALIDATION = "validation"
    NO_ACCESS = "no_access"
    SESSION_EXPIRED = "session_expired"
    EMAIL_NOT_VERIFIED = "email_not_verified"
    INVALID_CREDENTIALS = "invalid_credentials"
    FORBIDDEN = "forbidden"
    DETAIL = "detail"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class ClassifiedError:
    kind: ErrorKind
    message: str


def classify_error(err: BaseException) -> ClassifiedError:
    """Derive a structured error kind from an exception.

    The backend only reports free-text ``detail`` strings, so the specific
    kinds are still recognised by substring; everything else falls back to
    the HTTP status and finally to the cleaned raw message.
    """
    message = str(err)
    status_code = err.status_code if isinstance(err, APIError) else None
    detail = _extract_detail(err)

    if isinstance(detail, list):
        return ClassifiedError(ErrorKind.VALIDATION, ". ".join(_validation_message(e) for e in detail))

    if isinstance(detail, str) and detail:
        if "don't have access" in detail:
            return ClassifiedError(ErrorKind.NO_ACCESS, NO_ACCESS_MESSAGE)
        if "Invalid or expired token" in detail:
            return ClassifiedError(ErrorKind.SESSION_EXPIRED, SESSION_EXPIRED_MESSAGE)
        if "Email not verified" in detail:
            return ClassifiedError(ErrorKind.EMAIL_NOT_VERIFIED, EMAIL_NOT_VERIFIED_MESSAGE)
        if "Invalid email or password" in detail:
            return ClassifiedError(ErrorKind.INVALID_CREDENTIALS, INVALID_CREDENTIALS_MESSAGE)
        return ClassifiedError(ErrorKind.DETAIL, detail)

    if status_code == 401 or "401" in message:
        return ClassifiedError(ErrorKind.SESSION_EXPIRED, SESSION_EXPIRED_MESSAGE)
    if status_code == 403 or "403" in message:
        return ClassifiedError(ErrorKind.FORBIDDEN, FORBIDDEN_MESSAGE)

    clean = _API_ERROR_PREFIX.sub("", message)
    clean = _STATUS_PREFIX.sub("", clean)
    clean = _BARE_DETAIL.sub(r"\1", clean)
    return ClassifiedError(ErrorKind.UNKNOWN, clean or message)


def parse_api_error(err: object) -> str:
    """Return a sentence suitable for an inline error banner."""
    if not isinstance(err, BaseException):
        return UNEXPECTED_ERROR_MESSAGE
    return classify_error(err).message


def is_unauthorized_api_key_error(err: BaseException) -> bool:
    """True when a page should fall back to onboarding instead of an error banner."""
    message = str(err)
    return "401" in message or "Invalid API key" in message


def _extract_detail(err: BaseException) -> Any:
    candidates: list[str] = []
    if isinstance(err, APIError) and err.body:
        candidates.append(err.body)
    candidates.append(str(err))

    decoder = json.JSONDecoder()
    for text in candidates:
        start = text.find('{"detail"')
        while start != -1:
            try:
                payload, _ = decoder.raw_decode(text, start)
            except ValueError:
                payload = None
            if isinstance(payload, dict) and "detail" in payload:
                return payload["detail"]
            start = text.find('{"detail"', start + 1)
    return None


def _validation_message(entry: Any) -> str:
    if not isinstance(entry, dict):
        return "Invalid input"
    ctx = entry.get("ctx")
    if isinstance(ctx, dict) and ctx.get("reason"):
        return str(ctx["reason"])
    if entry.get("msg"):
        return _EMAIL_PREFIX.sub("", str(entry["msg"]))
    return "Invalid input"
