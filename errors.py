"""Exceptions and user-facing error messages."""

import datetime
from typing import Literal

from loguru import logger
from pydantic import BaseModel, Field

from localization import translator

AUTH_CODES = {"PGRST301", "PGRST302"}
DUPLICATE_CODE = "23505"
FOREIGN_KEY_CODE = "23503"


class CalendarError(Exception):
    """Base class for calendar failures."""


class PersistError(CalendarError):
    """Raised by a sync adapter when the store rejects or cannot receive data."""

    def __init__(self, message: str, code: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.code = code


class PlanNotFoundError(CalendarError, ValueError):
    def __init__(self, plan_id: str) -> None:
        super().__init__(f"workout plan not found: {plan_id}")
        self.plan_id = plan_id


class Notice(BaseModel):
    """A recoverable message shown to the user."""

    level: Literal["info", "warning", "error"] = "error"
    message: str
    created_at: datetime.datetime = Field(default_factory=datetime.datetime.now)


def _code(exc: BaseException) -> str | None:
    return getattr(exc, "code", None)


def is_auth_error(exc: BaseException) -> bool:
    message = str(exc)
    return (
        _code(exc) in AUTH_CODES
        or "JWT" in message
        or "row-level security" in message
    )


def describe_error(exc: BaseException, context: str = "") -> str:
    """Return a translated message for ``exc`` suitable for a notice."""
    logger.error(f"Store error in {context or 'unknown context'}: {exc!r}")
    code = _code(exc)
    message = str(exc)
    _ = translator.gettext
    if code == "PGRST301" or "row-level security" in message:
        return _("Unauthorized access. Please sign in again.")
    if code == "PGRST302" or "JWT" in message:
        return _("Session expired. Please sign in again.")
    if code == DUPLICATE_CODE:
        return _("This entry already exists.")
    if code == FOREIGN_KEY_CODE:
        return _("Invalid reference. Please check your data.")
    detail = message or _("An unexpected error occurred")
    if context:
        return f"{_('Error')} ({_(context)}): {detail}"
    return f"{_('Error')}: {detail}"
