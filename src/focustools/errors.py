"""Exceptions raised by the task and session stores."""

from __future__ import annotations


class FocusToolsError(Exception):
    """Base class for FocusTools errors."""

    status_code = 500


class ValidationError(FocusToolsError):
    """A required field is missing or malformed."""

    status_code = 400


class NotFoundError(FocusToolsError):
    """The referenced record does not exist."""

    status_code = 404
