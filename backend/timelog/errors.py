from __future__ import annotations

from typing import Optional


class TimeLogError(Exception):
    """Base class for recoverable time log errors."""

    def __init__(self, message: str, *, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


class ValidationError(TimeLogError):
    """A candidate entry is missing a field, has a bad value or a non-positive duration."""


class PreconditionError(TimeLogError):
    """A report or export was requested for an empty log or without a name."""


class ExportError(TimeLogError):
    """Writing an export file or clipboard text failed."""


__all__ = ["TimeLogError", "ValidationError", "PreconditionError", "ExportError"]
