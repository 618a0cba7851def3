"""
Error taxonomy for the segment row projector.

Every failure the package raises on purpose derives from RowProjectorError so
callers (CLI, orchestrator, framework adapters) can separate configuration and
read failures from programming errors. None of these errors are retried
internally.
"""

from __future__ import annotations


class RowProjectorError(Exception):
    """Base class for all row projector failures."""


class MalformedSpecError(RowProjectorError):
    """The schema-spec document could not be parsed into a LoadSpec."""


class ColumnConflictError(MalformedSpecError):
    """
    Two output columns would share a name.

    Raised at LoadSpec construction when a dimension or metric reuses the
    reserved timestamp column name, or a name appears more than once.
    """


class SpecNotFoundError(RowProjectorError):
    """Neither the local nor the distributed location yielded the document."""

    def __init__(self, location: str, reason: str | None = None) -> None:
        self.location = location
        message = f"Schema spec not found at '{location}'"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)


class MissingCodecError(RowProjectorError):
    """A complex metric type has no registered codec."""

    def __init__(self, type_name: str) -> None:
        self.type_name = type_name
        super().__init__(f"Failed to find complex metric codec for '{type_name}'")


class ReadInterruptedError(RowProjectorError):
    """The native record source was interrupted mid-read."""


class InvalidIntervalError(ValueError):
    """Interval text is not a valid ISO-8601 'start/end' pair."""


__all__ = [
    "RowProjectorError",
    "MalformedSpecError",
    "ColumnConflictError",
    "SpecNotFoundError",
    "MissingCodecError",
    "ReadInterruptedError",
    "InvalidIntervalError",
]
