"""Error types raised by fieldvals."""

from __future__ import annotations


class FieldValsError(Exception):
    """Base class for all fieldvals errors."""


class InvalidField(FieldValsError, KeyError):
    """A field name is not part of the record's field set."""

    def __init__(self, field_name: str, known: list[str] | None = None) -> None:
        self.field_name = field_name
        self.known = list(known) if known is not None else []
        super().__init__(f"Field '{field_name}' not found")

    def __str__(self) -> str:
        # KeyError would otherwise repr() the message
        return str(self.args[0])


class OpenError(FieldValsError, OSError):
    """The backing file is unusable or carries no field definitions."""


class LockError(FieldValsError, OSError):
    """An advisory lock could not be acquired."""


class MalformedSelection(FieldValsError, TypeError):
    """A selection predicate is not one of the recognised shapes."""
