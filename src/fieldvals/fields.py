"""Field name sets for Field:Value records."""

from __future__ import annotations

import re
from typing import Iterable, Iterator

from fieldvals.errors import InvalidField

FIELD_NAME = r"[a-zA-Z][-_a-zA-Z0-9]*"
FIELD_NAME_RE = re.compile(rf"^{FIELD_NAME}$")


def is_field_name(name: str) -> bool:
    """Return True if ``name`` is syntactically a legal field name."""
    return bool(FIELD_NAME_RE.match(name))


class FieldSet:
    """Ordered collection of the legal field names of a data file.

    The order is authoritative: records are serialized in this order and
    ``names`` is what callers see as the file's field list.
    """

    def __init__(self, names: Iterable[str] = ()) -> None:
        self._names: list[str] = []
        self._index: set[str] = set()
        for name in names:
            self.add(name)

    def add(self, name: str) -> bool:
        """Add a field name, returning False if it was already present.

        Raises:
            ValueError: If the name is not a legal field name.
        """
        if not is_field_name(name):
            raise ValueError(f"Illegal field name: {name!r}")
        if name in self._index:
            return False
        self._names.append(name)
        self._index.add(name)
        return True

    def require(self, name: str) -> str:
        """Return ``name`` if it is a member, raising InvalidField otherwise."""
        if name not in self._index:
            raise InvalidField(name, self._names)
        return name

    @property
    def names(self) -> list[str]:
        """Return the field names in declaration order."""
        return list(self._names)

    def copy(self) -> FieldSet:
        return FieldSet(self._names)

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._names))

    def __len__(self) -> int:
        return len(self._names)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, FieldSet):
            return self._names == other._names
        if isinstance(other, (list, tuple)):
            return self._names == list(other)
        return NotImplemented

    def __repr__(self) -> str:
        return f"FieldSet({self._names!r})"


def as_field_set(fields: FieldSet | Iterable[str]) -> FieldSet:
    """Coerce a plain list of names into a FieldSet."""
    if isinstance(fields, FieldSet):
        return fields
    return FieldSet(fields)
