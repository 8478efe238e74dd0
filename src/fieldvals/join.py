"""Present several records with disjoint fields as one record."""

from __future__ import annotations

from typing import Any, Iterator, Mapping, Sequence

from fieldvals.errors import InvalidField
from fieldvals.patterns import Pattern, is_matched
from fieldvals.row import Row


class JoinedRow:
    """Read-through composite of rows that share no field names.

    Typically the rows come from two data files related by a common value,
    e.g. a person record and the record of things they own. Each field is
    served by the component row that declares it.
    """

    def __init__(self, rows: Sequence[Row]) -> None:
        self._rows = list(rows)

    @property
    def rows(self) -> list[Row]:
        return list(self._rows)

    def _owners(self, name: str) -> list[Row]:
        return [row for row in self._rows if name in row.fields]

    def _owner(self, name: str) -> Row | None:
        for row in self._rows:
            if name in row.fields:
                return row
        return None

    def field_names(self) -> list[str]:
        """Return every component's field names, in component order."""
        names: list[str] = []
        for row in self._rows:
            names.extend(n for n in row.field_names() if n not in names)
        return names

    def __contains__(self, name: object) -> bool:
        return any(name in row.fields for row in self._rows)

    def __iter__(self) -> Iterator[str]:
        return iter(self.field_names())

    def get(self, name: str, index: int | None = None) -> str | None:
        row = self._owner(name)
        return row.get(name, index) if row is not None else None

    def get_all(self, name: str) -> list[str] | None:
        row = self._owner(name)
        return row.get_all(name) if row is not None else None

    def set(self, name: str, value: Any, index: int | None = None) -> None:
        """Set a field on the component row(s) that declare it.

        Raises:
            InvalidField: If no component declares ``name``.
        """
        owners = self._owners(name)
        if not owners:
            raise InvalidField(name, self.field_names())
        for row in owners:
            row.set(name, value, index)

    def count(self, name: str) -> int:
        return sum(row.count(name) for row in self._owners(name))

    def delete(self, name: str) -> list[str] | None:
        old = None
        for row in self._owners(name):
            old = row.delete(name)
        return old

    def clear(self) -> None:
        """Clear every component row."""
        for row in self._rows:
            row.clear()

    def matches(self, criteria: Mapping[str, Pattern]) -> bool:
        """Return True if every criterion matches the joined fields."""
        for name, pattern in criteria.items():
            value = self.get(name)
            if value is None or not is_matched(value, pattern):
                return False
        return True

    def matches_any(self, pattern: Pattern) -> bool:
        return any(row.matches_any(pattern) for row in self._rows)

    def to_texts(self) -> list[str]:
        """Return the text form of each component row."""
        return [row.to_text() for row in self._rows]

    def to_text(self) -> str:
        return "\n".join(text for text in self.to_texts() if text)

    def set_from_texts(self, texts: Sequence[str], override_fields: bool = False) -> None:
        """Decode one text per component row, pairing them up in order."""
        for row, text in zip(self._rows, texts):
            row.set_from_text(text, override_fields=override_fields)

    def as_dict(self) -> dict[str, list[str]]:
        out: dict[str, list[str]] = {}
        for row in self._rows:
            for name, vals in row.as_dict().items():
                out.setdefault(name, vals)
        return out

    def template_vars(self, **kwargs: Any) -> dict[str, Any]:
        """Merge the template variables of all component rows."""
        out: dict[str, Any] = {}
        for row in self._rows:
            for key, value in row.template_vars(**kwargs).items():
                out.setdefault(key, value)
        return out

    def __repr__(self) -> str:
        return f"JoinedRow({self._rows!r})"
