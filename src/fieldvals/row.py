"""A single Field:Value record with a fixed set of legal fields."""

from __future__ import annotations

from typing import Any, Iterable, Iterator, Mapping

from fieldvals import codec
from fieldvals.codec import Record
from fieldvals.errors import InvalidField
from fieldvals.fields import FieldSet, as_field_set
from fieldvals.patterns import Pattern, is_matched


class Row:
    """Mutable view of one record.

    Every field of the row's FieldSet is always present as a key; a field
    with no values reads back as None. Fields can hold several values, and
    values may span several lines.
    """

    def __init__(
        self,
        fields: FieldSet | Iterable[str],
        values: Mapping[str, Any] | None = None,
    ) -> None:
        """Initialize a row.

        Args:
            fields: The legal field names, in serialization order.
            values: Optional initial ``field -> value(s)`` mapping.

        Raises:
            InvalidField: If ``values`` names a field outside ``fields``.
        """
        self._fields = as_field_set(fields)
        if values is None:
            self._values: Record = codec.empty_record(self._fields)
        else:
            self._values = codec.record_from_mapping(values, self._fields)

    @classmethod
    def from_text(cls, text: str, fields: FieldSet | Iterable[str]) -> Row:
        """Create a row by decoding record text."""
        row = cls(fields)
        row.set_from_text(text)
        return row

    @classmethod
    def from_record(cls, record: Record, fields: FieldSet) -> Row:
        """Wrap an already decoded record without copying it."""
        row = cls(fields)
        row._values = record
        return row

    # ------------------------------------------------------------------
    # Fields
    # ------------------------------------------------------------------

    @property
    def fields(self) -> FieldSet:
        return self._fields

    def field_names(self) -> list[str]:
        """Return the legal field names in order."""
        return self._fields.names

    def __contains__(self, name: object) -> bool:
        return name in self._values

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    # ------------------------------------------------------------------
    # Values
    # ------------------------------------------------------------------

    def get(self, name: str, index: int | None = None) -> str | None:
        """Get one value of a field.

        Args:
            name: Field name.
            index: Which value to read. None or a negative index reads the
                first value; an index past the end reads the last one.

        Returns:
            The value, or None if the field is unknown or has no values.
        """
        vals = self._values.get(name)
        if not vals:
            return None
        if index is None or index < 0:
            return vals[0]
        if index >= len(vals):
            return vals[-1]
        return vals[index]

    def get_all(self, name: str) -> list[str] | None:
        """Get all values of a field, or None if it has none."""
        vals = self._values.get(name)
        if not vals:
            return None
        return list(vals)

    def set(self, name: str, value: str | list[str] | tuple[str, ...] | None, index: int | None = None) -> None:
        """Set a field's value.

        A list or tuple replaces all values of the field. With ``index``, a
        single value is appended when ``index`` is at or past the end,
        replaces the value at ``index`` when in range, and replaces the first
        value when negative. Without ``index`` the field is set to the single
        value. Setting None removes all values.

        Raises:
            InvalidField: If ``name`` is not a legal field.
        """
        self._fields.require(name)
        if value is None:
            self._values[name] = None
        elif isinstance(value, (list, tuple)):
            self._values[name] = [str(v) for v in value] or None
        else:
            vals = self._values.get(name)
            if index is None or not vals:
                self._values[name] = [str(value)]
            elif index >= len(vals):
                vals.append(str(value))
            elif index >= 0:
                vals[index] = str(value)
            else:
                vals[0] = str(value)

    def count(self, name: str) -> int:
        """Return how many values a field has (0 if unknown or absent)."""
        vals = self._values.get(name)
        return len(vals) if vals else 0

    def delete(self, name: str) -> list[str] | None:
        """Remove all values of a field, returning the old values."""
        if name not in self._values:
            return None
        old = self._values[name]
        self._values[name] = None
        return old

    def clear(self) -> None:
        """Remove all values of all fields."""
        for name in self._values:
            self._values[name] = None

    def update(self, values: Mapping[str, Any]) -> None:
        """Set several fields from a ``field -> value(s)`` mapping."""
        for name, value in values.items():
            self.set(name, value)

    def as_dict(self) -> dict[str, list[str]]:
        """Return the fields that have values, in field order."""
        return {name: list(vals) for name in self._fields if (vals := self._values.get(name))}

    @property
    def record(self) -> Record:
        return self._values

    def copy(self) -> Row:
        row = Row(self._fields)
        for name, vals in self._values.items():
            row._values[name] = list(vals) if vals else None
        return row

    # ------------------------------------------------------------------
    # Matching
    # ------------------------------------------------------------------

    def matches(self, criteria: Mapping[str, Pattern]) -> bool:
        """Return True if every ``field -> pattern`` criterion matches.

        A field without a value never matches.
        """
        for name, pattern in criteria.items():
            value = self.get(name)
            if value is None or not is_matched(value, pattern):
                return False
        return True

    def matches_any(self, pattern: Pattern) -> bool:
        """Return True if the first value of any field matches ``pattern``."""
        for name in self._fields:
            value = self.get(name)
            if value is not None and is_matched(value, pattern):
                return True
        return False

    # ------------------------------------------------------------------
    # Encoding
    # ------------------------------------------------------------------

    def to_text(self) -> str:
        return codec.serialize(self._values, self._fields)

    def to_markup(self) -> str:
        return codec.serialize_markup(self._values, self._fields)

    def set_from_text(self, text: str, override_fields: bool = False) -> None:
        """Replace the row's contents by decoding record text.

        With ``override_fields`` the row takes its field list from the text
        itself instead of keeping its current one.
        """
        if override_fields:
            self._fields = FieldSet()
            self._values = codec.parse(text, self._fields, allow_new_fields=True)
        else:
            self._values = codec.parse(text, self._fields)

    def set_from_markup(self, text: str, override_fields: bool = False) -> None:
        """Replace the row's contents by decoding record markup."""
        if override_fields:
            self._fields = FieldSet()
            self._values = codec.parse_markup(text, self._fields, allow_new_fields=True)
        else:
            self._values = codec.parse_markup(text, self._fields)

    # ------------------------------------------------------------------
    # Display values
    # ------------------------------------------------------------------

    @staticmethod
    def nice_value(name: str, value: str | None, reorder_rules: Mapping[str, str] | None = None) -> str | None:
        """Return a display form of a field value.

        If ``reorder_rules`` maps the field to a separator found in the value,
        the two parts around its first occurrence are swapped and joined with
        a space, e.g. ``"Doe,Jane"`` with ``","`` becomes ``"Jane Doe"``.
        """
        if not value or not reorder_rules:
            return value
        separator = reorder_rules.get(name)
        if not separator or separator not in value:
            return value
        first, rest = value.split(separator, 1)
        return f"{rest} {first}"

    def template_vars(
        self,
        field_index: int = 0,
        reorder_rules: Mapping[str, str] | None = None,
        nice_prefix: str = "Nice_",
    ) -> dict[str, Any]:
        """Flatten the row into variables for report templates.

        For each field with values this yields ``Field`` and
        ``<nice_prefix>Field`` (the value at ``field_index``, falling back to
        the first) plus ``Field_all`` and ``<nice_prefix>Field_all`` lists.
        """
        out: dict[str, Any] = {}
        for name in self._fields:
            vals = self._values.get(name)
            if not vals:
                continue
            nice = [self.nice_value(name, v, reorder_rules) for v in vals]
            pos = field_index if 0 <= field_index < len(vals) else 0
            out[name] = vals[pos]
            out[f"{nice_prefix}{name}"] = nice[pos]
            out[f"{name}_all"] = list(vals)
            out[f"{nice_prefix}{name}_all"] = nice
        return out

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Row):
            return self.as_dict() == other.as_dict()
        if isinstance(other, Mapping):
            try:
                return self.as_dict() == Row(self._fields, other).as_dict()
            except InvalidField:
                return False
        return NotImplemented

    def __repr__(self) -> str:
        return f"Row({self.as_dict()!r})"
