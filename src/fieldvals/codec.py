"""Encoding and decoding of single Field:Value records.

Text form, one line per value::

    Name:fan fiction
    Entry:Original stories written by fans,
    which may continue over several lines.
    Tag:fandom
    Tag:writing

A line that starts with a legal field name followed by a colon begins a new
value for that field; every other line continues the previous value. The
markup form carries the same data as ``<Name>fan fiction</Name>`` tags inside
a ``<record>`` element.

Decoding never fails: lines or tags that cannot be placed are dropped or
folded into the current value.
"""

from __future__ import annotations

import re
from typing import Any, Iterable, Mapping

from fieldvals.errors import InvalidField
from fieldvals.fields import FIELD_NAME, FieldSet, as_field_set
from fieldvals.parsing import MarkupLexer

Record = dict[str, list[str] | None]

_LINE_RE = re.compile(rf"^({FIELD_NAME}):(.*)$")
_RECORD_RE = re.compile(r"<record>(.*)</record>", re.DOTALL)
_FIELDS_RE = re.compile(r"<fields>(.*)</fields>", re.DOTALL)

# Order matters: &amp; must be restored last.
_UNESCAPES = (
    ("&gt;", ">"),
    ("&lt;", "<"),
    ("&quot;", '"'),
    ("&apos;", "'"),
    ("&amp;", "&"),
)

_lexer: MarkupLexer | None = None


def _get_lexer() -> MarkupLexer:
    global _lexer
    if _lexer is None:
        _lexer = MarkupLexer()
        _lexer.build()
    return _lexer


def empty_record(fields: FieldSet | Iterable[str]) -> Record:
    """Return a record with every field of ``fields`` absent."""
    return {name: None for name in as_field_set(fields)}


def _accept(name: str, fields: FieldSet, allow_new_fields: bool) -> bool:
    if name in fields:
        return True
    if allow_new_fields:
        fields.add(name)
        return True
    return False


def parse(
    text: str,
    fields: FieldSet | Iterable[str],
    allow_new_fields: bool = False,
) -> Record:
    """Decode the text form of one record.

    Args:
        text: Raw record text, without the record separator.
        fields: Legal field names. When ``allow_new_fields`` is set and a
            FieldSet is passed, newly seen names are appended to it.
        allow_new_fields: Accept any syntactically valid field name.

    Returns:
        A record containing every legal field; fields without values are None.
    """
    fields = as_field_set(fields)
    values: dict[str, list[str]] = {}
    current: str | None = None

    lines = text.split("\n")
    while lines and lines[-1] == "":
        lines.pop()

    for line in lines:
        m = _LINE_RE.match(line)
        if m is not None and _accept(m.group(1), fields, allow_new_fields):
            current = m.group(1)
            values.setdefault(current, []).append(m.group(2))
        elif current is not None:
            values[current][-1] += "\n" + line

    record = empty_record(fields)
    record.update(values)
    return record


def parse_markup(
    text: str,
    fields: FieldSet | Iterable[str],
    allow_new_fields: bool = False,
) -> Record:
    """Decode the markup form of one record.

    An enclosing ``<record>`` element is optional. Tags for unknown fields are
    skipped along with their contents.
    """
    fields = as_field_set(fields)
    values: dict[str, list[str]] = {}

    m = _RECORD_RE.search(text)
    if m is not None:
        text = m.group(1)

    tokens = _get_lexer().tokenize(text)
    pos = 0
    while pos < len(tokens):
        tok = tokens[pos]
        pos += 1
        if tok.type != "START_TAG" or not _accept(tok.value, fields, allow_new_fields):
            continue
        value = ""
        if pos < len(tokens) and tokens[pos].type == "TEXT":
            value = tokens[pos].value
            pos += 1
        values.setdefault(tok.value, []).append(unescape(value))

    record = empty_record(fields)
    record.update(values)
    return record


def serialize(record: Mapping[str, list[str] | None], order: Iterable[str]) -> str:
    """Encode a record in text form, fields in ``order``."""
    lines = []
    for name in order:
        for value in record.get(name) or []:
            lines.append(f"{name}:{value}")
    return "\n".join(lines)


def serialize_markup(record: Mapping[str, list[str] | None], order: Iterable[str]) -> str:
    """Encode a record in markup form, fields in ``order``.

    Only ``&``, ``<`` and ``>`` are escaped; quotes are written as-is.
    """
    parts = ["<record>\n"]
    for name in order:
        for value in record.get(name) or []:
            parts.append(f"<{name}>{escape(value)}</{name}>\n")
    parts.append("</record>\n")
    return "".join(parts)


def escape(value: str) -> str:
    return value.replace("&", "&amp;").replace("<", "&lt;").replace(">", "&gt;")


def unescape(value: str) -> str:
    for entity, char in _UNESCAPES:
        value = value.replace(entity, char)
    return value


def record_from_mapping(
    mapping: Mapping[str, Any],
    fields: FieldSet | Iterable[str],
    allow_new_fields: bool = False,
) -> Record:
    """Build a record from a plain ``field -> value(s)`` mapping.

    Scalars become single values, lists and tuples become multiple values,
    and None leaves the field absent.

    Raises:
        InvalidField: If a key is not a legal field and ``allow_new_fields``
            is not set.
    """
    fields = as_field_set(fields)
    values: dict[str, list[str] | None] = {}
    for name, value in mapping.items():
        if not _accept(name, fields, allow_new_fields):
            raise InvalidField(name, fields.names)
        if value is None:
            values[name] = None
        elif isinstance(value, (list, tuple)):
            values[name] = [str(v) for v in value]
        else:
            values[name] = [str(value)]

    record = empty_record(fields)
    record.update(values)
    return record


def header_record(fields: FieldSet | Iterable[str]) -> Record:
    """Return the field-declaration record: every field with one empty value."""
    return {name: [""] for name in as_field_set(fields)}


def parse_markup_fields(text: str) -> FieldSet:
    """Read field names from a ``<fields><Name/><Entry/></fields>`` block.

    Attributes on the declarations are ignored.
    """
    m = _FIELDS_RE.search(text)
    if m is not None:
        text = m.group(1)
    fields = FieldSet()
    for tok in _get_lexer().tokenize(text):
        if tok.type == "EMPTY_TAG":
            fields.add(tok.value)
    return fields


def serialize_markup_fields(fields: FieldSet | Iterable[str]) -> str:
    """Write a ``<fields>`` declaration block."""
    parts = ["<fields>\n"]
    parts.extend(f"<{name}/>\n" for name in as_field_set(fields))
    parts.append("</fields>\n")
    return "".join(parts)
