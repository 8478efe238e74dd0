"""Pattern tests used by record matching and selections.

A pattern is matched against a single string value and may be:

- a compiled regular expression, searched for in the value;
- a string starting with ``!`` (but not ``!=``), which negates the rest;
- ``"<op> <operand>"`` where ``op`` is one of ``< > == != <= >=`` (numeric
  comparison) or ``lt gt eq ne le ge`` (string comparison);
- any other non-empty string, searched for as a regular expression;
- the empty string, which only matches an empty value.
"""

from __future__ import annotations

import operator
import re
from typing import Any, Callable, Union

Pattern = Union[str, "re.Pattern[str]"]

NUMERIC_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "<": operator.lt,
    ">": operator.gt,
    "==": operator.eq,
    "!=": operator.ne,
    "<=": operator.le,
    ">=": operator.ge,
}

LEXICAL_OPS: dict[str, Callable[[Any, Any], bool]] = {
    "lt": operator.lt,
    "gt": operator.gt,
    "eq": operator.eq,
    "ne": operator.ne,
    "le": operator.le,
    "ge": operator.ge,
}

_NUMBER_RE = re.compile(r"^\s*([-+]?(?:\d+(?:\.\d*)?|\.\d+)(?:[eE][-+]?\d+)?)")
_OP_RE = re.compile(r"^(\S*)\s+(.*)$", re.DOTALL)


def to_number(value: str | None) -> float:
    """Convert the leading numeric part of a string, 0 if there is none."""
    if not value:
        return 0.0
    m = _NUMBER_RE.match(value)
    if m is None:
        return 0.0
    return float(m.group(1))


def search(pattern: str, value: str) -> bool:
    """Regex search, treating an uncompilable pattern as a literal substring."""
    try:
        return re.search(pattern, value) is not None
    except re.error:
        return pattern in value


def is_matched(value: str, pattern: Pattern) -> bool:
    """Test a value against a pattern."""
    if isinstance(pattern, re.Pattern):
        return pattern.search(value) is not None

    negate = False
    if len(pattern) > 1 and pattern[0] == "!" and pattern[1] != "=":
        negate = True
        pattern = pattern[1:]

    if not pattern:
        result = value == ""
    else:
        m = _OP_RE.match(pattern)
        if m is not None and m.group(1) in NUMERIC_OPS:
            op, operand = m.groups()
            result = NUMERIC_OPS[op](to_number(value), to_number(operand))
        elif m is not None and m.group(1) in LEXICAL_OPS:
            op, operand = m.groups()
            result = LEXICAL_OPS[op](value, operand)
        else:
            result = search(pattern, value)

    return not result if negate else result
