"""Multi-key collation of records.

Each sort key names a field and how to compare it: as a number, in reverse,
as a title (ignoring a leading "The " or "A "), or last word first
("Jane Doe" compares as "Doe,Jane"). Multi-valued fields compare by all of
their values joined with a separator that does not occur in normal text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from typing import Callable, Iterable, Mapping, Protocol, Sequence, Union

from fieldvals.patterns import to_number

VALUE_SEPARATOR = "###"

_TITLE_RE = re.compile(r"^(?:The|A)\s+")
_LASTWORD_RE = re.compile(r"^(.*)\s+(\w+)$")

Flags = Union[Iterable[str], Mapping[str, bool]]


class RowLike(Protocol):
    """Anything with a ``get_all(field)`` method, e.g. Row or JoinedRow."""

    def get_all(self, name: str) -> list[str] | None: ...


@dataclass(frozen=True)
class CollationRule:
    """How to compare the values of one field."""

    numeric: bool = False
    reversed: bool = False
    title: bool = False
    lastword: bool = False


@dataclass(frozen=True)
class SortKey:
    """A field to sort on and its collation rule."""

    name: str
    rule: CollationRule = field(default_factory=CollationRule)


def _flagged(flags: Flags | None) -> set[str]:
    if flags is None:
        return set()
    if isinstance(flags, Mapping):
        return {name for name, on in flags.items() if on}
    return set(flags)


@dataclass
class SortSpec:
    """Ordered sort keys; later keys only break ties of earlier ones."""

    keys: list[SortKey] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        sort_by: Sequence[str],
        numeric: Flags | None = None,
        reversed: Flags | None = None,
        title: Flags | None = None,
        lastword: Flags | None = None,
    ) -> SortSpec:
        """Build a spec from field names and per-field flag sets.

        Each flag argument is either a collection of field names or a
        ``field -> bool`` mapping.
        """
        numeric_set = _flagged(numeric)
        reversed_set = _flagged(reversed)
        title_set = _flagged(title)
        lastword_set = _flagged(lastword)
        return cls(
            keys=[
                SortKey(
                    name,
                    CollationRule(
                        numeric=name in numeric_set,
                        reversed=name in reversed_set,
                        title=name in title_set,
                        lastword=name in lastword_set,
                    ),
                )
                for name in sort_by
            ]
        )

    def restrict(self, field_names: Iterable[str]) -> SortSpec:
        """Drop keys for fields not in ``field_names``."""
        known = set(field_names)
        return SortSpec(keys=[k for k in self.keys if k.name in known])

    @property
    def fields(self) -> list[str]:
        return [k.name for k in self.keys]


def collation_key(values: Sequence[str] | None, rule: CollationRule) -> float | str:
    """Reduce a field's values to the value they are compared by."""
    vals = list(values or [])
    if rule.title:
        vals = [_TITLE_RE.sub("", v, count=1) for v in vals]
    if rule.lastword:
        vals = [_LASTWORD_RE.sub(r"\2,\1", v, count=1) for v in vals]
    joined = VALUE_SEPARATOR.join(vals)
    if rule.numeric:
        return to_number(joined)
    return joined


def compare_values(a: Sequence[str] | None, b: Sequence[str] | None, rule: CollationRule) -> int:
    """Compare two fields' values under ``rule``, returning -1, 0 or 1."""
    x = collation_key(a, rule)
    y = collation_key(b, rule)
    result = (x > y) - (x < y)  # type: ignore[operator]
    return -result if rule.reversed else result


def compare(a: RowLike, b: RowLike, spec: SortSpec) -> int:
    """Compare two records key by key until one key differs."""
    for key in spec.keys:
        result = compare_values(a.get_all(key.name), b.get_all(key.name), key.rule)
        if result != 0:
            return result
    return 0


def sort_indices(
    indices: Sequence[int],
    fetch: Callable[[int], RowLike | None],
    spec: SortSpec,
) -> list[int]:
    """Stable sort of record indices by ``spec``.

    Each record is fetched once. Keys are applied from last to first, each
    pass a stable sort, so earlier keys take precedence and full ties keep
    their original order.
    """
    collated: dict[int, tuple[float | str, ...]] = {}
    for index in indices:
        row = fetch(index)
        collated[index] = tuple(
            collation_key(row.get_all(k.name) if row is not None else None, k.rule)
            for k in spec.keys
        )

    result = list(indices)
    for pos in range(len(spec.keys) - 1, -1, -1):
        result.sort(key=lambda i: collated[i][pos], reverse=spec.keys[pos].rule.reversed)
    return result
