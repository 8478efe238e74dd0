"""Selected, sorted and sliced subsets of a record collection."""

from __future__ import annotations

import logging
import re
from typing import Any, Callable, Iterator, Mapping, Protocol, Sequence, Union

from fieldvals.collation import Flags, SortSpec, sort_indices
from fieldvals.errors import MalformedSelection
from fieldvals.fields import FieldSet
from fieldvals.patterns import Pattern
from fieldvals.row import Row

log = logging.getLogger("fieldvals.select")

Predicate = Union[None, Pattern, Sequence[int], Mapping[str, Pattern]]
RowTest = Callable[[int, Callable[[], Any]], bool]


class RecordSource(Protocol):
    """An indexable collection of records: a FileStore or another Selection."""

    fields: FieldSet

    def get(self, index: int) -> Row | None: ...

    def set(self, index: int, row: Any) -> Any: ...

    def field_names(self) -> list[str]: ...

    def __len__(self) -> int: ...


class Selection:
    """An ordered subset of the records of a FileStore (or another Selection).

    The selection is a list of indices into the source. Operations that
    read records (``get``, iteration, ``column``) see only the current
    window, a contiguous run of the selection. Slicing moves the window
    without changing the selection; sorting reorders the selection.

    Predicates used to select or slice are one of:

    - None: every record;
    - a string or compiled regex: records where any field matches;
    - a ``(first, last)`` pair: positions in that inclusive range;
    - a ``field -> pattern`` mapping: records matching every pattern.
    """

    def __init__(
        self,
        source: RecordSource,
        selection: Predicate = None,
        match_any: Pattern | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Initialize a selection.

        Args:
            source: The records to select from.
            selection: Predicate choosing the records.
            match_any: Pattern any field may match, used when ``selection``
                is not itself a pattern.
            logger: Logger for debug output, defaults to ``fieldvals.select``.

        Raises:
            MalformedSelection: If ``selection`` is not a recognised predicate.
        """
        self.source = source
        self._log = logger if logger is not None else log
        self._indices: list[int] = []
        self._start = 0
        self._length = 0
        self._sliced = False
        self.make_selection(selection, match_any)

    @property
    def fields(self) -> FieldSet:
        return self.source.fields

    def field_names(self) -> list[str]:
        return self.source.field_names()

    # ------------------------------------------------------------------
    # Predicates
    # ------------------------------------------------------------------

    @staticmethod
    def _make_test(
        selection: Predicate,
        match_any: Pattern | None,
        selection_first: bool = False,
    ) -> RowTest:
        """Turn a predicate into ``test(position, fetch_row) -> bool``.

        A pattern given as ``selection`` always wins. Otherwise ``match_any``
        takes precedence over a range or mapping, unless ``selection_first``
        is set.
        """
        if not selection and not match_any and not isinstance(selection, Mapping):
            return lambda pos, fetch: True

        if isinstance(selection, (str, re.Pattern)) and selection:
            pattern: Pattern = selection
            return lambda pos, fetch: _matches_any(fetch(), pattern)

        if match_any and not (selection_first and _is_structured(selection)):
            any_pattern: Pattern = match_any
            return lambda pos, fetch: _matches_any(fetch(), any_pattern)

        if isinstance(selection, Mapping):
            criteria = dict(selection)
            return lambda pos, fetch: _matches(fetch(), criteria)

        if _is_range(selection):
            first, last = selection  # type: ignore[misc]
            return lambda pos, fetch: first <= pos <= last

        raise MalformedSelection(
            f"Selection must be None, a pattern, a (first, last) pair or a "
            f"field mapping, got {selection!r}"
        )

    # ------------------------------------------------------------------
    # Selecting
    # ------------------------------------------------------------------

    def make_selection(self, selection: Predicate = None, match_any: Pattern | None = None) -> None:
        """Select records from the source again, resetting the window."""
        test = self._make_test(selection, match_any)
        source = self.source
        self._indices = [
            i for i in range(len(source))
            if test(i, lambda i=i: source.get(i))
        ]
        self._start = 0
        self._length = len(self._indices)
        self._sliced = False
        self._log.debug("selected %d of %d records", self._length, len(source))

    def sort(
        self,
        sort_by: Sequence[str] | SortSpec,
        numeric: Flags | None = None,
        reversed: Flags | None = None,
        title: Flags | None = None,
        lastword: Flags | None = None,
    ) -> None:
        """Sort the whole selection by one or more fields.

        Args:
            sort_by: Field names in order of precedence, or a SortSpec.
            numeric: Fields to compare as numbers.
            reversed: Fields to sort in descending order.
            title: Fields to compare without a leading "The " or "A ".
            lastword: Fields to compare with their last word first.

        Fields that are not in the source's field list are ignored. The sort
        is stable.
        """
        if isinstance(sort_by, SortSpec):
            spec = sort_by
        else:
            spec = SortSpec.build(sort_by, numeric=numeric, reversed=reversed, title=title, lastword=lastword)
        spec = spec.restrict(self.field_names())
        if not spec.keys:
            return
        self._indices = sort_indices(self._indices, self.source.get, spec)
        self._log.debug("sorted %d records by %s", len(self._indices), spec.fields)

    def slice(
        self,
        selection: Predicate = None,
        match_any: Pattern | None = None,
        start_at_zero: bool = False,
    ) -> tuple[int, int]:
        """Narrow the window to a run of consecutive matching records.

        The selection is assumed to be sorted so that matching records are
        adjacent, e.g. sorted by ``Group`` and sliced by ``{"Group": "B"}``.
        The scan starts at the beginning of the selection when
        ``start_at_zero`` is set, after the end of the previous slice
        otherwise, and the first run of matching records becomes the window.
        If nothing matches the window is empty. Once a slice has reached the
        end of the selection, further slices are empty until
        ``start_at_zero`` or ``clear_slice()`` is used.

        Range predicates count positions from the start of the scan. A range
        or mapping ``selection`` takes precedence over ``match_any``.

        Returns:
            The new window as ``(start, length)``.
        """
        test = self._make_test(selection, match_any, selection_first=True)
        total = len(self._indices)
        if start_at_zero:
            offset = 0
        elif self._sliced:
            offset = self._start + self._length
        else:
            offset = self._start

        first: int | None = None
        last = 0
        for pos in range(total - offset):
            real = self._indices[offset + pos]
            if test(pos, lambda real=real: self.source.get(real)):
                if first is None:
                    first = pos
                last = pos
            elif first is not None:
                break

        if first is None:
            self._start = offset
            self._length = 0
        else:
            self._start = offset + first
            self._length = last - first + 1
        self._sliced = True
        self._log.debug("slice start=%d length=%d of %d", self._start, self._length, total)
        return self.window

    def clear_slice(self) -> None:
        """Restore the window to the whole selection."""
        self._start = 0
        self._length = len(self._indices)
        self._sliced = False

    @property
    def window(self) -> tuple[int, int]:
        """Return the window as ``(start, length)`` within the selection."""
        return (self._start, self._length)

    def indices(self) -> list[int]:
        """Return the source indices of the whole selection."""
        return list(self._indices)

    def window_indices(self) -> list[int]:
        """Return the source indices inside the window."""
        return self._indices[self._start:self._start + self._length]

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def size(self) -> int:
        """Return the number of records in the window."""
        return self._length

    def __len__(self) -> int:
        return self._length

    def get(self, index: int) -> Row | None:
        """Get the record at a window position, or None outside the window."""
        if index < 0 or index >= self._length:
            return None
        return self.source.get(self._indices[self._start + index])

    def __getitem__(self, index: int) -> Row:
        if index < 0:
            index += self._length
        row = self.get(index)
        if row is None:
            raise IndexError(f"Index {index} out of range [0, {self._length})")
        return row

    def __iter__(self) -> Iterator[Row]:
        for index in range(self._length):
            row = self.get(index)
            if row is not None:
                yield row

    def set(self, index: int, row: Any) -> Any:
        """Store a record at a window position in the source.

        Positions outside the window are ignored.
        """
        if index < 0 or index >= self._length:
            return None
        return self.source.set(self._indices[self._start + index], row)

    def delete(self, index: int) -> None:
        """Drop a window position from the selection; the source is untouched."""
        if index < 0 or index >= self._length:
            return
        del self._indices[self._start + index]
        self._length -= 1

    def clear(self) -> None:
        """Empty the selection."""
        self._indices = []
        self._start = 0
        self._length = 0
        self._sliced = False

    def column(self, name: str, unique: bool = True) -> list[str | None]:
        """Collect the first value of a field from each record in the window.

        With ``unique``, repeated values are skipped, keeping the first
        occurrence order.
        """
        values: list[str | None] = []
        seen: set[str | None] = set()
        for row in self:
            value = row.get(name)
            if unique:
                if value in seen:
                    continue
                seen.add(value)
            values.append(value)
        return values

    def __repr__(self) -> str:
        return f"Selection(size={len(self._indices)}, window={self.window})"


def _is_range(selection: Any) -> bool:
    return isinstance(selection, (tuple, list)) and len(selection) == 2 and all(
        isinstance(v, int) and not isinstance(v, bool) for v in selection
    )


def _is_structured(selection: Any) -> bool:
    return isinstance(selection, Mapping) or _is_range(selection)


def _matches_any(row: Any, pattern: Pattern) -> bool:
    return row is not None and row.matches_any(pattern)


def _matches(row: Any, criteria: Mapping[str, Pattern]) -> bool:
    return row is not None and row.matches(criteria)
