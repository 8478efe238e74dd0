"""File-backed collection of Field:Value records."""

from __future__ import annotations

import contextlib
import logging
from pathlib import Path
from typing import Any, Iterable, Iterator, Mapping

from fieldvals import codec
from fieldvals.errors import OpenError
from fieldvals.fields import FieldSet, as_field_set
from fieldvals.record_file import RecordFile
from fieldvals.row import Row

log = logging.getLogger("fieldvals.store")


class FileStore:
    """Indexable records of an enhanced Field:Value data file.

    The first record of the file is the field-declaration record: it lists
    every legal field with an empty value, in the order fields are written.
    Data records follow it, so data record ``i`` lives in file slot ``i + 1``.

    Parsed records are kept in a bounded cache and evicted oldest-first.
    Every write goes straight to the file. Stores opened read-only ignore
    writes.
    """

    DEFAULT_CACHE_SIZE = 100
    MODES = ("r", "w")

    def __init__(
        self,
        file_path: Path | str,
        mode: str = "r",
        cache_size: int = DEFAULT_CACHE_SIZE,
        cache_all: bool = False,
        fields: FieldSet | Iterable[str] | None = None,
        logger: logging.Logger | None = None,
    ) -> None:
        """Open a data file.

        Args:
            file_path: The data file.
            mode: ``"r"`` for read-only, ``"w"`` for read-write (the file is
                created if it does not exist).
            cache_size: How many parsed records to keep in memory.
            cache_all: Keep every parsed record in memory, ignoring
                ``cache_size``.
            fields: Field names to use when the file has no
                field-declaration record yet; a writable store writes them
                out as the declaration record.
            logger: Logger for debug output, defaults to ``fieldvals.store``.

        Raises:
            OpenError: If the file cannot be opened, or it declares no
                fields and ``fields`` was not given.
        """
        if mode not in self.MODES:
            raise ValueError(f"Invalid mode {mode!r}, expected one of {self.MODES}")

        self.file_path = Path(file_path)
        self.mode = mode
        self.cache_size: int | None = None if cache_all else cache_size
        self._log = logger if logger is not None else log
        self._cache: dict[int, Row] = {}

        created = mode == "w" and not self.file_path.exists()
        try:
            self._records = RecordFile(self.file_path, writable=(mode == "w"))
        except OSError as e:
            raise OpenError(f"Could not open {self.file_path}: {e}") from e

        try:
            self.fields = self._load_fields(fields)
        except OpenError:
            self._records.close()
            if created:
                self.file_path.unlink(missing_ok=True)
            raise

    def _load_fields(self, fields: FieldSet | Iterable[str] | None) -> FieldSet:
        """Read the field names from the declaration record."""
        header = self._records.read(0)
        if header is not None:
            declared = FieldSet()
            codec.parse(header, declared, allow_new_fields=True)
            if len(declared):
                return declared

        if fields is None:
            raise OpenError(f"{self.file_path} has no field definitions")

        declared = as_field_set(fields).copy()
        if not self.read_only:
            text = codec.serialize(codec.header_record(declared), declared)
            if header is None:
                self._records.append(text)
            else:
                self._records.write(0, text)
            self._log.debug("wrote field declarations to %s: %s", self.file_path, declared.names)
        return declared

    @property
    def read_only(self) -> bool:
        return self.mode == "r"

    def field_names(self) -> list[str]:
        """Return the legal field names in declaration order."""
        return self.fields.names

    # ------------------------------------------------------------------
    # Records
    # ------------------------------------------------------------------

    def size(self) -> int:
        """Return the number of data records."""
        return max(len(self._records) - 1, 0)

    def __len__(self) -> int:
        return self.size()

    def get(self, index: int) -> Row | None:
        """Get a data record, or None if ``index`` is out of range."""
        if index < 0 or index >= self.size():
            return None

        row = self._cache.get(index)
        if row is not None:
            return row

        # slot 0 is the field declarations
        text = self._records.read(index + 1)
        if text is None:
            return None
        row = Row.from_record(codec.parse(text, self.fields), self.fields)
        self._cache_put(index, row)
        return row

    def __getitem__(self, index: int) -> Row:
        size = self.size()
        if index < 0:
            index += size
        row = self.get(index)
        if row is None:
            raise IndexError(f"Index {index} out of range [0, {size})")
        return row

    def __iter__(self) -> Iterator[Row]:
        for index in range(self.size()):
            row = self.get(index)
            if row is not None:
                yield row

    def set(self, index: int, row: Row | Mapping[str, Any]) -> int | None:
        """Store a record at ``index``.

        An index at or past the end appends the record instead, at the next
        free index.

        Args:
            index: Data record index.
            row: A Row, or a plain ``field -> value(s)`` mapping.

        Returns:
            The index actually written, or None for a read-only store.

        Raises:
            InvalidField: If the record carries fields this file does not
                declare.
        """
        if self.read_only:
            self._log.debug("ignoring write to read-only %s", self.file_path)
            return None
        if index < 0:
            raise IndexError(f"Index {index} out of range")

        row = self._adopt(row)
        text = row.to_text()
        size = self.size()
        if index >= size:
            index = size
            self._records.append(text)
        else:
            self._records.write(index + 1, text)

        if index in self._cache:
            self._cache[index] = row
        else:
            self._cache_put(index, row)
        return index

    def append(self, row: Row | Mapping[str, Any]) -> int | None:
        """Append a record, returning its index (None if read-only)."""
        return self.set(self.size(), row)

    def new_row(self, values: Mapping[str, Any] | None = None) -> Row:
        """Create an unsaved record with this file's fields."""
        return Row(self.fields, values)

    def _adopt(self, row: Row | Mapping[str, Any]) -> Row:
        """Return a Row bound to this store's fields."""
        if isinstance(row, Row):
            if row.fields is self.fields:
                return row
            return Row(self.fields, row.as_dict())
        return Row(self.fields, row)

    def delete(self, index: int) -> None:
        """Remove a data record; later records move down by one."""
        if self.read_only:
            self._log.debug("ignoring delete on read-only %s", self.file_path)
            return
        if index < 0 or index >= self.size():
            return
        self._records.delete(index + 1)
        self._cache = {
            (i if i < index else i - 1): row
            for i, row in self._cache.items()
            if i != index
        }

    def clear(self) -> None:
        """Remove every data record, keeping the field declarations."""
        if self.read_only:
            self._log.debug("ignoring clear on read-only %s", self.file_path)
            return
        self._cache = {}
        self._records.truncate(1)

    def truncate(self, count: int) -> None:
        """Shrink (or pad with empty records) to ``count`` data records.

        Raises:
            ValueError: If ``count`` is negative.
        """
        if count < 0:
            raise ValueError(f"Cannot truncate to {count} records")
        if self.read_only:
            self._log.debug("ignoring truncate on read-only %s", self.file_path)
            return
        self._records.truncate(count + 1)
        self._cache = {i: row for i, row in self._cache.items() if i < count}

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def _cache_put(self, index: int, row: Row) -> None:
        if self.cache_size is not None:
            if self.cache_size <= 0:
                return
            while len(self._cache) >= self.cache_size:
                evicted = next(iter(self._cache))
                del self._cache[evicted]
                self._log.debug("evicted record %d from cache", evicted)
        self._cache[index] = row

    @property
    def cached_indices(self) -> list[int]:
        """Return the indices of cached records, oldest first."""
        return list(self._cache)

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def lock(self, shared: bool = False, blocking: bool = True) -> None:
        """Take an advisory lock on the data file.

        Another process may have changed the file before the lock was
        granted, so all cached records are discarded.

        Raises:
            LockError: If a non-blocking lock is contended.
        """
        self._records.lock(shared=shared, blocking=blocking)
        self._cache = {}
        self._log.debug("lock acquired on %s, cache cleared", self.file_path)

    def unlock(self) -> None:
        """Release the advisory lock."""
        self._records.unlock()

    @contextlib.contextmanager
    def locked(self, shared: bool = False, blocking: bool = True) -> Iterator[FileStore]:
        """Context manager holding the advisory lock."""
        self.lock(shared=shared, blocking=blocking)
        try:
            yield self
        finally:
            self.unlock()

    def close(self) -> None:
        """Close the data file and drop the cache."""
        self._cache = {}
        self._records.close()

    def __enter__(self) -> FileStore:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def __repr__(self) -> str:
        return f"FileStore({str(self.file_path)!r}, mode={self.mode!r}, size={self.size()})"
