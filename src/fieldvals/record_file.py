"""Raw record slots of a separator-delimited text file."""

from __future__ import annotations

import fcntl
import logging
import mmap
from pathlib import Path
from typing import Any

from fieldvals.errors import LockError

log = logging.getLogger("fieldvals.record_file")


class RecordFile:
    """Positional access to the records of a text file.

    Records are stored back to back, each followed by a separator line
    containing only ``=``. Only the byte range of every record is kept in
    memory; record text is read from disk on demand. Writes go straight to
    the file, rewriting everything after the changed record.
    """

    SEPARATOR = b"\n=\n"
    ENCODING = "utf-8"
    ERRORS = "surrogateescape"

    def __init__(self, file_path: Path | str, writable: bool = False) -> None:
        """Open a record file.

        Args:
            file_path: Path to the data file.
            writable: Open for writing, creating the file if it is missing.

        Raises:
            OSError: If the file cannot be opened or created.
        """
        self.file_path = Path(file_path)
        self.writable = writable
        self._file: Any = None
        self._offsets: list[tuple[int, int]] = []  # (start, end) byte range per record
        self._size = 0
        self._terminated = True  # file is empty or ends with a separator

        self._open_file()
        self._scan()

    def _open_file(self) -> None:
        """Open the file, creating it first when writable."""
        if self.writable:
            if not self.file_path.exists():
                self.file_path.touch()
            self._file = open(self.file_path, "r+b")
        else:
            self._file = open(self.file_path, "rb")

    def _scan(self) -> None:
        """Index the byte range of every record in the file."""
        self._file.seek(0, 2)
        size = self._file.tell()
        offsets: list[tuple[int, int]] = []
        terminated = True

        if size > 0:
            sep_len = len(self.SEPARATOR)
            with mmap.mmap(self._file.fileno(), 0, access=mmap.ACCESS_READ) as mm:
                pos = 0
                while pos < size:
                    sep = mm.find(self.SEPARATOR, pos)
                    if sep == -1:
                        offsets.append((pos, size))
                        terminated = False
                        break
                    offsets.append((pos, sep))
                    pos = sep + sep_len

        self._offsets = offsets
        self._size = size
        self._terminated = terminated

    @property
    def count(self) -> int:
        """Return the number of records in the file."""
        return len(self._offsets)

    def __len__(self) -> int:
        return len(self._offsets)

    def read(self, index: int) -> str | None:
        """Return the text of a record, or None if there is no such record."""
        if index < 0 or index >= len(self._offsets):
            return None
        start, end = self._offsets[index]
        self._file.seek(start)
        return self._file.read(end - start).decode(self.ENCODING, self.ERRORS)

    def write(self, index: int, text: str) -> int:
        """Replace a record, or append one when ``index`` equals the count.

        Returns:
            The index written.
        """
        count = len(self._offsets)
        if index < 0 or index > count:
            raise IndexError(f"Index {index} out of range [0, {count}]")
        if index == count:
            return self.append(text)
        self._splice(index, 1, [text])
        return index

    def append(self, text: str) -> int:
        """Append a record and return its index."""
        index = len(self._offsets)
        self._splice(index, 0, [text])
        return index

    def delete(self, index: int) -> None:
        """Remove a record; later records move down by one."""
        if index < 0 or index >= len(self._offsets):
            raise IndexError(f"Index {index} out of range [0, {len(self._offsets)})")
        self._splice(index, 1, [])

    def truncate(self, count: int) -> None:
        """Shrink the file to ``count`` records, or pad it with empty ones."""
        current = len(self._offsets)
        if count < current:
            self._splice(count, current - count, [])
        elif count > current:
            self._splice(current, 0, [""] * (count - current))

    def _splice(self, index: int, remove: int, texts: list[str]) -> None:
        """Replace ``remove`` records at ``index`` with ``texts``."""
        if not self.writable:
            raise PermissionError(f"{self.file_path} is not open for writing")

        sep = self.SEPARATOR
        count = len(self._offsets)
        start = self._offsets[index][0] if index < count else self._size
        tail_index = index + remove
        tail_start = self._offsets[tail_index][0] if tail_index < count else self._size

        self._file.seek(tail_start)
        tail = self._file.read()

        prefix = b""
        if index == count and not self._terminated:
            # last record was never closed off
            prefix = sep
        encoded = [t.encode(self.ENCODING, self.ERRORS) for t in texts]

        new_offsets: list[tuple[int, int]] = []
        pos = start + len(prefix)
        for data in encoded:
            new_offsets.append((pos, pos + len(data)))
            pos += len(data) + len(sep)
        delta = pos - tail_start

        self._file.seek(start)
        self._file.write(prefix + b"".join(data + sep for data in encoded) + tail)
        self._file.truncate()
        self._file.flush()

        self._offsets = (
            self._offsets[:index]
            + new_offsets
            + [(s + delta, e + delta) for s, e in self._offsets[tail_index:]]
        )
        self._size = pos + len(tail)
        if not tail:
            self._terminated = True

    # ------------------------------------------------------------------
    # Locking
    # ------------------------------------------------------------------

    def lock(self, shared: bool = False, blocking: bool = True) -> None:
        """Take an advisory lock on the file and re-read its record layout.

        Raises:
            LockError: If ``blocking`` is False and the lock is held elsewhere,
                or the lock call fails.
        """
        op = fcntl.LOCK_SH if shared else fcntl.LOCK_EX
        if not blocking:
            op |= fcntl.LOCK_NB
        try:
            fcntl.flock(self._file, op)
        except OSError as e:
            raise LockError(f"Could not lock {self.file_path}: {e}") from e
        log.debug("locked %s (%s)", self.file_path, "shared" if shared else "exclusive")
        # another process may have rewritten the file before we got the lock
        self._scan()

    def unlock(self) -> None:
        """Release an advisory lock taken with lock()."""
        fcntl.flock(self._file, fcntl.LOCK_UN)
        log.debug("unlocked %s", self.file_path)

    def close(self) -> None:
        """Close the file."""
        if self._file is not None:
            self._file.close()
            self._file = None
        self._offsets = []

    @property
    def closed(self) -> bool:
        return self._file is None

    def __enter__(self) -> RecordFile:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()
