"""Field Vals - Record-oriented access to enhanced Field:Value data files."""

from fieldvals.collation import CollationRule, SortKey, SortSpec
from fieldvals.errors import (
    FieldValsError,
    InvalidField,
    LockError,
    MalformedSelection,
    OpenError,
)
from fieldvals.fields import FieldSet
from fieldvals.join import JoinedRow
from fieldvals.record_file import RecordFile
from fieldvals.row import Row
from fieldvals.select import Selection
from fieldvals.store import FileStore

__all__ = [
    # Main API
    "FileStore",
    "Row",
    "Selection",
    "JoinedRow",
    # Storage
    "RecordFile",
    "FieldSet",
    # Sorting
    "SortSpec",
    "SortKey",
    "CollationRule",
    # Errors
    "FieldValsError",
    "InvalidField",
    "OpenError",
    "LockError",
    "MalformedSelection",
]

__version__ = "0.1.0"
