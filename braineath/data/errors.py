"""Storage errors reported by the persistence layer."""

from pydantic import ValidationError

# Raised when a record is built or updated with out-of-range values.
ValidationFailure = ValidationError


class StorageError(Exception):
    """A recoverable storage failure."""


class StoreOpenFailure(StorageError):
    """The store could not be opened.

    ``incompatible`` is True when the file exists but its schema (or content)
    cannot be used by this version; only then may a confirmed reset help.
    """

    def __init__(self, message: str, incompatible: bool = False):
        super().__init__(message)
        self.incompatible = incompatible


class SaveFailure(StorageError):
    """Pending changes could not be committed; nothing was written."""
