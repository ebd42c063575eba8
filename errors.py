class StoreError(Exception):
    """Base class for all workout store errors."""


class InvalidRecord(StoreError, ValueError):
    """A record failed validation and was not written."""


class NotFound(StoreError, ValueError):
    """No record exists for the requested identifier."""


class ParseFailure(StoreError, ValueError):
    """Input data could not be parsed into the expected shape."""


class StorageUnavailable(StoreError, RuntimeError):
    """The underlying database cannot be opened or written."""


class StoreNotReady(StoreError, RuntimeError):
    """A collection was accessed before the store finished opening."""
