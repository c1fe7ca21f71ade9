"""Exception types raised by the log store and its HTTP adapters."""


class LogStoreError(Exception):
    """Base class for all loglite errors."""


class StorageError(LogStoreError):
    """The backing database failed to open, read, write, vacuum or close."""


class SerializationError(LogStoreError):
    """Entry metadata could not be encoded as JSON."""


class ValidationError(LogStoreError):
    """A query request was malformed and was rejected before touching storage."""
