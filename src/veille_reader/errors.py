"""Exception types raised by the ingestion engine."""


class VeilleError(Exception):
    """Base class for all Veille Reader errors."""


class FetchError(VeilleError):
    """Raised when a feed document cannot be fetched or parsed."""

    def __init__(self, url: str, cause: str | Exception):
        self.url = url
        self.cause = cause
        super().__init__(str(cause))


class ParseFieldError(VeilleError):
    """Raised when a numeric extension field holds a non-numeric value."""

    def __init__(self, field_name: str, value: object):
        self.field_name = field_name
        self.value = value
        super().__init__(f"Invalid value for {field_name}: {value!r}")


class StorageError(VeilleError):
    """Raised when the item store fails a read or write."""


class StorageConflictError(StorageError):
    """Raised when an insert loses a race on the unique link constraint."""

    def __init__(self, link: str):
        self.link = link
        super().__init__(f"Item already exists: {link}")


class SourceNotFoundError(VeilleError):
    """Raised when a source id does not resolve."""

    def __init__(self, source_id: int):
        self.source_id = source_id
        super().__init__(f"Source not found: {source_id}")
