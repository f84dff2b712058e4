"""
Exception types raised by the stream library.
"""


class StreamError(Exception):
    """Base class for stream library errors"""
    pass


class StreamConsumedError(StreamError, RuntimeError):
    """Raised when a stream that was already evaluated, linked or closed is used again"""

    def __init__(self, message: str = "stream has already been operated upon or closed"):
        super().__init__(message)


class NoSuchElementError(StreamError, LookupError):
    """Raised when reading the value of an empty OptionalResult"""

    def __init__(self, message: str = "No value present"):
        super().__init__(message)


class DuplicateKeyError(StreamError, ValueError):
    """Raised by to_dict() when two elements map to the same key and no merge function is given"""

    def __init__(self, key, existing, incoming):
        self.key = key
        self.existing = existing
        self.incoming = incoming
        super().__init__(
            f"Duplicate key {key!r} (attempted merging values {existing!r} and {incoming!r})"
        )
