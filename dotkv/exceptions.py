"""Exceptions for the dotkv package."""


class StoreError(Exception):
    """Base exception for all store errors."""

    pass


class InvalidKeyError(StoreError, ValueError):
    """Key or dotted path is not usable."""

    def __init__(self, key, reason: str = "keys must be non-empty strings"):
        self.key = key
        super().__init__(f"Invalid key {key!r}: {reason}")


class InvalidOperandError(StoreError, ValueError):
    """Argument to an arithmetic or TTL operation is not usable."""

    pass


class InvalidNameError(StoreError, ValueError):
    """Backup or collection name is not usable."""

    def __init__(self, name, reason: str = "names must be non-empty strings"):
        self.name = name
        super().__init__(f"Invalid name {name!r}: {reason}")


class InvalidEventError(StoreError, ValueError):
    """Event name is not one the store emits."""

    def __init__(self, event: str):
        self.event = event
        super().__init__(f"Unknown event: {event!r}")


class NotFoundError(StoreError, KeyError):
    """Key or backup snapshot does not exist."""

    def __init__(self, key: str, what: str = "key"):
        self.key = key
        super().__init__(f"No such {what}: {key}")


class ConflictError(StoreError):
    """Target key already holds a live value."""

    def __init__(self, key: str):
        self.key = key
        super().__init__(f"Key already exists: {key}")


class SerializationError(StoreError):
    """Failed to serialize or deserialize store contents."""

    pass


class PersistenceError(StoreError):
    """Failed to write store contents to storage."""

    pass
