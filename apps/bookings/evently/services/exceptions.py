from typing import Any


class ServiceError(Exception):
    def __init__(self, code: str, message: str | None = None) -> None:
        self.code = code
        self.message = message or code
        super().__init__(self.message)


class NotFoundError(ServiceError):
    pass


class ConflictError(ServiceError):
    pass


class ValidationError(ServiceError):
    pass


class ReferenceError(ServiceError):
    """A booking points at an event that does not exist."""

    def __init__(self, code: str, message: str | None = None, event_id: Any = None) -> None:
        super().__init__(code, message)
        self.event_id = event_id


class ConnectionError(ServiceError):
    """The storage connection could not be established."""
