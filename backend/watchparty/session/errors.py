"""Errors raised by the room session engine.

Everything derived from :class:`RoomError` is reported back to the requesting
connection as an ``error`` event. :class:`NotHost` is the exception: it is only
ever logged, so a non-host caller cannot learn who the host is.
"""


class RoomError(Exception):
    message = "request failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)
        if message:
            self.message = message


class RoomNotFound(RoomError):
    message = "room does not exist"


class RoomAlreadyExists(RoomError):
    message = "room already exists"


class WrongPassword(RoomError):
    message = "wrong password"


class InvalidPayload(RoomError):
    message = "invalid payload"


class QueueFull(RoomError):
    message = "recommendation queue is full"


class NotHost(Exception):
    """A host-only command was issued by another connection."""
