"""Exception types for the event decoder."""

from __future__ import annotations


class MovieEventError(Exception):
    """A single event message could not be decoded or handled."""

    def __init__(
        self,
        code: str,
        message: str,
        cause: Exception | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        return f"{self.code}: {self.message}"


class MovieEventErrorCodes:
    """MovieEventError code constants."""

    INVALID_PAYLOAD: str = "INVALID_PAYLOAD"
    UNKNOWN_TOPIC: str = "UNKNOWN_TOPIC"
    HANDLER_FAILED: str = "HANDLER_FAILED"
