"""Error taxonomy for board operations."""

from __future__ import annotations


class BoardError(RuntimeError):
    """Base class for errors surfaced to callers of board operations."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(BoardError):
    """Raised when an id is not present in the target collection."""

    status_code = 404


class ConflictError(BoardError):
    """Raised when booking a visit that already has a booking."""

    status_code = 409


class InvalidInputError(BoardError):
    """Raised when a required value is missing or blank."""

    status_code = 400


class ForbiddenError(BoardError):
    """Raised when the supplied PIN does not match the stored one."""

    status_code = 403


__all__ = [
    "BoardError",
    "ConflictError",
    "ForbiddenError",
    "InvalidInputError",
    "NotFoundError",
]
