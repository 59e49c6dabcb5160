"""Typed service errors mapped to stable HTTP status codes."""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(slots=True, frozen=True)
class ErrorDetail:
    """One field-level problem a client can correct and resubmit."""

    path: str
    message: str


class AppError(Exception):
    """Base class for errors raised by fuelwise services."""

    status_code: int = 500

    def __init__(self, message: str, *, errors: list[ErrorDetail] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.errors = list(errors or [])

    @property
    def is_operational(self) -> bool:
        return 400 <= self.status_code < 500


class ValidationError(AppError):
    """Malformed or semantically invalid input."""

    status_code = 400

    @classmethod
    def for_field(cls, path: str, message: str) -> "ValidationError":
        return cls(message, errors=[ErrorDetail(path=path, message=message)])


class AuthenticationError(AppError):
    """Missing, invalid or expired credentials."""

    status_code = 401


class AccessDeniedError(AppError):
    """Caller lacks ownership or authorization over the target resource."""

    status_code = 403


class NotFoundError(AppError):
    """Referenced entity does not exist."""

    status_code = 404


class ConflictError(AppError):
    """Uniqueness violation or stale-state transition."""

    status_code = 409


class InternalInconsistencyError(AppError):
    """A data-integrity invariant does not hold. Never shown verbatim to callers."""

    status_code = 500
