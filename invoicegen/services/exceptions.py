from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Iterable, List


class ServiceError(Exception):
    """Base exception for service layer failures."""

    def __init__(self, message: str, *, cause: Exception | None = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


@dataclass(frozen=True)
class FieldError:
    field: str
    message: str

    def as_dict(self) -> Dict[str, str]:
        return {"field": self.field, "message": self.message}


class ValidationError(ServiceError):
    """Raised when a record fails validation or breaks a uniqueness rule."""

    def __init__(
        self,
        message: str,
        errors: Iterable[FieldError] | None = None,
        *,
        cause: Exception | None = None,
    ):
        super().__init__(message, cause=cause)
        self.errors: List[FieldError] = list(errors or [])

    @classmethod
    def for_field(cls, field: str, message: str) -> "ValidationError":
        return cls(message, [FieldError(field, message)])


class NotFoundError(ServiceError):
    """Raised when a lookup by identifier yields nothing."""

    def __init__(self, resource: str, identifier: str):
        super().__init__(f"{resource} not found")
        self.resource = resource
        self.identifier = identifier


class AssetLoadError(ServiceError):
    """Raised when an optional image asset cannot be fetched or decoded."""

    def __init__(self, message: str, reference: str = "", *, cause: Exception | None = None):
        super().__init__(message, cause=cause)
        self.reference = reference


class UnexpectedError(ServiceError):
    """Raised when storage or a collaborating service fails unexpectedly."""
