"""Error taxonomy shared by the catalog core and the store adapters."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass


@dataclass(frozen=True)
class FieldError:
    """A single validation failure tied to an input field."""

    field: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "message": self.message}


class CatalogError(Exception):
    """Base class for every classified catalog failure."""

    status_code: int = 500
    retryable: bool = False

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class ValidationError(CatalogError):
    """Malformed or out-of-range caller input."""

    status_code = 400

    def __init__(
        self,
        message: str,
        errors: Sequence[FieldError] = (),
    ) -> None:
        super().__init__(message)
        self.errors = tuple(errors)

    @classmethod
    def for_field(cls, field: str, message: str) -> ValidationError:
        return cls(message, [FieldError(field=field, message=message)])


class ConfigurationError(CatalogError):
    """Incompatible filter/sort combination or an otherwise invalid query shape."""

    status_code = 400


class InvalidQuery(ConfigurationError):
    """The store rejected a compiled query, usually for a missing composite index."""


class NotFound(CatalogError):
    """Unknown category, subcategory or entity."""

    status_code = 404


class AccessDenied(CatalogError):
    """The store refused the call for permission or authentication reasons."""

    status_code = 403


class VersionConflict(CatalogError):
    """A conditional write lost against a concurrent writer."""

    status_code = 409


class RateLimited(CatalogError):
    """The caller exhausted its request budget for the current window."""

    status_code = 429
    retryable = True

    def __init__(self, message: str, retry_after: int) -> None:
        super().__init__(message)
        self.retry_after = retry_after


class ServiceUnavailable(CatalogError):
    """Transient store failure or timeout."""

    status_code = 503
    retryable = True


class InternalError(CatalogError):
    """Unexpected store failure that fits no other category."""

    status_code = 500
