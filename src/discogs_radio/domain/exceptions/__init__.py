"""Domain exceptions.

Hey future me - resolvers and the resolution orchestrator NEVER raise these for "not found".
Absence is a None / NoMedia / "" result. Exceptions are for broken input (bad CSV, bad
command), missing auth context and infrastructure failures that a caller translates into a
degraded result. The API layer maps each class to an HTTP status in exception_handlers.py.
"""

from typing import Any


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    # Hey future me, message is kept as an attribute so handlers can read it without str(). Don't
    # raise this base directly, pick a subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class EntityNotFoundException(DomainException):
    """Raised when an entity is not found."""

    def __init__(self, entity_type: str, entity_id: Any) -> None:
        super().__init__(f"{entity_type} with id {entity_id} not found")
        self.entity_type = entity_type
        self.entity_id = entity_id


class ValidationError(DomainException):
    """Input validation failed.

    HTTP Status: 422

    Example:
        raise ValidationError("Track source cannot change (collection -> wantlist)")
        raise ValidationError("At least one source must stay active")
    """

    pass


class CSVImportError(ValidationError):
    """A Discogs CSV export could not be turned into tracks.

    HTTP Status: 422

    Example:
        raise CSVImportError("CSV file is empty")
        raise CSVImportError("CSV must contain Artist and Title columns")
    """

    pass


class ConfigurationError(DomainException):
    """Application misconfiguration.

    HTTP Status: 503 (Service Unavailable)

    Example:
        raise ConfigurationError("Unable to create snapshot directory")
    """

    pass


class AuthenticationError(DomainException):
    """Required auth context is missing or was rejected.

    HTTP Status: 401

    Example:
        raise AuthenticationError("Discogs username required for saved track media")
    """

    pass


class ExternalServiceError(DomainException):
    """A remote RPC endpoint failed (network error, 5xx, malformed payload).

    HTTP Status: 502 (Bad Gateway)
    """

    def __init__(
        self, message: str, service: str = "", status_code: int | None = None
    ) -> None:
        super().__init__(message)
        self.service = service
        self.status_code = status_code


class QuotaExceededError(ExternalServiceError):
    """YouTube search quota is exhausted.

    Hey future me - the search resolver catches this and flips the sticky session flag. It only
    escapes to the API when a user explicitly forces a search after the quota is gone.

    HTTP Status: 429
    """

    pass


__all__ = [
    "AuthenticationError",
    "CSVImportError",
    "ConfigurationError",
    "DomainException",
    "EntityNotFoundException",
    "ExternalServiceError",
    "QuotaExceededError",
    "ValidationError",
]
