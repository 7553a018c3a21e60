"""
Errors raised by the prayer services.

Routes translate these into HTTP responses; nothing here knows about HTTP.
"""
from typing import Optional


class PrayerError(Exception):
    """Base for every error the services raise on purpose."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class NotFound(PrayerError):
    """Referenced request or commitment does not exist."""

    def __init__(self, entity: str, entity_id):
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} {entity_id} not found")


class InvalidInput(PrayerError):
    """Empty required field, bad enum value, non-positive amount."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class InvalidDuration(InvalidInput):
    def __init__(self, message: str = "Duration must be a positive number"):
        super().__init__(message, field="duration")


class RefusalError(PrayerError):
    """
    Raised when a commitment is refused by the rules.
    Every refusal is written to the audit trail before it is raised.
    """


class AlreadyCommitted(RefusalError):
    def __init__(self, request_id, volunteer_id: str):
        self.request_id = request_id
        self.volunteer_id = volunteer_id
        super().__init__(
            f"REFUSAL: Volunteer {volunteer_id} already holds a commitment for request {request_id}."
        )


class RequestNotActive(RefusalError):
    def __init__(self, request_id, status: str):
        self.request_id = request_id
        self.status = status
        super().__init__(
            f"REFUSAL: Request {request_id} is {status}; only active requests accept commitments."
        )


class Forbidden(PrayerError):
    """The actor's role does not allow the operation."""


class StorageError(PrayerError):
    """A database failure, reported with the operation that was in flight."""

    def __init__(self, operation: str):
        self.operation = operation
        super().__init__(f"Storage failure during {operation}")


class CollaboratorUnavailable(PrayerError):
    """
    The text-generation service failed or answered nonsense.
    Never leaves the assistant: callers get a fallback value instead.
    """
