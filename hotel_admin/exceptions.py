"""
Domain errors raised by the service layer.

Routers never catch these; the handlers registered in main.py turn them into
JSON responses with the matching HTTP status.
"""

from typing import List, Optional


class HotelAdminError(Exception):
    """Base class for every error the services raise on purpose."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message

    @property
    def detail(self):
        return self.message


class NotFoundError(HotelAdminError):
    """A referenced hotel, room type, room, booking or user does not exist."""

    status_code = 404

    def __init__(self, entity: str, entity_id: str):
        super().__init__(f"{entity} {entity_id} not found")
        self.entity = entity
        self.entity_id = entity_id


class ValidationError(HotelAdminError):
    """Input rejected before any write happened."""

    status_code = 422

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or [message]

    @property
    def detail(self):
        return {"message": self.message, "errors": self.errors}


class PermissionDeniedError(HotelAdminError):
    status_code = 403


class PersistenceError(HotelAdminError):
    """The database rejected or could not complete a read or write."""

    status_code = 503


class ConcurrencyConflictError(HotelAdminError):
    """Another writer kept winning the race for the same inventory slot."""

    status_code = 409
