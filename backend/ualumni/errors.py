"""Domain error taxonomy raised by services.

Services raise these instead of storage or driver exceptions; the HTTP
layer maps each kind to a status code (see `main.py`).
"""

from typing import Optional


class ServiceError(Exception):
    """Base class for errors raised by the service layer."""
    status_code = 500

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause


class BadRequestError(ServiceError):
    """Arguments the service cannot act on (e.g. an impossible page)."""
    status_code = 400


class AlreadyExistsError(ServiceError):
    """A uniqueness constraint on a natural key was violated."""
    status_code = 409


class NotFoundError(ServiceError):
    """The record addressed by a natural key does not exist."""
    status_code = 404


class UnexpectedError(ServiceError):
    """Any other persistence failure; `cause` keeps the original error."""
    status_code = 500

    def __init__(self, message: str = "An unexpected situation occurred", cause: Optional[BaseException] = None):
        super().__init__(message, cause)
