# services/exceptions.py
from fastapi import HTTPException


class BackendError(HTTPException):
    """Base class for failures reported by or about the hosted backend"""
    status_code = 500
    default_detail = "Backend request failed"

    def __init__(self, detail: str = None):
        super().__init__(status_code=self.status_code, detail=detail or self.default_detail)


class NotAuthenticated(BackendError):
    status_code = 401
    default_detail = "User not authenticated"

    def __init__(self, detail: str = None):
        super().__init__(detail)
        self.headers = {"WWW-Authenticate": "Bearer"}


class AuthorizationError(BackendError):
    status_code = 403
    default_detail = "Not authorized"


class NotFound(BackendError):
    status_code = 404
    default_detail = "Not found"


class AlreadyProcessed(BackendError):
    status_code = 409
    default_detail = "Already processed"


class ConstraintViolation(BackendError):
    status_code = 409
    default_detail = "Constraint violation"


class BackendUnavailable(BackendError):
    status_code = 503
    default_detail = "Backend unavailable"
