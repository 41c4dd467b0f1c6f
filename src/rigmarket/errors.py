from __future__ import annotations


class RigMarketError(Exception):
    """Base error; carries the HTTP status the API layer answers with."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(RigMarketError):
    status_code = 400


class AuthenticationError(RigMarketError):
    status_code = 401


class AuthorizationError(RigMarketError):
    status_code = 403


class NotFoundError(RigMarketError):
    status_code = 404


class ConflictError(RigMarketError):
    status_code = 400
