"""
Exceptions shared across the storefront backend.

Each error carries the HTTP status it maps to; the handlers in main.py turn
them into JSON responses.
"""

from typing import List, Optional


class StorefrontError(Exception):
    """Base class for every error the API reports on purpose"""
    status_code = 500

    def __init__(self, message, status_code=None):
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class InputValidationError(StorefrontError):
    """Caller-fixable input problem"""
    status_code = 400

    def __init__(self, message, details: Optional[List[str]] = None, code: Optional[str] = None):
        super().__init__(message)
        self.details = details or []
        self.code = code


class ConflictError(InputValidationError):
    """A unique key (email, external id) is already taken"""


class AuthenticationError(StorefrontError):
    status_code = 401


class PermissionDeniedError(StorefrontError):
    status_code = 403


class NotFoundError(StorefrontError):
    status_code = 404


class ConfigurationError(StorefrontError):
    """Operator-fixable misconfiguration"""
    status_code = 500


class PersistenceError(StorefrontError):
    """Storage layer rejected the write or is unreachable"""
    status_code = 500


class CompositionError(StorefrontError):
    """A notification artifact could not be built"""


class DispatchError(StorefrontError):
    """The mail transport failed to deliver the message"""
    status_code = 502
