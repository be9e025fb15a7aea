# messaging_core/common/exceptions/exceptions.py
# =============================================================================
# Custom exceptions for messaging-core
# =============================================================================

from typing import Any, Dict, Optional


class MessagingCoreException(Exception):
    """Base exception for messaging-core"""

    def __init__(self, message: str = "", details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class BadRequestError(MessagingCoreException):
    """Raised when a request is well-formed but cannot be honoured (400)"""
    pass


class AuthenticationError(MessagingCoreException):
    """Raised when authentication fails (401)"""
    pass


class ForbiddenError(MessagingCoreException):
    """Raised when the caller is not allowed to perform an action (403)"""
    pass


class NotFoundError(MessagingCoreException):
    """Raised when a resource is not found (404)"""
    pass


class ConflictError(MessagingCoreException):
    """Raised when a conditional write finds the item already present"""
    pass
