# wayfarer/app/core/errors.py
"""
Error taxonomy.

Every error is a local, synchronous outcome: a policy decision or an
integrity failure. None of them is retried.
"""
from fastapi import status


class WayfarerError(Exception):
    """Base error for Wayfarer."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR
    code: str = "INTERNAL_ERROR"
    default_message: str = "Request failed"

    def __init__(self, message: str = None):
        self.message = message or self.default_message
        super().__init__(self.message)


class ConfigurationError(WayfarerError):
    """Missing or invalid deployment configuration. Fatal at startup."""

    code = "CONFIGURATION_ERROR"
    default_message = "Invalid configuration"


class DecryptionError(WayfarerError):
    """Envelope failed authentication: corrupted, tampered, or wrong key."""

    code = "DECRYPTION_FAILED"
    default_message = "Content could not be decrypted"


class NotFound(WayfarerError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "NOT_FOUND"
    default_message = "Not found"


class Conflict(WayfarerError):
    status_code = status.HTTP_409_CONFLICT
    code = "CONFLICT"
    default_message = "Conflict"


class AuthzError(WayfarerError):
    """Common parent of authentication and authorization failures."""


class Unauthenticated(AuthzError):
    """No session, or an invalid, expired or revoked one."""

    status_code = status.HTTP_401_UNAUTHORIZED
    code = "AUTH_UNAUTHORIZED"
    default_message = "Unauthorized - Please login"


class Forbidden(AuthzError):
    """Valid session, insufficient role."""

    status_code = status.HTTP_403_FORBIDDEN
    code = "AUTH_FORBIDDEN"
    default_message = "Forbidden - Insufficient role"


class SelfDemotionForbidden(AuthzError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "SELF_DEMOTION_FORBIDDEN"
    default_message = "You cannot demote your own admin account"


class LastAdminProtection(AuthzError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "LAST_ADMIN_PROTECTION"
    default_message = "Cannot remove the last admin. Promote another user to admin first."
