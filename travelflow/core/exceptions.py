"""
Custom Exceptions

Every error the access core raises is an HTTPException subclass carrying an
``error_type`` so clients can tell e.g. an expired invite link from a used
one. The handler in main.py renders them as {"detail", "type"}.
"""
from typing import Dict, Optional
from fastapi import HTTPException, status


class TravelFlowError(HTTPException):
    """Base class for access-core errors."""

    error_type = "error"

    def __init__(
        self,
        status_code: int,
        detail: str,
        headers: Optional[Dict[str, str]] = None,
    ):
        super().__init__(status_code=status_code, detail=detail, headers=headers)


class AuthenticationError(TravelFlowError):
    """No valid session: missing, malformed, expired, or for a vanished user."""

    error_type = "unauthenticated"

    def __init__(self, detail: str = "Could not validate credentials"):
        super().__init__(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=detail,
            headers={"WWW-Authenticate": "Bearer"},
        )


class PermissionDenied(TravelFlowError):
    """Authenticated, but the caller's role lacks the capability."""

    error_type = "forbidden"

    def __init__(self, detail: str = "Permission denied"):
        super().__init__(status_code=status.HTTP_403_FORBIDDEN, detail=detail)


class NotFoundError(TravelFlowError):
    """
    Entity absent or owned by another tenant.

    The two cases are deliberately indistinguishable to the caller.
    """

    error_type = "not_found"

    def __init__(self, entity: str = "Resource", entity_id: str = ""):
        detail = f"{entity} not found: {entity_id}" if entity_id else f"{entity} not found"
        super().__init__(status_code=status.HTTP_404_NOT_FOUND, detail=detail)


class InvitationNotPendingError(TravelFlowError):
    """Resend/revoke target is missing, foreign, accepted or revoked."""

    error_type = "invitation_not_pending"

    def __init__(self, invitation_id: str = ""):
        super().__init__(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Invitation not found or no longer pending: {invitation_id}"
        )


class DuplicateNameError(TravelFlowError):
    """A role with this name already exists in the tenant."""

    error_type = "duplicate_name"

    def __init__(self, name: str = ""):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail=f"A role named '{name}' already exists"
        )


class InvitationConflictError(TravelFlowError):
    """The email already has an account or a pending invitation."""

    error_type = "invitation_conflict"

    def __init__(self, detail: str = "Email already invited"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class RoleInUseError(TravelFlowError):
    """Role cannot be deleted while users or invitations point at it."""

    error_type = "role_in_use"

    def __init__(self, detail: str = "Role is in use"):
        super().__init__(status_code=status.HTTP_409_CONFLICT, detail=detail)


class InvalidRoleError(TravelFlowError):
    """Role id does not name a role of the caller's tenant."""

    error_type = "invalid_role"

    def __init__(self, role_id: str = ""):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Invalid role: {role_id}" if role_id else "Invalid role"
        )


class InvalidInputError(TravelFlowError):
    """Raised when input validation fails."""

    error_type = "invalid_input"

    def __init__(self, detail: str = "Invalid input"):
        super().__init__(status_code=status.HTTP_400_BAD_REQUEST, detail=detail)


class InvalidTokenError(TravelFlowError):
    """No invitation carries this token."""

    error_type = "invalid_token"

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid invitation link"
        )


class InvitationExpiredError(TravelFlowError):
    error_type = "invitation_expired"

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_410_GONE,
            detail="This invitation has expired"
        )


class InvitationAlreadyUsedError(TravelFlowError):
    """Invitation was accepted or revoked before this attempt."""

    error_type = "invitation_already_used"

    def __init__(self):
        super().__init__(
            status_code=status.HTTP_409_CONFLICT,
            detail="This invitation has already been used"
        )


class RateLimitExceeded(TravelFlowError):
    """Raised when rate limit is exceeded."""

    error_type = "rate_limit_exceeded"

    def __init__(self, retry_after: int = 60):
        super().__init__(
            status_code=status.HTTP_429_TOO_MANY_REQUESTS,
            detail=f"Too many attempts. Try again in {retry_after} seconds.",
            headers={"Retry-After": str(retry_after)}
        )
