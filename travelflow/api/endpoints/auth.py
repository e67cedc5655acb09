"""
Authentication Endpoints

Agency signup, login, invitation acceptance and the caller's current
permission context.
"""
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from travelflow.database import get_db
from travelflow.models.tenant import Tenant
from travelflow.models.user import User, LEGACY_ADMIN_LABEL
from travelflow.schemas.auth import (
    AcceptInviteRequest,
    InvitationCheckResponse,
    LoginRequest,
    PermissionContextResponse,
    SignupRequest,
    SignupResponse,
    Token,
)
from travelflow.schemas.user import UserResponse
from travelflow.api.deps import get_permission_context, get_rate_limiter, require_tenant
from travelflow.core.context import PermissionContext
from travelflow.core.exceptions import AuthenticationError, InvalidInputError, RateLimitExceeded
from travelflow.core.invitations import accept_invitation, inspect_invitation
from travelflow.core.roles import seed_default_roles
from travelflow.core.security import create_session_token, get_password_hash, verify_password
from travelflow.utils.logging import log_security_event, get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post("/signup", response_model=SignupResponse, status_code=status.HTTP_201_CREATED)
def signup(registration: SignupRequest, db: Session = Depends(get_db)):
    """
    Register a new agency.

    The founder gets the legacy ADMIN label and no structured role, so the
    legacy bypass gives them full access until someone assigns a role.
    The default roles are seeded in the same transaction.
    """
    email = registration.email.lower()

    if db.query(User.id).filter(User.email == email).first():
        raise InvalidInputError("This email is already registered")

    tenant = Tenant(
        name=registration.agency_name,
        email=email,
        phone=registration.phone,
        address=registration.address or "",
    )
    db.add(tenant)
    db.flush()

    db.add(User(
        tenant_id=tenant.id,
        email=email,
        hashed_password=get_password_hash(registration.password),
        full_name=registration.agency_name,
        phone=registration.phone,
        role=LEGACY_ADMIN_LABEL,
        is_active=True,
    ))
    seed_default_roles(db, tenant.id)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvalidInputError("This email is already registered")

    logger.info(f"Agency registered: {tenant.id}", extra={"tenant_id": tenant.id})

    return SignupResponse(message="Agency registered", tenant_id=tenant.id)


@router.post("/login", response_model=Token)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    limiter=Depends(get_rate_limiter),
):
    """
    Exchange email and password for a session token.

    Attempts are counted per email before the password is checked.
    """
    email = credentials.email.lower()

    allowed, retry_after = limiter.hit(email)
    if not allowed:
        log_security_event("login_rate_limited", {"email": email}, logger)
        raise RateLimitExceeded(retry_after)

    user = db.query(User).filter(User.email == email).first()

    if not user or not verify_password(credentials.password, user.hashed_password):
        log_security_event(
            "failed_login",
            {"reason": "bad_credentials", "email": email},
            logger
        )
        raise AuthenticationError("Invalid credentials")

    if not user.is_active:
        log_security_event("failed_login", {"reason": "user_inactive", "user_id": user.id}, logger)
        raise AuthenticationError("User account is inactive")

    limiter.reset(email)
    logger.info(f"Successful login: user={user.id}", extra={"tenant_id": user.tenant_id})

    return Token(access_token=create_session_token(user))


@router.get("/me", response_model=PermissionContextResponse)
def me(
    tenant_id: str = Depends(require_tenant),
    ctx: PermissionContext = Depends(get_permission_context),
):
    """The caller's tenant and the capabilities they hold right now. Any member may ask."""
    return PermissionContextResponse(
        user_id=ctx.user_id,
        tenant_id=tenant_id,
        user_name=ctx.user_name,
        role=ctx.legacy_role,
        permissions=sorted(ctx.permissions) if ctx.permissions is not None else None,
    )


@router.get("/accept-invite", response_model=InvitationCheckResponse)
def check_invitation(token: str = Query("", description="Token from the invite link"), db: Session = Depends(get_db)):
    """Tell the invite page whether the link can still be used."""
    return InvitationCheckResponse(**inspect_invitation(db, token))


@router.post("/accept-invite", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
def accept_invite(body: AcceptInviteRequest, db: Session = Depends(get_db)):
    """
    Create the invited user's account.

    Errors carry distinct types (invalid_token, invitation_expired,
    invitation_already_used) so the page can explain what happened.
    """
    user = accept_invitation(
        db,
        token=body.token,
        full_name=body.name,
        password=body.password,
        phone=body.phone,
    )
    return UserResponse.model_validate(user)
