"""
Invitation Lifecycle

Issue, resend, revoke, inspect and redeem tenant invitations.

Redemption is the one operation that must not race: the PENDING -> ACCEPTED
move is a single conditional UPDATE keyed on (id, status=PENDING), so of two
concurrent attempts exactly one updates a row and the other sees
AlreadyUsed.

Emails and audit entries are sent after the state change commits and can
fail without affecting it. The HTTP layer passes a ``schedule`` hook so the
email goes out after the response instead of inside the request.
"""
from datetime import datetime, timedelta
from typing import Any, Dict, List, Optional
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload
import logging

from travelflow.config import get_settings
from travelflow.models.invitation import Invitation, InvitationStatus
from travelflow.models.role import Role
from travelflow.models.user import User
from travelflow.models.audit_log import AuditAction
from travelflow.core.audit import record_audit
from travelflow.core.context import PermissionContext
from travelflow.core.notifications import get_notifier, send_invitation_email
from travelflow.core.roles import get_tenant_role
from travelflow.core.security import get_password_hash
from travelflow.core.exceptions import (
    InvalidInputError,
    InvalidRoleError,
    InvalidTokenError,
    InvitationAlreadyUsedError,
    InvitationConflictError,
    InvitationExpiredError,
    InvitationNotPendingError,
)

logger = logging.getLogger(__name__)


class RedeemedInvitation:
    """What a successful redemption binds the new member to."""

    def __init__(self, invitation_id: str, tenant_id: str, role_id: str, email: str):
        self.invitation_id = invitation_id
        self.tenant_id = tenant_id
        self.role_id = role_id
        self.email = email


def invitation_expiry(now: Optional[datetime] = None) -> datetime:
    now = now or datetime.utcnow()
    return now + timedelta(days=get_settings().INVITATION_TTL_DAYS)


def _normalize_email(email: Optional[str]) -> str:
    email = (email or "").strip().lower()
    if not email:
        raise InvalidInputError("Email is required")
    return email


def _dispatch_email(notifier, email: str, token: str, schedule=None) -> None:
    """
    Send the invite link now, or hand it to ``schedule`` (e.g.
    BackgroundTasks.add_task) to run after the response.
    """
    notifier = notifier or get_notifier()
    if schedule is None:
        send_invitation_email(notifier, email, token)
    else:
        schedule(send_invitation_email, notifier, email, token)


def list_invitations(db: Session, tenant_id: str) -> List[Invitation]:
    """All invitations of the tenant, newest first, roles preloaded."""
    return db.query(Invitation).options(joinedload(Invitation.role)).filter(
        Invitation.tenant_id == tenant_id
    ).order_by(Invitation.created_at.desc()).all()


def issue_invitation(
    db: Session,
    tenant_id: str,
    email: str,
    role_id: str,
    actor: PermissionContext,
    notifier=None,
    schedule=None,
) -> Invitation:
    """
    Invite ``email`` to the tenant with the given role.

    Refuses emails that already belong to a member of the tenant or already
    have a pending invitation there.
    """
    email = _normalize_email(email)
    role = get_tenant_role(db, tenant_id, role_id)

    member = db.query(User.id).filter(
        User.tenant_id == tenant_id,
        User.email == email
    ).first()
    if member:
        raise InvitationConflictError("This user already belongs to the agency")

    pending = db.query(Invitation.id).filter(
        Invitation.tenant_id == tenant_id,
        Invitation.email == email,
        Invitation.status == InvitationStatus.PENDING
    ).first()
    if pending:
        raise InvitationConflictError("A pending invitation already exists for this email")

    invitation = Invitation(
        tenant_id=tenant_id,
        email=email,
        role_id=role.id,
        invited_by_id=actor.user_id,
        token=Invitation.generate_token(),
        status=InvitationStatus.PENDING,
        expires_at=invitation_expiry(),
    )
    db.add(invitation)
    db.commit()
    db.refresh(invitation)

    logger.info(
        f"Invitation {invitation.id} issued for role {role.name}",
        extra={"tenant_id": tenant_id, "user_id": actor.user_id}
    )

    _dispatch_email(notifier, email, invitation.token, schedule)
    record_audit(
        actor,
        AuditAction.CREATE,
        "invitations",
        invitation.id,
        {"email": email, "role": role.name},
    )
    return invitation


def resend_invitation(
    db: Session,
    tenant_id: str,
    invitation_id: str,
    actor: PermissionContext,
    notifier=None,
    schedule=None,
) -> Invitation:
    """
    Push a pending invitation's expiry to now + TTL and email it again.

    Works on time-lapsed invitations too, since expiry is not a stored
    status. Accepted, revoked, foreign or unknown ids raise
    InvitationNotPendingError.
    """
    invitation = db.query(Invitation).filter(
        Invitation.id == invitation_id,
        Invitation.tenant_id == tenant_id,
        Invitation.status == InvitationStatus.PENDING
    ).first()
    if not invitation:
        raise InvitationNotPendingError(invitation_id)

    # expires_at doubles as the last-sent marker
    invitation.expires_at = invitation_expiry()
    db.commit()
    db.refresh(invitation)

    logger.info(f"Invitation {invitation.id} resent", extra={"tenant_id": tenant_id, "user_id": actor.user_id})

    _dispatch_email(notifier, invitation.email, invitation.token, schedule)
    record_audit(
        actor,
        AuditAction.UPDATE,
        "invitations",
        invitation.id,
        {"email": invitation.email, "action": "resend"},
    )
    return invitation


def revoke_invitation(
    db: Session,
    tenant_id: str,
    invitation_id: str,
    actor: PermissionContext,
) -> Invitation:
    """Withdraw a pending invitation; its link stops working for good."""
    revoked = db.query(Invitation).filter(
        Invitation.id == invitation_id,
        Invitation.tenant_id == tenant_id,
        Invitation.status == InvitationStatus.PENDING
    ).update({Invitation.status: InvitationStatus.REVOKED}, synchronize_session="fetch")

    if revoked != 1:
        db.rollback()
        raise InvitationNotPendingError(invitation_id)

    db.commit()
    invitation = db.query(Invitation).filter(Invitation.id == invitation_id).one()

    record_audit(
        actor,
        AuditAction.UPDATE,
        "invitations",
        invitation.id,
        {"status": {"old": InvitationStatus.PENDING.value, "new": InvitationStatus.REVOKED.value}},
    )
    return invitation


def redeem_invitation(db: Session, token: str) -> RedeemedInvitation:
    """
    Consume an invitation token.

    Raises InvalidTokenError for unknown tokens, InvitationAlreadyUsedError
    when the invitation is no longer PENDING, InvitationExpiredError when
    it is PENDING but past expiry.

    The status change is flushed, not committed: the caller commits it
    together with whatever the redemption creates.
    """
    if not token:
        raise InvalidTokenError()

    invitation = db.query(Invitation).filter(Invitation.token == token).first()
    if not invitation:
        raise InvalidTokenError()

    if invitation.status != InvitationStatus.PENDING:
        raise InvitationAlreadyUsedError()

    now = datetime.utcnow()
    if invitation.is_expired(now):
        raise InvitationExpiredError()

    redeemed = RedeemedInvitation(
        invitation_id=invitation.id,
        tenant_id=invitation.tenant_id,
        role_id=invitation.role_id,
        email=invitation.email,
    )

    claimed = db.query(Invitation).filter(
        Invitation.id == invitation.id,
        Invitation.status == InvitationStatus.PENDING
    ).update(
        {Invitation.status: InvitationStatus.ACCEPTED, Invitation.accepted_at: now},
        synchronize_session=False,
    )

    if claimed != 1:
        # Another request got there between our read and the update
        db.rollback()
        raise InvitationAlreadyUsedError()

    # The in-memory copy still says PENDING
    db.expire(invitation)
    return redeemed


def inspect_invitation(db: Session, token: str) -> Dict[str, Any]:
    """
    Read-only validity check for the accept-invite page.

    ``reason`` uses the same identifiers as the redemption errors.
    """
    invitation = None
    if token:
        invitation = db.query(Invitation).options(
            joinedload(Invitation.role),
            joinedload(Invitation.tenant),
        ).filter(Invitation.token == token).first()

    if not invitation:
        return {"valid": False, "reason": InvalidTokenError.error_type}

    if invitation.status != InvitationStatus.PENDING:
        return {"valid": False, "reason": InvitationAlreadyUsedError.error_type}

    if invitation.is_expired():
        return {"valid": False, "reason": InvitationExpiredError.error_type}

    return {
        "valid": True,
        "reason": None,
        "email": invitation.email,
        "tenant_name": invitation.tenant.name,
        "role_name": invitation.role.name if invitation.role else None,
    }


def accept_invitation(
    db: Session,
    token: str,
    full_name: str,
    password: str,
    phone: Optional[str] = None,
) -> User:
    """
    Redeem ``token`` and create the invited user in one transaction.

    The user gets the invitation's role as both reference and legacy label.
    """
    redeemed = redeem_invitation(db, token)

    registered = db.query(User.id).filter(User.email == redeemed.email).first()
    if registered:
        db.rollback()
        raise InvitationConflictError("This email is already registered")

    role = db.query(Role).filter(
        Role.id == redeemed.role_id,
        Role.tenant_id == redeemed.tenant_id
    ).first()
    if role is None:
        # Role deleted after the invitation was issued; undo the claim
        db.rollback()
        raise InvalidRoleError(redeemed.role_id)

    user = User(
        tenant_id=redeemed.tenant_id,
        email=redeemed.email,
        hashed_password=get_password_hash(password),
        full_name=full_name,
        phone=phone or None,
        is_active=True,
    )
    user.assign_role(role)
    db.add(user)

    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise InvitationConflictError("This email is already registered")
    db.refresh(user)

    logger.info(
        f"Invitation {redeemed.invitation_id} accepted by {user.id}",
        extra={"tenant_id": user.tenant_id, "user_id": user.id}
    )

    newcomer = PermissionContext(
        tenant_id=user.tenant_id,
        user_id=user.id,
        user_name=user.full_name,
        permissions=role.permission_set,
        legacy_role=user.role,
    )
    record_audit(
        newcomer,
        AuditAction.CREATE,
        "users",
        user.id,
        {"email": user.email, "role": role.name, "invitation_id": redeemed.invitation_id},
    )
    return user
