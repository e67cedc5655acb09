"""
Invitation Endpoints

Issue, list, resend and revoke invitations. Redemption lives under
/auth/accept-invite since the invitee has no session yet.
"""
from fastapi import APIRouter, BackgroundTasks, Depends, status
from sqlalchemy.orm import Session

from travelflow.database import get_db
from travelflow.schemas.invitation import (
    InvitationCreate,
    InvitationListResponse,
    InvitationResponse,
)
from travelflow.api.deps import get_dispatcher, get_permission_context, require_permission
from travelflow.core.context import PermissionContext
from travelflow.core.invitations import (
    issue_invitation,
    list_invitations,
    resend_invitation,
    revoke_invitation,
)
from travelflow.core.permissions import USERS_MODULE

router = APIRouter(prefix="/invitations", tags=["invitations"])


@router.get("", response_model=InvitationListResponse)
def get_invitations(
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    db: Session = Depends(get_db),
):
    """Newest first; PENDING rows past expiry are reported as EXPIRED."""
    return InvitationListResponse(
        invitations=[InvitationResponse.from_invitation(i) for i in list_invitations(db, tenant_id)]
    )


@router.post("", response_model=InvitationResponse, status_code=status.HTTP_201_CREATED)
def post_invitation(
    body: InvitationCreate,
    background_tasks: BackgroundTasks,
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    ctx: PermissionContext = Depends(get_permission_context),
    notifier=Depends(get_dispatcher),
    db: Session = Depends(get_db),
):
    """Invite an email address; the email goes out after the response, best effort."""
    invitation = issue_invitation(
        db, tenant_id, body.email, body.role_id,
        actor=ctx, notifier=notifier, schedule=background_tasks.add_task,
    )
    return InvitationResponse.from_invitation(invitation)


@router.post("/{invitation_id}/resend", response_model=InvitationResponse)
def post_resend(
    invitation_id: str,
    background_tasks: BackgroundTasks,
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    ctx: PermissionContext = Depends(get_permission_context),
    notifier=Depends(get_dispatcher),
    db: Session = Depends(get_db),
):
    """Extend a pending invitation by another TTL and send it again."""
    invitation = resend_invitation(
        db, tenant_id, invitation_id,
        actor=ctx, notifier=notifier, schedule=background_tasks.add_task,
    )
    return InvitationResponse.from_invitation(invitation)


@router.post("/{invitation_id}/revoke", response_model=InvitationResponse)
def post_revoke(
    invitation_id: str,
    tenant_id: str = Depends(require_permission(USERS_MODULE)),
    ctx: PermissionContext = Depends(get_permission_context),
    db: Session = Depends(get_db),
):
    invitation = revoke_invitation(db, tenant_id, invitation_id, actor=ctx)
    return InvitationResponse.from_invitation(invitation)
