# cloudos/api/v1/users.py
import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from cloudos.api.deps import AuthContext, get_auth, get_db
from cloudos.api.permissions import require_admin, require_ownership_or_admin
from cloudos.core.errors import NotFound
from cloudos.core.rbac import UserStatus
from cloudos.crud.user import user_crud
from cloudos.schemas.auth import MessageResponse, ProfileResponse
from cloudos.schemas.user import CurrentUser, RoleUpdate, StatusUpdate, UserProfile

logger = structlog.get_logger(__name__)

router = APIRouter()


def _get_or_404(db: Session, user_id: int):
    user = user_crud.get(db, user_id)
    if user is None:
        raise NotFound("User not found")
    return user


@router.get("/{user_id}", response_model=ProfileResponse)
def get_user(
    user_id: int,
    _: CurrentUser = Depends(require_ownership_or_admin("user_id")),
    db: Session = Depends(get_db),
):
    return ProfileResponse(user=UserProfile.model_validate(_get_or_404(db, user_id)))


@router.patch("/{user_id}/status", response_model=ProfileResponse)
def set_status(
    user_id: int,
    body: StatusUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth),
):
    user = user_crud.update(db, _get_or_404(db, user_id), {"status": body.status.value})
    logger.info("user_status_changed", user_id=user.id, status=user.status, by=admin.id)
    if body.status is not UserStatus.ACTIVE:
        auth.sessions.revoke_all(db, user.id)
    return ProfileResponse(user=UserProfile.model_validate(user))


@router.patch("/{user_id}/role", response_model=ProfileResponse)
def set_role(
    user_id: int,
    body: RoleUpdate,
    admin: CurrentUser = Depends(require_admin),
    db: Session = Depends(get_db),
):
    # takes effect on the next request: sessions resolve the role live
    user = user_crud.update(db, _get_or_404(db, user_id), {"role": body.role.value})
    logger.info("user_role_changed", user_id=user.id, role=user.role, by=admin.id)
    return ProfileResponse(user=UserProfile.model_validate(user))


@router.delete("/{user_id}/sessions", response_model=MessageResponse)
def revoke_sessions(
    user_id: int,
    _: CurrentUser = Depends(require_ownership_or_admin("user_id")),
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_auth),
):
    count = auth.sessions.revoke_all(db, user_id)
    return MessageResponse(message=f"Revoked {count} session(s)")
