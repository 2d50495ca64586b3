from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from rolegraph.db.session import get_db
from rolegraph.models.security import User
from rolegraph.rbac.collector import RbacCollector
from rolegraph.rbac.service import AuthorizationService
from rolegraph.schemas.security import RbacSnapshotOut, UserOut
from rolegraph.security.config import SecurityConfig
from rolegraph.security.dependencies import get_authorization_service, get_security_config, permission_required

router = APIRouter(prefix="/admin", tags=["admin"])


def _active_identity(identity: User | None) -> bool:
    return identity is not None and identity.is_active


@router.get("/users", response_model=list[UserOut])
def list_users(db: Session = Depends(get_db)) -> list[User]:
    stmt = select(User).options(selectinload(User.roles)).order_by(User.id)
    return list(db.scalars(stmt).all())


@router.get(
    "/rbac",
    response_model=RbacSnapshotOut,
    dependencies=[Depends(permission_required("rbac.inspect", assertion=_active_identity))],
)
def rbac_snapshot(
    service: AuthorizationService = Depends(get_authorization_service),
    config: SecurityConfig = Depends(get_security_config),
) -> dict[str, object]:
    # Snapshot of what this request resolved; reading it never loads more roles.
    snapshot = RbacCollector().collect(
        service,
        guards=config.guards(),
        protection_policy=config.protection_policy,
    )
    return snapshot.to_dict()
