from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.orm import Session

from rolegraph.db.session import get_db
from rolegraph.models.security import User
from rolegraph.providers.listeners import PermissionLoaderListener, RoleLoaderListener
from rolegraph.providers.sql import SqlRoleProvider
from rolegraph.rbac.graph import RoleGraph
from rolegraph.rbac.service import AuthorizationService
from rolegraph.security.auth import UserIdentityProvider, extract_user_id, load_user
from rolegraph.security.config import SecurityConfig

logger = logging.getLogger(__name__)


def get_security_config(request: Request) -> SecurityConfig:
    config = getattr(request.app.state, "security_config", None)
    if config is None:
        raise RuntimeError("Security config not loaded. Did app startup run?")
    return config


def build_authorization_service(config: SecurityConfig, db: Session, user: User | None) -> AuthorizationService:
    """
    Build the authorization service for one request.

    Every request gets a fresh graph and load state. Roles come from the
    inline config when it defines some, otherwise from the database, scoped
    to the roles of the current identity.
    """

    options = config.rbac
    graph = RoleGraph(create_missing_roles=options.create_missing_roles)
    service = AuthorizationService(
        graph,
        UserIdentityProvider(user),
        options.guest_role,
        force_reload=options.force_reload,
        grant_policy=options.grant_policy,
    )

    if config.role_provider is not None:
        RoleLoaderListener(config.role_provider).attach(service.loader)
    else:
        provider = SqlRoleProvider(db)
        RoleLoaderListener(provider).attach(service.loader)
        PermissionLoaderListener(provider, scope_to_permission=options.scope_to_permission).attach(service.loader)

    return service


def _resolve_user(request: Request, config: SecurityConfig, db: Session) -> User | None:
    if getattr(request.state, "user_resolved", False):
        return request.state.user

    user_id = extract_user_id(request, config)
    user = load_user(db, user_id) if user_id is not None else None
    request.state.user = user
    request.state.user_resolved = True
    return user


def get_authorization_service(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db),
) -> AuthorizationService:
    service = getattr(request.state, "authorization", None)
    if service is None:
        service = build_authorization_service(config, db, _resolve_user(request, config, db))
        request.state.authorization = service
    return service


def get_current_user(request: Request) -> User:
    user = getattr(request.state, "user", None)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def enforce_security(
    request: Request,
    config: SecurityConfig = Depends(get_security_config),
    db: Session = Depends(get_db),
) -> None:
    """
    Global security dependency (configuration-driven, decorators optional).

    Runs after routing so decorator metadata on the endpoint is visible.
    Role requirements use the role hierarchy (any listed role satisfies);
    permission requirements must all be granted.
    """

    path = request.url.path
    method = request.method.upper()

    rule = config.match(path, method)

    endpoint = request.scope.get("endpoint")
    decorator_roles = set(getattr(endpoint, "__security_required_roles__", set())) if endpoint else set()
    decorator_permissions = tuple(getattr(endpoint, "__security_required_permissions__", ())) if endpoint else ()

    if rule is None and not decorator_roles and not decorator_permissions:
        if config.protection_policy == "deny":
            logger.info("No security rule (policy=deny) path=%s method=%s", path, method)
            raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")
        return

    user = _resolve_user(request, config, db)
    if rule is not None and rule.auth_required and user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")

    required_roles = set(rule.roles if rule else ()) | decorator_roles
    required_permissions = list(rule.permissions if rule else ())
    required_permissions += [p for p in decorator_permissions if p not in required_permissions]

    if not required_roles and not required_permissions:
        return

    service = get_authorization_service(request, config, db)

    if required_roles and not service.does_identity_satisfy_roles(sorted(required_roles)):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"Insufficient role. Required one of: {sorted(required_roles)}",
        )

    for permission in required_permissions:
        if not service.is_granted(permission):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )


def permission_required(permission: str, assertion: Any = None) -> Callable[..., None]:
    """
    Dependency factory for per-route permission checks.

    ``assertion`` receives the current identity (ORM user, or None for
    guests) and can veto the permission.
    """

    def dependency(service: AuthorizationService = Depends(get_authorization_service)) -> None:
        if not service.is_granted(permission, assertion):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail=f"Missing permission: {permission}",
            )

    return dependency
