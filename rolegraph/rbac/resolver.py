from __future__ import annotations

from collections.abc import Iterable

from .role import Role


def granted_by(roles: Role | Iterable[Role], permission: str) -> Role | None:
    """Return the first role in ``roles`` holding ``permission`` directly."""
    if isinstance(roles, Role):
        roles = (roles,)
    for role in roles:
        if role.has_permission(permission):
            return role
    return None


def is_granted(roles: Role | Iterable[Role], permission: str) -> bool:
    """
    Check ``permission`` against an already flattened role sequence.

    Stops at the first role that holds the permission; never touches the
    graph beyond reading the roles it is given.
    """

    return granted_by(roles, permission) is not None
