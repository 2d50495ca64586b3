"""
In-memory role graph.

The graph exclusively owns its ``Role`` instances. It is filled by load
listeners during the load phase and only read afterwards.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from typing import Any

from .errors import HierarchyCycleError, MissingParentError, NotFoundError
from .role import Role, role_name

logger = logging.getLogger(__name__)


class RoleGraph:
    """
    Mapping of role name to ``Role``, keeping insertion order.

    When ``create_missing_roles`` is set, ``add_role`` creates an unknown
    parent as a root role instead of raising ``MissingParentError``.
    """

    def __init__(self, create_missing_roles: bool = False) -> None:
        self.create_missing_roles = create_missing_roles
        self._roles: dict[str, Role] = {}

    def __len__(self) -> int:
        return len(self._roles)

    def __iter__(self) -> Iterator[Role]:
        return iter(list(self._roles.values()))

    def __contains__(self, ref: object) -> bool:
        try:
            return self.has_role(ref)
        except TypeError:
            return False

    def has_role(self, ref: Any) -> bool:
        return role_name(ref) in self._roles

    def get_role(self, ref: Any) -> Role:
        name = role_name(ref)
        try:
            return self._roles[name]
        except KeyError:
            raise NotFoundError(f"role {name!r} not found in role graph") from None

    def add_role(self, name: str, parent: str | None = None) -> Role:
        """
        Register ``name`` (optionally below ``parent``) and return the role.

        Adding an existing role returns the existing instance untouched,
        except that a root role gets linked below ``parent`` when one is
        given. A role that already has a different parent keeps it.
        """

        name = role_name(name)
        if parent is not None and role_name(parent) == name:
            raise ValueError(f"role {name!r} cannot be its own parent")
        parent_role = self._resolve_parent(name, parent) if parent else None

        role = self._roles.get(name)
        if role is None:
            role = Role(name)
            self._roles[name] = role
            logger.debug("RBAC graph: added role=%s parent=%s", name, parent)
        elif parent_role is not None and role.parent is not None and role.parent is not parent_role:
            logger.debug(
                "RBAC graph: role=%s keeps parent=%s (ignored parent=%s)",
                name,
                role.parent.name,
                parent_role.name,
            )
            return role

        if parent_role is not None and role.parent is None:
            self._check_not_ancestor(role, parent_role)
            parent_role.add_child(role)
        return role

    def attach_permission(self, ref: Any, permission: str) -> None:
        self.get_role(ref).add_permission(permission)

    def roles(self) -> Iterator[Role]:
        """Iterate every role in insertion order."""
        return iter(self)

    def roots(self) -> Iterator[Role]:
        """Iterate roles without a parent in insertion order."""
        return (role for role in self if role.parent is None)

    @staticmethod
    def _check_not_ancestor(role: Role, parent_role: Role) -> None:
        ancestor: Role | None = parent_role
        while ancestor is not None:
            if ancestor is role:
                raise HierarchyCycleError(
                    f"role {role.name!r} cannot be linked below {parent_role.name!r}: it is one of its ancestors"
                )
            ancestor = ancestor.parent

    def _resolve_parent(self, name: str, parent: str) -> Role:
        parent = role_name(parent)
        existing = self._roles.get(parent)
        if existing is not None:
            return existing
        if not self.create_missing_roles:
            raise MissingParentError(f"role {name!r} declares unknown parent {parent!r}")
        logger.debug("RBAC graph: creating missing parent role=%s for role=%s", parent, name)
        created = Role(parent)
        self._roles[parent] = created
        return created
