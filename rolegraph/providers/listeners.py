"""
Load listeners bridging role / permission sources to the role graph.

``RoleLoaderListener`` runs in the ``LOAD_ROLES`` phase and
``PermissionLoaderListener`` in the ``LOAD_PERMISSIONS`` phase, so grants are
always attached to roles that already exist.
"""

from __future__ import annotations

import logging
from typing import Any

from rolegraph.rbac.graph import RoleGraph
from rolegraph.rbac.loading import LoadContext, LoadCoordinator, LoadEvent
from rolegraph.rbac.role import role_name

from .base import PermissionProvider, RoleDefinition, RoleProvider

logger = logging.getLogger(__name__)


def to_role_definition(item: Any) -> RoleDefinition:
    """
    Convert what a role provider returned into a ``RoleDefinition``.

    Accepts definitions, bare role names and role-like values exposing
    ``name`` and optionally ``parent`` (a name or another role-like value).
    """

    if isinstance(item, RoleDefinition):
        return item
    if isinstance(item, str):
        return RoleDefinition(name=item)

    parent = getattr(item, "parent", None)
    permissions = getattr(item, "permissions", None) or ()
    return RoleDefinition(
        name=role_name(item),
        parent=role_name(parent) if parent is not None else None,
        permissions=frozenset(role_name(p) for p in permissions),
    )


def register_definition(graph: RoleGraph, definition: RoleDefinition) -> None:
    graph.add_role(definition.name, definition.parent)
    for permission in sorted(definition.permissions):
        graph.attach_permission(definition.name, permission)


class RoleLoaderListener:
    """Fills the graph with the roles a role provider returns."""

    def __init__(self, provider: RoleProvider) -> None:
        self._provider = provider

    def attach(self, coordinator: LoadCoordinator) -> None:
        coordinator.attach(LoadEvent.LOAD_ROLES, self.on_load_roles)

    def on_load_roles(self, context: LoadContext) -> None:
        count = 0
        for item in self._provider.get_roles(list(context.roles)):
            register_definition(context.graph, to_role_definition(item))
            count += 1
        logger.info("RBAC: loaded %s role(s) for roles=%s", count, list(context.roles))


class PermissionLoaderListener:
    """
    Attaches grants from a permission provider to roles already in the graph.

    With ``scope_to_permission`` only grants of the permission being checked
    are fetched. That is only correct when the coordinator reloads before
    every check (``force_reload``); otherwise a later check for another
    permission would find nothing loaded, so scoping is ignored and every
    grant is fetched.
    """

    def __init__(self, provider: PermissionProvider, scope_to_permission: bool = False) -> None:
        self._provider = provider
        self._scope_to_permission = scope_to_permission

    def attach(self, coordinator: LoadCoordinator) -> None:
        coordinator.attach(LoadEvent.LOAD_PERMISSIONS, self.on_load_permissions)

    def on_load_permissions(self, context: LoadContext) -> None:
        graph = context.graph
        role_names = [role.name for role in graph.roles()]
        if not role_names:
            return

        permission = ""
        if self._scope_to_permission:
            if context.force_reload:
                permission = context.permission
            else:
                logger.warning("RBAC: scope_to_permission needs force_reload; loading every grant instead")

        count = 0
        for role, granted in self._provider.get_permissions(role_names, permission):
            if not graph.has_role(role):
                logger.debug("RBAC: skipping grant permission=%s for role=%s (not loaded)", granted, role)
                continue
            graph.attach_permission(role, granted)
            count += 1
        logger.info("RBAC: loaded %s grant(s) permission=%s", count, permission or "*")
