"""Tests for the role / permission loader listeners."""

from unittest.mock import MagicMock

import pytest

from rolegraph.providers.base import RoleDefinition
from rolegraph.providers.listeners import PermissionLoaderListener, RoleLoaderListener, to_role_definition
from rolegraph.providers.memory import InMemoryRoleProvider
from rolegraph.rbac.errors import MissingParentError
from rolegraph.rbac.graph import RoleGraph
from rolegraph.rbac.identity import SimpleIdentity, StaticIdentityProvider
from rolegraph.rbac.loading import LoadContext, LoadCoordinator, LoadEvent
from rolegraph.rbac.role import Role
from rolegraph.rbac.service import AuthorizationService


class SimpleRole:
    def __init__(self, name, parent=None):
        self.name = name
        self.parent = parent


def _load_roles(items, *, create_missing_roles=True) -> RoleGraph:
    provider = MagicMock()
    provider.get_roles.return_value = items
    graph = RoleGraph(create_missing_roles=create_missing_roles)

    RoleLoaderListener(provider).on_load_roles(LoadContext(graph=graph))

    provider.get_roles.assert_called_once_with([])
    return graph


def test_conversion_from_role_like_values():
    graph = _load_roles([SimpleRole("role1", "parent1"), SimpleRole("role2", "parent2")])

    for name in ("role1", "role2"):
        assert graph.has_role(name)
        assert isinstance(graph.get_role(name), Role)
    assert graph.get_role("role1").parent.name == "parent1"


def test_conversion_from_strings():
    graph = _load_roles(["role1", "role2"])
    assert [r.name for r in graph.roles()] == ["role1", "role2"]


def test_conversion_from_mapping_with_children():
    provider = InMemoryRoleProvider.from_mapping({"role": {"children": ["child"], "permissions": ["perm1"]}})
    graph = RoleGraph()

    RoleLoaderListener(provider).on_load_roles(LoadContext(graph=graph, roles=("role",)))

    assert graph.get_role("role").has_permission("perm1")
    assert graph.get_role("child").parent is graph.get_role("role")


def test_missing_parent_propagates_when_not_creating_roles():
    with pytest.raises(MissingParentError):
        _load_roles([RoleDefinition("child", parent="absent")], create_missing_roles=False)


def test_to_role_definition_passthrough_and_role_objects():
    definition = RoleDefinition("a")
    assert to_role_definition(definition) is definition

    parent = Role("admin")
    child = Role("editor")
    parent.add_child(child)
    child.add_permission("article.edit")
    assert to_role_definition(child) == RoleDefinition(
        "editor", parent="admin", permissions=frozenset({"article.edit"})
    )


def test_attach_registers_on_right_events():
    coordinator = LoadCoordinator(RoleGraph())
    role_listener = RoleLoaderListener(MagicMock())
    permission_listener = PermissionLoaderListener(MagicMock())

    role_listener.attach(coordinator)
    permission_listener.attach(coordinator)

    assert coordinator.listeners(LoadEvent.LOAD_ROLES) == (role_listener.on_load_roles,)
    assert coordinator.listeners(LoadEvent.LOAD_PERMISSIONS) == (permission_listener.on_load_permissions,)


def test_permission_listener_asks_for_graph_roles():
    graph = RoleGraph()
    graph.add_role("admin")
    graph.add_role("editor", "admin")
    provider = MagicMock()
    provider.get_permissions.return_value = [("editor", "article.edit"), ("ghost", "x")]

    PermissionLoaderListener(provider).on_load_permissions(
        LoadContext(graph=graph, roles=("admin",), permission="article.edit")
    )

    provider.get_permissions.assert_called_once_with(["admin", "editor"], "")
    assert graph.get_role("editor").permissions == frozenset({"article.edit"})
    assert not graph.has_role("ghost")


def test_permission_listener_scoped_to_permission():
    graph = RoleGraph()
    graph.add_role("admin")
    provider = MagicMock()
    provider.get_permissions.return_value = []

    PermissionLoaderListener(provider, scope_to_permission=True).on_load_permissions(
        LoadContext(graph=graph, roles=("admin",), permission="article.edit", force_reload=True)
    )

    provider.get_permissions.assert_called_once_with(["admin"], "article.edit")


def test_permission_listener_ignores_scope_without_force_reload():
    graph = RoleGraph()
    graph.add_role("admin")
    provider = MagicMock()
    provider.get_permissions.return_value = []

    PermissionLoaderListener(provider, scope_to_permission=True).on_load_permissions(
        LoadContext(graph=graph, roles=("admin",), permission="article.edit")
    )

    provider.get_permissions.assert_called_once_with(["admin"], "")


def test_scoped_listener_keeps_later_checks_granted():
    roles = MagicMock()
    roles.get_roles.return_value = ["editor"]
    grants = InMemoryRoleProvider.from_mapping({"editor": {"permissions": ["p1", "p2"]}})
    service = AuthorizationService(RoleGraph(), StaticIdentityProvider(SimpleIdentity(roles=("editor",))))
    RoleLoaderListener(roles).attach(service.loader)
    PermissionLoaderListener(grants, scope_to_permission=True).attach(service.loader)

    assert service.is_granted("p1") is True
    assert service.is_granted("p2") is True

    service.force_reload = True
    assert service.is_granted("p1") is True
    assert service.is_granted("p2") is True


def test_permission_listener_skips_empty_graph():
    provider = MagicMock()
    PermissionLoaderListener(provider).on_load_permissions(LoadContext(graph=RoleGraph()))
    provider.get_permissions.assert_not_called()


def test_in_memory_provider_end_to_end():
    provider = InMemoryRoleProvider.from_mapping(
        {
            "superadmin": {"children": ["admin"]},
            "admin": {"permissions": ["user.manage"]},
            "guest": {"permissions": ["view"]},
        }
    )
    service = AuthorizationService(RoleGraph(), StaticIdentityProvider(SimpleIdentity(roles=("superadmin",))))
    RoleLoaderListener(provider).attach(service.loader)

    assert service.is_granted("user.manage") is True
    assert service.does_identity_satisfy_roles(["admin"]) is True
    # Only the identity's part of the hierarchy was loaded.
    assert not service.graph.has_role("guest")
