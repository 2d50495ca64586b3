"""Tests for the in-memory role provider and role config parsing."""

import pytest
from pydantic import ValidationError

from rolegraph.providers.base import RoleDefinition
from rolegraph.providers.memory import InMemoryRoleProvider, RoleConfigError, load_roles_config, parse_role_config

CONFIG = {
    "superadmin": {"children": ["admin"]},
    "admin": {"children": ["editor"], "permissions": ["user.manage"]},
    "editor": {"permissions": ["article.edit"]},
    "member": {"parent": "editor", "permissions": ["article.read"]},
    "guest": None,
}


def test_parse_list_of_names():
    assert parse_role_config(["guest", "member"]) == [RoleDefinition("guest"), RoleDefinition("member")]


def test_parse_mapping_with_children_and_parent():
    definitions = {d.name: d for d in parse_role_config(CONFIG)}

    assert definitions["superadmin"].parent is None
    assert definitions["admin"].parent == "superadmin"
    assert definitions["editor"].parent == "admin"
    assert definitions["member"].parent == "editor"
    assert definitions["guest"] == RoleDefinition("guest")
    assert definitions["admin"].permissions == frozenset({"user.manage"})


def test_child_only_declared_through_children():
    definitions = parse_role_config({"role": {"children": ["child"], "permissions": ["perm1"]}})
    assert definitions == [
        RoleDefinition("role", permissions=frozenset({"perm1"})),
        RoleDefinition("child", parent="role"),
    ]


def test_child_with_two_parents_is_invalid():
    with pytest.raises(RoleConfigError, match="two parents"):
        parse_role_config({"a": {"children": ["c"]}, "b": {"children": ["c"]}})


def test_invalid_shapes():
    with pytest.raises(RoleConfigError):
        parse_role_config("admin")
    with pytest.raises(ValidationError):
        parse_role_config({"admin": {"permissions": "user.manage"}})


def test_unknown_parent_is_invalid():
    with pytest.raises(RoleConfigError, match="unknown parent"):
        InMemoryRoleProvider.from_mapping({"member": {"parent": "nobody"}})


def test_cycle_is_invalid():
    with pytest.raises(RoleConfigError, match="cycle"):
        InMemoryRoleProvider([RoleDefinition("a", parent="b"), RoleDefinition("b", parent="a")])


def test_duplicate_definitions_are_invalid():
    with pytest.raises(RoleConfigError, match="twice"):
        InMemoryRoleProvider([RoleDefinition("a"), RoleDefinition("a")])


def test_get_roles_all_parents_first():
    provider = InMemoryRoleProvider.from_mapping(CONFIG)
    names = [d.name for d in provider.get_roles([])]

    assert set(names) == set(CONFIG)
    for definition in provider.get_roles([]):
        if definition.parent is not None:
            assert names.index(definition.parent) < names.index(definition.name)


def test_get_roles_scoped_to_ancestors_and_descendants():
    provider = InMemoryRoleProvider.from_mapping(CONFIG)
    names = [d.name for d in provider.get_roles(["admin"])]

    assert names == ["superadmin", "admin", "editor", "member"]
    assert "guest" not in names


def test_get_roles_ignores_unknown_names():
    provider = InMemoryRoleProvider.from_mapping(CONFIG)
    assert [d.name for d in provider.get_roles(["ghost", "guest"])] == ["guest"]


def test_get_permissions_filters():
    provider = InMemoryRoleProvider.from_mapping(CONFIG)

    assert provider.get_permissions(["admin", "editor"]) == [
        ("admin", "user.manage"),
        ("editor", "article.edit"),
    ]
    assert provider.get_permissions(["admin", "editor"], "article.edit") == [("editor", "article.edit")]
    assert provider.get_permissions(["ghost"]) == []


def test_load_roles_config_from_yaml(tmp_path):
    path = tmp_path / "roles.yaml"
    path.write_text(
        "roles:\n"
        "  admin:\n"
        "    children: [member]\n"
        "    permissions: [user.manage]\n"
        "  member:\n"
        "    permissions: [post]\n",
        encoding="utf-8",
    )

    provider = load_roles_config(path)

    assert [d.name for d in provider.definitions] == ["admin", "member"]
    assert provider.definitions[1].parent == "admin"


def test_load_roles_config_requires_roles_key(tmp_path):
    path = tmp_path / "roles.yaml"
    path.write_text("other: {}\n", encoding="utf-8")
    with pytest.raises(RoleConfigError, match="roles"):
        load_roles_config(path)
