"""
Role node of the authorization hierarchy.

A role owns its children: permissions attached to a child are inherited by
every ancestor. Nothing flows the other way, a child never sees the
permissions of its parent.
"""

from __future__ import annotations

from typing import Any


class Role:
    """Named node holding direct permissions and an ordered list of children."""

    def __init__(self, name: str) -> None:
        self._name = name
        self._parent: Role | None = None
        self._children: list[Role] = []
        self._permissions: set[str] = set()

    def __repr__(self) -> str:
        return f"Role({self._name!r})"

    @property
    def name(self) -> str:
        return self._name

    @property
    def parent(self) -> Role | None:
        return self._parent

    @property
    def children(self) -> tuple[Role, ...]:
        return tuple(self._children)

    @property
    def permissions(self) -> frozenset[str]:
        """Permissions attached directly to this role (not inherited ones)."""
        return frozenset(self._permissions)

    @property
    def is_root(self) -> bool:
        return self._parent is None

    def add_child(self, child: Role) -> None:
        """
        Attach ``child`` below this role.

        A role has at most one parent, so a child that already hangs below
        another role is moved.
        """
        if child._parent is not None and child._parent is not self:
            child._parent._children.remove(child)
        if child not in self._children:
            self._children.append(child)
        child._parent = self

    def add_permission(self, permission: str) -> None:
        self._permissions.add(str(permission))

    def has_permission(self, permission: str) -> bool:
        return permission in self._permissions


def role_name(ref: Any) -> str:
    """
    Normalize a role reference to a plain role name.

    Accepts a bare string, a ``Role`` or any object exposing a ``name``
    attribute (e.g. an ORM role row).
    """

    if isinstance(ref, str):
        return ref
    name = getattr(ref, "name", None)
    if isinstance(name, str):
        return name
    raise TypeError(f"cannot resolve a role name from {type(ref).__name__}")
