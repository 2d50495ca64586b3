"""Shapes exchanged between load listeners and role / permission sources."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any, Protocol


@dataclass(frozen=True)
class RoleDefinition:
    """Role as described by a source: name, parent link and direct permissions."""

    name: str
    parent: str | None = None
    permissions: frozenset[str] = frozenset()


class RoleProvider(Protocol):
    def get_roles(self, role_names: Sequence[str]) -> Iterable[RoleDefinition | str | Any]:
        """
        Return the roles needed to answer a check about ``role_names``.

        An empty ``role_names`` asks for every role. Parents should come
        before their children.
        """
        ...


class PermissionProvider(Protocol):
    def get_permissions(self, role_names: Sequence[str], permission: str = "") -> Iterable[tuple[str, str]]:
        """
        Return ``(role, permission)`` grants for ``role_names``.

        An empty ``permission`` asks for every permission of those roles.
        """
        ...
