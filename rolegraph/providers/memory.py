"""
In-memory role provider built from configuration.

Accepted shapes (the same ones inside a YAML ``roles:`` section):

    roles: [guest, member]              # plain role names

    roles:
      admin:
        children: [editor]
        permissions: [user.manage]
      editor:
        parent: admin                   # same link expressed from the child
        permissions: [article.edit]
      guest:                            # a role with nothing attached
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping, Sequence
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field

from .base import RoleDefinition

logger = logging.getLogger(__name__)


class RoleConfigError(ValueError):
    """Raised when a role configuration is invalid."""


class RoleConfigModel(BaseModel):
    parent: str | None = None
    children: list[str] = Field(default_factory=list)
    permissions: list[str] = Field(default_factory=list)


class InMemoryRoleProvider:
    """
    Role and permission provider over a fixed set of definitions.

    Scoped lookups return the requested roles plus their ancestors and
    descendants, always parents before children.
    """

    def __init__(self, definitions: Iterable[RoleDefinition]) -> None:
        by_name: dict[str, RoleDefinition] = {}
        for definition in definitions:
            if definition.name in by_name:
                raise RoleConfigError(f"role {definition.name!r} defined twice")
            by_name[definition.name] = definition

        for definition in by_name.values():
            if definition.parent is not None and definition.parent not in by_name:
                raise RoleConfigError(f"role {definition.name!r} has unknown parent {definition.parent!r}")

        self._definitions = by_name
        self._children: dict[str, list[str]] = {name: [] for name in by_name}
        for definition in by_name.values():
            if definition.parent is not None:
                self._children[definition.parent].append(definition.name)

        self._depth = {name: self._compute_depth(name) for name in by_name}
        self._ordered = sorted(by_name, key=lambda name: self._depth[name])

    @classmethod
    def from_mapping(cls, config: Mapping[str, Any] | Sequence[str] | None) -> InMemoryRoleProvider:
        return cls(parse_role_config(config))

    @property
    def definitions(self) -> tuple[RoleDefinition, ...]:
        return tuple(self._definitions[name] for name in self._ordered)

    def get_roles(self, role_names: Sequence[str]) -> list[RoleDefinition]:
        if not role_names:
            return list(self.definitions)

        scope: set[str] = set()
        for name in role_names:
            if name not in self._definitions:
                logger.debug("RBAC: role provider has no role=%s", name)
                continue
            scope.update(self._ancestors(name))
            scope.update(self._descendants(name))

        return [self._definitions[name] for name in self._ordered if name in scope]

    def get_permissions(self, role_names: Sequence[str], permission: str = "") -> list[tuple[str, str]]:
        names = role_names or self._ordered
        grants: list[tuple[str, str]] = []
        for name in names:
            definition = self._definitions.get(name)
            if definition is None:
                continue
            for granted in sorted(definition.permissions):
                if not permission or granted == permission:
                    grants.append((name, granted))
        return grants

    def _compute_depth(self, name: str) -> int:
        depth = 0
        seen = {name}
        parent = self._definitions[name].parent
        while parent is not None:
            if parent in seen:
                raise RoleConfigError(f"cycle detected in role hierarchy at {parent!r}")
            seen.add(parent)
            depth += 1
            parent = self._definitions[parent].parent
        return depth

    def _ancestors(self, name: str) -> list[str]:
        chain = [name]
        parent = self._definitions[name].parent
        while parent is not None:
            chain.append(parent)
            parent = self._definitions[parent].parent
        return chain

    def _descendants(self, name: str) -> list[str]:
        found: list[str] = []
        queue = list(self._children[name])
        while queue:
            child = queue.pop(0)
            found.append(child)
            queue.extend(self._children[child])
        return found


def parse_role_config(config: Mapping[str, Any] | Sequence[str] | None) -> list[RoleDefinition]:
    """Turn a ``roles`` configuration value into role definitions."""

    if not config:
        return []

    if isinstance(config, str) or not isinstance(config, (Mapping, Sequence)):
        raise RoleConfigError("roles must be a list of names or a mapping")

    if not isinstance(config, Mapping):
        names = [str(name) for name in config]
        return [RoleDefinition(name=name) for name in names]

    order: list[str] = []
    parents: dict[str, str | None] = {}
    permissions: dict[str, set[str]] = {}

    def declare(name: str) -> None:
        if name not in parents:
            order.append(name)
            parents[name] = None
            permissions[name] = set()

    def link(child: str, parent: str) -> None:
        if child == parent:
            raise RoleConfigError(f"role {child!r} cannot be its own parent")
        current = parents.get(child)
        if current is not None and current != parent:
            raise RoleConfigError(f"role {child!r} has two parents: {current!r} and {parent!r}")
        parents[child] = parent

    for raw_name, raw_value in config.items():
        name = str(raw_name)
        model = RoleConfigModel.model_validate(raw_value or {})
        declare(name)
        permissions[name].update(str(p) for p in model.permissions)
        if model.parent:
            link(name, model.parent)
        for child in model.children:
            declare(str(child))
            link(str(child), name)

    return [
        RoleDefinition(name=name, parent=parents[name], permissions=frozenset(permissions[name]))
        for name in order
    ]


def load_roles_config(path: Path) -> InMemoryRoleProvider:
    """Load a YAML file with a top-level ``roles`` key into a provider."""

    raw_text = path.read_text(encoding="utf-8")
    raw = yaml.safe_load(raw_text) or {}

    if not isinstance(raw, dict) or "roles" not in raw:
        raise RoleConfigError(f"Missing top-level 'roles' key in config: {path}")

    return InMemoryRoleProvider.from_mapping(raw["roles"])
