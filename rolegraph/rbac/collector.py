"""
Diagnostics snapshot of an authorization session.

Meant to run after a decision cycle (e.g. at the end of a request) to show
which roles were considered and what the resolved graph looked like. The
collector only reads: it never triggers a load and never touches the graph.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from .service import AuthorizationService


@dataclass(frozen=True)
class RbacSnapshot:
    options: Mapping[str, Any]
    guards: tuple[Mapping[str, Any], ...] = ()
    roles: Mapping[str, str | None] = field(default_factory=dict)
    """Role name -> parent role name (None for root roles)."""

    permissions: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    """Permission -> roles holding it directly, in discovery order."""

    def to_dict(self) -> dict[str, object]:
        """Return a JSON-serializable dict."""
        return {
            "options": dict(self.options),
            "guards": [dict(guard) for guard in self.guards],
            "roles": dict(self.roles),
            "permissions": {name: list(roles) for name, roles in self.permissions.items()},
        }


class RbacCollector:
    name = "rbac"

    def collect(
        self,
        service: AuthorizationService,
        *,
        guards: Iterable[Mapping[str, Any]] | None = None,
        protection_policy: str | None = None,
    ) -> RbacSnapshot:
        options = {
            "current_roles": service.get_identity_roles(),
            "guest_role": service.guest_role,
            "force_reload": service.force_reload,
            "grant_policy": service.grant_policy.value,
            "protection_policy": protection_policy,
        }

        roles: dict[str, str | None] = {}
        permissions: dict[str, list[str]] = {}
        for role in service.graph.roles():
            roles[role.name] = role.parent.name if role.parent is not None else None
            for permission in sorted(role.permissions):
                holders = permissions.setdefault(permission, [])
                if role.name not in holders:
                    holders.append(role.name)

        return RbacSnapshot(
            options=options,
            guards=tuple(guards or ()),
            roles=roles,
            permissions={name: tuple(holders) for name, holders in permissions.items()},
        )
