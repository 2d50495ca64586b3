"""
Authorization decision service.

Public entry point of the engine. One instance backs one authorization
session (typically one request): it owns the load state, so roles and
permissions are fetched once per instance unless ``force_reload`` is set.

Usage:
    graph = RoleGraph()
    service = AuthorizationService(graph, identity_provider, guest_role="guest")
    RoleLoaderListener(provider).attach(service.loader)
    allowed = service.is_granted("article.edit")
"""

from __future__ import annotations

import enum
import logging
from collections.abc import Iterable
from typing import Any

from .assertions import as_assertion
from .graph import RoleGraph
from .identity import Identity, IdentityProvider, identity_role_names
from .loading import LoadCoordinator, LoadEvent, LoadListener
from .resolver import granted_by
from .role import role_name
from .traversal import flatten_preorder, flatten_unique

logger = logging.getLogger(__name__)


class GrantPolicy(str, enum.Enum):
    """
    How per-role results combine when an identity holds several roles.

    ANY: granted as soon as one role grants; the first role unknown to the
         graph denies the whole check, even if a later role would grant.
    ALL: every role must be known to the graph and must grant.
    """

    ANY = "any"
    ALL = "all"


class AuthorizationService:
    def __init__(
        self,
        graph: RoleGraph,
        identity_provider: IdentityProvider,
        guest_role: str = "",
        *,
        force_reload: bool = False,
        grant_policy: GrantPolicy | str = GrantPolicy.ANY,
    ) -> None:
        self._graph = graph
        self._identity_provider = identity_provider
        self._guest_role = guest_role or ""
        self._grant_policy = GrantPolicy(grant_policy)
        self._loader = LoadCoordinator(graph, force_reload=force_reload)

        if self._guest_role:
            self._graph.add_role(self._guest_role)

    @property
    def graph(self) -> RoleGraph:
        """The role graph as it is now; does not trigger a load."""
        return self._graph

    @property
    def loader(self) -> LoadCoordinator:
        return self._loader

    @property
    def guest_role(self) -> str:
        return self._guest_role

    @property
    def grant_policy(self) -> GrantPolicy:
        return self._grant_policy

    @property
    def loaded(self) -> bool:
        return self._loader.loaded

    @property
    def force_reload(self) -> bool:
        return self._loader.force_reload

    @force_reload.setter
    def force_reload(self, value: bool) -> None:
        self._loader.force_reload = value

    def attach(self, event: LoadEvent, listener: LoadListener) -> None:
        self._loader.attach(event, listener)

    def get_graph(self) -> RoleGraph:
        """Load the graph (if not done yet) and return it."""
        self._loader.load()
        return self._graph

    def get_identity_roles(self) -> list[str]:
        """Role names of the current identity, falling back to the guest role."""
        return self._identity_roles(self._identity_provider.get_identity())

    def is_granted(self, permission: str, assertion: Any = None) -> bool:
        """
        Check whether the current identity is granted ``permission``.

        ``assertion`` may be a callable ``identity -> bool`` or an object with
        ``evaluate(identity)``; a false result denies regardless of roles.
        """

        identity = self._identity_provider.get_identity()
        roles = self._identity_roles(identity)

        if not roles:
            logger.debug("RBAC: denied (no roles) permission=%s", permission)
            return False

        self._loader.load(roles, permission)

        if assertion is not None and not as_assertion(assertion).evaluate(identity):
            logger.debug("RBAC: denied by assertion roles=%s permission=%s", roles, permission)
            return False

        if self._grant_policy is GrantPolicy.ALL:
            return self._all_roles_granted(roles, permission)
        return self._any_role_granted(roles, permission)

    def does_identity_satisfy_roles(self, roles: Iterable[Any]) -> bool:
        """
        Return True if the identity holds, directly or through the hierarchy,
        at least one of ``roles``.
        """

        identity_roles = self.get_identity_roles()
        if not identity_roles:
            return False

        self._loader.load(identity_roles)

        if isinstance(roles, str):
            roles = [roles]
        required = {role_name(role) for role in roles}
        flattened = flatten_unique(identity_roles, self._graph)

        satisfied = not required.isdisjoint(flattened)
        logger.debug(
            "RBAC: roles %s identity_roles=%s flattened=%s required=%s",
            "satisfied" if satisfied else "not satisfied",
            identity_roles,
            flattened,
            sorted(required),
        )
        return satisfied

    def _identity_roles(self, identity: Identity | None) -> list[str]:
        if identity is None:
            return [self._guest_role] if self._guest_role else []
        return identity_role_names(identity)

    def _any_role_granted(self, roles: list[str], permission: str) -> bool:
        for name in roles:
            if not self._graph.has_role(name):
                logger.debug("RBAC: denied (unknown role=%s) permission=%s", name, permission)
                return False

            granting = granted_by(flatten_preorder([self._graph.get_role(name)]), permission)
            if granting is not None:
                logger.debug(
                    "RBAC: allowed role=%s permission=%s via=%s",
                    name,
                    permission,
                    granting.name,
                )
                return True

        logger.debug("RBAC: denied roles=%s permission=%s", roles, permission)
        return False

    def _all_roles_granted(self, roles: list[str], permission: str) -> bool:
        for name in roles:
            if not self._graph.has_role(name):
                logger.debug("RBAC: denied (unknown role=%s) permission=%s", name, permission)
                return False
            if granted_by(flatten_preorder([self._graph.get_role(name)]), permission) is None:
                logger.debug("RBAC: denied role=%s permission=%s (all roles required)", name, permission)
                return False

        logger.debug("RBAC: allowed roles=%s permission=%s (all roles)", roles, permission)
        return True
