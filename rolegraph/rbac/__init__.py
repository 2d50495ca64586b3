"""
Role-hierarchy permission resolution engine.

Pure Python, no framework dependency: a role graph, the two flattening
orders, the permission resolver, the lazy load coordinator and the
authorization service combining them. Framework wiring lives in
``rolegraph.security``.
"""

from .assertions import Assertion, PredicateAssertion, as_assertion
from .collector import RbacCollector, RbacSnapshot
from .errors import (
    HierarchyCycleError,
    InvalidAssertionError,
    InvalidIdentityError,
    MissingParentError,
    NotFoundError,
    RbacError,
)
from .graph import RoleGraph
from .identity import IdentityProvider, SimpleIdentity, StaticIdentityProvider, identity_role_names
from .loading import LoadContext, LoadCoordinator, LoadEvent
from .resolver import granted_by, is_granted
from .role import Role, role_name
from .service import AuthorizationService, GrantPolicy
from .traversal import flatten_preorder, flatten_unique, iter_children, iter_descendants

__all__ = [
    "Assertion",
    "AuthorizationService",
    "GrantPolicy",
    "HierarchyCycleError",
    "IdentityProvider",
    "InvalidAssertionError",
    "InvalidIdentityError",
    "LoadContext",
    "LoadCoordinator",
    "LoadEvent",
    "MissingParentError",
    "NotFoundError",
    "PredicateAssertion",
    "RbacCollector",
    "RbacError",
    "RbacSnapshot",
    "Role",
    "RoleGraph",
    "SimpleIdentity",
    "StaticIdentityProvider",
    "as_assertion",
    "flatten_preorder",
    "flatten_unique",
    "granted_by",
    "identity_role_names",
    "is_granted",
    "iter_children",
    "iter_descendants",
    "role_name",
]
