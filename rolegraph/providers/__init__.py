"""
Role and permission sources plugged into the load phases of the engine.

``InMemoryRoleProvider`` serves configuration (mapping or YAML);
``SqlRoleProvider`` serves the ORM tables. Both are wired to a service with
``RoleLoaderListener`` / ``PermissionLoaderListener``.
"""

from .base import PermissionProvider, RoleDefinition, RoleProvider
from .listeners import PermissionLoaderListener, RoleLoaderListener, to_role_definition
from .memory import InMemoryRoleProvider, RoleConfigError, load_roles_config, parse_role_config

__all__ = [
    "InMemoryRoleProvider",
    "PermissionLoaderListener",
    "PermissionProvider",
    "RoleConfigError",
    "RoleDefinition",
    "RoleLoaderListener",
    "RoleProvider",
    "load_roles_config",
    "parse_role_config",
    "to_role_definition",
]
