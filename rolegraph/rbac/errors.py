"""Error kinds raised by the RBAC engine."""

from __future__ import annotations


class RbacError(Exception):
    """Base class for every error raised by the engine."""


class NotFoundError(RbacError, LookupError):
    """Raised when a role name is not present in the role graph."""


class MissingParentError(RbacError, ValueError):
    """Raised when a role is added under a parent that does not exist."""


class HierarchyCycleError(RbacError, ValueError):
    """Raised when linking a role would make it its own ancestor."""


class InvalidIdentityError(RbacError, RuntimeError):
    """Raised when an identity does not expose its roles in a usable shape."""


class InvalidAssertionError(RbacError, TypeError):
    """Raised when an assertion is neither callable nor an Assertion."""
