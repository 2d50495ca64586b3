from __future__ import annotations

from collections.abc import Callable


def require_roles(roles: list[str]) -> Callable:
    """
    Decorator-style API.

    Does not perform any check itself: it attaches metadata that the global
    ``enforce_security`` dependency reads after routing. The identity needs
    one of ``roles``, directly or through the role hierarchy.
    """

    def decorator(fn: Callable) -> Callable:
        existing = set(getattr(fn, "__security_required_roles__", set()))
        setattr(fn, "__security_required_roles__", existing | set(roles))
        return fn

    return decorator


def require_permission(permission: str) -> Callable:
    """
    Decorator-style API.

    Attaches a permission the identity must be granted; stacking the
    decorator requires every listed permission.
    """

    def decorator(fn: Callable) -> Callable:
        existing = tuple(getattr(fn, "__security_required_permissions__", ()))
        if permission not in existing:
            existing = existing + (permission,)
        setattr(fn, "__security_required_permissions__", existing)
        return fn

    return decorator
