"""Identity capabilities consumed by the authorization service."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from typing import Any, Protocol

from .errors import InvalidIdentityError
from .role import role_name


class Identity(Protocol):
    """Anything exposing ``roles``: role names or role-bearing values."""

    @property
    def roles(self) -> Iterable[Any]: ...


class IdentityProvider(Protocol):
    def get_identity(self) -> Identity | None: ...


@dataclass(frozen=True)
class SimpleIdentity:
    roles: tuple[Any, ...] = ()


class StaticIdentityProvider:
    """Identity provider returning a fixed identity (or none, for guests)."""

    def __init__(self, identity: Identity | None = None) -> None:
        self.identity = identity

    def get_identity(self) -> Identity | None:
        return self.identity


_MISSING = object()


def identity_role_names(identity: Any) -> list[str]:
    """
    Return the role names claimed by ``identity``, in order.

    ``roles`` may be any iterable (list, generator, ORM collection); a single
    string counts as one role. Hierarchy is not expanded here.
    """

    roles = getattr(identity, "roles", _MISSING)
    if roles is _MISSING or roles is None:
        raise InvalidIdentityError(f"identity {type(identity).__name__!r} does not expose roles")

    if isinstance(roles, str):
        return [roles]

    try:
        items = list(roles)
    except TypeError as exc:
        raise InvalidIdentityError(
            f"identity {type(identity).__name__!r} roles must be iterable, {type(roles).__name__!r} given"
        ) from exc

    try:
        return [role_name(item) for item in items]
    except TypeError as exc:
        raise InvalidIdentityError(f"identity {type(identity).__name__!r} exposes an invalid role: {exc}") from exc
