"""
Flattening of role hierarchies.

Two orders are provided because their callers rely on different semantics:

- ``flatten_preorder`` feeds the permission check: every input role followed
  by its whole subtree, parent before children, without de-duplication
  across inputs.
- ``flatten_unique`` feeds the role-satisfaction check: role names, each
  emitted once, where the walk below an input role stops at the first role
  that was already emitted.

Both only follow parent -> child links and share ``iter_children``.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator
from typing import Any

from .graph import RoleGraph
from .role import Role, role_name

logger = logging.getLogger(__name__)


def iter_children(role: Role) -> Iterator[Role]:
    """Yield the direct children of ``role`` in insertion order."""
    yield from role.children


def iter_descendants(role: Role) -> Iterator[Role]:
    """
    Lazily walk the descendants of ``role`` depth-first, parent first.

    A child that is already on the current path (a cycle) is skipped, so the
    walk always terminates even on a malformed graph.
    """

    path: list[Role] = [role]
    on_path: set[str] = {role.name}
    stack: list[Iterator[Role]] = [iter_children(role)]

    while stack:
        child = next(stack[-1], None)
        if child is None:
            stack.pop()
            on_path.discard(path.pop().name)
            continue
        if child.name in on_path:
            logger.warning("RBAC: cycle detected below role=%s at child=%s", role.name, child.name)
            continue
        yield child
        path.append(child)
        on_path.add(child.name)
        stack.append(iter_children(child))


def flatten_preorder(roles: Iterable[Role]) -> Iterator[Role]:
    """
    Expand each role into itself followed by its subtree.

    Example:
        r -> [c1, c2], c1 -> [d1], c2 -> [d2]  yields  r, c1, d1, c2, d2
    """

    for role in roles:
        yield role
        yield from iter_descendants(role)


def flatten_unique(roles: Iterable[Any], graph: RoleGraph) -> list[str]:
    """
    Expand role references into a list of unique role names, self first.

    References unknown to ``graph`` are kept but not expanded. The walk below
    a role stops at the first descendant that was already emitted.
    """

    flattened: list[str] = []
    seen: set[str] = set()

    for ref in roles:
        name = role_name(ref)
        if name in seen:
            continue
        flattened.append(name)
        seen.add(name)

        if not graph.has_role(name):
            continue

        for descendant in iter_descendants(graph.get_role(name)):
            if descendant.name in seen:
                break
            flattened.append(descendant.name)
            seen.add(descendant.name)

    return flattened
