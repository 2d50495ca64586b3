"""
Role and permission provider backed by the SQLAlchemy models.

Only the rows a check needs are fetched: the requested roles, their
ancestors (so parent links can be registered) and their descendants
(whose permissions the requested roles inherit).
"""

from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.orm import Session

from rolegraph.models.security import Permission, Role

from .base import RoleDefinition

logger = logging.getLogger(__name__)


class SqlRoleProvider:
    def __init__(self, db: Session) -> None:
        self._db = db

    def get_roles(self, role_names: Sequence[str]) -> list[RoleDefinition]:
        if not role_names:
            rows = list(self._db.scalars(select(Role).order_by(Role.id)).all())
        else:
            rows = self._scoped_roles(role_names)

        by_id = {row.id: row for row in rows}
        names = {row.id: row.name for row in rows}

        def depth(row: Role) -> int:
            level = 0
            parent_id = row.parent_id
            while parent_id is not None and parent_id in by_id and level <= len(by_id):
                level += 1
                parent_id = by_id[parent_id].parent_id
            return level

        ordered = sorted(rows, key=lambda row: (depth(row), row.id))
        logger.debug("RBAC: sql provider fetched %s role(s) for roles=%s", len(ordered), list(role_names))
        return [
            RoleDefinition(
                name=row.name,
                parent=names.get(row.parent_id) if row.parent_id is not None else None,
            )
            for row in ordered
        ]

    def get_permissions(self, role_names: Sequence[str], permission: str = "") -> list[tuple[str, str]]:
        stmt = (
            select(Role.name, Permission.name)
            .select_from(Role)
            .join(Role.permissions)
            .order_by(Role.id, Permission.name)
        )
        if role_names:
            stmt = stmt.where(Role.name.in_(list(role_names)))
        if permission:
            stmt = stmt.where(Permission.name == permission)
        return [(role, granted) for role, granted in self._db.execute(stmt).all()]

    def _scoped_roles(self, role_names: Sequence[str]) -> list[Role]:
        requested = list(self._db.scalars(select(Role).where(Role.name.in_(list(role_names)))).all())
        found: dict[int, Role] = {row.id: row for row in requested}

        # Ancestors, one level per query.
        pending = {row.parent_id for row in requested if row.parent_id is not None} - found.keys()
        while pending:
            parents = list(self._db.scalars(select(Role).where(Role.id.in_(pending))).all())
            for row in parents:
                found[row.id] = row
            pending = {row.parent_id for row in parents if row.parent_id is not None} - found.keys()

        # Descendants, breadth-first.
        frontier = {row.id for row in requested}
        while frontier:
            children = list(self._db.scalars(select(Role).where(Role.parent_id.in_(frontier))).all())
            frontier = {row.id for row in children if row.id not in found}
            for row in children:
                found.setdefault(row.id, row)

        return list(found.values())
