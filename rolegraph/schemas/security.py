from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class RoleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    parent_id: int | None = None


class UserOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    username: str
    email: str
    is_active: bool
    roles: list[RoleOut]


class RbacSnapshotOut(BaseModel):
    options: dict[str, Any]
    guards: list[dict[str, Any]]
    roles: dict[str, str | None]
    permissions: dict[str, list[str]]
