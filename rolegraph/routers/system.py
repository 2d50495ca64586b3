from __future__ import annotations

from fastapi import APIRouter, Depends

from rolegraph.schemas.security import UserOut
from rolegraph.security.dependencies import get_current_user

router = APIRouter(tags=["system"])


@router.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@router.get("/me", response_model=UserOut)
def me(user=Depends(get_current_user)) -> UserOut:
    return user
