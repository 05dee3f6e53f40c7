from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel

from core.entities.user import User
from core.use_cases.admin_use_cases import AdminResolution, ensure_membership, list_members
from core.use_cases.token_use_cases import reconcile_balance
from infrastructure.db.sqlite import SQLiteAdminRepository, SQLiteUserRepository
from infrastructure.db.sqlite_tokens import SQLiteTokenRepository
from infrastructure.web.dependencies import (
    get_admin_repo,
    get_admin_resolution,
    get_token_repo,
    get_user_repo,
    require_admin,
)


router = APIRouter(prefix="/admin", tags=["admin"])


class AdminCheckResponse(BaseModel):
    is_admin: bool
    tier: Optional[str] = None

class MemberRequest(BaseModel):
    user_id: int

class MemberResponse(BaseModel):
    user_id: int
    created_at: str

class EnsureMemberResponse(BaseModel):
    user_id: int
    success: bool

class ReconcileResponse(BaseModel):
    user_id: int
    ledger_balance: int
    account_balance: Optional[int] = None
    drift: int
    repaired: bool


@router.get("/check", response_model=AdminCheckResponse)
def check(resolution: AdminResolution = Depends(get_admin_resolution)):
    return AdminCheckResponse(is_admin=resolution.granted, tier=resolution.tier)

@router.get("/members", response_model=List[MemberResponse])
async def members(
    admin: User = Depends(require_admin),
    repo: SQLiteAdminRepository = Depends(get_admin_repo),
):
    return [MemberResponse(user_id=m.user_id, created_at=m.created_at) for m in await list_members(repo)]

@router.post("/members", response_model=EnsureMemberResponse)
async def add_member(
    payload: MemberRequest,
    admin: User = Depends(require_admin),
    repo: SQLiteAdminRepository = Depends(get_admin_repo),
    users: SQLiteUserRepository = Depends(get_user_repo),
):
    if users.get_by_id(payload.user_id) is None:
        raise HTTPException(status_code=404, detail="User not found")
    success = await ensure_membership(repo, payload.user_id)
    return EnsureMemberResponse(user_id=payload.user_id, success=success)

@router.post("/reconcile/{user_id}", response_model=ReconcileResponse)
async def reconcile(
    user_id: int,
    apply: bool = False,
    admin: User = Depends(require_admin),
    repo: SQLiteTokenRepository = Depends(get_token_repo),
):
    try:
        result = await reconcile_balance(repo, user_id, apply=apply)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return ReconcileResponse(**vars(result))
