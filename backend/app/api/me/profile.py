"""
Patient API — profile
GET   /api/v1/me/profile  — profile (falls back to the account email when none saved yet)
PATCH /api/v1/me/profile  — update name + phone
"""
from fastapi import APIRouter, Depends

from app.core.security import get_current_user
from app.schemas.account import CurrentUser, ProfileResponse, ProfileUpdate
from app.services.catalog_store import SqlAccountStore, get_account_store

router = APIRouter(prefix="/me/profile", tags=["Me — Profile"])


@router.get("", response_model=ProfileResponse)
async def get_profile(
    user: CurrentUser = Depends(get_current_user),
    accounts: SqlAccountStore = Depends(get_account_store),
):
    profile = await accounts.get_profile(user.id)
    if profile is None:
        return ProfileResponse(
            user_id=user.id, full_name=None, email=user.email, phone=None,
            created_at=None, updated_at=None,
        )
    return profile


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdate,
    user: CurrentUser = Depends(get_current_user),
    accounts: SqlAccountStore = Depends(get_account_store),
):
    return await accounts.upsert_profile(
        user.id,
        full_name=body.full_name,
        phone=body.phone,
        email=user.email,
    )
