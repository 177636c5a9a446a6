"""
Patient API — saved hospitals
GET    /api/v1/me/favorites                 — saved hospitals, oldest first
POST   /api/v1/me/favorites/{hospital_id}   — save (idempotent)
DELETE /api/v1/me/favorites/{hospital_id}   — unsave
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Response, status

from app.core.security import get_current_user
from app.schemas.account import CurrentUser, FavoriteBody, FavoriteResponse
from app.services.browse_state import BrowseState, ToggleFavorite, reduce
from app.services.catalog_store import SqlAccountStore, get_account_store

router = APIRouter(prefix="/me/favorites", tags=["Me — Favorites"])


@router.get("", response_model=list[FavoriteResponse])
async def list_favorites(
    user: CurrentUser = Depends(get_current_user),
    accounts: SqlAccountStore = Depends(get_account_store),
):
    return await accounts.list_favorites(user.id)


@router.post("/{hospital_id}", status_code=status.HTTP_201_CREATED)
async def add_favorite(
    hospital_id: str,
    body: Optional[FavoriteBody] = Body(default=None),
    user: CurrentUser = Depends(get_current_user),
    accounts: SqlAccountStore = Depends(get_account_store),
):
    state = BrowseState(favorites=tuple(await accounts.favorite_ids(user.id)))
    if hospital_id not in state.favorites:
        state = reduce(state, ToggleFavorite(hospital_id))
        await accounts.add_favorite(
            user.id, hospital_id,
            label=body.label if body else None,
            notes=body.notes if body else None,
        )
    return {"favorites": list(state.favorites)}


@router.delete("/{hospital_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_favorite(
    hospital_id: str,
    user: CurrentUser = Depends(get_current_user),
    accounts: SqlAccountStore = Depends(get_account_store),
):
    await accounts.remove_favorite(user.id, hospital_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)
