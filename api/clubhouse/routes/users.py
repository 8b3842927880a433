"""Profile routes for the authenticated member."""

from datetime import UTC, datetime

from fastapi import APIRouter, Depends, HTTPException, status

from clubhouse.core.dependencies import Caller, get_current_user
from clubhouse.core.store import KeyValueStore, get_store
from clubhouse.models.member import public_profile, user_key
from clubhouse.schemas import ProfileOut, ProfileUpdate

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/me", response_model=ProfileOut)
async def get_profile(caller: Caller = Depends(get_current_user), store: KeyValueStore = Depends(get_store)):
    user = await store.get(*user_key(caller.user_id))
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return public_profile(user)


@router.patch("/me", response_model=ProfileOut)
async def update_profile(
    body: ProfileUpdate,
    caller: Caller = Depends(get_current_user),
    store: KeyValueStore = Depends(get_store),
):
    updates = body.model_dump(exclude_none=True, mode="json")
    updates["updated_at"] = datetime.now(UTC).isoformat()

    user = await store.update(*user_key(caller.user_id), updates)
    if user is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="User not found")
    return public_profile(user)
