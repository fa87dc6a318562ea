# consistify/routers/users.py
from fastapi import APIRouter, Depends

from consistify.core.auth import get_current_user
from consistify.core.deps import get_store
from consistify.schemas.user import UserResponse, UserSettingsUpdate
from consistify.services.users import update_settings

router = APIRouter(prefix="/users", tags=["users"])


@router.get("/profile", response_model=UserResponse)
async def get_profile(current_user = Depends(get_current_user)):
    return current_user


@router.patch("/settings", response_model=UserResponse)
async def patch_settings(
    settings_in: UserSettingsUpdate,
    store = Depends(get_store),
    current_user = Depends(get_current_user)
):
    return await update_settings(store, current_user, settings_in)
