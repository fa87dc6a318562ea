# consistify/routers/auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException, status

from consistify.core.auth import get_current_user
from consistify.core.deps import get_store
from consistify.core.identity import IdentityVerificationError, get_identity_verifier
from consistify.core.security import create_access_token, create_refresh_token
from consistify.models.user import User
from consistify.schemas.user import GoogleLogin, Token, UserResponse
from consistify.services.users import upsert_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/google", response_model=Token)
async def google_login(
    login_in: GoogleLogin,
    store = Depends(get_store),
    verifier = Depends(get_identity_verifier)
):
    try:
        identity = await verifier.verify(login_in.credential)
    except IdentityVerificationError as e:
        logger.warning("Google sign-in rejected: %s", e)
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Google credential",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user = await upsert_user(store, identity)

    return Token(
        access_token=create_access_token({"sub": str(user.id)}),
        refresh_token=create_refresh_token({"sub": str(user.id)}),
        token_type="bearer",
        user=user
    )


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user
