# routers/auth.py — Registration, login and account removal
import logging

from fastapi import APIRouter, Depends, HTTPException, Response
from sqlalchemy.ext.asyncio import AsyncSession

from auth import (
    AuthService, UserRegister, UserLogin, AccountRemoval, TokenResponse,
    get_current_user, CurrentUser, ACCESS_TOKEN_EXPIRE_MINUTES,
)
from database import get_db_session
from models import User

router = APIRouter(prefix="/api/v1/auth", tags=["Authentication"])
logger = logging.getLogger("boardshare.auth")


def _build_token_response(user_obj: User) -> TokenResponse:
    """Build token response from a user ORM instance"""
    access_token = AuthService.create_access_token({
        "sub": user_obj.id,
        "email": user_obj.email,
    })
    return TokenResponse(
        access_token=access_token,
        expires_in=ACCESS_TOKEN_EXPIRE_MINUTES * 60,
        user={
            "id": user_obj.id,
            "email": user_obj.email,
            "display_name": user_obj.display_name or "",
        },
    )


@router.post("/register", response_model=TokenResponse, status_code=201)
async def register(
    user_data: UserRegister,
    db: AsyncSession = Depends(get_db_session),
):
    """Register a new user account"""
    user = await AuthService.register_user(user_data, db)
    return _build_token_response(user)


@router.post("/login", response_model=TokenResponse)
async def login(
    credentials: UserLogin,
    db: AsyncSession = Depends(get_db_session),
):
    """Authenticate and receive a bearer token"""
    user = await AuthService.authenticate_user(credentials.email, credentials.password, db)
    if not user:
        raise HTTPException(status_code=401, detail="Invalid credentials")
    return _build_token_response(user)


@router.get("/me")
async def get_current_user_info(user: CurrentUser = Depends(get_current_user)):
    """Get current authenticated user information"""
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.display_name,
        "is_active": user.is_active,
    }


@router.delete("/account", status_code=204)
async def remove_account(
    data: AccountRemoval,
    user: CurrentUser = Depends(get_current_user),
    db: AsyncSession = Depends(get_db_session),
):
    """Delete the caller and everything they own, after re-checking the password"""
    db_user = await db.get(User, user.id)
    if db_user is None:
        raise HTTPException(status_code=401, detail="User not found or inactive")

    if not AuthService.verify_password(data.password, db_user.password_hash):
        logger.warning(f"Account removal aborted for {user.id}: wrong password")
        raise HTTPException(status_code=403, detail="Incorrect password. Account removal aborted.")

    await db.delete(db_user)
    await db.commit()
    logger.info(f"Removed account {user.id} and all owned data")
    return Response(status_code=204)
