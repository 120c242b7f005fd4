# auth.py — Authentication for Boardshare
# Features:
# - HS256 JWT bearer tokens with JTI
# - bcrypt password hashing
# - Brute force protection on login
# - Required and optional principal dependencies

import os
import uuid
import secrets
import logging
from datetime import datetime, timedelta, timezone
from typing import Optional, Dict, Any
from collections import defaultdict

import bcrypt
from jose import jwt, JWTError, ExpiredSignatureError
from fastapi import HTTPException, Depends
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from pydantic import BaseModel, EmailStr, field_validator
from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from database import get_db_session
from models import User

logger = logging.getLogger("boardshare.auth")

# ============================================================
# CONFIGURATION
# ============================================================

SECRET_KEY = os.getenv("JWT_SECRET_KEY", "")
if not SECRET_KEY:
    SECRET_KEY = secrets.token_urlsafe(64)
    logger.warning(
        "JWT_SECRET_KEY not set. Generated ephemeral key; "
        "tokens will not survive a restart."
    )

ALGORITHM = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES = int(os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", "60"))
MIN_PASSWORD_LENGTH = 8
MAX_LOGIN_ATTEMPTS = 5
LOGIN_LOCKOUT_MINUTES = 15

# Missing credentials are turned into 401 by the dependencies below
security = HTTPBearer(auto_error=False)

# In-memory brute force tracker (per process)
_login_attempts: Dict[str, list] = defaultdict(list)


# ============================================================
# PYDANTIC SCHEMAS
# ============================================================

class UserRegister(BaseModel):
    email: EmailStr
    password: str
    display_name: str = ""

    @field_validator("password")
    @classmethod
    def validate_password(cls, v: str) -> str:
        if len(v) < MIN_PASSWORD_LENGTH:
            raise ValueError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters")
        return v


class UserLogin(BaseModel):
    email: EmailStr
    password: str


class AccountRemoval(BaseModel):
    password: str


class TokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"
    expires_in: int
    user: Dict[str, Any]


class CurrentUser(BaseModel):
    id: str
    email: str
    display_name: str
    is_active: bool


# ============================================================
# AUTH SERVICE
# ============================================================

class AuthService:
    """Credential checks and token issuance"""

    @staticmethod
    def hash_password(password: str) -> str:
        salt = bcrypt.gensalt(rounds=12)
        return bcrypt.hashpw(password.encode("utf-8"), salt).decode("utf-8")

    @staticmethod
    def verify_password(password: str, password_hash: str) -> bool:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))

    @staticmethod
    def create_access_token(data: Dict[str, Any], expires_delta: Optional[timedelta] = None) -> str:
        to_encode = data.copy()
        now = datetime.now(timezone.utc)
        to_encode.update({
            "exp": now + (expires_delta or timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)),
            "iat": now,
            "type": "access",
            "jti": str(uuid.uuid4()),
        })
        return jwt.encode(to_encode, SECRET_KEY, algorithm=ALGORITHM)

    @staticmethod
    def verify_token(token: str) -> Dict[str, Any]:
        try:
            return jwt.decode(token, SECRET_KEY, algorithms=[ALGORITHM])
        except ExpiredSignatureError:
            raise HTTPException(status_code=401, detail="Token expired")
        except JWTError:
            raise HTTPException(status_code=401, detail="Invalid token")

    @staticmethod
    def _check_brute_force(email: str) -> None:
        cutoff = datetime.now(timezone.utc) - timedelta(minutes=LOGIN_LOCKOUT_MINUTES)
        _login_attempts[email] = [t for t in _login_attempts[email] if t > cutoff]
        if len(_login_attempts[email]) >= MAX_LOGIN_ATTEMPTS:
            raise HTTPException(
                status_code=429,
                detail=f"Too many login attempts. Try again in {LOGIN_LOCKOUT_MINUTES} minutes.",
            )

    @staticmethod
    def _record_failed_attempt(email: str) -> None:
        _login_attempts[email].append(datetime.now(timezone.utc))

    @staticmethod
    def _clear_attempts(email: str) -> None:
        _login_attempts.pop(email, None)

    @staticmethod
    async def register_user(user_data: UserRegister, db: AsyncSession) -> User:
        email = user_data.email.lower()
        stmt = select(User).where(User.email == email)
        result = await db.execute(stmt)
        if result.scalar_one_or_none():
            raise HTTPException(status_code=409, detail="User already exists")

        new_user = User(
            email=email,
            display_name=user_data.display_name or email.split("@")[0],
            password_hash=AuthService.hash_password(user_data.password),
            is_active=True,
        )
        db.add(new_user)
        try:
            await db.commit()
        except IntegrityError:
            await db.rollback()
            raise HTTPException(status_code=409, detail="User already exists")
        await db.refresh(new_user)
        logger.info(f"Registered user {new_user.id}")
        return new_user

    @staticmethod
    async def authenticate_user(email: str, password: str, db: AsyncSession) -> Optional[User]:
        email = email.lower()
        AuthService._check_brute_force(email)

        stmt = select(User).where(User.email == email)
        result = await db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user or not AuthService.verify_password(password, user.password_hash):
            AuthService._record_failed_attempt(email)
            return None

        if not user.is_active:
            return None

        AuthService._clear_attempts(email)
        user.last_login_at = datetime.now(timezone.utc)
        await db.commit()
        return user

    @staticmethod
    async def resolve_principal(token: str, db: AsyncSession) -> CurrentUser:
        payload = AuthService.verify_token(token)

        if payload.get("type") != "access":
            raise HTTPException(status_code=401, detail="Invalid token type")

        user_id = payload.get("sub")
        if not user_id:
            raise HTTPException(status_code=401, detail="Invalid token")

        stmt = select(User).where(User.id == user_id)
        result = await db.execute(stmt)
        user = result.scalar_one_or_none()

        if not user or not user.is_active:
            raise HTTPException(status_code=401, detail="User not found or inactive")

        return CurrentUser(
            id=user.id,
            email=user.email,
            display_name=user.display_name or "",
            is_active=user.is_active,
        )


# ============================================================
# FASTAPI DEPENDENCIES
# ============================================================

async def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db_session),
) -> CurrentUser:
    if credentials is None:
        raise HTTPException(
            status_code=401,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return await AuthService.resolve_principal(credentials.credentials, db)


async def get_optional_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: AsyncSession = Depends(get_db_session),
) -> Optional[CurrentUser]:
    """Principal if a usable bearer token was sent, otherwise anonymous (None)."""
    if credentials is None:
        return None
    try:
        return await AuthService.resolve_principal(credentials.credentials, db)
    except HTTPException as exc:
        logger.debug(f"Treating request as anonymous: {exc.detail}")
        return None


def principal_id(user: Optional[CurrentUser]) -> Optional[str]:
    return user.id if user else None
