import logging
from typing import Annotated, Optional

from fastapi import APIRouter, Depends, status
from fastapi.security import OAuth2PasswordBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.database import get_db
from taskhub.core.errors import Conflict, Unauthenticated, ValidationError
from taskhub.core.security import create_session_token, get_password_hash, validate, verify_password
from taskhub.models.user import User
from taskhub.schemas.user import (
    AuthResponse,
    MessageResponse,
    Principal,
    UserLogin,
    UserRegister,
    UserResponse,
    UserSummary,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])

oauth2_scheme = OAuth2PasswordBearer(tokenUrl="auth/login", auto_error=False)

async def get_current_principal(token: Annotated[Optional[str], Depends(oauth2_scheme)]) -> Principal:
    """Session guard for protected routes: the bearer token must validate."""
    return validate(token)

def _auth_response(user: User) -> AuthResponse:
    return AuthResponse(token=create_session_token(user), user=UserSummary.model_validate(user))

@router.post("/register", response_model=AuthResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserRegister, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == user_in.email))
    if result.scalar_one_or_none():
        raise Conflict("User already exists")

    new_user = User(
        name=user_in.name,
        email=user_in.email,
        hashed_password=get_password_hash(user_in.password),
    )
    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)

    logger.info("Registered user %s", new_user.id)
    return _auth_response(new_user)

@router.post("/login", response_model=AuthResponse)
async def login(credentials: UserLogin, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == credentials.email))
    user = result.scalar_one_or_none()

    if not user or not verify_password(credentials.password, user.hashed_password):
        raise ValidationError("Invalid credentials")

    return _auth_response(user)

@router.get("/me", response_model=UserResponse)
async def get_current_user_info(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Get current user profile information"""
    user = await db.get(User, principal.id)
    if user is None:
        # Token outlived its account
        raise Unauthenticated("User no longer exists")
    return user

@router.post("/logout", response_model=MessageResponse)
async def logout():
    """Logout is a client-side token discard; nothing is revoked here."""
    return {"message": "Logged out successfully"}
