import logging
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from taskhub.core.database import get_db
from taskhub.core.errors import Forbidden, NotFound
from taskhub.models.user import User
from taskhub.routers.auth import get_current_principal
from taskhub.schemas.user import Principal, UserResponse, UserSummary, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/users",
    tags=["users"],
    responses={404: {"description": "Not found"}},
)

@router.get("", response_model=List[UserSummary])
async def get_users(
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """All users, for picking an assignee"""
    result = await db.execute(select(User).order_by(User.name))
    return result.scalars().all()

@router.get("/{user_id}", response_model=UserResponse)
async def get_user(
    user_id: str,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    return user

@router.put("/{user_id}", response_model=UserResponse)
async def update_user(
    user_id: str,
    update_data: UserUpdate,
    principal: Principal = Depends(get_current_principal),
    db: AsyncSession = Depends(get_db)
):
    """Update own profile (name and/or profile picture)"""
    if user_id != principal.id:
        raise Forbidden("Not authorized to update this user")

    user = await db.get(User, user_id)
    if user is None:
        raise NotFound("User not found")

    if update_data.name and update_data.name.strip():
        user.name = update_data.name.strip()
    if update_data.profile_picture is not None:
        user.profile_picture = update_data.profile_picture

    await db.commit()
    await db.refresh(user)

    logger.info("User %s updated their profile", user.id)
    return user
