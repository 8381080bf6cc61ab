from fastapi import APIRouter, Depends, HTTPException, status, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.exc import IntegrityError
from sqlalchemy import select
from config import get_db
from models import UserProfile, UserRole
from utils.response_helpers import safe_model_validate
from .schemas import UserResponse, UserProfileUpdate
from .helpers import auth_helpers
import logging

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])

security = HTTPBearer()

VALID_ROLES = {role.value for role in UserRole}


async def _get_or_create_profile(db: AsyncSession, token_user) -> UserProfile:
    result = await db.execute(
        select(UserProfile).where(UserProfile.user_id == token_user.id)
    )
    user_profile = result.scalar_one_or_none()
    if user_profile:
        return user_profile

    role = token_user.role if token_user.role in VALID_ROLES else UserRole.USER.value
    user_profile = UserProfile(user_id=token_user.id, email=token_user.email, role=role)
    db.add(user_profile)
    try:
        await db.commit()
    except IntegrityError:
        # Another request created it first
        await db.rollback()
        result = await db.execute(
            select(UserProfile).where(UserProfile.user_id == token_user.id)
        )
        return result.scalar_one()

    logger.info(f"Created user profile for {token_user.id} with role {role}")
    return user_profile


async def get_current_user(
    request: Request,
    credentials: HTTPAuthorizationCredentials = Depends(security),
    db: AsyncSession = Depends(get_db)
):
    """Get current user from JWT token; the stored profile is the source of truth for the role"""
    token_user = auth_helpers.verify_token(credentials.credentials)
    user_profile = await _get_or_create_profile(db, token_user)

    if not user_profile.is_active:
        logger.warning(f"Inactive user {token_user.id} attempted access")
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Account is deactivated"
        )

    current_user = {
        "user_id": token_user.id,
        "email": token_user.email,
        "role": user_profile.role,
        "profile_id": user_profile.id,
    }

    request.state.current_user = current_user
    return current_user


@router.get("/me", response_model=UserResponse)
async def get_me(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Get the current user's profile"""
    result = await db.execute(
        select(UserProfile).where(UserProfile.user_id == current_user["user_id"])
    )
    return safe_model_validate(UserResponse, result.scalar_one())


@router.put("/me", response_model=UserResponse)
async def update_me(
    profile_data: UserProfileUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db)
):
    """Update display name / phone on the current user's profile"""
    try:
        result = await db.execute(
            select(UserProfile).where(UserProfile.user_id == current_user["user_id"])
        )
        user_profile = result.scalar_one()

        for field, value in profile_data.model_dump(exclude_unset=True).items():
            setattr(user_profile, field, value)

        await db.commit()
        await db.refresh(user_profile)
        return safe_model_validate(UserResponse, user_profile)

    except Exception as e:
        await db.rollback()
        logger.error(f"Profile update failed: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Failed to update profile"
        )
