from fastapi import APIRouter, Depends, UploadFile, File
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.config import settings
from app.schemas.common import ApiResponse, UserSummary, PathId
from app.schemas.user_schema import UserProfileUpdate, UserOut, AvatarOut
from app.services.user_service import UserService
from app.db.session import get_db
from app.utils.file_upload import save_upload_file, delete_file
from app.utils.exceptions import ServiceError, InternalError

logger = logging.getLogger(__name__)

router = APIRouter()

AVATARS_DIR = "avatars"

@router.get("/{user_id}", response_model=ApiResponse[UserSummary])
async def get_user_profile(
    user_id: PathId,
    db: AsyncSession = Depends(get_db)
):
    """Public profile of a user"""
    try:
        user_service = UserService(db)
        profile = await user_service.get_public_profile(user_id)
        return ApiResponse(data=profile)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Get profile error: {e}")
        raise InternalError("Failed to get user profile", str(e))

@router.put("/{user_id}", response_model=ApiResponse[UserOut])
async def update_profile(
    user_id: PathId,
    profile: UserProfileUpdate,
    db: AsyncSession = Depends(get_db)
):
    """Update name, surnames, phone and optionally the password"""
    try:
        user_service = UserService(db)
        user = await user_service.update_profile(user_id, profile)
        return ApiResponse(message="Profile updated", data=UserOut.model_validate(user))
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Update profile error: {e}")
        raise InternalError("Failed to update profile", str(e))

@router.put("/{user_id}/avatar", response_model=ApiResponse[AvatarOut])
async def update_avatar(
    user_id: PathId,
    avatar: UploadFile = File(...),
    db: AsyncSession = Depends(get_db)
):
    """Replace the profile picture; the previous file is removed"""
    user_service = UserService(db)
    await user_service.get_user_or_404(user_id)

    avatar_url = await save_upload_file(avatar, AVATARS_DIR, settings.MAX_AVATAR_SIZE)
    try:
        previous = await user_service.update_avatar(user_id, avatar_url)
    except ServiceError:
        delete_file(avatar_url)
        raise
    except Exception as e:
        delete_file(avatar_url)
        logger.error(f"Update avatar error: {e}")
        raise InternalError("Failed to update avatar", str(e))

    if previous:
        delete_file(previous)

    return ApiResponse(message="Avatar updated", data=AvatarOut(avatar_url=avatar_url))
