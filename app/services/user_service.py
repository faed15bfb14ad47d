from typing import Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select
import logging

from app.models.user import User
from app.schemas.common import UserSummary
from app.schemas.user_schema import UserProfileUpdate
from app.services.auth_service import get_password_hash
from app.utils.exceptions import NotFound

logger = logging.getLogger(__name__)

class UserService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_user(self, user_id: int) -> Optional[User]:
        """Get a user by ID"""
        stmt = select(User).where(User.id == user_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_user_or_404(self, user_id: int) -> User:
        user = await self.get_user(user_id)
        if user is None:
            raise NotFound("User not found")
        return user

    async def get_public_profile(self, user_id: int) -> UserSummary:
        """Public fields embedded next to posts and comments"""
        user = await self.get_user_or_404(user_id)
        return UserSummary.model_validate(user)

    async def update_profile(self, user_id: int, update: UserProfileUpdate) -> User:
        user = await self.get_user_or_404(user_id)

        user.first_name = update.first_name
        user.paternal_surname = update.paternal_surname
        user.maternal_surname = update.maternal_surname
        user.phone = update.phone
        if update.password is not None:
            user.hashed_password = get_password_hash(update.password)

        await self.db.commit()
        await self.db.refresh(user)

        logger.info(f"Updated profile of user {user_id}")

        return user

    async def update_avatar(self, user_id: int, avatar_url: str) -> Optional[str]:
        """Store the new avatar URL and return the one it replaced"""
        user = await self.get_user_or_404(user_id)

        previous = user.avatar_url
        user.avatar_url = avatar_url

        await self.db.commit()

        logger.info(f"Updated avatar of user {user_id}")

        return previous
