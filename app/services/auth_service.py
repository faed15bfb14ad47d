from typing import Optional
from passlib.context import CryptContext
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, or_
from sqlalchemy.exc import IntegrityError
import logging

from app.schemas.user_schema import UserCreate
from app.models.user import User
from app.utils.exceptions import Conflict, AuthenticationFailed

logger = logging.getLogger(__name__)

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")

def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash"""
    return pwd_context.verify(plain_password, hashed_password)

def get_password_hash(password: str) -> str:
    """Hash a password"""
    return pwd_context.hash(password)

class AuthService:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def create_user(self, user_data: UserCreate, avatar_url: Optional[str] = None) -> User:
        """Register a new user; username and email must both be unused"""
        stmt = select(User.id).where(
            or_(User.username == user_data.username, User.email == user_data.email)
        )
        result = await self.db.execute(stmt)
        if result.first() is not None:
            raise Conflict("Username or email is already registered")

        user = User(
            first_name=user_data.first_name,
            paternal_surname=user_data.paternal_surname,
            maternal_surname=user_data.maternal_surname,
            username=user_data.username,
            email=user_data.email,
            hashed_password=get_password_hash(user_data.password),
            avatar_url=avatar_url,
            phone=user_data.phone
        )

        self.db.add(user)
        try:
            await self.db.commit()
        except IntegrityError:
            # Lost a race with a concurrent registration
            await self.db.rollback()
            raise Conflict("Username or email is already registered")
        await self.db.refresh(user)

        logger.info(f"Registered user {user.id} ({user.username})")

        return user

    async def authenticate_user(self, username: str, password: str) -> User:
        """Authenticate by username or email"""
        stmt = select(User).where(
            (User.username == username) | (User.email == username)
        )
        result = await self.db.execute(stmt)
        user = result.scalars().first()

        if not user or not verify_password(password, user.hashed_password):
            raise AuthenticationFailed("Incorrect username or password")

        logger.info(f"User {user.id} logged in")

        return user
