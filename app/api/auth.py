from fastapi import APIRouter, Depends, Form, Request, UploadFile, File, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Optional
import logging

from app.config import settings
from app.schemas.common import ApiResponse
from app.schemas.user_schema import UserCreate, UserOut, LoginRequest
from app.services.auth_service import AuthService
from app.db.session import get_db
from app.utils.file_upload import save_upload_file, delete_file
from app.utils.rate_limit import limiter
from app.utils.exceptions import ServiceError, InternalError

logger = logging.getLogger(__name__)

router = APIRouter()

AVATARS_DIR = "avatars"

@router.post("/register", response_model=ApiResponse[UserOut], status_code=status.HTTP_201_CREATED)
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def register(
    request: Request,
    first_name: str = Form(...),
    paternal_surname: str = Form(...),
    username: str = Form(...),
    email: str = Form(...),
    password: str = Form(...),
    maternal_surname: Optional[str] = Form(None),
    phone: Optional[str] = Form(None),
    avatar: Optional[UploadFile] = File(None),
    db: AsyncSession = Depends(get_db)
):
    """Register a new user, optionally with a profile picture"""
    user_data = UserCreate(
        first_name=first_name,
        paternal_surname=paternal_surname,
        maternal_surname=maternal_surname,
        username=username,
        email=email,
        password=password,
        phone=phone
    )

    avatar_url = None
    try:
        if avatar is not None and avatar.filename:
            avatar_url = await save_upload_file(avatar, AVATARS_DIR, settings.MAX_AVATAR_SIZE)

        auth_service = AuthService(db)
        user = await auth_service.create_user(user_data, avatar_url=avatar_url)
        return ApiResponse(message="User registered", data=UserOut.model_validate(user))
    except ServiceError:
        if avatar_url:
            delete_file(avatar_url)
        raise
    except Exception as e:
        if avatar_url:
            delete_file(avatar_url)
        logger.error(f"Registration error: {e}")
        raise InternalError("Registration failed", str(e))

@router.post("/login", response_model=ApiResponse[UserOut])
@limiter.limit(settings.AUTH_RATE_LIMIT)
async def login(
    request: Request,
    credentials: LoginRequest,
    db: AsyncSession = Depends(get_db)
):
    """Check credentials and return the user's profile"""
    try:
        auth_service = AuthService(db)
        user = await auth_service.authenticate_user(
            credentials.username,
            credentials.password
        )
        return ApiResponse(message="Login successful", data=UserOut.model_validate(user))
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Login error: {e}")
        raise InternalError("Login failed", str(e))
