from fastapi import APIRouter, Depends, Body, Form, UploadFile, File, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import List, Optional
import logging

from app.config import settings
from app.schemas.common import ApiResponse, PathId, MAX_ID
from app.schemas.post_schema import PostCreate, PostUpdate, PostDeleteRequest, PostOut
from app.services.post_service import PostService
from app.db.session import get_db
from app.utils.file_upload import save_upload_files, delete_files
from app.utils.exceptions import ServiceError, InvalidArgument, InternalError

logger = logging.getLogger(__name__)

router = APIRouter()

POST_IMAGES_DIR = "posts"

def _check_image_count(images: List[UploadFile]) -> None:
    if len(images) > settings.MAX_POST_IMAGES:
        raise InvalidArgument(f"A post can have at most {settings.MAX_POST_IMAGES} images")

@router.post("", response_model=ApiResponse[PostOut], status_code=status.HTTP_201_CREATED)
async def create_post(
    user_id: int = Form(..., ge=1, le=MAX_ID),
    title: str = Form(...),
    description: Optional[str] = Form(None),
    images: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db)
):
    """Create a new post with up to three images"""
    images = images or []
    _check_image_count(images)
    post_data = PostCreate(user_id=user_id, title=title, description=description or None)

    image_urls: List[str] = []
    try:
        image_urls = await save_upload_files(images, POST_IMAGES_DIR, settings.MAX_POST_IMAGE_SIZE)

        post_service = PostService(db)
        post = await post_service.create_post(post_data, image_urls)
        return ApiResponse(message="Post created", data=post)
    except ServiceError:
        delete_files(image_urls)
        raise
    except Exception as e:
        delete_files(image_urls)
        logger.error(f"Create post error: {e}")
        raise InternalError("Failed to create post", str(e))

@router.get("", response_model=ApiResponse[List[PostOut]])
async def get_posts(db: AsyncSession = Depends(get_db)):
    """Active posts, newest first"""
    try:
        post_service = PostService(db)
        posts = await post_service.list_active_posts()
        return ApiResponse(data=posts)
    except Exception as e:
        logger.error(f"Get posts error: {e}")
        raise InternalError("Failed to get posts", str(e))

@router.get("/favorites/{user_id}", response_model=ApiResponse[List[PostOut]])
async def get_favorite_posts(
    user_id: PathId,
    db: AsyncSession = Depends(get_db)
):
    """Posts a user saved as favorites"""
    try:
        post_service = PostService(db)
        posts = await post_service.list_favorite_posts(user_id)
        return ApiResponse(data=posts)
    except Exception as e:
        logger.error(f"Get favorites error: {e}")
        raise InternalError("Failed to get favorites", str(e))

@router.get("/{post_id}", response_model=ApiResponse[PostOut])
async def get_post(
    post_id: PathId,
    db: AsyncSession = Depends(get_db)
):
    """Get a post by ID"""
    try:
        post_service = PostService(db)
        post = await post_service.get_post_out(post_id)
        return ApiResponse(data=post)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Get post error: {e}")
        raise InternalError("Failed to get post", str(e))

@router.put("/{post_id}", response_model=ApiResponse[PostOut])
async def update_post(
    post_id: PathId,
    title: str = Form(...),
    description: Optional[str] = Form(None),
    user_id: Optional[int] = Form(None, ge=1, le=MAX_ID),
    images: Optional[List[UploadFile]] = File(None),
    db: AsyncSession = Depends(get_db)
):
    """Update a post; new images replace the current ones"""
    images = images or []
    _check_image_count(images)
    post_update = PostUpdate(title=title, description=description or None)

    image_urls: List[str] = []
    try:
        image_urls = await save_upload_files(images, POST_IMAGES_DIR, settings.MAX_POST_IMAGE_SIZE)

        post_service = PostService(db)
        post, replaced = await post_service.update_post(
            post_id,
            post_update,
            user_id=user_id,
            image_urls=image_urls
        )
    except ServiceError:
        delete_files(image_urls)
        raise
    except Exception as e:
        delete_files(image_urls)
        logger.error(f"Update post error: {e}")
        raise InternalError("Failed to update post", str(e))

    delete_files(replaced)
    return ApiResponse(message="Post updated", data=post)

@router.delete("/{post_id}", response_model=ApiResponse[None])
async def delete_post(
    post_id: PathId,
    body: Optional[PostDeleteRequest] = Body(None),
    db: AsyncSession = Depends(get_db)
):
    """Delete a post with its images, reactions, favorites and comments"""
    try:
        post_service = PostService(db)
        image_urls = await post_service.delete_post(
            post_id,
            user_id=body.user_id if body else None
        )
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Delete post error: {e}")
        raise InternalError("Failed to delete post", str(e))

    delete_files(image_urls)
    return ApiResponse(message="Post deleted")
