from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession
from typing import Dict, List
import logging

from app.schemas.common import ApiResponse, PathId
from app.schemas.comment_schema import (
    CommentCreate,
    CommentUserRequest,
    CommentOut,
    ThreadNode,
    CommentLikeResult
)
from app.services.comment_service import CommentService
from app.db.session import get_db
from app.utils.exceptions import ServiceError, InternalError

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("", response_model=ApiResponse[CommentOut], status_code=status.HTTP_201_CREATED)
async def create_comment(
    comment_data: CommentCreate,
    db: AsyncSession = Depends(get_db)
):
    """Create a comment on a post, or a reply when parent_id is given"""
    try:
        comment_service = CommentService(db)
        comment = await comment_service.create_comment(
            post_id=comment_data.post_id,
            user_id=comment_data.user_id,
            content=comment_data.content,
            parent_id=comment_data.parent_id
        )
        return ApiResponse(message="Comment created", data=comment)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error creating comment: {e}")
        raise InternalError("Failed to create comment", str(e))

@router.get("/post/{post_id}", response_model=ApiResponse[List[ThreadNode]])
async def get_post_comments(
    post_id: PathId,
    db: AsyncSession = Depends(get_db)
):
    """Comment threads of a post"""
    try:
        comment_service = CommentService(db)
        threads = await comment_service.list_comments(post_id)
        return ApiResponse(data=threads)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error getting comments of post {post_id}: {e}")
        raise InternalError("Failed to get comments", str(e))

@router.post("/like/{comment_id}", response_model=ApiResponse[CommentLikeResult])
async def toggle_comment_like(
    comment_id: PathId,
    body: CommentUserRequest,
    db: AsyncSession = Depends(get_db)
):
    """Like a comment, or take the like back"""
    try:
        comment_service = CommentService(db)
        result, message = await comment_service.toggle_comment_like(comment_id, body.user_id)
        return ApiResponse(message=message, data=result)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error toggling like on comment {comment_id}: {e}")
        raise InternalError("Failed to toggle comment like", str(e))

@router.get("/likes/user/{user_id}/post/{post_id}", response_model=ApiResponse[Dict[int, bool]])
async def get_user_comment_likes(
    user_id: PathId,
    post_id: PathId,
    db: AsyncSession = Depends(get_db)
):
    """Which comments of a post the user has liked"""
    try:
        comment_service = CommentService(db)
        liked = await comment_service.get_liked_comment_ids(post_id, user_id)
        return ApiResponse(data=liked)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error getting comment likes of user {user_id}: {e}")
        raise InternalError("Failed to get comment likes", str(e))

@router.delete("/{comment_id}", response_model=ApiResponse[None])
async def delete_comment(
    comment_id: PathId,
    body: CommentUserRequest,
    db: AsyncSession = Depends(get_db)
):
    """Delete one of the user's own comments together with its replies"""
    try:
        comment_service = CommentService(db)
        await comment_service.delete_comment(comment_id, body.user_id)
        return ApiResponse(message="Comment deleted")
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Error deleting comment {comment_id}: {e}")
        raise InternalError("Failed to delete comment", str(e))
