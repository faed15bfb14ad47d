from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from app.schemas.common import ApiResponse, PathId
from app.schemas.reaction_schema import (
    ReactionRequest,
    FavoriteRequest,
    ReactionResult,
    FavoriteResult,
    ReactionState
)
from app.services.reaction_service import ReactionService
from app.db.session import get_db
from app.utils.exceptions import ServiceError, InternalError

logger = logging.getLogger(__name__)

router = APIRouter()

@router.post("/post/{post_id}", response_model=ApiResponse[ReactionResult])
async def react_to_post(
    post_id: PathId,
    reaction: ReactionRequest,
    db: AsyncSession = Depends(get_db)
):
    """Like or dislike a post; repeating the same reaction removes it"""
    try:
        reaction_service = ReactionService(db)
        result, message = await reaction_service.apply_reaction(
            post_id=post_id,
            user_id=reaction.user_id,
            kind=reaction.kind
        )
        return ApiResponse(message=message, data=result)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Reaction error on post {post_id}: {e}")
        raise InternalError("Failed to apply reaction", str(e))

@router.post("/favorite/{post_id}", response_model=ApiResponse[FavoriteResult])
async def toggle_favorite(
    post_id: PathId,
    favorite: FavoriteRequest,
    db: AsyncSession = Depends(get_db)
):
    """Add a post to the user's favorites or remove it"""
    try:
        reaction_service = ReactionService(db)
        result, message = await reaction_service.apply_favorite(
            post_id=post_id,
            user_id=favorite.user_id
        )
        return ApiResponse(message=message, data=result)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Favorite error on post {post_id}: {e}")
        raise InternalError("Failed to toggle favorite", str(e))

@router.get("/state/{post_id}/{user_id}", response_model=ApiResponse[ReactionState])
async def get_reaction_state(
    post_id: PathId,
    user_id: PathId,
    db: AsyncSession = Depends(get_db)
):
    """Current reaction and favorite of a user on a post, with the post counters"""
    try:
        reaction_service = ReactionService(db)
        state = await reaction_service.get_reaction_state(post_id, user_id)
        return ApiResponse(data=state)
    except ServiceError:
        raise
    except Exception as e:
        logger.error(f"Reaction state error on post {post_id}: {e}")
        raise InternalError("Failed to get reaction state", str(e))
