from typing import Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, and_
from sqlalchemy.exc import IntegrityError
import logging

from app.models.post import Post
from app.models.user import User
from app.models.reaction import Reaction, Favorite
from app.schemas.reaction_schema import (
    ReactionKind,
    ReactionResult,
    FavoriteResult,
    ReactionState
)
from app.services.counter_service import CounterService
from app.utils.exceptions import ServiceError, InvalidArgument, NotFound, Conflict

logger = logging.getLogger(__name__)

class ReactionService:
    """
    Like/dislike and favorite toggles on posts.

    Each toggle is one transaction: the post row is locked, the user's
    existing row is read, the transition is written, and the post counters
    are recomputed before the commit. Any failure rolls all of it back.
    """

    def __init__(self, db: AsyncSession):
        self.db = db
        self.counters = CounterService(db)

    async def apply_reaction(
        self,
        post_id: int,
        user_id: Optional[int],
        kind: Optional[str]
    ) -> Tuple[ReactionResult, str]:
        """
        Apply a like or dislike.

        Same kind as the existing reaction removes it, a different kind
        switches it in place, no existing reaction inserts one.
        """
        if not user_id or not kind:
            raise InvalidArgument("user_id and kind are required")
        try:
            requested = ReactionKind(kind)
        except ValueError:
            raise InvalidArgument('kind must be "like" or "dislike"')

        try:
            await self._lock_post(post_id)
            await self._ensure_user(user_id)

            result = await self.db.execute(
                select(Reaction).where(
                    and_(
                        Reaction.user_id == user_id,
                        Reaction.post_id == post_id
                    )
                )
            )
            existing = result.scalar_one_or_none()

            if existing is None:
                self.db.add(Reaction(user_id=user_id, post_id=post_id, kind=requested.value))
                user_reaction = requested
                message = f"{requested.value} added"
            elif existing.kind == requested.value:
                await self.db.delete(existing)
                user_reaction = None
                message = f"{requested.value} removed"
            else:
                previous = existing.kind
                existing.kind = requested.value
                user_reaction = requested
                message = f"Changed from {previous} to {requested.value}"
            await self.db.flush()

            likes, _ = await self.counters.recompute_post_counters(post_id)
            dislikes = await self.counters.count_dislikes(post_id)

            await self.db.commit()

        except ServiceError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Concurrent reaction on post {post_id} by user {user_id}: {e}")
            raise Conflict("Reaction was modified concurrently, retry the request")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error applying reaction on post {post_id} by user {user_id}: {e}")
            raise

        logger.info(f"Reaction on post {post_id} by user {user_id}: {message}")

        return ReactionResult(likes=likes, dislikes=dislikes, user_reaction=user_reaction), message

    async def apply_favorite(self, post_id: int, user_id: Optional[int]) -> Tuple[FavoriteResult, str]:
        """Add the post to the user's favorites, or remove it if already there"""
        if not user_id:
            raise InvalidArgument("user_id is required")

        try:
            await self._lock_post(post_id)
            await self._ensure_user(user_id)

            result = await self.db.execute(
                delete(Favorite).where(
                    and_(
                        Favorite.user_id == user_id,
                        Favorite.post_id == post_id
                    )
                )
            )

            if result.rowcount:
                is_favorite = False
                message = "Favorite removed"
            else:
                self.db.add(Favorite(user_id=user_id, post_id=post_id))
                await self.db.flush()
                is_favorite = True
                message = "Favorite added"

            _, favorites = await self.counters.recompute_post_counters(post_id)

            await self.db.commit()

        except ServiceError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Concurrent favorite on post {post_id} by user {user_id}: {e}")
            raise Conflict("Favorite was modified concurrently, retry the request")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error toggling favorite on post {post_id} by user {user_id}: {e}")
            raise

        logger.info(f"Favorite on post {post_id} by user {user_id}: {message}")

        return FavoriteResult(favorites=favorites, is_favorite=is_favorite), message

    async def get_reaction_state(self, post_id: int, user_id: int) -> ReactionState:
        """Read-only view of a user's reaction and the post counters; unknown posts read as zero"""
        reaction = await self.db.execute(
            select(Reaction.kind).where(
                and_(
                    Reaction.user_id == user_id,
                    Reaction.post_id == post_id
                )
            )
        )
        kind = reaction.scalar_one_or_none()

        favorite = await self.db.execute(
            select(Favorite.id).where(
                and_(
                    Favorite.user_id == user_id,
                    Favorite.post_id == post_id
                )
            )
        )
        is_favorite = favorite.scalar_one_or_none() is not None

        counters = await self.db.execute(
            select(Post.like_count, Post.favorite_count).where(Post.id == post_id)
        )
        row = counters.first()

        return ReactionState(
            user_reaction=ReactionKind(kind) if kind else None,
            is_favorite=is_favorite,
            likes=row.like_count if row else 0,
            dislikes=await self.counters.count_dislikes(post_id),
            favorites=row.favorite_count if row else 0
        )

    async def _lock_post(self, post_id: int) -> None:
        # Serializes toggles on the same post until commit (no-op on SQLite)
        result = await self.db.execute(
            select(Post.id).where(Post.id == post_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFound("Post not found")

    async def _ensure_user(self, user_id: int) -> None:
        result = await self.db.execute(select(User.id).where(User.id == user_id))
        if result.scalar_one_or_none() is None:
            raise NotFound("User not found")
