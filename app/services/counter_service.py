from typing import Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, func, and_
import logging

from app.models.post import Post
from app.models.comment import Comment, CommentLike
from app.models.reaction import Reaction, Favorite
from app.schemas.reaction_schema import ReactionKind

logger = logging.getLogger(__name__)

class CounterService:
    """
    Keeps the denormalized counters on posts and comments in line with the
    join tables. Every method runs inside the caller's transaction and never
    commits, so a toggle and its counter write land together.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def recompute_post_counters(self, post_id: int) -> Tuple[int, int]:
        """Rewrite like_count and favorite_count from reactions/favorites"""
        likes_subq = select(func.count(Reaction.id)).where(
            and_(
                Reaction.post_id == post_id,
                Reaction.kind == ReactionKind.LIKE.value
            )
        ).scalar_subquery()

        favorites_subq = select(func.count(Favorite.id)).where(
            Favorite.post_id == post_id
        ).scalar_subquery()

        stmt = update(Post).where(Post.id == post_id).values(
            like_count=likes_subq,
            favorite_count=favorites_subq
        ).execution_options(synchronize_session=False)
        await self.db.execute(stmt)

        result = await self.db.execute(
            select(Post.like_count, Post.favorite_count).where(Post.id == post_id)
        )
        row = result.first()
        if row is None:
            return 0, 0

        logger.debug(f"Post {post_id} counters: likes={row.like_count}, favorites={row.favorite_count}")
        return row.like_count, row.favorite_count

    async def recompute_comment_likes(self, comment_id: int) -> int:
        """Rewrite like_count of a comment from comment_likes"""
        likes_subq = select(func.count(CommentLike.id)).where(
            CommentLike.comment_id == comment_id
        ).scalar_subquery()

        stmt = update(Comment).where(Comment.id == comment_id).values(
            like_count=likes_subq
        ).execution_options(synchronize_session=False)
        await self.db.execute(stmt)

        result = await self.db.execute(
            select(Comment.like_count).where(Comment.id == comment_id)
        )
        likes = result.scalar_one_or_none()
        return likes or 0

    async def count_dislikes(self, post_id: int) -> int:
        """Dislikes are never cached on the post"""
        result = await self.db.execute(
            select(func.count(Reaction.id)).where(
                and_(
                    Reaction.post_id == post_id,
                    Reaction.kind == ReactionKind.DISLIKE.value
                )
            )
        )
        return result.scalar_one()
