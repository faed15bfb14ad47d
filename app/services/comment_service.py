from typing import Dict, List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update, delete, and_, or_, asc, desc, case
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload
import logging

from app.models.comment import Comment, CommentLike
from app.models.post import Post
from app.models.user import User
from app.schemas.common import UserSummary
from app.schemas.comment_schema import CommentOut, ThreadNode, CommentLikeResult
from app.services.counter_service import CounterService
from app.utils.exceptions import ServiceError, InvalidArgument, NotFound, PermissionDenied, Conflict

logger = logging.getLogger(__name__)

def to_comment_out(comment: Comment) -> CommentOut:
    return CommentOut(
        id=comment.id,
        post_id=comment.post_id,
        parent_id=comment.parent_id,
        content=comment.content,
        like_count=comment.like_count,
        created_at=comment.created_at,
        user=UserSummary.model_validate(comment.user)
    )

class CommentService:
    """Two-level comment threads: top-level comments and their direct replies"""

    def __init__(self, db: AsyncSession):
        self.db = db
        self.counters = CounterService(db)

    def _comment_query(self):
        return select(Comment).options(
            selectinload(Comment.user)
        ).execution_options(populate_existing=True)

    async def create_comment(
        self,
        post_id: Optional[int],
        user_id: Optional[int],
        content: Optional[str],
        parent_id: Optional[int] = None
    ) -> CommentOut:
        """
        Create a comment or a reply.

        A reply to a reply is attached to the top-level comment of that
        thread, so threads never go deeper than two levels.
        """
        if not post_id or not user_id or not content or not content.strip():
            raise InvalidArgument("post_id, user_id and content are required")

        try:
            await self._lock_post(post_id)

            author = await self.db.execute(select(User.id).where(User.id == user_id))
            if author.scalar_one_or_none() is None:
                raise NotFound("User not found")

            if parent_id:
                parent_id = await self._resolve_thread_root(post_id, parent_id)

            comment = Comment(
                post_id=post_id,
                user_id=user_id,
                content=content,
                parent_id=parent_id
            )
            self.db.add(comment)

            await self.db.execute(
                update(Post).where(Post.id == post_id).values(
                    comment_count=Post.comment_count + 1
                ).execution_options(synchronize_session=False)
            )

            await self.db.commit()

        except ServiceError:
            await self.db.rollback()
            raise
        except Exception as e:
            logger.error(f"Error creating comment: {e}")
            await self.db.rollback()
            raise

        logger.info(f"Created comment {comment.id} by user {user_id} on post {post_id}")

        return await self.get_comment_out(comment.id)

    async def _lock_post(self, post_id: int) -> None:
        # Post row first, then comment rows, for every write on a thread
        result = await self.db.execute(
            select(Post.id).where(Post.id == post_id).with_for_update()
        )
        if result.scalar_one_or_none() is None:
            raise NotFound("Post not found")

    async def _resolve_thread_root(self, post_id: int, parent_id: int) -> int:
        stmt = select(Comment.id, Comment.parent_id).where(
            and_(
                Comment.id == parent_id,
                Comment.post_id == post_id
            )
        )
        result = await self.db.execute(stmt)
        parent = result.first()

        if parent is None:
            raise NotFound("Parent comment not found or doesn't belong to this post")

        if parent.parent_id is not None:
            logger.debug(f"Flattening reply to comment {parent_id} onto {parent.parent_id}")
            return parent.parent_id
        return parent.id

    async def get_comment(self, comment_id: int) -> Optional[Comment]:
        """Get a comment by ID"""
        stmt = select(Comment).where(Comment.id == comment_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_comment_out(self, comment_id: int) -> CommentOut:
        result = await self.db.execute(self._comment_query().where(Comment.id == comment_id))
        comment = result.scalar_one_or_none()
        if comment is None:
            raise NotFound("Comment not found")
        return to_comment_out(comment)

    async def list_comments(self, post_id: int) -> List[ThreadNode]:
        """Top-level comments newest first, each with its replies oldest first"""
        top_stmt = self._comment_query().where(
            Comment.post_id == post_id,
            Comment.parent_id.is_(None)
        ).order_by(desc(Comment.created_at), desc(Comment.id))

        top_level = (await self.db.execute(top_stmt)).scalars().all()
        if not top_level:
            return []

        replies_stmt = self._comment_query().where(
            Comment.parent_id.in_([comment.id for comment in top_level])
        ).order_by(asc(Comment.created_at), asc(Comment.id))

        replies_by_parent: Dict[int, List[CommentOut]] = {}
        for reply in (await self.db.execute(replies_stmt)).scalars().all():
            replies_by_parent.setdefault(reply.parent_id, []).append(to_comment_out(reply))

        return [
            ThreadNode(
                **to_comment_out(comment).model_dump(),
                replies=replies_by_parent.get(comment.id, [])
            )
            for comment in top_level
        ]

    async def toggle_comment_like(self, comment_id: int, user_id: Optional[int]) -> Tuple[CommentLikeResult, str]:
        """Like a comment, or remove the like if the user already gave one"""
        if not user_id:
            raise InvalidArgument("user_id is required")

        try:
            comment = await self.db.execute(
                select(Comment.id).where(Comment.id == comment_id).with_for_update()
            )
            if comment.scalar_one_or_none() is None:
                raise NotFound("Comment not found")

            author = await self.db.execute(select(User.id).where(User.id == user_id))
            if author.scalar_one_or_none() is None:
                raise NotFound("User not found")

            result = await self.db.execute(
                delete(CommentLike).where(
                    and_(
                        CommentLike.user_id == user_id,
                        CommentLike.comment_id == comment_id
                    )
                )
            )

            if result.rowcount:
                has_like = False
                message = "Like removed"
            else:
                self.db.add(CommentLike(user_id=user_id, comment_id=comment_id))
                await self.db.flush()
                has_like = True
                message = "Like added"

            likes = await self.counters.recompute_comment_likes(comment_id)

            await self.db.commit()

        except ServiceError:
            await self.db.rollback()
            raise
        except IntegrityError as e:
            await self.db.rollback()
            logger.warning(f"Concurrent like on comment {comment_id} by user {user_id}: {e}")
            raise Conflict("Like was modified concurrently, retry the request")
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error toggling like on comment {comment_id}: {e}")
            raise

        logger.info(f"Comment {comment_id} like by user {user_id}: {message}")

        return CommentLikeResult(likes=likes, has_like=has_like), message

    async def get_liked_comment_ids(self, post_id: int, user_id: int) -> Dict[int, bool]:
        """Comments of a post that the user has liked, as {comment_id: True}"""
        stmt = select(CommentLike.comment_id).join(
            Comment, Comment.id == CommentLike.comment_id
        ).where(
            and_(
                CommentLike.user_id == user_id,
                Comment.post_id == post_id
            )
        )
        result = await self.db.execute(stmt)
        return {comment_id: True for comment_id in result.scalars().all()}

    async def delete_comment(self, comment_id: int, user_id: Optional[int]) -> None:
        """
        Delete a comment with its replies and all their likes.

        Post.comment_count drops by exactly one, however many replies
        go with the comment.
        """
        if not user_id:
            raise InvalidArgument("user_id is required")

        comment = await self.get_comment(comment_id)
        if not comment:
            raise NotFound("Comment not found")

        if comment.user_id != user_id:
            raise PermissionDenied("You don't have permission to delete this comment")

        post_id = comment.post_id
        thread_ids = select(Comment.id).where(
            or_(Comment.id == comment_id, Comment.parent_id == comment_id)
        )

        try:
            await self._lock_post(post_id)

            # A concurrent delete may have won while we waited for the post lock
            locked = await self.db.execute(
                select(Comment.id).where(Comment.id == comment_id).with_for_update()
            )
            if locked.scalar_one_or_none() is None:
                raise NotFound("Comment not found")

            await self.db.execute(
                delete(CommentLike).where(
                    CommentLike.comment_id.in_(thread_ids)
                ).execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(Comment).where(
                    Comment.parent_id == comment_id
                ).execution_options(synchronize_session=False)
            )
            await self.db.execute(
                delete(Comment).where(
                    Comment.id == comment_id
                ).execution_options(synchronize_session=False)
            )
            await self.db.execute(
                update(Post).where(Post.id == post_id).values(
                    comment_count=case(
                        (Post.comment_count > 0, Post.comment_count - 1),
                        else_=0
                    )
                ).execution_options(synchronize_session=False)
            )
            await self.db.commit()

        except ServiceError:
            await self.db.rollback()
            raise
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error deleting comment {comment_id}: {e}")
            raise

        logger.info(f"Deleted comment {comment_id} from post {post_id}")
