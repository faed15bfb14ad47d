from typing import List, Optional, Tuple
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, delete, desc
from sqlalchemy.orm import selectinload
import logging

from app.models.post import Post, PostImage, POST_STATUS_ACTIVE
from app.models.user import User
from app.models.comment import Comment, CommentLike
from app.models.reaction import Reaction, Favorite
from app.schemas.common import UserSummary
from app.schemas.post_schema import PostCreate, PostUpdate, PostOut
from app.utils.exceptions import NotFound, PermissionDenied

logger = logging.getLogger(__name__)

def to_post_out(post: Post) -> PostOut:
    return PostOut(
        id=post.id,
        title=post.title,
        description=post.description,
        status=post.status,
        like_count=post.like_count,
        comment_count=post.comment_count,
        favorite_count=post.favorite_count,
        created_at=post.created_at,
        user=UserSummary.model_validate(post.user),
        images=[image.url for image in post.images]
    )

class PostService:
    def __init__(self, db: AsyncSession):
        self.db = db

    def _post_query(self):
        # populate_existing: counters are rewritten by bulk UPDATEs the identity map never sees
        return select(Post).options(
            selectinload(Post.user),
            selectinload(Post.images)
        ).execution_options(populate_existing=True)

    async def create_post(self, post_data: PostCreate, image_urls: Optional[List[str]] = None) -> PostOut:
        """Create a new post with its images in upload order"""
        author = await self.db.execute(select(User.id).where(User.id == post_data.user_id))
        if author.scalar_one_or_none() is None:
            raise NotFound("User not found")

        post = Post(
            user_id=post_data.user_id,
            title=post_data.title,
            description=post_data.description,
            status=POST_STATUS_ACTIVE
        )
        post.images = [
            PostImage(url=url, position=position)
            for position, url in enumerate(image_urls or [])
        ]

        self.db.add(post)
        await self.db.commit()

        logger.info(f"Created post {post.id} by user {post_data.user_id} with {len(image_urls or [])} images")

        return await self.get_post_out(post.id)

    async def get_post(self, post_id: int) -> Optional[Post]:
        """Get a post by ID"""
        stmt = select(Post).where(Post.id == post_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    async def get_post_owner(self, post_id: int) -> int:
        """Confirm a post exists and return its author id"""
        result = await self.db.execute(select(Post.user_id).where(Post.id == post_id))
        owner_id = result.scalar_one_or_none()
        if owner_id is None:
            raise NotFound("Post not found")
        return owner_id

    async def get_post_out(self, post_id: int) -> PostOut:
        result = await self.db.execute(self._post_query().where(Post.id == post_id))
        post = result.scalar_one_or_none()
        if post is None:
            raise NotFound("Post not found")
        return to_post_out(post)

    async def list_active_posts(self) -> List[PostOut]:
        """Active posts, newest first"""
        stmt = self._post_query().where(
            Post.status == POST_STATUS_ACTIVE
        ).order_by(desc(Post.created_at), desc(Post.id))

        result = await self.db.execute(stmt)
        return [to_post_out(post) for post in result.scalars().all()]

    async def list_favorite_posts(self, user_id: int) -> List[PostOut]:
        """Active posts the user saved, most recently saved first"""
        stmt = self._post_query().join(
            Favorite, Favorite.post_id == Post.id
        ).where(
            Favorite.user_id == user_id,
            Post.status == POST_STATUS_ACTIVE
        ).order_by(desc(Favorite.created_at), desc(Favorite.id))

        result = await self.db.execute(stmt)
        return [to_post_out(post) for post in result.scalars().all()]

    async def update_post(
        self,
        post_id: int,
        post_update: PostUpdate,
        user_id: Optional[int] = None,
        image_urls: Optional[List[str]] = None
    ) -> Tuple[PostOut, List[str]]:
        """
        Update title and description. When new images are given they replace
        the whole image set; the URLs of the replaced images are returned so
        the caller can remove the files once the commit succeeded.
        """
        post = await self.get_post(post_id)
        if not post:
            raise NotFound("Post not found")

        if user_id is not None and post.user_id != user_id:
            raise PermissionDenied("You don't have permission to update this post")

        post.title = post_update.title
        post.description = post_update.description

        replaced: List[str] = []
        if image_urls:
            old = await self.db.execute(
                select(PostImage.url).where(PostImage.post_id == post_id)
            )
            replaced = list(old.scalars().all())

            await self.db.execute(
                delete(PostImage).where(
                    PostImage.post_id == post_id
                ).execution_options(synchronize_session=False)
            )
            for position, url in enumerate(image_urls):
                self.db.add(PostImage(post_id=post_id, url=url, position=position))

        try:
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error updating post {post_id}: {e}")
            raise

        logger.info(f"Updated post {post_id}")

        return await self.get_post_out(post_id), replaced

    async def delete_post(self, post_id: int, user_id: Optional[int] = None) -> List[str]:
        """
        Delete a post and everything hanging off it in one transaction.

        Returns the image URLs of the deleted post so the caller can remove
        the files after the commit.
        """
        owner_id = await self.get_post_owner(post_id)
        if user_id is not None and owner_id != user_id:
            raise PermissionDenied("You don't have permission to delete this post")

        images = await self.db.execute(
            select(PostImage.url).where(PostImage.post_id == post_id)
        )
        image_urls = list(images.scalars().all())

        comment_ids = select(Comment.id).where(Comment.post_id == post_id)
        plan = [
            delete(CommentLike).where(CommentLike.comment_id.in_(comment_ids)),
            delete(Comment).where(Comment.post_id == post_id, Comment.parent_id.is_not(None)),
            delete(Comment).where(Comment.post_id == post_id),
            delete(Reaction).where(Reaction.post_id == post_id),
            delete(Favorite).where(Favorite.post_id == post_id),
            delete(PostImage).where(PostImage.post_id == post_id),
            delete(Post).where(Post.id == post_id),
        ]

        try:
            for stmt in plan:
                await self.db.execute(stmt.execution_options(synchronize_session=False))
            await self.db.commit()
        except Exception as e:
            await self.db.rollback()
            logger.error(f"Error deleting post {post_id}: {e}")
            raise

        logger.info(f"Deleted post {post_id} with {len(image_urls)} images")

        return image_urls
