from sqlalchemy import Column, String, Text, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

POST_STATUS_ACTIVE = "active"
POST_STATUS_REMOVED = "removed"

class Post(BaseModel):
    __tablename__ = "posts"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    status = Column(String(20), default=POST_STATUS_ACTIVE, nullable=False)

    # Relationships
    user = relationship("User", back_populates="posts")
    images = relationship(
        "PostImage",
        back_populates="post",
        order_by="PostImage.position",
        cascade="all, delete-orphan",
        passive_deletes=True
    )
    comments = relationship("Comment", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    reactions = relationship("Reaction", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)
    favorites = relationship("Favorite", back_populates="post", cascade="all, delete-orphan", passive_deletes=True)

    # Denormalized counts, recomputed from the join tables after each toggle
    like_count = Column(Integer, default=0, nullable=False)
    comment_count = Column(Integer, default=0, nullable=False)
    favorite_count = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index('ix_posts_user_id', 'user_id'),
        Index('ix_posts_created_at', 'created_at'),
        Index('ix_posts_status', 'status'),
    )

class PostImage(BaseModel):
    __tablename__ = "post_images"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    url = Column(String(255), nullable=False)
    position = Column(Integer, default=0, nullable=False)

    post = relationship("Post", back_populates="images")

    __table_args__ = (
        UniqueConstraint('post_id', 'position', name='unique_post_image_position'),
        Index('ix_post_images_post_id', 'post_id'),
    )
