from sqlalchemy import Column, Text, Integer, ForeignKey, Index, UniqueConstraint
from sqlalchemy.orm import relationship
from app.db.base import BaseModel

class Comment(BaseModel):
    __tablename__ = "comments"

    post_id = Column(Integer, ForeignKey("posts.id", ondelete="CASCADE"), nullable=False)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    content = Column(Text, nullable=False)
    parent_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=True)

    # Relationships
    post = relationship("Post", back_populates="comments")
    user = relationship("User", back_populates="comments")
    parent = relationship(
        "Comment",
        remote_side="Comment.id",
        backref="replies",
        foreign_keys=[parent_id]
    )
    likes = relationship("CommentLike", back_populates="comment", cascade="all, delete-orphan", passive_deletes=True)

    # Denormalized, recomputed from comment_likes
    like_count = Column(Integer, default=0, nullable=False)

    __table_args__ = (
        Index('ix_comments_post_id', 'post_id'),
        Index('ix_comments_user_id', 'user_id'),
        Index('ix_comments_parent_id', 'parent_id'),
        Index('ix_comments_created_at', 'created_at'),
    )

class CommentLike(BaseModel):
    __tablename__ = "comment_likes"

    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False)
    comment_id = Column(Integer, ForeignKey("comments.id", ondelete="CASCADE"), nullable=False)

    comment = relationship("Comment", back_populates="likes")

    __table_args__ = (
        UniqueConstraint('user_id', 'comment_id', name='unique_comment_like'),
        Index('ix_comment_likes_comment_id', 'comment_id'),
    )
